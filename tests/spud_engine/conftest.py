"""Shared pytest fixtures for spud_engine tests."""

import itertools
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path

import pytest

from spud_engine.cart import Cart
from spud_engine.checkout import CheckoutService
from spud_engine.config import Settings
from spud_engine.models import Menu, MenuItem
from spud_engine.promos import PromoRegistry
from spud_engine.storage import KeyValueStorage

# Path to the menu JSON relative to project root
MENU_JSON_PATH = Path(__file__).resolve().parents[2] / "menus" / "spud" / "menu.json"

FIXED_NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def menu() -> Menu:
    """Load the Spud menu from JSON."""
    return Menu.from_json_file(MENU_JSON_PATH)


@pytest.fixture
def promos() -> PromoRegistry:
    return PromoRegistry.from_json_file(MENU_JSON_PATH)


@pytest.fixture
def empty_cart() -> Cart:
    return Cart()


@pytest.fixture
def ten_dollar_item() -> MenuItem:
    return MenuItem(id=100, name="Ten Dollar Tots", price=Decimal("10.00"), category="sides")


@pytest.fixture
def twenty_dollar_item() -> MenuItem:
    return MenuItem(id=101, name="Twenty Dollar Tots", price=Decimal("20.00"), category="sides")


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def backend() -> dict[str, str]:
    return {}


@pytest.fixture
def storage(backend) -> KeyValueStorage:
    return KeyValueStorage(backend)


@pytest.fixture
def service(storage, menu, promos, settings) -> CheckoutService:
    """CheckoutService with a fixed clock and predictable order ids."""
    counter = itertools.count(1)
    return CheckoutService(
        storage,
        menu,
        promos,
        settings,
        clock=lambda: FIXED_NOW,
        id_factory=lambda: f"ORD{next(counter):04d}",
    )


@pytest.fixture
def fixed_now() -> datetime:
    """The clock value ``service`` stamps on every order."""
    return FIXED_NOW
