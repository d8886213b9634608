"""Application configuration via pydantic-settings.

Reads from environment variables and .env file at project root.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Project root is 4 levels up from this file:
# src/spud_engine/spud_engine/config.py -> project root
PROJECT_ROOT = Path(__file__).resolve().parents[3]


class Settings(BaseSettings):
    """Application settings loaded from environment / .env file."""

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- Pricing ---
    tax_rate: Decimal = Decimal("0.08")
    delivery_fee: Decimal = Decimal("5.00")

    # --- Loyalty ---
    points_per_dollar: int = 100
    completionist_category: str = "loaded-fries"

    # --- Fulfillment ---
    delivery_eta_minutes: int = 30
    pickup_eta_minutes: int = 20

    # --- Data ---
    menu_json_path: str = str(PROJECT_ROOT / "menus" / "spud" / "menu.json")
    store_path: str = str(PROJECT_ROOT / "data" / "spud-store")

    # --- Logging ---
    log_level: str = "INFO"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached Settings instance (created once)."""
    return Settings()
