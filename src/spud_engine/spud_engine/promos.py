"""Promo code registry with case-insensitive lookup."""

import json
from collections.abc import Iterable
from pathlib import Path

from loguru import logger

from .errors import DuplicatePromoError, InvalidPromoError
from .models import PromoCode


class PromoRegistry:
    def __init__(self, promos: Iterable[PromoCode] = ()) -> None:
        self._promos: dict[str, PromoCode] = {}
        for promo in promos:
            if promo.code in self._promos:
                raise DuplicatePromoError(promo.code)
            self._promos[promo.code] = promo

    @classmethod
    def from_json_file(cls, path: str | Path) -> "PromoRegistry":
        """Load the ``promo_codes`` list from a JSON file (missing key -> empty)."""
        with open(path, "r") as f:
            data = json.load(f)
        return cls(PromoCode(**p) for p in data.get("promo_codes", []))

    def codes(self) -> list[PromoCode]:
        return list(self._promos.values())

    def find_active_promo(self, code: str) -> PromoCode | None:
        """Return the active promo for ``code`` (any case), else None."""
        promo = self._promos.get(code.strip().upper())
        if promo is None or not promo.is_active:
            return None
        return promo

    def resolve(self, code: str) -> PromoCode:
        promo = self.find_active_promo(code)
        if promo is None:
            logger.warning("Rejected promo code {!r}", code)
            raise InvalidPromoError(code)
        return promo

    # -- admin operations -------------------------------------------------

    def add(self, code: str, discount_percentage: int) -> PromoCode:
        promo = PromoCode(code=code, discount_percentage=discount_percentage)
        if promo.code in self._promos:
            raise DuplicatePromoError(promo.code)
        self._promos[promo.code] = promo
        logger.info("Added promo {} ({}%)", promo.code, promo.discount_percentage)
        return promo

    def toggle(self, code: str) -> PromoCode:
        key = code.strip().upper()
        promo = self._promos.get(key)
        if promo is None:
            raise InvalidPromoError(code)
        toggled = promo.model_copy(update={"is_active": not promo.is_active})
        self._promos[key] = toggled
        logger.info("Promo {} is now {}", key, "active" if toggled.is_active else "inactive")
        return toggled

    def remove(self, code: str) -> None:
        self._promos.pop(code.strip().upper(), None)
