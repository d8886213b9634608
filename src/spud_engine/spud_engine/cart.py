"""In-progress cart: line aggregation and totals."""

from collections.abc import Iterable
from decimal import Decimal

from loguru import logger

from .enums import CustomizationType
from .errors import (
    InvalidCustomizationError,
    InvalidQuantityError,
    ItemUnavailableError,
    UnknownMenuItemError,
)
from .keys import canonical_customizations, cart_item_key
from .models import CartLine, DailySpecial, Menu, MenuItem, SelectedCustomization
from .money import from_cents

DAILY_SPECIAL_KEY_SUFFIX = "@daily-special"


def _resolve_customizations(
    item: MenuItem, customizations: Iterable[SelectedCustomization]
) -> list[SelectedCustomization]:
    """Validate selections against the item's schema.

    Returns the canonical selections carrying the catalog's option prices.
    """
    resolved = []
    per_category: dict[str, int] = {}
    for selected in canonical_customizations(customizations):
        category = item.get_customization_category(selected.title)
        if category is None:
            raise InvalidCustomizationError(
                f"{item.name} has no customization category {selected.title!r}"
            )
        option = category.get_option(selected.option.name)
        if option is None:
            raise InvalidCustomizationError(
                f"{selected.option.name!r} is not an option of {selected.title!r}"
            )
        per_category[category.title] = per_category.get(category.title, 0) + 1
        if category.type == CustomizationType.SINGLE and per_category[category.title] > 1:
            raise InvalidCustomizationError(
                f"{selected.title!r} allows a single selection"
            )
        resolved.append(SelectedCustomization(title=category.title, option=option))
    return resolved


class Cart:
    """Holds cart lines keyed by item + canonical customization set.

    Lines are kept in insertion order for display; totals do not depend on it.
    """

    def __init__(self) -> None:
        self._lines: dict[str, CartLine] = {}

    @property
    def lines(self) -> tuple[CartLine, ...]:
        return tuple(self._lines.values())

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self):
        return iter(self.lines)

    def __contains__(self, key: object) -> bool:
        return key in self._lines

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def get(self, key: str) -> CartLine | None:
        return self._lines.get(key)

    def add(
        self,
        item: MenuItem,
        quantity: int = 1,
        customizations: Iterable[SelectedCustomization] = (),
    ) -> CartLine:
        """Add ``quantity`` of an item, merging with an identical line."""
        if quantity <= 0:
            raise InvalidQuantityError(quantity)
        if not item.is_available:
            raise ItemUnavailableError(item.id, item.name)

        selections = _resolve_customizations(item, customizations)
        key = cart_item_key(item.id, selections)
        line = CartLine(
            key=key,
            item_id=item.id,
            name=item.name,
            category=item.category,
            unit_price=item.price,
            quantity=quantity,
            customizations=selections,
        )
        return self._merge(line)

    def add_daily_special(
        self, menu: Menu, special: DailySpecial, quantity: int = 1
    ) -> CartLine:
        """Add the daily special item at its override price.

        Special-price lines never merge with regular-price lines of the
        same item.
        """
        if quantity <= 0:
            raise InvalidQuantityError(quantity)
        item = menu.get_item(special.item_id)
        if item is None:
            raise UnknownMenuItemError(special.item_id)
        if not item.is_available:
            raise ItemUnavailableError(item.id, item.name)

        line = CartLine(
            key=f"{cart_item_key(item.id)}{DAILY_SPECIAL_KEY_SUFFIX}",
            item_id=item.id,
            name=item.name,
            category=item.category,
            unit_price=special.special_price,
            quantity=quantity,
        )
        return self._merge(line)

    def _merge(self, line: CartLine) -> CartLine:
        existing = self._lines.get(line.key)
        merged = existing + line if existing is not None else line
        self._lines[line.key] = merged
        logger.debug(
            "Cart line {} now has quantity {} ({})",
            line.key,
            merged.quantity,
            "merged" if existing is not None else "new",
        )
        return merged

    def remove(self, key: str) -> None:
        """Remove a line; unknown keys are ignored."""
        if self._lines.pop(key, None) is not None:
            logger.debug("Removed cart line {}", key)

    def set_quantity(self, key: str, quantity: int) -> None:
        if quantity <= 0:
            self.remove(key)
            return
        line = self._lines.get(key)
        if line is None:
            return
        self._lines[key] = line.model_copy(update={"quantity": quantity})

    def clear(self) -> None:
        self._lines.clear()

    def item_count(self) -> int:
        return sum(line.quantity for line in self._lines.values())

    def subtotal_cents(self) -> int:
        return sum(line.line_total_cents for line in self._lines.values())

    def subtotal(self) -> Decimal:
        return from_cents(self.subtotal_cents())
