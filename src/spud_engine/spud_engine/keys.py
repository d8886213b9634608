"""Cart line identity for an item + customization selection."""

import json
from collections.abc import Iterable

from .models import SelectedCustomization


def canonical_customizations(
    customizations: Iterable[SelectedCustomization],
) -> list[SelectedCustomization]:
    """Sort by (category title, option name), dropping repeated pairs."""
    unique = {c.sort_key: c for c in customizations}
    return [unique[k] for k in sorted(unique)]


def cart_item_key(
    item_id: int, customizations: Iterable[SelectedCustomization] = ()
) -> str:
    """Return a key that is equal for equal selections regardless of order.

    An empty selection is keyed by the bare item id; otherwise the sorted
    (title, option) pairs are appended as compact JSON.
    """
    canonical = canonical_customizations(customizations)
    if not canonical:
        return str(item_id)
    pairs = [[c.title, c.option.name] for c in canonical]
    return f"{item_id}-{json.dumps(pairs, separators=(',', ':'), ensure_ascii=False)}"
