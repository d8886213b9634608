"""Badge unlock rules evaluated over a user's order history.

Each rule is a predicate over a ``BadgeContext``. A badge is granted when its
predicate holds and it is not already held; badges are never revoked.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Protocol

from loguru import logger

from .enums import Badge, MenuCategory
from .models import Menu, Order


@dataclass(frozen=True)
class BadgeContext:
    """Inputs shared by every rule.

    ``history`` is newest first and already includes ``current_order``.
    """

    history: Sequence[Order]
    current_order: Order
    menu: Menu


@dataclass(frozen=True)
class BadgeEvaluation:
    badges: list[Badge]
    newly_earned: list[Badge]


class BadgeRule(Protocol):
    badge: Badge

    def holds(self, context: BadgeContext) -> bool: ...


@dataclass(frozen=True)
class FirstOrderRule:
    badge: Badge = Badge.FIRST_ORDER

    def holds(self, context: BadgeContext) -> bool:
        return len(context.history) == 1


@dataclass(frozen=True)
class CategoryCompletionistRule:
    """Every item the current menu lists in ``category`` has been bought."""

    category: str = MenuCategory.LOADED_FRIES.value
    badge: Badge = Badge.CATEGORY_COMPLETIONIST

    def holds(self, context: BadgeContext) -> bool:
        required = {item.id for item in context.menu.items_in_category(self.category)}
        if not required:
            return False
        purchased = set()
        for order in context.history:
            purchased |= order.item_ids()
        return required <= purchased


@dataclass(frozen=True)
class FirstRedemptionRule:
    badge: Badge = Badge.FIRST_REDEMPTION

    def holds(self, context: BadgeContext) -> bool:
        return context.current_order.points_redeemed > 0


def default_badge_rules(completionist_category: str = MenuCategory.LOADED_FRIES.value) -> list[BadgeRule]:
    return [
        FirstOrderRule(),
        CategoryCompletionistRule(category=completionist_category),
        FirstRedemptionRule(),
    ]


def evaluate_badges(
    context: BadgeContext,
    held: Iterable[Badge],
    rules: Sequence[BadgeRule] | None = None,
) -> BadgeEvaluation:
    """Return the badge set after applying ``rules`` to ``context``.

    Existing badges keep their order; new ones follow in rule order.
    """
    if rules is None:
        rules = default_badge_rules()
    badges = list(dict.fromkeys(held))
    newly_earned = []
    for rule in rules:
        if rule.badge in badges:
            continue
        if rule.holds(context):
            badges.append(rule.badge)
            newly_earned.append(rule.badge)

    if newly_earned:
        logger.info("Badges unlocked: {}", ", ".join(newly_earned))
    return BadgeEvaluation(badges=badges, newly_earned=newly_earned)
