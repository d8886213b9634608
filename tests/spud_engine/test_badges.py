"""Tests for badge unlock rules."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from spud_engine.badges import (
    BadgeContext,
    CategoryCompletionistRule,
    FirstOrderRule,
    FirstRedemptionRule,
    default_badge_rules,
    evaluate_badges,
)
from spud_engine.enums import Badge, OrderType
from spud_engine.models import CartLine, Menu, MenuItem, Order

START = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_order(n: int, item_ids: list[int], points_redeemed: int = 0) -> Order:
    lines = [
        CartLine(
            key=str(item_id),
            item_id=item_id,
            name=f"Item {item_id}",
            category="loaded-fries",
            unit_price=Decimal("1.00"),
        )
        for item_id in item_ids
    ]
    return Order(
        id=f"ORD{n}",
        created_at=START + timedelta(days=n),
        order_type=OrderType.PICKUP,
        items=lines,
        subtotal=Decimal(len(lines)),
        tax=Decimal("0.00"),
        delivery_fee=Decimal("0.00"),
        points_discount=Decimal(points_redeemed) / 100,
        promo_discount=Decimal("0.00"),
        total=Decimal(len(lines)),
        points_redeemed=points_redeemed,
        points_earned=len(lines),
    )


def run(menu: Menu, history: list[Order], held=()):
    """Evaluate with ``history`` newest first and its head as the current order."""
    return evaluate_badges(
        BadgeContext(history=history, current_order=history[0], menu=menu), held
    )


class TestFirstOrder:
    def test_granted_on_first_order(self, menu: Menu):
        result = run(menu, [make_order(1, [5])])
        assert Badge.FIRST_ORDER in result.newly_earned

    def test_not_granted_on_later_orders(self, menu: Menu):
        history = [make_order(2, [5]), make_order(1, [5])]
        assert FirstOrderRule().holds(
            BadgeContext(history=history, current_order=history[0], menu=menu)
        ) is False
        assert Badge.FIRST_ORDER not in run(menu, history).badges

    def test_granted_exactly_once_across_history(self, menu: Menu):
        held: list[Badge] = []
        grants = 0
        history: list[Order] = []
        for n in range(1, 6):
            history = [make_order(n, [5])] + history
            result = run(menu, history, held)
            grants += result.newly_earned.count(Badge.FIRST_ORDER)
            held = result.badges
        assert grants == 1


class TestCategoryCompletionist:
    LOADED_FRIES = [1, 2, 3, 8]  # 8 is unavailable but still on the menu

    def test_requires_every_item_in_category(self, menu: Menu):
        history = [make_order(1, [1, 2, 3])]
        assert Badge.CATEGORY_COMPLETIONIST not in run(menu, history).badges

    def test_granted_across_multiple_orders(self, menu: Menu):
        history = [make_order(3, [8]), make_order(2, [3, 5]), make_order(1, [1, 2])]
        result = run(menu, history)
        assert Badge.CATEGORY_COMPLETIONIST in result.newly_earned

    def test_uses_current_menu(self, menu: Menu):
        history = [make_order(1, [1, 2, 3])]
        trimmed = menu.model_copy(update={"items": [i for i in menu.items if i.id != 8]})
        assert Badge.CATEGORY_COMPLETIONIST in run(trimmed, history).badges

        extended = menu.model_copy(
            update={
                "items": menu.items
                + [MenuItem(id=50, name="New Fries", price=Decimal("9.00"), category="loaded-fries")]
            }
        )
        history = [make_order(1, self.LOADED_FRIES)]
        assert Badge.CATEGORY_COMPLETIONIST not in run(extended, history).badges

    def test_empty_category_never_grants(self, menu: Menu):
        rule = CategoryCompletionistRule(category="desserts")
        history = [make_order(1, [5])]
        ctx = BadgeContext(history=history, current_order=history[0], menu=menu)
        assert rule.holds(ctx) is False

    def test_configurable_category(self, menu: Menu):
        history = [make_order(1, [5, 6])]
        result = evaluate_badges(
            BadgeContext(history=history, current_order=history[0], menu=menu),
            [],
            default_badge_rules("sides"),
        )
        assert Badge.CATEGORY_COMPLETIONIST in result.badges


class TestFirstRedemption:
    def test_granted_when_points_redeemed(self, menu: Menu):
        history = [make_order(2, [5], points_redeemed=100), make_order(1, [5])]
        result = run(menu, history, [Badge.FIRST_ORDER])
        assert result.newly_earned == [Badge.FIRST_REDEMPTION]

    def test_not_granted_without_redemption(self, menu: Menu):
        order = make_order(1, [5])
        ctx = BadgeContext(history=[order], current_order=order, menu=menu)
        assert FirstRedemptionRule().holds(ctx) is False

    def test_not_granted_twice(self, menu: Menu):
        history = [make_order(2, [5], points_redeemed=50)]
        result = run(menu, history, [Badge.FIRST_REDEMPTION])
        assert Badge.FIRST_REDEMPTION not in result.newly_earned
        assert result.badges.count(Badge.FIRST_REDEMPTION) == 1


class TestEvaluation:
    def test_existing_badges_never_revoked(self, menu: Menu):
        history = [make_order(2, [5]), make_order(1, [5])]
        held = [Badge.CATEGORY_COMPLETIONIST, Badge.FIRST_ORDER]
        result = run(menu, history, held)
        assert result.badges == held
        assert result.newly_earned == []

    def test_second_evaluation_earns_nothing_new(self, menu: Menu):
        history = [make_order(1, [1, 2, 3, 8], points_redeemed=10)]
        first = run(menu, history)
        second = run(menu, history, first.badges)

        assert set(first.newly_earned) == {
            Badge.FIRST_ORDER,
            Badge.CATEGORY_COMPLETIONIST,
            Badge.FIRST_REDEMPTION,
        }
        assert second.newly_earned == []
        assert second.badges == first.badges

    def test_new_badges_follow_rule_order(self, menu: Menu):
        history = [make_order(1, [1, 2, 3, 8], points_redeemed=10)]
        assert run(menu, history).badges == [
            Badge.FIRST_ORDER,
            Badge.CATEGORY_COMPLETIONIST,
            Badge.FIRST_REDEMPTION,
        ]

    @pytest.mark.parametrize("cut", [1, 2, 3])
    def test_truncated_then_full_history_is_monotonic(self, menu: Menu, cut):
        oldest_first = [
            make_order(1, [1]),
            make_order(2, [2, 3], points_redeemed=20),
            make_order(3, [8]),
            make_order(4, [5]),
        ]
        truncated = list(reversed(oldest_first[:cut]))
        full = list(reversed(oldest_first))

        partial = run(menu, truncated)
        complete = run(menu, full, partial.badges)

        assert set(partial.badges) <= set(complete.badges)
        assert not set(complete.newly_earned) & set(partial.badges)

    def test_deterministic(self, menu: Menu):
        history = [make_order(2, [2, 3, 8]), make_order(1, [1])]
        results = {tuple(run(menu, history).badges) for _ in range(5)}
        assert len(results) == 1
