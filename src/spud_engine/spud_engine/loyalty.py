"""Spud Points accounting for confirmed orders."""

from decimal import ROUND_FLOOR, Decimal

from loguru import logger

from .errors import InvalidRedemptionError, RedemptionExceedsBalanceError
from .models import LeaderboardEntry, LoyaltyState
from .storage import Storage


def points_earned(subtotal: Decimal) -> int:
    """One point per whole currency unit of the gross (pre-discount) subtotal."""
    return int(subtotal.to_integral_value(rounding=ROUND_FLOOR))


def apply_order(state: LoyaltyState, points_redeemed: int, earned: int) -> LoyaltyState:
    """Return the state after spending ``points_redeemed`` and crediting ``earned``.

    The version is left untouched; storage bumps it when the state is committed.
    """
    if points_redeemed < 0:
        raise InvalidRedemptionError(points_redeemed)
    if points_redeemed > state.points:
        raise RedemptionExceedsBalanceError(points_redeemed, state.points)
    new_points = state.points - points_redeemed + earned
    logger.debug(
        "Loyalty balance {} - {} redeemed + {} earned = {}",
        state.points,
        points_redeemed,
        earned,
        new_points,
    )
    return state.model_copy(update={"points": new_points})


def leaderboard(storage: Storage, limit: int | None = 10) -> list[LeaderboardEntry]:
    """Rank users by Spud Points, highest first; ties break on user id."""
    balances = [
        (user_id, storage.load_loyalty_state(user_id).points)
        for user_id in storage.list_users()
    ]
    balances.sort(key=lambda pair: (-pair[1], pair[0]))
    if limit is not None:
        balances = balances[:limit]
    return [
        LeaderboardEntry(rank=rank, user_id=user_id, points=points)
        for rank, (user_id, points) in enumerate(balances, start=1)
    ]
