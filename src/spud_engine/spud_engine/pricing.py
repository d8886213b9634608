"""Price computation pipeline: subtotal -> tax -> fee -> discounts -> total.

``quote`` is a pure function of the cart and a ``PricingContext``: it never
mutates either argument, and identical inputs always produce an identical
``OrderQuote``. All arithmetic runs on integer cents.
"""

from decimal import Decimal

from loguru import logger
from pydantic import BaseModel, Field

from .cart import Cart
from .enums import OrderType
from .errors import (
    InconsistentCartStateError,
    InvalidPromoError,
    InvalidRedemptionError,
    RedemptionExceedsBalanceError,
    RedemptionExceedsCapError,
)
from .models import OrderQuote, PromoCode
from .money import from_cents, percent_of, to_cents

DEFAULT_TAX_RATE = Decimal("0.08")
DEFAULT_DELIVERY_FEE = Decimal("5.00")
POINTS_PER_DOLLAR = 100


class PricingContext(BaseModel):
    """Everything besides the cart that determines a quote.

    ``promo`` must already be validated as active (see ``PromoRegistry``).
    """

    order_type: OrderType
    promo: PromoCode | None = None
    points_to_redeem: int = 0
    user_available_points: int = Field(default=0, ge=0)
    tax_rate: Decimal = Field(default=DEFAULT_TAX_RATE, ge=0)
    delivery_fee: Decimal = Field(default=DEFAULT_DELIVERY_FEE, ge=0)
    points_per_dollar: int = Field(default=POINTS_PER_DOLLAR, gt=0)


def redemption_cap(subtotal_cents: int, points_per_dollar: int = POINTS_PER_DOLLAR) -> int:
    """Most points that may be spent against a subtotal (floor of its value)."""
    return subtotal_cents * points_per_dollar // 100


def max_redeemable_points(
    subtotal_cents: int,
    available_points: int,
    points_per_dollar: int = POINTS_PER_DOLLAR,
) -> int:
    """Largest redemption the user could apply right now."""
    return max(0, min(available_points, redemption_cap(subtotal_cents, points_per_dollar)))


def points_to_cents(points: int, points_per_dollar: int = POINTS_PER_DOLLAR) -> int:
    return points * 100 // points_per_dollar


def _validate_redemption(subtotal_cents: int, context: PricingContext) -> None:
    points = context.points_to_redeem
    if points < 0:
        raise InvalidRedemptionError(points)
    if points > context.user_available_points:
        raise RedemptionExceedsBalanceError(points, context.user_available_points)
    cap = redemption_cap(subtotal_cents, context.points_per_dollar)
    if points > cap:
        raise RedemptionExceedsCapError(points, cap)


def quote(cart: Cart, context: PricingContext) -> OrderQuote:
    """Compute the itemized totals for ``cart`` under ``context``.

    Raises:
        InconsistentCartStateError: the cart has no lines.
        RedemptionExceedsBalanceError: more points requested than available.
        RedemptionExceedsCapError: points would cover more than the subtotal.
        InvalidPromoError: an inactive promo reached the engine.
    """
    if cart.is_empty:
        raise InconsistentCartStateError("Cannot price an empty cart")

    subtotal = cart.subtotal_cents()
    tax = percent_of(subtotal, context.tax_rate)
    delivery_fee = (
        to_cents(context.delivery_fee)
        if context.order_type == OrderType.DELIVERY
        else 0
    )

    _validate_redemption(subtotal, context)
    points_discount = points_to_cents(context.points_to_redeem, context.points_per_dollar)

    promo_discount = 0
    if context.promo is not None:
        if not context.promo.is_active:
            raise InvalidPromoError(context.promo.code)
        promo_discount = percent_of(
            subtotal, Decimal(context.promo.discount_percentage) / 100
        )

    final_total = subtotal + tax + delivery_fee - points_discount - promo_discount
    if final_total < 0:
        logger.debug("Discounts exceed order total by {} cents; clamping to zero", -final_total)
        final_total = 0

    return OrderQuote(
        subtotal=from_cents(subtotal),
        tax=from_cents(tax),
        delivery_fee=from_cents(delivery_fee),
        points_discount=from_cents(points_discount),
        promo_discount=from_cents(promo_discount),
        final_total=from_cents(final_total),
        points_redeemed=context.points_to_redeem,
        promo_code=context.promo.code if context.promo else None,
    )
