"""Order confirmation: quote -> order -> points -> badges -> one storage commit.

The checkout reads a ``LoyaltyState`` snapshot when the customer starts
checking out and passes it back on confirmation. The snapshot's version is
the optimistic-concurrency token: if another session committed in between,
the commit fails with ``StaleLoyaltyStateError`` and nothing is written.
"""

import secrets
import string
from collections.abc import Callable, Sequence
from datetime import datetime, timedelta, timezone

from loguru import logger
from pydantic import BaseModel, Field

from .badges import BadgeContext, BadgeRule, default_badge_rules, evaluate_badges
from .cart import Cart
from .config import Settings, get_settings
from .enums import OrderType
from .errors import InconsistentCartStateError, MissingFulfillmentDetailError
from .loyalty import apply_order, points_earned
from .models import ConfirmationResult, LoyaltyState, Menu, Order, OrderQuote, PromoCode
from .pricing import PricingContext, max_redeemable_points, quote
from .promos import PromoRegistry
from .storage import Storage

ORDER_ID_ALPHABET = string.ascii_uppercase + string.digits
ORDER_ID_LENGTH = 7


def generate_order_id() -> str:
    return "".join(secrets.choice(ORDER_ID_ALPHABET) for _ in range(ORDER_ID_LENGTH))


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CheckoutRequest(BaseModel):
    """What the customer chose on the checkout form."""

    order_type: OrderType
    promo_code: str | None = None
    points_to_redeem: int = Field(default=0, ge=0)
    delivery_address: str | None = None
    pickup_time: str | None = None
    scheduled_for: datetime | None = None


class CheckoutService:
    def __init__(
        self,
        storage: Storage,
        menu: Menu,
        promos: PromoRegistry,
        settings: Settings | None = None,
        badge_rules: Sequence[BadgeRule] | None = None,
        clock: Callable[[], datetime] = _utc_now,
        id_factory: Callable[[], str] = generate_order_id,
    ) -> None:
        self.storage = storage
        self.menu = menu
        self.promos = promos
        self.settings = settings or get_settings()
        self.badge_rules = (
            list(badge_rules)
            if badge_rules is not None
            else default_badge_rules(self.settings.completionist_category)
        )
        self._clock = clock
        self._id_factory = id_factory

    def load_loyalty(self, user_id: str) -> LoyaltyState:
        return self.storage.load_loyalty_state(user_id)

    def resolve_promo(self, code: str | None) -> PromoCode | None:
        if not code:
            return None
        return self.promos.resolve(code)

    def pricing_context(
        self, request: CheckoutRequest, loyalty: LoyaltyState
    ) -> PricingContext:
        return PricingContext(
            order_type=request.order_type,
            promo=self.resolve_promo(request.promo_code),
            points_to_redeem=request.points_to_redeem,
            user_available_points=loyalty.points,
            tax_rate=self.settings.tax_rate,
            delivery_fee=self.settings.delivery_fee,
            points_per_dollar=self.settings.points_per_dollar,
        )

    def quote(self, cart: Cart, request: CheckoutRequest, loyalty: LoyaltyState) -> OrderQuote:
        return quote(cart, self.pricing_context(request, loyalty))

    def max_redeemable_points(self, cart: Cart, loyalty: LoyaltyState) -> int:
        return max_redeemable_points(
            cart.subtotal_cents(), loyalty.points, self.settings.points_per_dollar
        )

    def confirm(
        self,
        user_id: str,
        cart: Cart,
        request: CheckoutRequest,
        loyalty: LoyaltyState,
    ) -> ConfirmationResult:
        """Place the order and apply its loyalty effects atomically.

        ``loyalty`` must be the snapshot the quote was based on. The cart is
        cleared only after the commit succeeds.

        Raises:
            InconsistentCartStateError: the cart is empty.
            MissingFulfillmentDetailError: delivery without an address.
            InvalidPromoError, RedemptionError: from quoting.
            StaleLoyaltyStateError: another confirmation committed first.
            PersistenceError: the store failed; nothing was applied.
        """
        if cart.is_empty:
            raise InconsistentCartStateError("Cannot confirm an empty cart")
        if request.order_type == OrderType.DELIVERY and not request.delivery_address:
            raise MissingFulfillmentDetailError("Delivery orders need a delivery address")

        order_quote = self.quote(cart, request, loyalty)
        order = self._build_order(cart, request, order_quote)

        history = [order] + self.storage.load_order_history(user_id)
        evaluation = evaluate_badges(
            BadgeContext(history=history, current_order=order, menu=self.menu),
            loyalty.badges,
            self.badge_rules,
        )
        new_state = apply_order(
            loyalty, order.points_redeemed, order.points_earned
        ).model_copy(update={"badges": evaluation.badges})

        saved = self.storage.commit_order(user_id, order, new_state, loyalty.version)
        cart.clear()

        logger.info(
            "Order {} confirmed for {}: total {} ({} points earned, {} redeemed, balance {})",
            order.id,
            user_id,
            order.total,
            order.points_earned,
            order.points_redeemed,
            saved.points,
        )
        return ConfirmationResult(
            order=order,
            new_balance=saved.points,
            badges=saved.badges,
            newly_earned_badges=evaluation.newly_earned,
        )

    def _build_order(
        self, cart: Cart, request: CheckoutRequest, order_quote: OrderQuote
    ) -> Order:
        is_delivery = request.order_type == OrderType.DELIVERY
        # A pickup slot only applies to unscheduled pickup orders
        keeps_pickup_time = not is_delivery and request.scheduled_for is None
        return Order(
            id=self._id_factory(),
            created_at=self._clock(),
            order_type=request.order_type,
            delivery_address=request.delivery_address if is_delivery else None,
            pickup_time=request.pickup_time if keeps_pickup_time else None,
            scheduled_for=request.scheduled_for,
            items=[line.model_copy(deep=True) for line in cart.lines],
            subtotal=order_quote.subtotal,
            tax=order_quote.tax,
            delivery_fee=order_quote.delivery_fee,
            points_discount=order_quote.points_discount,
            promo_discount=order_quote.promo_discount,
            total=order_quote.final_total,
            points_redeemed=order_quote.points_redeemed,
            points_earned=points_earned(order_quote.subtotal),
            promo_code=order_quote.promo_code,
        )

    def estimated_ready_at(self, order: Order) -> datetime:
        """Scheduled time if set, otherwise creation time plus the ETA."""
        if order.scheduled_for is not None:
            return order.scheduled_for
        minutes = (
            self.settings.delivery_eta_minutes
            if order.order_type == OrderType.DELIVERY
            else self.settings.pickup_eta_minutes
        )
        return order.created_at + timedelta(minutes=minutes)
