"""Spud order pricing and loyalty engine."""

from .badges import BadgeEvaluation, evaluate_badges
from .cart import Cart
from .checkout import CheckoutRequest, CheckoutService
from .enums import Badge, CustomizationType, MenuCategory, OrderType
from .loyalty import leaderboard
from .models import (
    CartLine,
    ConfirmationResult,
    CustomizationCategory,
    CustomizationOption,
    DailySpecial,
    LeaderboardEntry,
    LoyaltyState,
    Menu,
    MenuItem,
    Order,
    OrderQuote,
    PromoCode,
    SelectedCustomization,
    UserLedger,
)
from .pricing import PricingContext, quote
from .promos import PromoRegistry
from .storage import KeyValueStorage, Storage

__all__ = [
    "Badge",
    "BadgeEvaluation",
    "Cart",
    "CartLine",
    "CheckoutRequest",
    "CheckoutService",
    "ConfirmationResult",
    "CustomizationCategory",
    "CustomizationOption",
    "CustomizationType",
    "DailySpecial",
    "KeyValueStorage",
    "LeaderboardEntry",
    "LoyaltyState",
    "Menu",
    "MenuCategory",
    "MenuItem",
    "Order",
    "OrderQuote",
    "OrderType",
    "PricingContext",
    "PromoCode",
    "PromoRegistry",
    "SelectedCustomization",
    "Storage",
    "UserLedger",
    "evaluate_badges",
    "leaderboard",
    "quote",
]
