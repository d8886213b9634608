"""Exception types raised by the pricing and loyalty engine."""


class SpudEngineError(Exception):
    """Base class for every error raised by the engine."""


class InvalidQuantityError(SpudEngineError, ValueError):
    def __init__(self, quantity: int):
        self.quantity = quantity
        super().__init__(f"Quantity must be a positive integer, got {quantity}")


class InvalidCustomizationError(SpudEngineError, ValueError):
    pass


class ItemUnavailableError(SpudEngineError):
    def __init__(self, item_id: int, name: str):
        self.item_id = item_id
        self.name = name
        super().__init__(f"Menu item {item_id} ({name}) is currently unavailable")


class UnknownMenuItemError(SpudEngineError, LookupError):
    def __init__(self, item_id: int):
        self.item_id = item_id
        super().__init__(f"No menu item with id {item_id}")


class RedemptionError(SpudEngineError, ValueError):
    """A points redemption that cannot be honoured."""


class InvalidRedemptionError(RedemptionError):
    def __init__(self, points: int):
        self.points = points
        super().__init__(f"Points to redeem must be >= 0, got {points}")


class RedemptionExceedsBalanceError(RedemptionError):
    def __init__(self, requested: int, available: int):
        self.requested = requested
        self.available = available
        super().__init__(
            f"Cannot redeem {requested} points; only {available} available"
        )


class RedemptionExceedsCapError(RedemptionError):
    def __init__(self, requested: int, cap: int):
        self.requested = requested
        self.cap = cap
        super().__init__(
            f"Cannot redeem {requested} points; the order subtotal caps redemption at {cap}"
        )


class InvalidPromoError(SpudEngineError):
    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Invalid or inactive promo code: {code!r}")


class DuplicatePromoError(SpudEngineError):
    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Promo code {code!r} already exists")


class InconsistentCartStateError(SpudEngineError):
    """Raised when pricing or confirming a cart with no lines."""


class MissingFulfillmentDetailError(SpudEngineError, ValueError):
    pass


class PersistenceError(SpudEngineError):
    """A storage read or write failed; nothing from the transaction was applied."""


class StaleLoyaltyStateError(PersistenceError):
    def __init__(self, user_id: str, expected_version: int, actual_version: int):
        self.user_id = user_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Loyalty state for {user_id!r} changed since it was read "
            f"(expected version {expected_version}, found {actual_version})"
        )
