import json
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Self

from pydantic import BaseModel, Field, field_validator, model_validator

from .enums import Badge, CustomizationType, OrderType
from .money import from_cents, to_cents


class CustomizationOption(BaseModel):
    name: str
    price: Decimal = Field(default=Decimal("0.00"), ge=0, decimal_places=2)


class CustomizationCategory(BaseModel):
    title: str
    type: CustomizationType = Field(default=CustomizationType.MULTI)
    options: list[CustomizationOption] = Field(default_factory=list)

    def get_option(self, name: str) -> CustomizationOption | None:
        return next((o for o in self.options if o.name == name), None)


class SelectedCustomization(BaseModel):
    """One chosen option within a customization category."""

    title: str
    option: CustomizationOption

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SelectedCustomization):
            return NotImplemented
        return self.title == other.title and self.option.name == other.option.name

    def __hash__(self) -> int:
        return hash((self.title, self.option.name))

    @property
    def sort_key(self) -> tuple[str, str]:
        return (self.title, self.option.name)


class MenuItem(BaseModel):
    id: int
    name: str
    description: str = ""
    price: Decimal = Field(ge=0, decimal_places=2)
    category: str
    spicy_level: int = Field(default=0, ge=0, le=3)
    dietary_tags: list[str] = Field(default_factory=list)
    is_available: bool = True
    customization_options: list[CustomizationCategory] = Field(default_factory=list)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MenuItem):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def get_customization_category(self, title: str) -> CustomizationCategory | None:
        return next((c for c in self.customization_options if c.title == title), None)


class Category(BaseModel):
    id: str
    name: str


class DailySpecial(BaseModel):
    """Admin-configured override price for one catalog item."""

    item_id: int
    special_price: Decimal = Field(ge=0, decimal_places=2)
    description: str = ""


class Menu(BaseModel):
    menu_id: str
    menu_name: str
    menu_version: str
    categories: list[Category] = Field(default_factory=list)
    items: list[MenuItem]
    daily_special: DailySpecial | None = None

    def get_item(self, item_id: int) -> MenuItem | None:
        return next((i for i in self.items if i.id == item_id), None)

    def items_in_category(self, category: str) -> list[MenuItem]:
        return [i for i in self.items if i.category == category]

    @classmethod
    def from_dict(cls, data: dict) -> "Menu":
        """Load Menu from a dictionary (matching JSON structure)."""
        metadata = data["metadata"]
        special = data.get("daily_special")
        return cls(
            menu_id=metadata["menu_id"],
            menu_name=metadata["menu_name"],
            menu_version=metadata["menu_version"],
            categories=[Category(**c) for c in data.get("categories", [])],
            items=[MenuItem(**item) for item in data["items"]],
            daily_special=DailySpecial(**special) if special else None,
        )

    @classmethod
    def from_json_file(cls, path: str | Path) -> "Menu":
        """Load Menu from a JSON file path."""
        with open(path, "r") as f:
            data = json.load(f)
        return cls.from_dict(data)


class CartLine(BaseModel):
    """A priced cart entry: one item + customization combination.

    ``unit_price`` is a snapshot taken when the line was created, so later
    catalog price changes never reach an in-progress cart.
    """

    key: str
    item_id: int
    name: str
    category: str
    unit_price: Decimal = Field(ge=0, decimal_places=2)
    quantity: int = Field(default=1, ge=1)
    customizations: list[SelectedCustomization] = Field(default_factory=list)

    @property
    def unit_price_cents(self) -> int:
        return to_cents(self.unit_price) + sum(
            to_cents(c.option.price) for c in self.customizations
        )

    @property
    def line_total_cents(self) -> int:
        return self.unit_price_cents * self.quantity

    @property
    def line_total(self) -> Decimal:
        return from_cents(self.line_total_cents)

    def _is_same_line(self, other: "CartLine") -> bool:
        return self.key == other.key

    def __add__(self, other: object) -> "CartLine":
        if not isinstance(other, CartLine) or not self._is_same_line(other):
            return NotImplemented
        return self.model_copy(update={"quantity": self.quantity + other.quantity})


class PromoCode(BaseModel):
    code: str = Field(min_length=1)
    discount_percentage: int = Field(ge=0, le=100)
    is_active: bool = True

    @field_validator("code")
    @classmethod
    def canonical_code(cls, value: str) -> str:
        return value.strip().upper()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PromoCode):
            return NotImplemented
        return self.code == other.code

    def __hash__(self) -> int:
        return hash(self.code)


class OrderQuote(BaseModel):
    """Itemized price breakdown for a cart. Never persisted directly."""

    subtotal: Decimal
    tax: Decimal
    delivery_fee: Decimal
    points_discount: Decimal
    promo_discount: Decimal
    final_total: Decimal
    points_redeemed: int = 0
    promo_code: str | None = None

    @property
    def discount(self) -> Decimal:
        return self.points_discount + self.promo_discount


class Order(BaseModel):
    id: str
    created_at: datetime
    order_type: OrderType
    delivery_address: str | None = None
    pickup_time: str | None = None
    scheduled_for: datetime | None = None
    items: list[CartLine]
    subtotal: Decimal
    tax: Decimal
    delivery_fee: Decimal
    points_discount: Decimal
    promo_discount: Decimal
    total: Decimal
    points_redeemed: int = Field(default=0, ge=0)
    points_earned: int = Field(default=0, ge=0)
    promo_code: str | None = None

    def item_ids(self) -> set[int]:
        return {line.item_id for line in self.items}


class LoyaltyState(BaseModel):
    """A user's Spud Points balance and earned badges.

    ``version`` increments on every committed write and is used to detect
    stale read-modify-write cycles.
    """

    points: int = Field(default=0, ge=0)
    badges: list[Badge] = Field(default_factory=list)
    version: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def unique_badges(self) -> Self:
        if len(set(self.badges)) != len(self.badges):
            self.badges = list(dict.fromkeys(self.badges))
        return self


class ConfirmationResult(BaseModel):
    order: Order
    new_balance: int
    badges: list[Badge]
    newly_earned_badges: list[Badge]


class UserLedger(BaseModel):
    """Everything stored for one user, persisted as a single document."""

    loyalty: LoyaltyState = Field(default_factory=LoyaltyState)
    history: list[Order] = Field(default_factory=list)


class LeaderboardEntry(BaseModel):
    rank: int
    user_id: str
    points: int
