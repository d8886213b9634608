from enum import StrEnum


class OrderType(StrEnum):
    DELIVERY = "delivery"
    PICKUP = "pickup"


class CustomizationType(StrEnum):
    SINGLE = "single"
    MULTI = "multi"


class MenuCategory(StrEnum):
    LOADED_FRIES = "loaded-fries"
    SPECIALTY_POTATOES = "specialty-potatoes"
    SIDES = "sides"
    DRINKS = "drinks"


class Badge(StrEnum):
    FIRST_ORDER = "First Fry"
    CATEGORY_COMPLETIONIST = "Loaded Legend"
    FIRST_REDEMPTION = "Spud Saver"
