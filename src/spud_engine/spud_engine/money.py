"""Integer-cents helpers for currency arithmetic.

Prices enter the engine as ``Decimal`` amounts, are converted to whole cents
for every computation, and only turned back into two-place ``Decimal`` values
at presentation boundaries (quotes, orders, CLI output).
"""

from decimal import ROUND_HALF_UP, Decimal

CENTS_PER_UNIT = 100
TWO_PLACES = Decimal("0.01")


def to_cents(amount: Decimal | int | str) -> int:
    """Convert a currency amount to whole cents (half-up rounding).

    Floats are rejected: they cannot represent most cent values exactly.
    """
    if isinstance(amount, float):
        raise TypeError(f"Refusing float currency amount {amount!r}; use Decimal")
    value = Decimal(amount) * CENTS_PER_UNIT
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def from_cents(cents: int) -> Decimal:
    """Convert whole cents back to a two-place ``Decimal``."""
    return (Decimal(cents) / CENTS_PER_UNIT).quantize(TWO_PLACES)


def percent_of(cents: int, rate: Decimal) -> int:
    """Apply a fractional rate (0.08 for 8%) to cents, rounding half-up."""
    return int((Decimal(cents) * rate).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def format_amount(amount: Decimal) -> str:
    return f"${amount.quantize(TWO_PLACES)}"
