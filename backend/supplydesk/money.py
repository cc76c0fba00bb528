"""
Currency helpers.

All amounts are decimal.Decimal internally and persisted as Numeric(12, 2).
Rounding is half-up to 2 places, applied per line item and never to sums of
already-rounded values, so document totals stay exact.
"""
from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")

# Maximum amount accepted on any price field (Numeric(12, 2) headroom)
MAX_AMOUNT = Decimal("9999999999.99")

# Largest quantity accepted on a single document line
MAX_QUANTITY = 100_000


def to_decimal(value) -> Decimal:
    """Convert int/str/float/Decimal to Decimal. Floats go through str() to avoid binary noise."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise InvalidOperation("boolean is not an amount")
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def quantize(value) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def percent_of(amount, rate) -> Decimal:
    """amount x rate / 100, rounded to cents."""
    return quantize(to_decimal(amount) * to_decimal(rate) / HUNDRED)


def money_json(value) -> float | None:
    """Render a stored amount for JSON responses."""
    if value is None:
        return None
    return float(quantize(value))
