"""
Money helpers shared by the ledger, labour and trip workflows.

All amounts are Decimal with two places, rounded half-up.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable

ZERO = Decimal("0.00")
CENT = Decimal("0.01")


def to_decimal(value: Any) -> Decimal:
    """Coerce a DB value (Decimal, float, int or None) to a 2-place Decimal."""
    if value is None:
        return ZERO
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def total(values: Iterable[Any]) -> Decimal:
    return sum((to_decimal(v) for v in values), ZERO)
