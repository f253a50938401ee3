"""Currency rounding.

All calculators work in unrounded floats and round once, when a result model
is built. Rounding is half-up to cents, done through Decimal so that values
like 2.675 round the way a cashier would expect.
"""

import math
from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")


def round_money(amount: float) -> float:
    """Round to 2 decimal places, halves away from zero.

    Example: 2.675 -> 2.68, 14000.005 -> 14000.01
    """
    return float(Decimal(str(amount)).quantize(CENT, rounding=ROUND_HALF_UP))


def round_rate(rate: float, places: int = 4) -> float:
    """Round a ratio (effective rate, share) for display."""
    return float(Decimal(str(rate)).quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP))


def months_late(days_late: int) -> int:
    """Number of started 30-day periods in days_late (0 when not late)."""
    if days_late <= 0:
        return 0
    return math.ceil(days_late / 30)
