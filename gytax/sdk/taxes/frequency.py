"""Pay-frequency conversion.

Ratios are fixed: 52 weeks, 26 fortnights, 12 months to the year. A monthly
amount is therefore weekly x 52/12. Nothing here rounds.
"""

from typing import get_args

from ..errors import UnknownFrequencyError
from .schemas import Frequency

PERIODS_PER_YEAR = {
    "weekly": 52,
    "bi-weekly": 26,
    "monthly": 12,
    "annual": 1,
}

FREQUENCIES = get_args(Frequency)


def check_frequency(frequency: str) -> str:
    """Return frequency unchanged, or raise UnknownFrequencyError."""
    if frequency not in PERIODS_PER_YEAR:
        raise UnknownFrequencyError(frequency)
    return frequency


def periods_per_year(frequency: str) -> int:
    return PERIODS_PER_YEAR[check_frequency(frequency)]


def to_annual(amount: float, frequency: str) -> float:
    return amount * periods_per_year(frequency)


def convert_frequency(amount: float, from_frequency: str, to_frequency: str) -> float:
    """Convert a per-period amount between pay frequencies.

    Args:
        amount: Amount per from_frequency period
        from_frequency: weekly, bi-weekly, monthly or annual
        to_frequency: weekly, bi-weekly, monthly or annual

    Returns:
        Equivalent amount per to_frequency period

    Raises:
        UnknownFrequencyError: If either token is not recognised
    """
    source = periods_per_year(from_frequency)
    target = periods_per_year(to_frequency)
    if source == target:
        return amount
    return amount * source / target


def to_monthly(amount: float, frequency: str) -> float:
    return convert_frequency(amount, frequency, "monthly")


def to_weekly(amount: float, frequency: str) -> float:
    return convert_frequency(amount, frequency, "weekly")
