"""Progressive bracket evaluation.

A schedule is an ordered list of TaxBracket ranges. The first starts at 0,
each next bracket starts where the previous one ends, and only the last is
unbounded. Tax is the sum over brackets of the slice of income inside the
bracket times its rate.
"""

from typing import List, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict

from ..errors import PolicyConfigError
from .frequency import convert_frequency
from .schemas import TaxBracket


class BracketAmount(BaseModel):
    """Tax charged within one bracket."""

    model_config = ConfigDict(frozen=True)

    lower_bound: float
    upper_bound: Optional[float]
    rate: float
    taxable_amount: float
    tax: float


class BracketResult(NamedTuple):
    total_tax: float
    breakdown: List[BracketAmount]


def validate_brackets(brackets: List[TaxBracket]) -> None:
    """Reject schedules that are empty, gapped, overlapping or bounded at the top.

    Raises:
        PolicyConfigError: Describing the first problem found
    """
    if not brackets:
        raise PolicyConfigError("bracket schedule is empty")
    if brackets[0].lower_bound != 0:
        raise PolicyConfigError(f"first bracket must start at 0, got {brackets[0].lower_bound}")

    for i, bracket in enumerate(brackets):
        is_last = i == len(brackets) - 1
        if bracket.upper_bound is None:
            if not is_last:
                raise PolicyConfigError(f"bracket {i} is unbounded but is not the last bracket")
            continue
        if is_last:
            raise PolicyConfigError("last bracket must be unbounded")
        if bracket.upper_bound <= bracket.lower_bound:
            raise PolicyConfigError(
                f"bracket {i} upper bound {bracket.upper_bound} <= lower bound {bracket.lower_bound}"
            )
        following = brackets[i + 1]
        if following.lower_bound != bracket.upper_bound:
            kind = "gap" if following.lower_bound > bracket.upper_bound else "overlap"
            raise PolicyConfigError(
                f"{kind} between bracket {i} (ends {bracket.upper_bound}) "
                f"and bracket {i + 1} (starts {following.lower_bound})"
            )


def apply_brackets(amount: float, brackets: List[TaxBracket]) -> BracketResult:
    """Compute progressive tax on amount.

    Brackets the amount never reaches are left out of the breakdown.
    Negative amounts are treated as 0.
    """
    amount = max(0.0, amount)
    total = 0.0
    breakdown = []

    for bracket in brackets:
        if amount <= bracket.lower_bound:
            break
        top = amount if bracket.upper_bound is None else min(amount, bracket.upper_bound)
        slice_amount = max(0.0, top - bracket.lower_bound)
        tax = slice_amount * bracket.rate
        total += tax
        breakdown.append(
            BracketAmount(
                lower_bound=bracket.lower_bound,
                upper_bound=bracket.upper_bound,
                rate=bracket.rate,
                taxable_amount=slice_amount,
                tax=tax,
            )
        )
        if bracket.upper_bound is None or amount <= bracket.upper_bound:
            break

    return BracketResult(total_tax=total, breakdown=breakdown)


def marginal_rate(amount: float, brackets: List[TaxBracket]) -> float:
    """Rate of the bracket containing amount; last bracket's rate otherwise."""
    for bracket in brackets:
        if bracket.contains(amount):
            return bracket.rate
    return brackets[-1].rate


def scale_brackets(
    brackets: List[TaxBracket], from_frequency: str, to_frequency: str
) -> List[TaxBracket]:
    """Rescale bracket bounds from one pay cadence to another."""
    return [
        TaxBracket(
            lower_bound=convert_frequency(b.lower_bound, from_frequency, to_frequency),
            upper_bound=(
                None
                if b.upper_bound is None
                else convert_frequency(b.upper_bound, from_frequency, to_frequency)
            ),
            rate=b.rate,
        )
        for b in brackets
    ]
