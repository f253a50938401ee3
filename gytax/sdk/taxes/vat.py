"""Value Added Tax (VAT).

Single transactions, multi-line invoices, period returns with late filing
penalties, registration checks, import VAT and partial exemption for
businesses making both taxable and exempt supplies.
"""

import logging
from datetime import date, datetime
from typing import Iterable, List, Optional

from ..errors import TaxInputError
from ..schemas import (
    PartialExemptionResult,
    VatInput,
    VatItemsSummary,
    VatRegistrationCheck,
    VatResult,
    VatReturn,
    utc_now,
)
from .dates import add_months
from .money import months_late, round_money
from .schemas import TaxRules

logger = logging.getLogger(__name__)

OUTPUT_TYPES = ("sale", "export")
INPUT_TYPES = ("purchase", "import")


def vat_rate_for(category: str, rules: TaxRules) -> float:
    """Rate for a VAT category: standard rate, or 0 for zero-rated and exempt."""
    if category == "standard":
        return rules.vat.standard_rate
    if category in ("zero-rated", "exempt"):
        return 0.0
    raise TaxInputError(f"Unknown VAT category: {category!r}", field="category")


def calculate_vat(
    vat_input: VatInput,
    rules: TaxRules,
    calculated_at: Optional[datetime] = None,
) -> VatResult:
    """Calculate VAT on a single transaction.

    With includes_vat the amount is the gross and the net is backed out;
    otherwise the amount is the net and VAT is added on top.
    """
    rate = vat_input.custom_rate if vat_input.custom_rate is not None else vat_rate_for(vat_input.category, rules)

    if vat_input.includes_vat:
        gross = vat_input.amount
        net = gross / (1 + rate)
        vat = gross - net
    else:
        net = vat_input.amount
        vat = net * rate
        gross = net + vat

    return VatResult(
        gross_amount=round_money(gross),
        net_amount=round_money(net),
        vat_amount=round_money(vat),
        vat_rate=rate,
        category=vat_input.category,
        transaction_type=vat_input.transaction_type,
        includes_vat=vat_input.includes_vat,
        is_registerable=net >= rules.vat.registration_threshold / 12,
        transaction_date=vat_input.transaction_date,
        description=vat_input.description,
        calculated_at=calculated_at or utc_now(),
    )


def add_vat(net_amount: float, rules: TaxRules, category: str = "standard") -> VatResult:
    """VAT-inclusive price from a VAT-exclusive amount."""
    return calculate_vat(VatInput(amount=net_amount, category=category, includes_vat=False), rules)


def remove_vat(gross_amount: float, rules: TaxRules, category: str = "standard") -> VatResult:
    """VAT-exclusive price from a VAT-inclusive amount."""
    return calculate_vat(VatInput(amount=gross_amount, category=category, includes_vat=True), rules)


def vat_return_due_date(period_end: date, rules: TaxRules) -> date:
    """Return due date: the configured day of the month after the period ends."""
    following = add_months(period_end, 1)
    return following.replace(day=rules.vat.return_due_day)


def calculate_vat_return(
    transactions: Iterable[VatResult],
    period_start: date,
    period_end: date,
    as_of: date,
    rules: TaxRules,
    previous_balance: float = 0,
    calculated_at: Optional[datetime] = None,
) -> VatReturn:
    """Build the VAT return for a filing period.

    Only transactions dated inside [period_start, period_end] are included;
    undated transactions are left out. Sales and exports contribute output
    tax, purchases and imports input tax.

    Args:
        transactions: Calculated transactions, typically from calculate_vat
        period_start: First day of the period (inclusive)
        period_end: Last day of the period (inclusive)
        as_of: Date the return is assessed, for lateness and penalty
        rules: Policy bundle for the tax year
        previous_balance: Carried balance (positive owed, negative credit)

    Raises:
        TaxInputError: If period_start is not before period_end
    """
    if period_start >= period_end:
        raise TaxInputError(
            f"VAT period start {period_start} must be before end {period_end}",
            field="period_start",
        )

    in_period: List[VatResult] = []
    output_vat = input_vat = turnover = purchases = 0.0
    for transaction in transactions:
        when = transaction.transaction_date
        if when is None or not period_start <= when <= period_end:
            continue
        in_period.append(transaction)
        if transaction.transaction_type in OUTPUT_TYPES:
            output_vat += transaction.vat_amount
            turnover += transaction.net_amount
        elif transaction.transaction_type in INPUT_TYPES:
            input_vat += transaction.vat_amount
            purchases += transaction.net_amount

    net_vat = output_vat - input_vat + previous_balance
    due_date = vat_return_due_date(period_end, rules)
    days_late = max(0, (as_of - due_date).days)
    is_late = days_late > 0

    penalty = 0.0
    if is_late and net_vat > 0:
        penalty = net_vat * rules.vat.late_filing_rate * months_late(days_late)
        logger.debug(f"VAT return {period_start}..{period_end}: {days_late} days late, penalty {penalty:.2f}")

    return VatReturn(
        period_start=period_start,
        period_end=period_end,
        output_vat=round_money(output_vat),
        input_vat=round_money(input_vat),
        previous_balance=round_money(previous_balance),
        net_vat=round_money(net_vat),
        turnover=round_money(turnover),
        purchases=round_money(purchases),
        transactions=in_period,
        is_refund_due=net_vat < 0,
        due_date=due_date,
        as_of=as_of,
        is_late=is_late,
        days_late=days_late,
        penalty=round_money(penalty),
        total_due=round_money(max(0.0, net_vat + penalty)),
        calculated_at=calculated_at or utc_now(),
    )


def calculate_vat_multiple_items(items: Iterable[VatInput], rules: TaxRules) -> VatItemsSummary:
    """Calculate each line item and total by category. Output order = input order."""
    results = [calculate_vat(item, rules) for item in items]

    standard_vat = sum(r.vat_amount for r in results if r.category == "standard")
    zero_rated = sum(r.net_amount for r in results if r.category == "zero-rated")
    exempt = sum(r.net_amount for r in results if r.category == "exempt")

    return VatItemsSummary(
        items=results,
        gross_total=round_money(sum(r.gross_amount for r in results)),
        net_total=round_money(sum(r.net_amount for r in results)),
        vat_total=round_money(sum(r.vat_amount for r in results)),
        standard_rate_vat=round_money(standard_vat),
        zero_rated_amount=round_money(zero_rated),
        exempt_amount=round_money(exempt),
    )


def check_vat_registration_requirement(annual_turnover: float, rules: TaxRules) -> VatRegistrationCheck:
    """Whether annual turnover requires VAT registration."""
    policy = rules.vat
    threshold = policy.registration_threshold
    requires = annual_turnover >= threshold
    approaching = not requires and annual_turnover >= threshold * policy.approaching_threshold_ratio

    if requires:
        recommendation = "Must register for VAT immediately. Registration is mandatory."
    elif approaching:
        recommendation = "Consider voluntary VAT registration as you are approaching the threshold."
    else:
        recommendation = "VAT registration not required at current turnover level."

    return VatRegistrationCheck(
        requires_registration=requires,
        approaching_threshold=approaching,
        annual_turnover=round_money(annual_turnover),
        threshold=threshold,
        excess_amount=round_money(max(0.0, annual_turnover - threshold)),
        recommendation=recommendation,
    )


def calculate_import_vat(
    goods_value: float,
    rules: TaxRules,
    duty_rate: float = 0,
    shipping_cost: float = 0,
    insurance_cost: float = 0,
    transaction_date: Optional[date] = None,
) -> VatResult:
    """VAT on imported goods.

    The taxable value is goods plus customs duty, shipping and insurance.
    """
    if duty_rate < 0 or shipping_cost < 0 or insurance_cost < 0:
        raise TaxInputError("Import duty rate, shipping and insurance must be non-negative")
    duty = goods_value * duty_rate
    dutiable_value = goods_value + duty + shipping_cost + insurance_cost
    return calculate_vat(
        VatInput(
            amount=dutiable_value,
            category="standard",
            transaction_type="import",
            transaction_date=transaction_date,
            description=(
                f"Import VAT on goods value {goods_value:.2f}, duty {duty:.2f}, "
                f"shipping {shipping_cost:.2f}, insurance {insurance_cost:.2f}"
            ),
        ),
        rules,
    )


def calculate_partial_exemption(
    exempt_supplies: float,
    total_supplies: float,
    input_vat: float,
    rules: TaxRules,
) -> PartialExemptionResult:
    """Split input VAT between recoverable and non-recoverable shares.

    Input VAT attributable to exempt supplies is not recoverable, unless it
    falls within the de minimis limit, in which case all of it is.
    """
    if min(exempt_supplies, total_supplies, input_vat) < 0:
        raise TaxInputError("Supplies and input VAT must be non-negative")
    if exempt_supplies > total_supplies:
        raise TaxInputError("Exempt supplies cannot exceed total supplies", field="exempt_supplies")

    exempt_ratio = exempt_supplies / total_supplies if total_supplies > 0 else 0.0
    limit = rules.vat.de_minimis_limit
    non_recoverable = input_vat * exempt_ratio
    is_de_minimis = non_recoverable <= limit
    if is_de_minimis:
        non_recoverable = 0.0

    return PartialExemptionResult(
        exempt_percentage=round_money(exempt_ratio * 100),
        recoverable_input_vat=round_money(input_vat - non_recoverable),
        non_recoverable_input_vat=round_money(non_recoverable),
        de_minimis_limit=limit,
        is_de_minimis=is_de_minimis,
    )
