"""National Insurance Scheme (NIS) contributions.

Contributions are computed on weekly insurable earnings: the period's gross
is converted to a weekly figure, capped at the weekly ceiling, multiplied by
the contribution rates and converted back to the pay period.

Modes:
- employee: employee share only
- employer: employer share only
- combined: both shares
- self_employed: both rates, charged entirely to the contributor
"""

import logging
from datetime import datetime
from typing import Iterable, Optional, Tuple

from ..errors import TaxInputError
from ..schemas import (
    NisAnnualSummary,
    NisInput,
    NisPeriodRecord,
    NisResult,
    RetirementBenefitProjection,
    utc_now,
)
from .frequency import convert_frequency, periods_per_year, to_monthly, to_weekly
from .money import round_money, round_rate
from .schemas import TaxRules

logger = logging.getLogger(__name__)


def _mode_rates(mode: str, rules: TaxRules) -> Tuple[float, float]:
    policy = rules.nis
    if mode == "employee":
        return policy.employee_rate, 0.0
    if mode == "employer":
        return 0.0, policy.employer_rate
    if mode == "self_employed":
        return policy.employee_rate + policy.employer_rate, 0.0
    return policy.employee_rate, policy.employer_rate


def period_contributions(gross_income: float, frequency: str, mode: str, rules: TaxRules) -> Tuple[float, float]:
    """Unrounded (employee, employer) contributions for one pay period."""
    insurable_weekly = min(to_weekly(gross_income, frequency), rules.nis.weekly_ceiling)
    employee_rate, employer_rate = _mode_rates(mode, rules)
    return (
        convert_frequency(insurable_weekly * employee_rate, "weekly", frequency),
        convert_frequency(insurable_weekly * employer_rate, "weekly", frequency),
    )


def calculate_nis(
    nis_input: NisInput,
    rules: TaxRules,
    calculated_at: Optional[datetime] = None,
) -> NisResult:
    """Calculate NIS contributions for one pay period.

    Args:
        nis_input: Gross earnings, pay frequency and contribution mode
        rules: Policy bundle for the tax year
        calculated_at: Timestamp recorded on the result (default: now, UTC)

    Returns:
        NisResult with per-period contributions and weekly ceiling flags
    """
    policy = rules.nis
    frequency = nis_input.frequency
    mode = nis_input.mode
    gross = nis_input.gross_income

    weekly = to_weekly(gross, frequency)
    insurable_weekly = min(weekly, policy.weekly_ceiling)
    exceeds = weekly > policy.weekly_ceiling

    employee_rate, employer_rate = _mode_rates(mode, rules)
    employee, employer = period_contributions(gross, frequency, mode, rules)

    if exceeds:
        logger.debug(f"NIS: weekly income {weekly:.2f} capped at {policy.weekly_ceiling:.2f}")

    return NisResult(
        gross_income=round_money(gross),
        frequency=frequency,
        mode=mode,
        weekly_income=round_money(weekly),
        insurable_weekly_income=round_money(insurable_weekly),
        insurable_earnings=round_money(convert_frequency(insurable_weekly, "weekly", frequency)),
        employee_rate=employee_rate,
        employer_rate=employer_rate,
        employee_contribution=round_money(employee),
        employer_contribution=round_money(employer),
        total_contribution=round_money(employee + employer),
        exceeds_weekly_ceiling=exceeds,
        exceeded_amount=round_money(max(0.0, weekly - policy.weekly_ceiling)),
        below_minimum_wage=0 < to_monthly(gross, frequency) < policy.minimum_wage_monthly,
        calculated_at=calculated_at or utc_now(),
    )


def calculate_employee_nis(gross_income: float, rules: TaxRules, frequency: str = "monthly") -> NisResult:
    return calculate_nis(NisInput(gross_income=gross_income, frequency=frequency, mode="employee"), rules)


def calculate_employer_nis(gross_income: float, rules: TaxRules, frequency: str = "monthly") -> NisResult:
    return calculate_nis(NisInput(gross_income=gross_income, frequency=frequency, mode="employer"), rules)


def calculate_total_payroll_nis(gross_income: float, rules: TaxRules, frequency: str = "monthly") -> NisResult:
    """Employee and employer shares together, as remitted by the employer."""
    return calculate_nis(NisInput(gross_income=gross_income, frequency=frequency, mode="combined"), rules)


def calculate_self_employed_nis(gross_income: float, rules: TaxRules, frequency: str = "monthly") -> NisResult:
    return calculate_nis(NisInput(gross_income=gross_income, frequency=frequency, mode="self_employed"), rules)


def calculate_annual_nis_summary(
    records: Iterable[NisPeriodRecord], rules: TaxRules
) -> NisAnnualSummary:
    """Aggregate a year of pay-period records.

    Each record is assessed at its own frequency and the per-period amounts
    are summed. The year is creditable when employee contributions reach
    what a full year at the monthly minimum wage would contribute.
    """
    records = list(records)
    total_gross = 0.0
    total_insurable = 0.0
    total_employee = 0.0
    total_employer = 0.0
    weeks_covered = 0.0
    exceeding = 0

    for record in records:
        result = calculate_total_payroll_nis(record.gross_income, rules, frequency=record.frequency)
        total_gross += record.gross_income
        total_insurable += result.insurable_earnings
        total_employee += result.employee_contribution
        total_employer += result.employer_contribution
        weeks_covered += 52 / periods_per_year(record.frequency)
        if result.exceeds_weekly_ceiling:
            exceeding += 1

    policy = rules.nis
    creditable_floor = policy.minimum_wage_monthly * 12 * policy.employee_rate

    logger.debug(f"NIS annual summary: {len(records)} periods, {exceeding} over ceiling")

    return NisAnnualSummary(
        period_count=len(records),
        total_gross_income=round_money(total_gross),
        total_insurable_earnings=round_money(total_insurable),
        total_employee_contributions=round_money(total_employee),
        total_employer_contributions=round_money(total_employer),
        total_contributions=round_money(total_employee + total_employer),
        average_weekly_income=round_money(total_gross / weeks_covered) if weeks_covered else 0.0,
        periods_exceeding_ceiling=exceeding,
        creditable_year=bool(records) and total_employee >= creditable_floor,
    )


def calculate_projected_retirement_benefit(
    average_annual_income: float, years_of_contribution: int, rules: TaxRules
) -> RetirementBenefitProjection:
    """Estimate the monthly old-age pension for a contribution history.

    The pension is a share of average monthly income, capped at the monthly
    equivalent of the weekly ceiling. The share starts at the base rate and
    grows with each contribution year up to the maximum rate. Contributions
    are likewise counted on capped income.
    """
    if average_annual_income < 0:
        raise TaxInputError("Average annual income cannot be negative", field="average_annual_income")
    if years_of_contribution < 0:
        raise TaxInputError("Years of contribution cannot be negative", field="years_of_contribution")

    policy = rules.nis
    monthly_ceiling = convert_frequency(policy.weekly_ceiling, "weekly", "monthly")
    insurable_monthly = min(average_annual_income / 12, monthly_ceiling)
    benefit_rate = min(
        policy.pension_max_rate,
        policy.pension_base_rate + years_of_contribution * policy.pension_rate_per_year,
    )

    monthly_pension = insurable_monthly * benefit_rate
    annual_pension = monthly_pension * 12
    total_contributions = insurable_monthly * 12 * policy.employee_rate * years_of_contribution

    return RetirementBenefitProjection(
        average_annual_income=round_money(average_annual_income),
        years_of_contribution=years_of_contribution,
        benefit_rate=round_rate(benefit_rate),
        monthly_pension=round_money(monthly_pension),
        annual_pension=round_money(annual_pension),
        total_contributions=round_money(total_contributions),
        replacement_ratio=round_rate(annual_pension / average_annual_income) if average_annual_income else 0.0,
    )
