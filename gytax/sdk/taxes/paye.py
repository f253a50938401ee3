"""Pay As You Earn (PAYE) income tax.

Policy amounts in the rules bundle are monthly. For other pay frequencies
the free pay, child allowance, overtime exemption and bracket bounds are
scaled to the pay period before tax is computed, so a weekly and a monthly
employee with the same annual pay owe the same annual tax.

Deduction order:
1. Statutory free pay
2. Child allowance (per child, capped at the configured number of children)
3. Tax-free overtime (up to the configured limit)
4. Employee NIS contribution on the same gross and frequency
5. Other allowable deductions declared by the employee

Tax credits and tax already paid reduce the amount still owed
(net_tax_owed) but not the PAYE computed on the period's income.
"""

import logging
from datetime import datetime
from typing import Iterable, Optional

from ..schemas import NisInput, PayeInput, PayeResult, TaxSavingsResult, utc_now
from .brackets import BracketAmount, apply_brackets, marginal_rate, scale_brackets
from .frequency import convert_frequency, to_annual
from .money import round_money, round_rate
from .nis import calculate_nis, period_contributions
from .schemas import TaxRules

logger = logging.getLogger(__name__)


def _zero_result(frequency: str, calculated_at: datetime) -> PayeResult:
    return PayeResult(
        frequency=frequency,
        gross_income=0,
        statutory_free_pay=0,
        child_allowance=0,
        overtime_tax_free=0,
        nis_employee=0,
        nis_employer=0,
        taxable_income=0,
        total_tax=0,
        bracket_breakdown=[],
        effective_rate=0,
        marginal_rate=0,
        total_deductions=0,
        net_pay=0,
        calculated_at=calculated_at,
    )


def calculate_paye(
    paye_input: PayeInput,
    rules: TaxRules,
    calculated_at: Optional[datetime] = None,
) -> PayeResult:
    """Calculate PAYE and net pay for one pay period.

    Args:
        paye_input: Earnings for the period
        rules: Policy bundle for the tax year
        calculated_at: Timestamp recorded on the result (default: now, UTC)

    Returns:
        PayeResult with every deduction applied and the bracket breakdown
    """
    calculated_at = calculated_at or utc_now()
    frequency = paye_input.frequency
    gross = paye_input.gross_income
    if gross <= 0:
        return _zero_result(frequency, calculated_at)

    policy = rules.paye
    native = policy.native_frequency

    def scaled(amount: float) -> float:
        return convert_frequency(amount, native, frequency)

    free_pay = scaled(policy.statutory_free_pay)
    eligible_children = min(paye_input.dependents, policy.max_child_allowance_children)
    child_allowance = scaled(eligible_children * policy.child_allowance_per_child)
    overtime_tax_free = min(paye_input.overtime, scaled(policy.overtime_tax_free_limit))

    # Employer share is reported alongside; it is never deducted from the employee
    nis = calculate_nis(NisInput(gross_income=gross, frequency=frequency, mode="combined"), rules)
    nis_employee, _ = period_contributions(gross, frequency, "combined", rules)
    other_deductions = paye_input.allowable_deductions

    taxable = max(
        0.0,
        gross - free_pay - child_allowance - overtime_tax_free - nis_employee - other_deductions,
    )

    brackets = scale_brackets(policy.brackets, native, frequency)
    tax, breakdown = apply_brackets(taxable, brackets)

    logger.debug(
        f"PAYE {frequency}: gross={gross:.2f} taxable={taxable:.2f} tax={tax:.2f}"
    )

    net_tax_owed = max(0.0, tax - paye_input.tax_credits - paye_input.previous_tax_paid)
    return PayeResult(
        frequency=frequency,
        gross_income=round_money(gross),
        statutory_free_pay=round_money(free_pay),
        child_allowance=round_money(child_allowance),
        overtime_tax_free=round_money(overtime_tax_free),
        nis_employee=round_money(nis_employee),
        nis_employer=nis.employer_contribution,
        allowable_deductions=round_money(other_deductions),
        taxable_income=round_money(taxable),
        total_tax=round_money(tax),
        tax_credits=round_money(paye_input.tax_credits),
        previous_tax_paid=round_money(paye_input.previous_tax_paid),
        net_tax_owed=round_money(net_tax_owed),
        bracket_breakdown=[
            BracketAmount(
                lower_bound=round_money(b.lower_bound),
                upper_bound=None if b.upper_bound is None else round_money(b.upper_bound),
                rate=b.rate,
                taxable_amount=round_money(b.taxable_amount),
                tax=round_money(b.tax),
            )
            for b in breakdown
        ],
        effective_rate=round_rate(tax / gross),
        marginal_rate=marginal_rate(taxable, brackets),
        total_deductions=round_money(tax + nis_employee),
        net_pay=round_money(gross - tax - nis_employee),
        calculated_at=calculated_at,
    )


def calculate_paye_multiple_income(
    inputs: Iterable[PayeInput],
    rules: TaxRules,
    calculated_at: Optional[datetime] = None,
) -> PayeResult:
    """Combine several income sources into one annual PAYE computation.

    Each source is annualised at its own frequency, including its deductions,
    credits and tax already paid. Dependents are counted once, using the
    largest number declared on any source.
    """
    inputs = list(inputs)
    combined = PayeInput(
        basic_salary=sum(to_annual(i.basic_salary, i.frequency) for i in inputs),
        overtime=sum(to_annual(i.overtime, i.frequency) for i in inputs),
        allowances=sum(to_annual(i.allowances, i.frequency) for i in inputs),
        bonuses=sum(to_annual(i.bonuses, i.frequency) for i in inputs),
        dependents=max((i.dependents for i in inputs), default=0),
        allowable_deductions=sum(to_annual(i.allowable_deductions, i.frequency) for i in inputs),
        tax_credits=sum(to_annual(i.tax_credits, i.frequency) for i in inputs),
        previous_tax_paid=sum(to_annual(i.previous_tax_paid, i.frequency) for i in inputs),
        frequency="annual",
    )
    return calculate_paye(combined, rules, calculated_at=calculated_at)


def calculate_monthly_paye_withholding(
    gross_monthly: float, rules: TaxRules, dependents: int = 0
) -> float:
    """PAYE to withhold from a plain monthly salary."""
    result = calculate_paye(
        PayeInput(basic_salary=gross_monthly, dependents=dependents, frequency="monthly"),
        rules,
    )
    return result.total_tax


def calculate_annual_paye_liability(
    annual_gross_income: float,
    rules: TaxRules,
    allowable_deductions: float = 0,
    tax_credits: float = 0,
    previous_tax_paid: float = 0,
    dependents: int = 0,
) -> PayeResult:
    """PAYE for a whole year of income, net of credits and tax already paid."""
    return calculate_paye(
        PayeInput(
            basic_salary=annual_gross_income,
            dependents=dependents,
            allowable_deductions=allowable_deductions,
            tax_credits=tax_credits,
            previous_tax_paid=previous_tax_paid,
            frequency="annual",
        ),
        rules,
    )


def calculate_tax_savings(
    gross_income: float,
    frequency: str,
    current_deductions: float,
    additional_deductions: float,
    rules: TaxRules,
) -> TaxSavingsResult:
    """Annual PAYE saved by claiming additional deductions each pay period."""
    current = calculate_paye(
        PayeInput(basic_salary=gross_income, allowable_deductions=current_deductions, frequency=frequency),
        rules,
    )
    claimed = calculate_paye(
        PayeInput(
            basic_salary=gross_income,
            allowable_deductions=current_deductions + additional_deductions,
            frequency=frequency,
        ),
        rules,
    )

    current_tax = to_annual(current.total_tax, frequency)
    new_tax = to_annual(claimed.total_tax, frequency)
    savings = current_tax - new_tax
    annual_additional = to_annual(additional_deductions, frequency)

    return TaxSavingsResult(
        frequency=frequency,
        current_deductions=round_money(current_deductions),
        additional_deductions=round_money(additional_deductions),
        current_tax=round_money(current_tax),
        new_tax=round_money(new_tax),
        savings=round_money(savings),
        effective_reduction=round_rate(savings / annual_additional) if annual_additional else 0.0,
    )
