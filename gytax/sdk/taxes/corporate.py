"""Corporate income tax.

Order of computation:
1. Adjusted income = gross income less allowable deductions
2. Capital allowances, capped at a share of adjusted income
   (full allowance for the configured sectors, e.g. manufacturing)
3. Charitable donations, capped at a share of adjusted income
4. Prior-year losses, offset against at most a share of what remains;
   the rest carries forward
5. Rate by business type, with the small business rate for qualifying
   companies under the turnover threshold
6. Withholding tax credits, then advance payments
"""

import logging
from datetime import date, datetime
from typing import Dict, List, Optional

from ..errors import TaxInputError
from ..schemas import (
    AccountingPeriod,
    CapitalGainsResult,
    CorporateTaxInput,
    CorporateTaxResult,
    Installment,
    QuarterlyPayment,
    TaxStructureComparison,
    utc_now,
)
from .dates import add_months, on_day
from .money import round_money, round_rate
from .schemas import BusinessType, TaxRules

logger = logging.getLogger(__name__)

COMPARED_STRUCTURES = ("standard", "small_business", "manufacturing")


def qualifies_for_small_business(gross_income: float, business_type: str, rules: TaxRules) -> bool:
    """True if the company is eligible for the small business rate."""
    policy = rules.corporate
    if business_type in policy.small_business_excluded_types:
        return False
    return gross_income <= policy.small_business_threshold


def corporate_tax_rate(business_type: str, rules: TaxRules, small_business: bool = False) -> float:
    """Rate for a business type; small business rate where it applies."""
    policy = rules.corporate
    if small_business and business_type in policy.small_business_types:
        return policy.small_business_rate
    return getattr(policy.rates, business_type)


def corporate_return_due_date(period_end: date, rules: TaxRules) -> date:
    return add_months(period_end, rules.corporate.return_due_months)


def calculate_corporate_tax(
    corporate_input: CorporateTaxInput,
    rules: TaxRules,
    calculated_at: Optional[datetime] = None,
) -> CorporateTaxResult:
    """Calculate corporate tax for one accounting period.

    Args:
        corporate_input: Income, claims and credits for the period
        rules: Policy bundle for the tax year
        calculated_at: Timestamp recorded on the result (default: now, UTC)

    Returns:
        CorporateTaxResult; balance_due is negative when a refund is due
    """
    policy = rules.corporate
    business_type = corporate_input.business_type
    gross = corporate_input.gross_income

    adjusted = max(0.0, gross - corporate_input.allowable_deductions)

    allowance_cap = 1.0 if business_type in policy.full_capital_allowance_types else policy.capital_allowance_cap
    capital_allowances = min(corporate_input.capital_allowances, adjusted * allowance_cap)
    donations = min(corporate_input.donations_to_charity, adjusted * policy.donation_cap)

    taxable = max(0.0, adjusted - capital_allowances - donations)

    loss_relief = min(corporate_input.previous_year_losses, taxable * policy.loss_offset_cap)
    final_taxable = max(0.0, taxable - loss_relief)
    carryforward = corporate_input.previous_year_losses - loss_relief

    small_business = qualifies_for_small_business(gross, business_type, rules)
    rate = corporate_tax_rate(business_type, rules, small_business)

    gross_tax = final_taxable * rate
    credits = corporate_input.withholding_tax_credits
    net_tax = max(0.0, gross_tax - credits)
    balance = net_tax - corporate_input.advance_payments

    period = corporate_input.accounting_period
    logger.debug(
        f"Corporate tax {business_type}: taxable={final_taxable:.2f} rate={rate} net={net_tax:.2f}"
    )

    return CorporateTaxResult(
        business_type=business_type,
        gross_income=round_money(gross),
        allowable_deductions=round_money(corporate_input.allowable_deductions),
        adjusted_income=round_money(adjusted),
        capital_allowances=round_money(capital_allowances),
        charitable_donations=round_money(donations),
        taxable_income=round_money(taxable),
        loss_relief=round_money(loss_relief),
        loss_carryforward=round_money(carryforward),
        final_taxable_income=round_money(final_taxable),
        qualifies_for_small_business=small_business,
        tax_rate=rate,
        gross_tax=round_money(gross_tax),
        tax_credits=round_money(credits),
        net_tax=round_money(net_tax),
        advance_payments=round_money(corporate_input.advance_payments),
        balance_due=round_money(balance),
        is_refund_due=balance < 0,
        effective_rate=round_rate(gross_tax / gross) if gross > 0 else 0.0,
        accounting_period=period,
        due_date=corporate_return_due_date(period.end_date, rules),
        calculated_at=calculated_at or utc_now(),
    )


def quarterly_due_months(business_type: str, rules: TaxRules) -> List[int]:
    policy = rules.corporate
    return policy.quarterly_due_month_overrides.get(business_type, policy.quarterly_due_months)


def calculate_quarterly_payments(
    estimated_annual_income: float,
    business_type: BusinessType,
    year: int,
    rules: TaxRules,
    previous_year_tax: float = 0,
) -> List[QuarterlyPayment]:
    """Advance payment schedule for a tax year.

    The required annual payment is the larger of the estimated tax and the
    configured uplift on last year's tax, split into four equal payments.
    A due month earlier than the previous quarter's falls in the next year.
    """
    if estimated_annual_income < 0 or previous_year_tax < 0:
        raise TaxInputError("Estimated income and previous year tax must be non-negative")

    policy = rules.corporate
    small_business = qualifies_for_small_business(estimated_annual_income, business_type, rules)
    estimated_tax = estimated_annual_income * corporate_tax_rate(business_type, rules, small_business)
    required = max(estimated_tax, previous_year_tax * policy.advance_payment_uplift)
    per_quarter = required / 4

    payments = []
    due_year = year
    previous_month = 0
    for number, month in enumerate(quarterly_due_months(business_type, rules), start=1):
        if month < previous_month:
            due_year += 1
        previous_month = month
        cumulative = per_quarter * number
        payments.append(
            QuarterlyPayment(
                quarter=f"Q{number}",
                year=year,
                estimated_annual_income=round_money(estimated_annual_income),
                required_annual_payment=round_money(required),
                quarterly_tax_due=round_money(per_quarter),
                cumulative_payments=round_money(cumulative),
                balance_remaining=round_money(required - cumulative),
                due_date=on_day(due_year, month, policy.quarterly_due_day),
            )
        )
    return payments


def calculate_minimum_tax(gross_income: float, business_type: BusinessType, rules: TaxRules) -> float:
    """Minimum tax on turnover for sectors that carry one; 0 otherwise."""
    rate = rules.corporate.minimum_tax_rates.get(business_type, 0.0)
    return round_money(gross_income * rate)


def calculate_capital_gains_tax(
    sale_price: float,
    original_cost: float,
    improvement_costs: float,
    holding_period_years: float,
    business_type: BusinessType,
    rules: TaxRules,
) -> CapitalGainsResult:
    """Tax on an asset disposal.

    Assets held longer than the holding period get the configured exemption,
    except in sectors excluded from it. The gain is taxed at the business
    type's standard rate.
    """
    if min(sale_price, original_cost, improvement_costs, holding_period_years) < 0:
        raise TaxInputError("Sale price, costs and holding period must be non-negative")

    policy = rules.corporate
    gain = max(0.0, sale_price - original_cost - improvement_costs)

    exemption = 0.0
    if (
        holding_period_years > policy.capital_gains_holding_years
        and business_type not in policy.capital_gains_no_exemption_types
    ):
        exemption = gain * policy.capital_gains_exemption

    taxable_gain = gain - exemption
    rate = corporate_tax_rate(business_type, rules)
    tax = taxable_gain * rate

    return CapitalGainsResult(
        capital_gain=round_money(gain),
        exemption=round_money(exemption),
        taxable_gain=round_money(taxable_gain),
        tax_rate=rate,
        capital_gains_tax=round_money(tax),
        effective_rate=round_rate(tax / gain) if gain > 0 else 0.0,
    )


def calculate_installment_schedule(
    tax_owed: float, start_date: date, installments: int = 12
) -> List[Installment]:
    """Equal monthly installments, the first due one month after start_date."""
    if installments < 1:
        raise TaxInputError("At least one installment is required", field="installments")
    if tax_owed < 0:
        raise TaxInputError("Tax owed must be non-negative", field="tax_owed")

    amount = tax_owed / installments
    schedule = []
    for number in range(1, installments + 1):
        cumulative = amount * number
        schedule.append(
            Installment(
                installment_number=number,
                due_date=add_months(start_date, number),
                amount=round_money(amount),
                cumulative_amount=round_money(cumulative),
                balance=round_money(tax_owed - cumulative),
            )
        )
    return schedule


def compare_tax_structures(
    income: float,
    deductions: float,
    period: AccountingPeriod,
    rules: TaxRules,
) -> TaxStructureComparison:
    """Compare net tax for the same income under different business structures.

    The best option is the structure with the lowest net tax; ties go to the
    earlier structure in the comparison order (standard first).
    """
    results: Dict[str, CorporateTaxResult] = {}
    for business_type in COMPARED_STRUCTURES:
        results[business_type] = calculate_corporate_tax(
            CorporateTaxInput(
                gross_income=income,
                allowable_deductions=deductions,
                business_type=business_type,
                accounting_period=period,
            ),
            rules,
        )

    best = min(COMPARED_STRUCTURES, key=lambda t: results[t].net_tax)
    return TaxStructureComparison(
        results=results,
        best_option=best,
        savings=round_money(results["standard"].net_tax - results[best].net_tax),
        effective_rates={t: r.effective_rate for t, r in results.items()},
    )
