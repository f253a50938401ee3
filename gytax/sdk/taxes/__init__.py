"""taxes - Tax calculators for each regime.

Scope:
- Progressive brackets and pay-frequency conversion
- PAYE income tax and NIS contributions per pay period
- VAT on transactions and period returns
- Corporate income tax, advance payments and capital gains
- Withholding tax (Form 7B) on payments, monthly returns and certificates

Constraints:
- Pure calculation - no file access, no clock reads in business rules
- Every calculator takes the TaxRules bundle for the year as an argument
- Amounts are rounded to cents only when a result model is built

Modules:
- brackets: Bracket evaluation, marginal rate, schedule validation
- frequency: weekly / bi-weekly / monthly / annual conversion
- money: round_money and late-period counting
- dates: Month arithmetic for due dates
- schemas: Pydantic models for the tax_rules/YYYY.yaml bundle
- paye, nis, vat, corporate, withholding: One module per regime

Usage:
    from gytax.sdk import load_tax_rules
    from gytax.sdk.taxes import calculate_paye
    from gytax.sdk.schemas import PayeInput

    rules = load_tax_rules(2025)
    result = calculate_paye(PayeInput(basic_salary=250000, dependents=2), rules)
"""

# Building blocks (imported before the calculators that depend on them)
from .brackets import (
    BracketAmount,
    BracketResult,
    apply_brackets,
    marginal_rate,
    scale_brackets,
    validate_brackets,
)
from .frequency import (
    FREQUENCIES,
    PERIODS_PER_YEAR,
    convert_frequency,
    periods_per_year,
    to_annual,
    to_monthly,
    to_weekly,
)
from .money import round_money
from .schemas import TaxBracket, TaxRules

# Regime calculators
from .nis import (
    calculate_annual_nis_summary,
    calculate_employee_nis,
    calculate_employer_nis,
    calculate_nis,
    calculate_self_employed_nis,
    calculate_total_payroll_nis,
    calculate_projected_retirement_benefit,
    period_contributions,
)
from .paye import (
    calculate_annual_paye_liability,
    calculate_monthly_paye_withholding,
    calculate_paye,
    calculate_paye_multiple_income,
    calculate_tax_savings,
)
from .vat import (
    add_vat,
    calculate_import_vat,
    calculate_partial_exemption,
    calculate_vat,
    calculate_vat_multiple_items,
    calculate_vat_return,
    check_vat_registration_requirement,
    remove_vat,
)
from .corporate import (
    calculate_capital_gains_tax,
    calculate_corporate_tax,
    calculate_installment_schedule,
    calculate_minimum_tax,
    calculate_quarterly_payments,
    compare_tax_structures,
)
from .withholding import (
    calculate_bulk_withholding_tax,
    calculate_monthly_withholding_return,
    calculate_withholding_tax,
    check_withholding_compliance,
    generate_withholding_certificate,
)

__all__ = [
    # Brackets
    "TaxBracket",
    "BracketAmount",
    "BracketResult",
    "apply_brackets",
    "marginal_rate",
    "scale_brackets",
    "validate_brackets",
    # Frequency
    "FREQUENCIES",
    "PERIODS_PER_YEAR",
    "convert_frequency",
    "periods_per_year",
    "to_annual",
    "to_monthly",
    "to_weekly",
    # Rounding
    "round_money",
    # Rules
    "TaxRules",
    # NIS
    "calculate_nis",
    "calculate_employee_nis",
    "calculate_employer_nis",
    "calculate_total_payroll_nis",
    "calculate_self_employed_nis",
    "calculate_annual_nis_summary",
    "calculate_projected_retirement_benefit",
    "period_contributions",
    # PAYE
    "calculate_paye",
    "calculate_paye_multiple_income",
    "calculate_monthly_paye_withholding",
    "calculate_annual_paye_liability",
    "calculate_tax_savings",
    # VAT
    "calculate_vat",
    "add_vat",
    "remove_vat",
    "calculate_vat_return",
    "calculate_vat_multiple_items",
    "check_vat_registration_requirement",
    "calculate_import_vat",
    "calculate_partial_exemption",
    # Corporate
    "calculate_corporate_tax",
    "calculate_quarterly_payments",
    "calculate_minimum_tax",
    "calculate_capital_gains_tax",
    "calculate_installment_schedule",
    "compare_tax_structures",
    # Withholding
    "calculate_withholding_tax",
    "calculate_bulk_withholding_tax",
    "calculate_monthly_withholding_return",
    "check_withholding_compliance",
    "generate_withholding_certificate",
]
