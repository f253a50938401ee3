"""Guyana Tax SDK - Calculators, compliance tracking and payroll for Guyana taxes."""

from .config import (
    APP_NAME,
    RULES_ENV_VAR,
    clear_rules_cache,
    get_available_years,
    get_tax_rules_dir,
    load_tax_rules,
)

from .errors import (
    PolicyConfigError,
    TaxInputError,
    TaxRulesNotFoundError,
    UnknownFrequencyError,
)

from .taxes import (
    TaxRules,
    add_vat,
    calculate_annual_nis_summary,
    calculate_annual_paye_liability,
    calculate_bulk_withholding_tax,
    calculate_capital_gains_tax,
    calculate_corporate_tax,
    calculate_employee_nis,
    calculate_employer_nis,
    calculate_import_vat,
    calculate_installment_schedule,
    calculate_minimum_tax,
    calculate_monthly_paye_withholding,
    calculate_monthly_withholding_return,
    calculate_nis,
    calculate_partial_exemption,
    calculate_paye,
    calculate_paye_multiple_income,
    calculate_projected_retirement_benefit,
    calculate_quarterly_payments,
    calculate_self_employed_nis,
    calculate_total_payroll_nis,
    calculate_tax_savings,
    calculate_vat,
    calculate_vat_multiple_items,
    calculate_vat_return,
    calculate_withholding_tax,
    check_vat_registration_requirement,
    check_withholding_compliance,
    compare_tax_structures,
    generate_withholding_certificate,
    remove_vat,
)

from .compliance import (
    BusinessProfile,
    ComplianceAssessment,
    ComplianceRecord,
    assess_business_compliance,
    generate_compliance_calendar,
)

from .payroll import process_payroll, validate_nis_number, validate_tin_number
from .exports import form_7b_to_csv_string, nis_cs3_schedule, write_form_7b_csv, write_nis_cs3

__all__ = [
    # Config
    "APP_NAME",
    "RULES_ENV_VAR",
    "clear_rules_cache",
    "get_available_years",
    "get_tax_rules_dir",
    "load_tax_rules",
    # Errors
    "PolicyConfigError",
    "TaxInputError",
    "TaxRulesNotFoundError",
    "UnknownFrequencyError",
    # Taxes
    "TaxRules",
    "calculate_paye",
    "calculate_paye_multiple_income",
    "calculate_monthly_paye_withholding",
    "calculate_annual_paye_liability",
    "calculate_tax_savings",
    "calculate_nis",
    "calculate_employee_nis",
    "calculate_employer_nis",
    "calculate_total_payroll_nis",
    "calculate_self_employed_nis",
    "calculate_annual_nis_summary",
    "calculate_projected_retirement_benefit",
    "calculate_vat",
    "add_vat",
    "remove_vat",
    "calculate_vat_return",
    "calculate_vat_multiple_items",
    "check_vat_registration_requirement",
    "calculate_import_vat",
    "calculate_partial_exemption",
    "calculate_corporate_tax",
    "calculate_quarterly_payments",
    "calculate_minimum_tax",
    "calculate_capital_gains_tax",
    "calculate_installment_schedule",
    "compare_tax_structures",
    "calculate_withholding_tax",
    "calculate_bulk_withholding_tax",
    "calculate_monthly_withholding_return",
    "check_withholding_compliance",
    "generate_withholding_certificate",
    # Compliance
    "BusinessProfile",
    "ComplianceAssessment",
    "ComplianceRecord",
    "assess_business_compliance",
    "generate_compliance_calendar",
    # Payroll and exports
    "process_payroll",
    "validate_nis_number",
    "validate_tin_number",
    "form_7b_to_csv_string",
    "write_form_7b_csv",
    "nis_cs3_schedule",
    "write_nis_cs3",
]
