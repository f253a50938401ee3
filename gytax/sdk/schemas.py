"""Pydantic schemas for calculator inputs and results.

All schemas use extra='forbid' to reject unknown fields and are frozen.
Input models carry ge=0 constraints so malformed input fails at
construction. Result models hold amounts already rounded to cents.
"""

from datetime import date, datetime, timezone
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .taxes.brackets import BracketAmount
from .taxes.schemas import (
    BusinessType,
    Frequency,
    NisMode,
    PayeeType,
    VatCategory,
    VatTransactionType,
    WithholdingTaxType,
)

FROZEN = ConfigDict(extra="forbid", frozen=True)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# PAYE
# =============================================================================


class PayeInput(BaseModel):
    """Employee earnings for one pay period."""

    model_config = FROZEN

    basic_salary: float = Field(..., ge=0, description="Basic salary per pay period")
    overtime: float = Field(default=0, ge=0, description="Overtime pay per pay period")
    allowances: float = Field(default=0, ge=0, description="Taxable allowances")
    bonuses: float = Field(default=0, ge=0)
    dependents: int = Field(default=0, ge=0, description="Children eligible for child allowance")
    allowable_deductions: float = Field(default=0, ge=0, description="Other deductions allowed before tax")
    tax_credits: float = Field(default=0, ge=0, description="Credits set against the tax for the period")
    previous_tax_paid: float = Field(default=0, ge=0, description="Tax already paid for the period")
    frequency: Frequency = "monthly"

    @property
    def gross_income(self) -> float:
        return self.basic_salary + self.overtime + self.allowances + self.bonuses


class PayeResult(BaseModel):
    """PAYE breakdown for one pay period.

    Deductions are the amounts subtracted before tax. net_pay is gross less
    PAYE and the employee NIS contribution; employer NIS is reported but not
    deducted from the employee.
    """

    model_config = FROZEN

    frequency: Frequency
    gross_income: float
    statutory_free_pay: float
    child_allowance: float
    overtime_tax_free: float
    nis_employee: float
    nis_employer: float
    allowable_deductions: float = 0
    taxable_income: float
    total_tax: float
    tax_credits: float = 0
    previous_tax_paid: float = 0
    net_tax_owed: float = Field(default=0, description="total_tax less credits and tax already paid, floored at 0")
    bracket_breakdown: List[BracketAmount] = Field(default_factory=list)
    effective_rate: float = Field(..., description="total_tax / gross_income")
    marginal_rate: float
    total_deductions: float = Field(..., description="PAYE plus employee NIS")
    net_pay: float
    calculated_at: datetime = Field(default_factory=utc_now)


class TaxSavingsResult(BaseModel):
    """Annual PAYE with and without additional deductions."""

    model_config = FROZEN

    frequency: Frequency
    current_deductions: float
    additional_deductions: float
    current_tax: float = Field(..., description="Annual PAYE with current deductions")
    new_tax: float = Field(..., description="Annual PAYE with the additional deductions")
    savings: float
    effective_reduction: float = Field(..., description="Annual savings per unit of annual additional deduction")


# =============================================================================
# NIS
# =============================================================================


class NisInput(BaseModel):
    model_config = FROZEN

    gross_income: float = Field(..., ge=0, description="Gross earnings per pay period")
    frequency: Frequency = "monthly"
    mode: NisMode = "employee"


class NisResult(BaseModel):
    """NIS contributions for one pay period.

    weekly_income and exceeded_amount are weekly figures; contributions and
    insurable_earnings are per pay period.
    """

    model_config = FROZEN

    gross_income: float
    frequency: Frequency
    mode: NisMode
    weekly_income: float
    insurable_weekly_income: float
    insurable_earnings: float
    employee_rate: float
    employer_rate: float
    employee_contribution: float
    employer_contribution: float
    total_contribution: float
    exceeds_weekly_ceiling: bool
    exceeded_amount: float
    below_minimum_wage: bool
    calculated_at: datetime = Field(default_factory=utc_now)


class NisPeriodRecord(BaseModel):
    """One pay period for the annual NIS summary."""

    model_config = FROZEN

    gross_income: float = Field(..., ge=0)
    frequency: Frequency = "monthly"
    pay_period: date


class NisAnnualSummary(BaseModel):
    model_config = FROZEN

    period_count: int
    total_gross_income: float
    total_insurable_earnings: float
    total_employee_contributions: float
    total_employer_contributions: float
    total_contributions: float
    average_weekly_income: float
    periods_exceeding_ceiling: int
    creditable_year: bool


class RetirementBenefitProjection(BaseModel):
    """Estimated NIS old-age pension."""

    model_config = FROZEN

    average_annual_income: float
    years_of_contribution: int
    benefit_rate: float
    monthly_pension: float
    annual_pension: float
    total_contributions: float = Field(..., description="Employee contributions over the working years")
    replacement_ratio: float = Field(..., description="annual_pension / average_annual_income")


# =============================================================================
# VAT
# =============================================================================


class VatInput(BaseModel):
    model_config = FROZEN

    amount: float = Field(..., ge=0)
    category: VatCategory = "standard"
    transaction_type: VatTransactionType = "sale"
    includes_vat: bool = Field(default=False, description="True if amount is VAT-inclusive")
    custom_rate: Optional[float] = Field(default=None, ge=0, le=1)
    transaction_date: Optional[date] = None
    description: Optional[str] = None


class VatResult(BaseModel):
    model_config = FROZEN

    gross_amount: float
    net_amount: float
    vat_amount: float
    vat_rate: float
    category: VatCategory
    transaction_type: VatTransactionType
    includes_vat: bool
    is_registerable: bool = Field(..., description="Net at or above the monthly registration share")
    transaction_date: Optional[date] = None
    description: Optional[str] = None
    calculated_at: datetime = Field(default_factory=utc_now)


class VatReturn(BaseModel):
    """VAT return for a filing period, assessed as of a given date."""

    model_config = FROZEN

    period_start: date
    period_end: date
    output_vat: float
    input_vat: float
    previous_balance: float
    net_vat: float = Field(..., description="Negative means refund due")
    turnover: float
    purchases: float
    transactions: List[VatResult]
    is_refund_due: bool
    due_date: date
    as_of: date
    is_late: bool
    days_late: int
    penalty: float
    total_due: float
    calculated_at: datetime = Field(default_factory=utc_now)


class VatItemsSummary(BaseModel):
    model_config = FROZEN

    items: List[VatResult]
    gross_total: float
    net_total: float
    vat_total: float
    standard_rate_vat: float
    zero_rated_amount: float
    exempt_amount: float


class VatRegistrationCheck(BaseModel):
    model_config = FROZEN

    requires_registration: bool
    approaching_threshold: bool
    annual_turnover: float
    threshold: float
    excess_amount: float
    recommendation: str


class PartialExemptionResult(BaseModel):
    model_config = FROZEN

    exempt_percentage: float = Field(..., description="Exempt share of supplies, in percent")
    recoverable_input_vat: float
    non_recoverable_input_vat: float
    de_minimis_limit: float
    is_de_minimis: bool


# =============================================================================
# Corporate tax
# =============================================================================


class AccountingPeriod(BaseModel):
    model_config = FROZEN

    start_date: date
    end_date: date
    is_first_year: bool = False

    @model_validator(mode="after")
    def check_order(self) -> "AccountingPeriod":
        if self.start_date >= self.end_date:
            raise ValueError(
                f"accounting period start {self.start_date} must be before end {self.end_date}"
            )
        return self


class CorporateTaxInput(BaseModel):
    model_config = FROZEN

    gross_income: float = Field(..., ge=0)
    allowable_deductions: float = Field(default=0, ge=0)
    business_type: BusinessType = "standard"
    accounting_period: AccountingPeriod
    previous_year_losses: float = Field(default=0, ge=0)
    capital_allowances: float = Field(default=0, ge=0, description="Claimed; capped on apply")
    donations_to_charity: float = Field(default=0, ge=0, description="Claimed; capped on apply")
    advance_payments: float = Field(default=0, ge=0)
    withholding_tax_credits: float = Field(default=0, ge=0)


class CorporateTaxResult(BaseModel):
    """Corporate tax computation for one accounting period.

    capital_allowances, charitable_donations and loss_relief are the amounts
    actually applied after caps. balance_due is negative for a refund.
    """

    model_config = FROZEN

    business_type: BusinessType
    gross_income: float
    allowable_deductions: float
    adjusted_income: float
    capital_allowances: float
    charitable_donations: float
    taxable_income: float = Field(..., description="Before loss relief")
    loss_relief: float
    loss_carryforward: float
    final_taxable_income: float
    qualifies_for_small_business: bool
    tax_rate: float
    gross_tax: float
    tax_credits: float
    net_tax: float
    advance_payments: float
    balance_due: float
    is_refund_due: bool
    effective_rate: float = Field(..., description="gross_tax / gross_income")
    accounting_period: AccountingPeriod
    due_date: date
    calculated_at: datetime = Field(default_factory=utc_now)


class QuarterlyPayment(BaseModel):
    model_config = FROZEN

    quarter: Literal["Q1", "Q2", "Q3", "Q4"]
    year: int
    estimated_annual_income: float
    required_annual_payment: float
    quarterly_tax_due: float
    cumulative_payments: float
    balance_remaining: float
    due_date: date


class CapitalGainsResult(BaseModel):
    model_config = FROZEN

    capital_gain: float
    exemption: float
    taxable_gain: float
    tax_rate: float
    capital_gains_tax: float
    effective_rate: float


class Installment(BaseModel):
    model_config = FROZEN

    installment_number: int
    due_date: date
    amount: float
    cumulative_amount: float
    balance: float


class TaxStructureComparison(BaseModel):
    model_config = FROZEN

    results: Dict[BusinessType, CorporateTaxResult]
    best_option: BusinessType
    savings: float = Field(..., description="Standard net tax less best option net tax")
    effective_rates: Dict[BusinessType, float]


# =============================================================================
# Withholding tax
# =============================================================================


class WithholdingTaxInput(BaseModel):
    model_config = FROZEN

    gross_amount: float = Field(..., ge=0)
    tax_type: WithholdingTaxType
    payee_type: PayeeType
    payee_name: str = Field(..., min_length=1)
    payee_tin: Optional[str] = None
    payment_date: date
    custom_rate: Optional[float] = Field(default=None, ge=0, le=1)
    treaty_country: Optional[str] = None
    is_exempt: bool = False
    exemption_reason: Optional[str] = None


class WithholdingTaxResult(BaseModel):
    model_config = FROZEN

    gross_amount: float
    withholding_rate: float
    treaty_reduction: Optional[float] = None
    withholding_tax: float
    net_amount: float
    tax_type: WithholdingTaxType
    payee_type: PayeeType
    payee_name: str
    payee_tin: Optional[str] = None
    payment_date: date
    is_subject_to_withholding: bool
    is_exempt: bool
    exemption_reason: Optional[str] = None
    form_required: bool
    due_date: date
    calculated_at: datetime = Field(default_factory=utc_now)


class PayeeSummary(BaseModel):
    model_config = FROZEN

    payee_name: str
    payee_tin: Optional[str] = None
    total_gross: float
    total_withholding: float
    transaction_count: int


class MonthlyWithholdingReturn(BaseModel):
    model_config = FROZEN

    month: int
    year: int
    transactions: List[WithholdingTaxResult]
    exempt_transactions: List[WithholdingTaxResult]
    total_gross_payments: float
    total_withholding_tax: float
    total_net_payments: float
    due_date: date
    as_of: date
    is_late: bool
    days_late: int
    penalty: float
    total_due: float
    payee_breakdown: List[PayeeSummary]


class OverdueMonth(BaseModel):
    model_config = FROZEN

    month: int
    year: int
    due_date: date
    days_overdue: int
    amount: float


class WithholdingComplianceReport(BaseModel):
    model_config = FROZEN

    total_overdue: float
    overdue_months: List[OverdueMonth]
    compliance_score: float
    recommendations: List[str]


class BulkWithholdingResult(BaseModel):
    model_config = FROZEN

    calculations: List[WithholdingTaxResult]
    total_gross_payments: float
    total_withholding_tax: float
    total_net_payments: float
    exempt_payments: int
    subject_to_withholding: int
    average_withholding_rate: float


class PayerDetails(BaseModel):
    model_config = FROZEN

    name: str = Field(..., min_length=1)
    tin: str
    address: str = ""


class WithholdingCertificate(BaseModel):
    model_config = FROZEN

    certificate_number: str
    issue_date: date
    payer: PayerDetails
    payee_name: str
    payee_tin: Optional[str] = None
    payment_date: date
    tax_type: WithholdingTaxType
    rate: float
    gross_amount: float
    withholding_tax: float
    net_amount: float
    declaration: str


# =============================================================================
# Payroll
# =============================================================================


class PayrollEmployee(BaseModel):
    """Employee earnings for a payroll run."""

    model_config = FROZEN

    id: str
    first_name: str
    last_name: str
    nis_number: str
    tin: Optional[str] = None
    basic_salary: float = Field(..., ge=0)
    overtime: float = Field(default=0, ge=0)
    allowances: float = Field(default=0, ge=0)
    bonuses: float = Field(default=0, ge=0)
    dependents: int = Field(default=0, ge=0)


class PayrollLine(BaseModel):
    model_config = FROZEN

    employee: PayrollEmployee
    paye: PayeResult
    nis: NisResult


class PayrollTotals(BaseModel):
    model_config = FROZEN

    employee_count: int
    total_gross_pay: float
    total_net_pay: float
    total_paye: float
    total_employee_nis: float
    total_employer_nis: float


class PayrollRun(BaseModel):
    model_config = FROZEN

    frequency: Frequency
    lines: List[PayrollLine]
    totals: PayrollTotals
    generated_at: datetime = Field(default_factory=utc_now)
