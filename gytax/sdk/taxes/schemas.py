"""Pydantic schemas for tax rules validation.

These schemas validate the tax_rules/*.yaml bundles and provide typed access
to every rate, threshold, bracket and penalty parameter used by the
calculators. Bundles are frozen: one instance per tax year, shared freely.

The Literal aliases at the top are the closed vocabularies for each regime.
Rate tables are keyed by these values with one required field per member, so
a bundle missing a category fails at load time instead of falling through to
a default rate.
"""

from datetime import date
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


Frequency = Literal["weekly", "bi-weekly", "monthly", "annual"]
NisMode = Literal["employee", "employer", "self_employed", "combined"]
VatCategory = Literal["standard", "zero-rated", "exempt"]
VatTransactionType = Literal["sale", "purchase", "import", "export"]
BusinessType = Literal[
    "standard",
    "small_business",
    "manufacturing",
    "mining",
    "banking",
    "insurance",
    "telecommunications",
]
WithholdingTaxType = Literal[
    "dividend",
    "interest",
    "royalty",
    "rent",
    "professional_services",
    "management_fees",
    "technical_services",
    "commission",
    "other",
]
PayeeType = Literal["resident", "non_resident", "company", "individual"]
TaxType = Literal["paye", "nis", "vat", "corporate", "withholding"]
FilingType = Literal["return", "payment", "certificate", "registration", "application"]
FilingFrequency = Literal["monthly", "quarterly", "annually"]


class _Rules(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class BracketRule(_Rules):
    """Single tax bracket entry as written in the YAML bundle."""

    up_to: Optional[float] = Field(default=None, gt=0, description="Upper bound (None if 'over' bracket)")
    over: Optional[float] = Field(default=None, ge=0, description="Lower bound for top bracket")
    rate: float = Field(..., ge=0, le=1, description="Tax rate as decimal")

    @model_validator(mode="after")
    def check_bound(self) -> "BracketRule":
        if (self.up_to is None) == (self.over is None):
            raise ValueError("bracket needs exactly one of 'up_to' or 'over'")
        return self


class TaxBracket(_Rules):
    """A contiguous income range taxed at one rate.

    upper_bound is None for the top bracket.
    """

    lower_bound: float = Field(..., ge=0)
    upper_bound: Optional[float] = Field(default=None)
    rate: float = Field(..., ge=0, le=1)

    def contains(self, amount: float) -> bool:
        """True if amount falls in [lower_bound, upper_bound)."""
        if amount < self.lower_bound:
            return False
        return self.upper_bound is None or amount < self.upper_bound


def to_brackets(rules: List[BracketRule]) -> List[TaxBracket]:
    """Convert YAML up_to/over entries into contiguous TaxBracket ranges."""
    brackets = []
    lower = 0.0
    for rule in rules:
        if rule.up_to is not None:
            brackets.append(TaxBracket(lower_bound=lower, upper_bound=rule.up_to, rate=rule.rate))
            lower = rule.up_to
        else:
            brackets.append(TaxBracket(lower_bound=rule.over, upper_bound=None, rate=rule.rate))
    return brackets


class PayeRules(_Rules):
    """PAYE parameters, expressed per native_frequency period."""

    native_frequency: Frequency = "monthly"
    statutory_free_pay: float = Field(..., ge=0)
    child_allowance_per_child: float = Field(..., ge=0)
    max_child_allowance_children: int = Field(..., ge=0)
    overtime_tax_free_limit: float = Field(..., ge=0)
    tax_brackets: List[BracketRule] = Field(..., min_length=1)

    @property
    def brackets(self) -> List[TaxBracket]:
        return to_brackets(self.tax_brackets)


class NisRules(_Rules):
    """National Insurance Scheme contribution parameters."""

    employee_rate: float = Field(..., ge=0, le=1)
    employer_rate: float = Field(..., ge=0, le=1)
    weekly_ceiling: float = Field(..., gt=0, description="Max insurable earnings per week")
    minimum_wage_monthly: float = Field(..., ge=0)
    pension_base_rate: float = Field(..., ge=0, le=1, description="Pension as a share of insurable monthly income")
    pension_rate_per_year: float = Field(..., ge=0, le=1, description="Added per contribution year")
    pension_max_rate: float = Field(..., ge=0, le=1)


class VatRules(_Rules):
    """Value Added Tax parameters."""

    standard_rate: float = Field(..., ge=0, le=1)
    registration_threshold: float = Field(..., ge=0, description="Annual turnover")
    approaching_threshold_ratio: float = Field(default=0.8, ge=0, le=1)
    de_minimis_limit: float = Field(..., ge=0, description="Monthly partial-exemption limit")
    return_due_day: int = Field(..., ge=1, le=28)
    late_filing_rate: float = Field(..., ge=0, le=1, description="Per month late")


class CorporateRates(_Rules):
    """Corporate tax rate per business type."""

    standard: float = Field(..., ge=0, le=1)
    small_business: float = Field(..., ge=0, le=1)
    manufacturing: float = Field(..., ge=0, le=1)
    mining: float = Field(..., ge=0, le=1)
    banking: float = Field(..., ge=0, le=1)
    insurance: float = Field(..., ge=0, le=1)
    telecommunications: float = Field(..., ge=0, le=1)


class CorporateRules(_Rules):
    """Corporate income tax parameters."""

    rates: CorporateRates
    small_business_rate: float = Field(..., ge=0, le=1)
    small_business_threshold: float = Field(..., ge=0, description="Annual gross income")
    small_business_types: List[BusinessType] = Field(
        ..., description="Types eligible for the small business rate when under the threshold"
    )
    small_business_excluded_types: List[BusinessType] = Field(default_factory=list)
    capital_allowance_cap: float = Field(..., ge=0, le=1, description="Share of adjusted income")
    full_capital_allowance_types: List[BusinessType] = Field(default_factory=list)
    donation_cap: float = Field(..., ge=0, le=1, description="Share of adjusted income")
    loss_offset_cap: float = Field(..., ge=0, le=1, description="Share of taxable income")
    return_due_months: int = Field(..., ge=0, description="Months after period end")
    advance_payment_uplift: float = Field(..., ge=1, description="Multiplier on prior-year tax")
    quarterly_due_day: int = Field(..., ge=1, le=28)
    quarterly_due_months: List[int] = Field(..., min_length=4, max_length=4)
    quarterly_due_month_overrides: Dict[BusinessType, List[int]] = Field(default_factory=dict)
    capital_gains_exemption: float = Field(..., ge=0, le=1)
    capital_gains_holding_years: float = Field(..., ge=0)
    capital_gains_no_exemption_types: List[BusinessType] = Field(default_factory=list)
    minimum_tax_rates: Dict[BusinessType, float] = Field(default_factory=dict)

    @field_validator("quarterly_due_months")
    @classmethod
    def check_months(cls, months: List[int]) -> List[int]:
        for month in months:
            if not 1 <= month <= 12:
                raise ValueError(f"quarterly due month out of range: {month}")
        return months

    @field_validator("quarterly_due_month_overrides")
    @classmethod
    def check_override_months(cls, overrides: Dict[str, List[int]]) -> Dict[str, List[int]]:
        for business_type, months in overrides.items():
            if len(months) != 4 or any(not 1 <= m <= 12 for m in months):
                raise ValueError(f"quarterly_due_month_overrides.{business_type} needs 4 months in 1..12")
        return overrides


class WithholdingRates(_Rules):
    """Base withholding rate per payment type."""

    dividend: float = Field(..., ge=0, le=1)
    interest: float = Field(..., ge=0, le=1)
    royalty: float = Field(..., ge=0, le=1)
    rent: float = Field(..., ge=0, le=1)
    professional_services: float = Field(..., ge=0, le=1)
    management_fees: float = Field(..., ge=0, le=1)
    technical_services: float = Field(..., ge=0, le=1)
    commission: float = Field(..., ge=0, le=1)
    other: float = Field(..., ge=0, le=1)


class WithholdingRules(_Rules):
    """Withholding tax (Form 7B) parameters."""

    threshold: float = Field(..., ge=0, description="Minimum payment subject to withholding")
    rates: WithholdingRates
    non_resident_multiplier: float = Field(..., ge=1)
    non_resident_rate_cap: float = Field(..., ge=0, le=1)
    return_due_day: int = Field(..., ge=1, le=28)
    late_filing_rate: float = Field(..., ge=0, le=1)
    treaties: Dict[str, Dict[WithholdingTaxType, float]] = Field(default_factory=dict)

    @field_validator("treaties")
    @classmethod
    def normalize_countries(cls, treaties: Dict[str, Dict[str, float]]) -> Dict[str, Dict[str, float]]:
        return {country.lower(): reductions for country, reductions in treaties.items()}


class ComplianceRequirement(_Rules):
    """Static filing/payment obligation template."""

    id: str
    tax_type: TaxType
    filing_type: FilingType
    frequency: FilingFrequency
    description: str
    is_required: bool = True
    penalty_rate: float = Field(default=0, ge=0, le=1)
    grace_period_days: int = Field(default=0, ge=0)
    minimum_threshold: Optional[float] = Field(default=None, ge=0)


class ComplianceRules(_Rules):
    """Penalty, interest and scheduling parameters for obligation tracking."""

    late_filing_rate: float = Field(..., ge=0, le=1, description="Per 30 days overdue")
    late_payment_rate: float = Field(..., ge=0, le=1)
    maximum_penalty_rate: float = Field(..., ge=0)
    late_payment_interest_rate: float = Field(..., ge=0, description="Annual")
    refund_interest_rate: float = Field(..., ge=0, description="Annual")
    delinquent_after_days: int = Field(..., gt=0)
    lookback_days: int = Field(..., gt=0)
    upcoming_window_days: int = Field(..., gt=0)
    withholding_turnover_floor: float = Field(..., ge=0)
    due_days: Dict[TaxType, int] = Field(default_factory=dict)
    default_due_day: int = Field(..., ge=1, le=28)
    annual_due_months: int = Field(..., ge=0, description="Months after registration anniversary")
    requirements: List[ComplianceRequirement] = Field(..., min_length=1)

    @field_validator("requirements")
    @classmethod
    def check_unique_ids(cls, requirements: List[ComplianceRequirement]) -> List[ComplianceRequirement]:
        seen = set()
        for requirement in requirements:
            if requirement.id in seen:
                raise ValueError(f"duplicate requirement id: {requirement.id}")
            seen.add(requirement.id)
        return requirements

    def get_requirement(self, requirement_id: str) -> Optional[ComplianceRequirement]:
        for requirement in self.requirements:
            if requirement.id == requirement_id:
                return requirement
        return None

    def due_day_for(self, tax_type: str) -> int:
        return self.due_days.get(tax_type, self.default_due_day)


class TaxRules(_Rules):
    """Complete policy bundle for a tax year."""

    model_config = ConfigDict(extra="ignore", frozen=True)  # Allow unknown fields for forward compat

    tax_year: int = Field(..., ge=1900)
    effective_date: Optional[date] = None
    currency: str = "GYD"
    paye: PayeRules
    nis: NisRules
    vat: VatRules
    corporate: CorporateRules
    withholding: WithholdingRules
    compliance: ComplianceRules
