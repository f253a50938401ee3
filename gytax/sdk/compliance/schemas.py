"""Pydantic schemas for compliance tracking.

ComplianceRecord is the only stateful entity in the engine. Callers persist
records however they like and pass them back in on the next assessment;
the tracker returns updated copies and never mutates its input.
"""

from datetime import date
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..taxes.schemas import BusinessType, FilingType, TaxType

ComplianceStatus = Literal["compliant", "overdue", "delinquent", "under_review"]
RiskLevel = Literal["low", "medium", "high", "critical"]
Priority = Literal["low", "medium", "high", "urgent"]

PRIORITY_ORDER = {"urgent": 4, "high": 3, "medium": 2, "low": 1}


class BusinessProfile(BaseModel):
    """Facts about a business that decide which obligations apply."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    registration_date: date
    annual_turnover: float = Field(default=0, ge=0)
    employee_count: int = Field(default=0, ge=0)
    business_type: BusinessType = "standard"
    is_vat_registered: bool = False


class ComplianceRecord(BaseModel):
    """One filing or payment occurrence for a business.

    A record is satisfied once both filed_date and paid_date are set.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str = Field(..., description="{requirement_id}-{business_id}-{due_date epoch ms}")
    requirement_id: str
    business_id: str
    due_date: date
    filed_date: Optional[date] = None
    paid_date: Optional[date] = None
    amount: Optional[float] = Field(default=None, ge=0, description="Tax due; unknown until computed")
    status: ComplianceStatus = "compliant"
    penalty_amount: float = Field(default=0, ge=0)
    interest_amount: float = Field(default=0, ge=0)
    total_due: float = Field(default=0, ge=0)
    documents: List[str] = Field(default_factory=list)
    notes: Optional[str] = None
    last_updated: Optional[date] = None

    @property
    def is_satisfied(self) -> bool:
        return self.filed_date is not None and self.paid_date is not None

    @model_validator(mode="before")
    @classmethod
    def fill_total(cls, data):
        if isinstance(data, dict) and data.get("total_due") is None:
            data = dict(data)
            data["total_due"] = (
                (data.get("amount") or 0)
                + (data.get("penalty_amount") or 0)
                + (data.get("interest_amount") or 0)
            )
        return data

    @model_validator(mode="after")
    def check_total(self) -> "ComplianceRecord":
        expected = (self.amount or 0) + self.penalty_amount + self.interest_amount
        if abs(self.total_due - expected) > 0.005:
            raise ValueError(
                f"total_due {self.total_due} != amount + penalty + interest ({expected:.2f})"
            )
        return self


class NextAction(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    description: str
    due_date: date
    priority: Priority
    record_id: Optional[str] = None


class ComplianceAssessment(BaseModel):
    """Point-in-time view of a business's obligations. Not persisted."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    business_id: str
    assessment_date: date
    overall_status: ComplianceStatus
    compliance_score: float = Field(..., ge=0, le=100)
    total_outstanding: float
    overdue_count: int
    upcoming_count: int
    records: List[ComplianceRecord]
    risk_level: RiskLevel
    recommendations: List[str]
    next_actions: List[NextAction]


class CalendarEntry(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    requirement_id: str
    description: str
    tax_type: TaxType
    filing_type: FilingType
    priority: Literal["low", "medium", "high"]


class CalendarDay(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    day: date
    entries: List[CalendarEntry]
