"""compliance - Filing and payment obligation tracking.

Modules:
- schemas: BusinessProfile, ComplianceRecord, ComplianceAssessment, calendar models
- tracker: Record generation, status/penalty derivation, scoring and the calendar
"""

from .schemas import (
    PRIORITY_ORDER,
    BusinessProfile,
    CalendarDay,
    CalendarEntry,
    ComplianceAssessment,
    ComplianceRecord,
    NextAction,
)
from .tracker import (
    assess_business_compliance,
    calculate_interest,
    calculate_penalty,
    generate_compliance_calendar,
    generate_required_records,
    record_id,
)

__all__ = [
    "PRIORITY_ORDER",
    "BusinessProfile",
    "CalendarDay",
    "CalendarEntry",
    "ComplianceAssessment",
    "ComplianceRecord",
    "NextAction",
    "assess_business_compliance",
    "calculate_interest",
    "calculate_penalty",
    "generate_compliance_calendar",
    "generate_required_records",
    "record_id",
]
