"""Compliance obligation tracking.

Given a business profile, the records already known for it and an
assessment date, the tracker:

1. Generates the obligations that should exist over the trailing lookback
   window (monthly PAYE/NIS/VAT/withholding, quarterly and annual corporate).
2. Merges them with existing records, existing records winning by id.
3. Re-derives each record's status, penalty and interest as of the
   assessment date.
4. Scores the result and derives risk level, recommendations and next
   actions.

Regeneration is idempotent: record ids are deterministic, so running the
same assessment twice yields the same records.
"""

import logging
from datetime import date, timedelta
from typing import Dict, Iterable, List

from ..errors import PolicyConfigError, TaxInputError
from ..taxes.corporate import quarterly_due_months
from ..taxes.dates import add_months, epoch_millis, on_day
from ..taxes.money import months_late, round_money
from ..taxes.schemas import ComplianceRequirement, TaxRules
from .schemas import (
    PRIORITY_ORDER,
    BusinessProfile,
    CalendarDay,
    CalendarEntry,
    ComplianceAssessment,
    ComplianceRecord,
    NextAction,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Obligation generation
# =============================================================================


def record_id(requirement_id: str, business_id: str, due_date: date) -> str:
    """Deterministic record id: requirement, business and due date (epoch ms, UTC)."""
    return f"{requirement_id}-{business_id}-{epoch_millis(due_date)}"


def is_requirement_applicable(
    requirement: ComplianceRequirement, profile: BusinessProfile, rules: TaxRules
) -> bool:
    """Whether an obligation applies to the business."""
    tax_type = requirement.tax_type
    if tax_type in ("paye", "nis"):
        return profile.employee_count > 0
    if tax_type == "vat":
        threshold = requirement.minimum_threshold
        if threshold is None:
            threshold = rules.vat.registration_threshold
        return profile.is_vat_registered or profile.annual_turnover >= threshold
    if tax_type == "withholding":
        return profile.annual_turnover > rules.compliance.withholding_turnover_floor
    return True


def requirement_due_dates(
    requirement: ComplianceRequirement,
    profile: BusinessProfile,
    assessment_date: date,
    rules: TaxRules,
) -> List[date]:
    """Due dates in [max(registration, T - lookback), T] for a requirement."""
    policy = rules.compliance
    window_start = max(
        profile.registration_date,
        assessment_date - timedelta(days=policy.lookback_days),
    )
    first_month = window_start.replace(day=1)

    candidates: List[date] = []
    if requirement.frequency == "monthly":
        due_day = policy.due_day_for(requirement.tax_type)
        for offset in range(0, 13):
            month = add_months(first_month, offset)
            candidates.append(on_day(month.year, month.month, due_day))
    elif requirement.frequency == "quarterly":
        # Anchored to the corporate calendar so ids survive a moving window.
        due_months = quarterly_due_months(profile.business_type, rules)
        for offset in range(0, 13):
            month = add_months(first_month, offset)
            if month.month in due_months:
                candidates.append(on_day(month.year, month.month, rules.corporate.quarterly_due_day))
    elif requirement.frequency == "annually":
        due = add_months(profile.registration_date, policy.annual_due_months)
        years = 0
        while due <= assessment_date:
            candidates.append(due)
            years += 1
            due = add_months(profile.registration_date, policy.annual_due_months + 12 * years)

    return [d for d in candidates if window_start <= d <= assessment_date]


def generate_required_records(
    business_id: str,
    profile: BusinessProfile,
    assessment_date: date,
    rules: TaxRules,
) -> List[ComplianceRecord]:
    """Blank records for every applicable obligation due in the lookback window."""
    records = []
    for requirement in rules.compliance.requirements:
        if not requirement.is_required or not is_requirement_applicable(requirement, profile, rules):
            continue
        for due in requirement_due_dates(requirement, profile, assessment_date, rules):
            records.append(
                ComplianceRecord(
                    id=record_id(requirement.id, business_id, due),
                    requirement_id=requirement.id,
                    business_id=business_id,
                    due_date=due,
                    last_updated=assessment_date,
                )
            )
    logger.debug(f"Generated {len(records)} required records for {business_id} as of {assessment_date}")
    return records


def merge_records(
    existing: Iterable[ComplianceRecord], required: Iterable[ComplianceRecord]
) -> List[ComplianceRecord]:
    """Required records in order, replaced by existing ones with the same id.

    Existing records with no generated counterpart are appended afterwards.
    """
    by_id: Dict[str, ComplianceRecord] = {}
    for record in existing:
        by_id[record.id] = record

    merged = []
    for record in required:
        merged.append(by_id.pop(record.id, record))
    merged.extend(by_id.values())
    return merged


# =============================================================================
# Status, penalty and interest
# =============================================================================


def calculate_penalty(amount: float, days_overdue: int, rules: TaxRules) -> float:
    """Late filing penalty per started 30 days, capped at the maximum rate."""
    policy = rules.compliance
    penalty = amount * policy.late_filing_rate * months_late(days_overdue)
    return min(penalty, amount * policy.maximum_penalty_rate)


def calculate_interest(amount: float, days_overdue: int, rules: TaxRules) -> float:
    """Simple daily interest at the annual late payment rate."""
    if days_overdue <= 0:
        return 0.0
    return amount * (rules.compliance.late_payment_interest_rate / 365) * days_overdue


def update_record(record: ComplianceRecord, assessment_date: date, rules: TaxRules) -> ComplianceRecord:
    """Re-derive status, penalty, interest and total as of assessment_date.

    Satisfied records are compliant and keep the penalty and interest stored
    on them. Unsatisfied records not yet due carry none.
    """
    if rules.compliance.get_requirement(record.requirement_id) is None:
        raise PolicyConfigError(
            f"Record {record.id} references unknown requirement {record.requirement_id!r}"
        )

    amount = record.amount
    days_overdue = (assessment_date - record.due_date).days
    penalty = record.penalty_amount
    interest = record.interest_amount

    if record.is_satisfied:
        status = "compliant"
    elif days_overdue > 0:
        status = "delinquent" if days_overdue > rules.compliance.delinquent_after_days else "overdue"
        if amount is not None:
            penalty = calculate_penalty(amount, days_overdue, rules)
            interest = calculate_interest(amount, days_overdue, rules)
        else:
            penalty = interest = 0.0
    else:
        status = "compliant"
        penalty = interest = 0.0

    if status != record.status:
        logger.debug(f"{record.id}: {record.status} -> {status}")

    penalty = round_money(penalty)
    interest = round_money(interest)
    return record.model_copy(
        update={
            "status": status,
            "penalty_amount": penalty,
            "interest_amount": interest,
            "total_due": round_money((amount or 0) + penalty + interest),
            "last_updated": assessment_date,
        }
    )


# =============================================================================
# Aggregation
# =============================================================================


def compliance_score(records: List[ComplianceRecord]) -> float:
    """Percentage of records in compliant status; 100 when there are none."""
    if not records:
        return 100.0
    compliant = sum(1 for r in records if r.status == "compliant")
    return compliant / len(records) * 100


def determine_overall_status(records: List[ComplianceRecord], score: float) -> str:
    if score < 50 or any(r.status == "delinquent" for r in records):
        return "delinquent"
    if score < 80 or any(r.status == "overdue" for r in records):
        return "overdue"
    if score < 95:
        return "under_review"
    return "compliant"


def assess_risk_level(score: float, total_outstanding: float, overdue_count: int, annual_turnover: float) -> str:
    ratio = total_outstanding / annual_turnover if annual_turnover > 0 else 0.0
    if score < 50 or ratio > 0.1 or overdue_count > 6:
        return "critical"
    if score < 75 or ratio > 0.05 or overdue_count > 3:
        return "high"
    if score < 90 or ratio > 0.02 or overdue_count > 1:
        return "medium"
    return "low"


def generate_recommendations(overdue_count: int, score: float, risk_level: str, total_outstanding: float) -> List[str]:
    recommendations = []
    if overdue_count > 0:
        recommendations.append(f"Immediately address {overdue_count} overdue compliance requirement(s).")

    if risk_level == "critical":
        recommendations.append("Engage a tax professional immediately to avoid severe penalties.")
        recommendations.append("Consider negotiating a payment plan with GRA.")
    elif risk_level == "high":
        recommendations.append("Implement monthly compliance review procedures.")
        recommendations.append("Set up automated filing and payment reminders.")
    elif risk_level == "medium":
        recommendations.append("Review and improve record-keeping procedures.")

    if score < 80:
        recommendations.append("Establish a dedicated compliance management system.")
    if total_outstanding > 0:
        recommendations.append(f"Pay outstanding tax liability of {total_outstanding:.2f} GYD.")
    return recommendations


def _description(requirement_id: str, rules: TaxRules) -> str:
    requirement = rules.compliance.get_requirement(requirement_id)
    return requirement.description if requirement else requirement_id


def generate_next_actions(records: List[ComplianceRecord], assessment_date: date, rules: TaxRules) -> List[NextAction]:
    """Actions ordered by priority (urgent first), then by due date."""
    actions = []
    window = rules.compliance.upcoming_window_days

    for record in records:
        description = _description(record.requirement_id, rules)
        if record.status in ("overdue", "delinquent"):
            verb = "Pay" if record.filed_date else "File"
            actions.append(
                NextAction(
                    description=f"{verb} overdue {description}",
                    due_date=assessment_date,
                    priority="urgent",
                    record_id=record.id,
                )
            )
            continue

        days_until_due = (record.due_date - assessment_date).days
        if not record.is_satisfied and 0 < days_until_due <= window:
            if days_until_due <= 7:
                priority = "high"
            elif days_until_due <= 14:
                priority = "medium"
            else:
                priority = "low"
            actions.append(
                NextAction(
                    description=f"Prepare {description}",
                    due_date=record.due_date,
                    priority=priority,
                    record_id=record.id,
                )
            )

    return sorted(actions, key=lambda a: (-PRIORITY_ORDER[a.priority], a.due_date))


def assess_business_compliance(
    business_id: str,
    existing_records: Iterable[ComplianceRecord],
    profile: BusinessProfile,
    assessment_date: date,
    rules: TaxRules,
) -> ComplianceAssessment:
    """Assess a business's filing and payment obligations as of a date.

    Args:
        business_id: Business being assessed; other businesses' records are ignored
        existing_records: Records known so far (filed/paid dates, amounts)
        profile: Registration date, turnover, employees and VAT status
        assessment_date: Reference date for every status and penalty
        rules: Policy bundle for the tax year

    Returns:
        ComplianceAssessment with updated copies of every record

    Raises:
        PolicyConfigError: If a record references a requirement not in the bundle
    """
    own_records = [r for r in existing_records if r.business_id == business_id]
    required = generate_required_records(business_id, profile, assessment_date, rules)
    records = [update_record(r, assessment_date, rules) for r in merge_records(own_records, required)]

    overdue = [r for r in records if r.status in ("overdue", "delinquent")]
    upcoming_limit = assessment_date + timedelta(days=rules.compliance.upcoming_window_days)
    upcoming = [
        r for r in records
        if r.status == "compliant" and not r.is_satisfied and assessment_date < r.due_date <= upcoming_limit
    ]
    total_outstanding = sum(r.total_due for r in records if not r.is_satisfied)

    score = compliance_score(records)
    overall = determine_overall_status(records, score)
    risk = assess_risk_level(score, total_outstanding, len(overdue), profile.annual_turnover)

    logger.debug(f"Assessed {business_id}: {len(records)} records, score {score:.1f}, risk {risk}")

    return ComplianceAssessment(
        business_id=business_id,
        assessment_date=assessment_date,
        overall_status=overall,
        compliance_score=round_money(score),
        total_outstanding=round_money(total_outstanding),
        overdue_count=len(overdue),
        upcoming_count=len(upcoming),
        records=records,
        risk_level=risk,
        recommendations=generate_recommendations(len(overdue), score, risk, total_outstanding),
        next_actions=generate_next_actions(records, assessment_date, rules),
    )


# =============================================================================
# Calendar
# =============================================================================


def _calendar_priority(tax_type: str) -> str:
    if tax_type == "corporate":
        return "high"
    if tax_type in ("paye", "vat"):
        return "medium"
    return "low"


def is_due_on(requirement: ComplianceRequirement, day: date, profile: BusinessProfile, rules: TaxRules) -> bool:
    """Whether an obligation falls due on a given calendar day."""
    policy = rules.compliance
    if requirement.frequency == "monthly":
        return day.day == policy.due_day_for(requirement.tax_type)
    if requirement.frequency == "quarterly":
        months = quarterly_due_months(profile.business_type, rules)
        return day.day == rules.corporate.quarterly_due_day and day.month in months
    first_due = add_months(profile.registration_date, policy.annual_due_months)
    if day < first_due:
        return False
    return day == add_months(profile.registration_date, policy.annual_due_months + 12 * (day.year - first_due.year))


def generate_compliance_calendar(
    start: date,
    end: date,
    profile: BusinessProfile,
    rules: TaxRules,
) -> List[CalendarDay]:
    """Days in [start, end] on which at least one applicable obligation falls due."""
    if start > end:
        raise TaxInputError(f"Calendar start {start} is after end {end}", field="start")

    applicable = [
        r for r in rules.compliance.requirements
        if r.is_required and is_requirement_applicable(r, profile, rules)
    ]
    calendar_days = []
    day = start
    while day <= end:
        entries = [
            CalendarEntry(
                requirement_id=r.id,
                description=r.description,
                tax_type=r.tax_type,
                filing_type=r.filing_type,
                priority=_calendar_priority(r.tax_type),
            )
            for r in applicable
            if is_due_on(r, day, profile, rules)
        ]
        if entries:
            calendar_days.append(CalendarDay(day=day, entries=entries))
        day += timedelta(days=1)
    return calendar_days
