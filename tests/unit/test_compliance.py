"""Unit tests for compliance tracking.

Most tests use a business registered just before the assessment date with no
employees and no turnover, so that only the records passed in are assessed.
"""

from datetime import date, timedelta

import pytest
from pydantic import ValidationError

from gytax.sdk.compliance import (
    BusinessProfile,
    ComplianceRecord,
    assess_business_compliance,
    calculate_interest,
    calculate_penalty,
    generate_compliance_calendar,
    generate_required_records,
    record_id,
)
from gytax.sdk.errors import PolicyConfigError, TaxInputError

DUE = date(2025, 3, 15)
QUIET_PROFILE = BusinessProfile(registration_date=date(2025, 4, 20))


def obligation(due=DUE, requirement_id="paye-monthly", business_id="biz", **fields):
    return ComplianceRecord(
        id=record_id(requirement_id, business_id, due),
        requirement_id=requirement_id,
        business_id=business_id,
        due_date=due,
        **fields,
    )


def assess(records, as_of, rules, profile=QUIET_PROFILE, business_id="biz"):
    return assess_business_compliance(business_id, records, profile, as_of, rules)


class TestRecordStatus:
    def test_overdue_after_45_days(self, rules):
        """10,000 due on D, assessed at D+45."""
        assessment = assess([obligation(amount=10000)], DUE + timedelta(days=45), rules)
        record = assessment.records[0]

        assert record.status == "overdue"
        assert record.penalty_amount == 1000
        assert record.interest_amount == pytest.approx(round(10000 * 0.12 / 365 * 45, 2))
        assert record.total_due == pytest.approx(10000 + 1000 + record.interest_amount)
        assert record.last_updated == DUE + timedelta(days=45)
        assert assessment.overdue_count == 1

    def test_delinquent_after_90_days(self, rules):
        record = assess([obligation(amount=10000)], DUE + timedelta(days=91), rules).records[0]
        assert record.status == "delinquent"
        assert record.penalty_amount == 2000

    def test_penalty_capped_at_amount(self, rules):
        """Two years late: generated obligations come first, the passed-in record last."""
        original = obligation(amount=10000)
        records = assess([original], DUE + timedelta(days=700), rules).records
        record = next(r for r in records if r.id == original.id)
        assert record.penalty_amount == 10000

    def test_unknown_amount_carries_no_penalty(self, rules):
        record = assess([obligation()], DUE + timedelta(days=45), rules).records[0]
        assert record.status == "overdue"
        assert record.penalty_amount == 0
        assert record.total_due == 0

    def test_filed_and_paid_is_compliant(self, rules):
        record = assess(
            [obligation(amount=10000, filed_date=DUE, paid_date=DUE + timedelta(days=40), penalty_amount=500)],
            DUE + timedelta(days=45),
            rules,
        ).records[0]

        assert record.status == "compliant"
        assert record.penalty_amount == 500
        assert record.total_due == 10500

    def test_not_yet_due(self, rules):
        record = assess([obligation(amount=10000)], DUE - timedelta(days=5), rules).records[0]
        assert record.status == "compliant"
        assert record.penalty_amount == 0
        assert record.interest_amount == 0

    def test_input_records_not_mutated(self, rules):
        original = obligation(amount=10000)
        assess([original], DUE + timedelta(days=45), rules)
        assert original.status == "compliant"
        assert original.penalty_amount == 0


class TestPenaltyAndInterest:
    def test_monotonic_in_days(self, rules):
        penalties = [calculate_penalty(10000, days, rules) for days in range(0, 400, 7)]
        interest = [calculate_interest(10000, days, rules) for days in range(0, 400, 7)]
        assert penalties == sorted(penalties)
        assert interest == sorted(interest)

    def test_no_interest_when_not_late(self, rules):
        assert calculate_interest(10000, 0, rules) == 0


class TestRecordInvariants:
    def test_total_filled_when_missing(self):
        record = obligation(amount=100, penalty_amount=5, interest_amount=1.5)
        assert record.total_due == 106.5

    def test_inconsistent_total_rejected(self):
        with pytest.raises(ValidationError):
            obligation(amount=100, total_due=50)

    def test_record_id(self):
        assert record_id("paye-monthly", "biz", date(1970, 1, 2)) == "paye-monthly-biz-86400000"


class TestAssessment:
    def test_no_records(self, rules):
        assessment = assess([], date(2025, 5, 1), rules)

        assert assessment.records == []
        assert assessment.compliance_score == 100
        assert assessment.overall_status == "compliant"
        assert assessment.risk_level == "low"
        assert assessment.recommendations == []
        assert assessment.next_actions == []

    def test_overdue_drives_status_and_actions(self, rules):
        as_of = DUE + timedelta(days=45)
        assessment = assess([obligation(amount=10000)], as_of, rules)

        assert assessment.compliance_score == 0
        assert assessment.overall_status == "delinquent"
        assert assessment.risk_level == "critical"
        assert assessment.total_outstanding == assessment.records[0].total_due
        assert assessment.recommendations[0] == "Immediately address 1 overdue compliance requirement(s)."

        action = assessment.next_actions[0]
        assert action.priority == "urgent"
        assert action.due_date == as_of
        assert action.description == "File overdue Monthly PAYE return (Form 2)"

    def test_filed_but_unpaid_asks_for_payment(self, rules):
        assessment = assess([obligation(amount=10000, filed_date=DUE)], DUE + timedelta(days=10), rules)
        assert assessment.next_actions[0].description == "Pay overdue Monthly PAYE return (Form 2)"

    def test_upcoming_priorities(self, rules):
        as_of = date(2025, 5, 1)
        records = [
            obligation(due=as_of + timedelta(days=20), requirement_id="nis-monthly"),
            obligation(due=as_of + timedelta(days=5), requirement_id="paye-monthly"),
            obligation(due=as_of + timedelta(days=10), requirement_id="paye-payment"),
            obligation(due=as_of + timedelta(days=45), requirement_id="vat-monthly"),
        ]
        assessment = assess(records, as_of, rules)

        assert assessment.upcoming_count == 3
        assert [(a.priority, a.record_id.split("-biz-")[0]) for a in assessment.next_actions] == [
            ("high", "paye-monthly"),
            ("medium", "paye-payment"),
            ("low", "nis-monthly"),
        ]
        assert assessment.overall_status == "compliant"

    def test_mixed_score(self, rules):
        as_of = date(2025, 5, 1)
        records = [
            obligation(due=date(2025, 4, 15), amount=1000, filed_date=date(2025, 4, 10), paid_date=date(2025, 4, 10)),
            obligation(due=date(2025, 4, 15), requirement_id="nis-monthly", amount=1000),
        ]
        assessment = assess(records, as_of, rules)

        assert assessment.compliance_score == 50
        assert assessment.overall_status == "overdue"

    def test_other_businesses_ignored(self, rules):
        records = [obligation(amount=10000, business_id="someone-else")]
        assessment = assess(records, DUE + timedelta(days=45), rules)
        assert assessment.records == []

    def test_unknown_requirement(self, rules):
        with pytest.raises(PolicyConfigError, match="no-such-requirement"):
            assess([obligation(requirement_id="no-such-requirement")], DUE, rules)


class TestRecordGeneration:
    PROFILE = BusinessProfile(registration_date=date(2024, 1, 1), employee_count=5)

    def test_obligations_since_registration(self, rules):
        records = generate_required_records("biz", self.PROFILE, date(2024, 3, 20), rules)
        by_requirement = {}
        for record in records:
            by_requirement.setdefault(record.requirement_id, []).append(record.due_date)

        assert by_requirement["paye-monthly"] == [date(2024, 1, 15), date(2024, 2, 15), date(2024, 3, 15)]
        assert len(by_requirement["paye-payment"]) == 3
        assert len(by_requirement["nis-monthly"]) == 3
        assert by_requirement["corporate-quarterly"] == [date(2024, 1, 15)]
        assert "vat-monthly" not in by_requirement
        assert "withholding-monthly" not in by_requirement
        assert "corporate-annual" not in by_requirement

    def test_vat_and_withholding_when_applicable(self, rules):
        profile = BusinessProfile(registration_date=date(2024, 1, 1), annual_turnover=20_000_000)
        records = generate_required_records("biz", profile, date(2024, 3, 20), rules)
        requirement_ids = {r.requirement_id for r in records}

        assert "vat-monthly" in requirement_ids
        assert "withholding-monthly" in requirement_ids
        assert "paye-monthly" not in requirement_ids

    def test_annual_return_after_six_months(self, rules):
        records = generate_required_records("biz", self.PROFILE, date(2024, 8, 1), rules)
        annual = [r.due_date for r in records if r.requirement_id == "corporate-annual"]
        assert annual == [date(2024, 7, 1)]

    def test_lookback_window(self, rules):
        profile = BusinessProfile(registration_date=date(2015, 1, 1), employee_count=1)
        records = generate_required_records("biz", profile, date(2025, 6, 30), rules)
        paye = [r.due_date for r in records if r.requirement_id == "paye-monthly"]

        assert paye[0] == date(2024, 7, 15)
        assert paye[-1] == date(2025, 6, 15)
        assert len(paye) == 12

    def test_regeneration_is_idempotent(self, rules):
        as_of = date(2024, 3, 20)
        first = assess_business_compliance("biz", [], self.PROFILE, as_of, rules)
        second = assess_business_compliance("biz", first.records, self.PROFILE, as_of, rules)

        assert [r.id for r in second.records] == [r.id for r in first.records]
        assert second.records == first.records

    def test_quarterly_ids_stable_across_assessments(self, rules):
        """Records fed back a month later keep their ids, so nothing is duplicated."""
        profile = BusinessProfile(registration_date=date(2020, 1, 1))
        june = assess_business_compliance("biz", [], profile, date(2025, 6, 10), rules)
        july = assess_business_compliance("biz", june.records, profile, date(2025, 7, 10), rules)

        def quarterly(assessment):
            return [r.due_date for r in assessment.records if r.requirement_id == "corporate-quarterly"]

        expected = [date(2024, 7, 15), date(2024, 10, 15), date(2025, 1, 15), date(2025, 4, 15)]
        assert quarterly(june) == expected
        assert quarterly(july) == expected

        calendar_days = generate_compliance_calendar(date(2024, 6, 10), date(2025, 6, 10), profile, rules)
        calendar_quarterly = [
            d.day for d in calendar_days
            if any(e.requirement_id == "corporate-quarterly" for e in d.entries)
        ]
        assert calendar_quarterly == expected

    def test_existing_record_wins(self, rules):
        as_of = date(2024, 3, 20)
        filed = obligation(
            due=date(2024, 1, 15), amount=5000, filed_date=date(2024, 1, 10), paid_date=date(2024, 1, 10)
        )
        assessment = assess_business_compliance("biz", [filed], self.PROFILE, as_of, rules)
        merged = [r for r in assessment.records if r.id == filed.id]

        assert len(merged) == 1
        assert merged[0].status == "compliant"
        assert merged[0].amount == 5000


class TestCalendar:
    PROFILE = BusinessProfile(
        registration_date=date(2024, 1, 1),
        annual_turnover=20_000_000,
        employee_count=5,
        is_vat_registered=True,
    )

    def test_january(self, rules):
        calendar_days = generate_compliance_calendar(date(2025, 1, 1), date(2025, 1, 31), self.PROFILE, rules)

        assert [d.day for d in calendar_days] == [date(2025, 1, 15), date(2025, 1, 21)]
        fifteenth = {e.requirement_id: e.priority for e in calendar_days[0].entries}
        assert fifteenth == {
            "paye-monthly": "medium",
            "paye-payment": "medium",
            "nis-monthly": "low",
            "withholding-monthly": "low",
            "corporate-quarterly": "high",
        }
        assert [e.requirement_id for e in calendar_days[1].entries] == ["vat-monthly"]

    def test_annual_return_anniversary(self, rules):
        calendar_days = generate_compliance_calendar(date(2025, 7, 1), date(2025, 7, 1), self.PROFILE, rules)
        assert [e.requirement_id for e in calendar_days[0].entries] == ["corporate-annual"]

    def test_no_quarterly_outside_due_months(self, rules):
        calendar_days = generate_compliance_calendar(date(2025, 2, 1), date(2025, 2, 28), self.PROFILE, rules)
        ids = {e.requirement_id for d in calendar_days for e in d.entries}
        assert "corporate-quarterly" not in ids

    def test_inverted_range(self, rules):
        with pytest.raises(TaxInputError):
            generate_compliance_calendar(date(2025, 2, 1), date(2025, 1, 1), self.PROFILE, rules)
