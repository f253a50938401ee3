"""Unit tests for bracket evaluation, frequency conversion, rounding and dates."""

from datetime import date

import pytest

from gytax.sdk.errors import PolicyConfigError, TaxInputError, UnknownFrequencyError
from gytax.sdk.taxes import (
    apply_brackets,
    convert_frequency,
    marginal_rate,
    round_money,
    scale_brackets,
    validate_brackets,
)
from gytax.sdk.taxes.dates import add_months, epoch_millis, on_day
from gytax.sdk.taxes.money import months_late, round_rate
from gytax.sdk.taxes.schemas import TaxBracket


def make_brackets(*ranges):
    """Build TaxBracket list from (lower, upper, rate) tuples."""
    return [TaxBracket(lower_bound=lo, upper_bound=hi, rate=rate) for lo, hi, rate in ranges]


class TestApplyBrackets:
    """Progressive tax over the 2025 monthly PAYE schedule."""

    def test_schedule_from_rules(self, rules):
        brackets = rules.paye.brackets
        assert [(b.lower_bound, b.upper_bound, b.rate) for b in brackets] == [
            (0, 260000, 0.25),
            (260000, None, 0.35),
        ]

    def test_within_first_bracket(self, rules):
        result = apply_brackets(56000, rules.paye.brackets)
        assert result.total_tax == pytest.approx(14000)
        assert len(result.breakdown) == 1
        assert result.breakdown[0].taxable_amount == pytest.approx(56000)

    def test_at_bracket_boundary(self, rules):
        """Income exactly at an upper bound does not reach the next bracket."""
        result = apply_brackets(260000, rules.paye.brackets)
        assert result.total_tax == pytest.approx(65000)
        assert len(result.breakdown) == 1

    def test_spans_two_brackets(self, rules):
        result = apply_brackets(300000, rules.paye.brackets)
        assert result.total_tax == pytest.approx(65000 + 14000)
        assert [b.tax for b in result.breakdown] == pytest.approx([65000, 14000])

    def test_negative_and_zero_income(self, rules):
        assert apply_brackets(-500, rules.paye.brackets).total_tax == 0
        assert apply_brackets(0, rules.paye.brackets).breakdown == []

    def test_monotonic_and_continuous(self, rules):
        """Tax never decreases, and never jumps at a bracket boundary."""
        brackets = rules.paye.brackets
        amounts = [0, 1000, 259999.99, 260000, 260000.01, 500000, 1_000_000]
        taxes = [apply_brackets(a, brackets).total_tax for a in amounts]
        assert taxes == sorted(taxes)
        assert taxes[3] - taxes[2] == pytest.approx(0.01 * 0.25, abs=1e-6)

    def test_marginal_rate(self, rules):
        brackets = rules.paye.brackets
        assert marginal_rate(0, brackets) == 0.25
        assert marginal_rate(259999, brackets) == 0.25
        assert marginal_rate(260000, brackets) == 0.35
        assert marginal_rate(10_000_000, brackets) == 0.35

    def test_scale_to_annual(self, rules):
        annual = scale_brackets(rules.paye.brackets, "monthly", "annual")
        assert annual[0].upper_bound == pytest.approx(3_120_000)
        assert annual[1].lower_bound == pytest.approx(3_120_000)
        assert annual[1].upper_bound is None


class TestValidateBrackets:
    """Schedules must be contiguous, start at 0 and end unbounded."""

    def test_valid_schedule(self):
        validate_brackets(make_brackets((0, 100, 0.1), (100, None, 0.2)))

    def test_empty(self):
        with pytest.raises(PolicyConfigError, match="empty"):
            validate_brackets([])

    def test_must_start_at_zero(self):
        with pytest.raises(PolicyConfigError, match="start at 0"):
            validate_brackets(make_brackets((10, 100, 0.1), (100, None, 0.2)))

    def test_gap(self):
        with pytest.raises(PolicyConfigError, match="gap"):
            validate_brackets(make_brackets((0, 100, 0.1), (150, None, 0.2)))

    def test_overlap(self):
        with pytest.raises(PolicyConfigError, match="overlap"):
            validate_brackets(make_brackets((0, 100, 0.1), (50, None, 0.2)))

    def test_bounded_top(self):
        with pytest.raises(PolicyConfigError, match="unbounded"):
            validate_brackets(make_brackets((0, 100, 0.1), (100, 200, 0.2)))

    def test_unbounded_in_middle(self):
        with pytest.raises(PolicyConfigError, match="not the last"):
            validate_brackets(make_brackets((0, None, 0.1), (100, None, 0.2)))


class TestFrequency:
    def test_annual_to_monthly(self):
        assert convert_frequency(1200, "annual", "monthly") == pytest.approx(100)

    def test_weekly_to_monthly(self):
        assert convert_frequency(120, "weekly", "monthly") == pytest.approx(520)

    def test_bi_weekly_to_weekly(self):
        assert convert_frequency(1000, "bi-weekly", "weekly") == pytest.approx(500)

    def test_same_frequency_unchanged(self):
        assert convert_frequency(123.45, "monthly", "monthly") == 123.45

    def test_unknown_frequency(self):
        with pytest.raises(UnknownFrequencyError) as exc_info:
            convert_frequency(100, "daily", "monthly")
        assert exc_info.value.field == "frequency"
        assert isinstance(exc_info.value, TaxInputError)
        assert isinstance(exc_info.value, ValueError)


class TestRounding:
    def test_half_up(self):
        assert round_money(2.675) == 2.68
        assert round_money(14000.005) == 14000.01
        assert round_money(-2.675) == -2.68

    def test_round_rate(self):
        assert round_rate(0.056) == 0.056
        assert round_rate(1 / 3) == 0.3333

    @pytest.mark.parametrize("days,expected", [(-5, 0), (0, 0), (1, 1), (30, 1), (31, 2), (45, 2), (91, 4)])
    def test_months_late(self, days, expected):
        assert months_late(days) == expected


class TestDates:
    def test_add_months_clamps_day(self):
        assert add_months(date(2025, 8, 31), 6) == date(2026, 2, 28)
        assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)

    def test_add_months_across_year(self):
        assert add_months(date(2025, 11, 15), 3) == date(2026, 2, 15)

    def test_on_day_clamps(self):
        assert on_day(2025, 2, 30) == date(2025, 2, 28)
        assert on_day(2025, 4, 15) == date(2025, 4, 15)

    def test_epoch_millis(self):
        assert epoch_millis(date(1970, 1, 1)) == 0
        assert epoch_millis(date(1970, 1, 2)) == 86_400_000
