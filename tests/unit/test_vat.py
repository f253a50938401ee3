"""Unit tests for VAT calculations and returns."""

from datetime import date

import pytest

from gytax.sdk.errors import TaxInputError
from gytax.sdk.schemas import VatInput
from gytax.sdk.taxes import (
    add_vat,
    calculate_import_vat,
    calculate_partial_exemption,
    calculate_vat,
    calculate_vat_multiple_items,
    calculate_vat_return,
    check_vat_registration_requirement,
    remove_vat,
)
from gytax.sdk.taxes.vat import vat_rate_for


class TestSingleTransaction:
    def test_add_vat(self, rules):
        result = add_vat(100000, rules)
        assert result.net_amount == 100000
        assert result.vat_amount == 14000
        assert result.gross_amount == 114000
        assert result.vat_rate == 0.14

    def test_remove_vat(self, rules):
        result = remove_vat(114000, rules)
        assert result.net_amount == 100000
        assert result.vat_amount == 14000
        assert result.includes_vat is True

    @pytest.mark.parametrize("category", ["zero-rated", "exempt"])
    def test_no_vat_categories(self, rules, category):
        result = add_vat(5000, rules, category=category)
        assert result.vat_amount == 0
        assert result.gross_amount == result.net_amount == 5000

    def test_round_trip(self, rules):
        for amount in (1, 999.99, 12345.67, 1_000_000):
            assert remove_vat(add_vat(amount, rules).gross_amount, rules).net_amount == pytest.approx(amount, abs=0.01)

    def test_custom_rate(self, rules):
        result = calculate_vat(VatInput(amount=1000, custom_rate=0.1), rules)
        assert result.vat_amount == 100

    def test_unknown_category(self, rules):
        with pytest.raises(TaxInputError) as exc_info:
            vat_rate_for("luxury", rules)
        assert exc_info.value.field == "category"


class TestMultipleItems:
    def test_totals_by_category(self, rules):
        summary = calculate_vat_multiple_items(
            [
                VatInput(amount=1000),
                VatInput(amount=500, category="zero-rated"),
                VatInput(amount=200, category="exempt"),
            ],
            rules,
        )

        assert [i.net_amount for i in summary.items] == [1000, 500, 200]
        assert summary.vat_total == 140
        assert summary.standard_rate_vat == 140
        assert summary.zero_rated_amount == 500
        assert summary.exempt_amount == 200
        assert summary.net_total == 1700
        assert summary.gross_total == 1840


@pytest.fixture
def march_transactions(rules):
    def sale(amount, day, transaction_type="sale"):
        return calculate_vat(
            VatInput(amount=amount, transaction_type=transaction_type, transaction_date=day), rules
        )

    return [
        sale(100000, date(2025, 3, 5)),
        sale(50000, date(2025, 3, 10), "purchase"),
        sale(80000, date(2025, 4, 2)),
        calculate_vat(VatInput(amount=30000), rules),
    ]


class TestVatReturn:
    """March 2025 return: due 21 April."""

    def test_on_time(self, rules, march_transactions):
        vat_return = calculate_vat_return(
            march_transactions, date(2025, 3, 1), date(2025, 3, 31), date(2025, 4, 21), rules
        )

        assert len(vat_return.transactions) == 2
        assert vat_return.output_vat == 14000
        assert vat_return.input_vat == 7000
        assert vat_return.net_vat == 7000
        assert vat_return.turnover == 100000
        assert vat_return.purchases == 50000
        assert vat_return.due_date == date(2025, 4, 21)
        assert vat_return.is_late is False
        assert vat_return.penalty == 0
        assert vat_return.total_due == 7000

    def test_late_penalty(self, rules, march_transactions):
        """34 days late counts as two started months."""
        vat_return = calculate_vat_return(
            march_transactions, date(2025, 3, 1), date(2025, 3, 31), date(2025, 5, 25), rules
        )

        assert vat_return.days_late == 34
        assert vat_return.penalty == 700
        assert vat_return.total_due == 7700

    def test_previous_balance(self, rules, march_transactions):
        vat_return = calculate_vat_return(
            march_transactions, date(2025, 3, 1), date(2025, 3, 31), date(2025, 4, 1), rules,
            previous_balance=1000,
        )
        assert vat_return.net_vat == 8000

    def test_refund_has_no_penalty(self, rules):
        purchase = calculate_vat(
            VatInput(amount=50000, transaction_type="purchase", transaction_date=date(2025, 3, 10)), rules
        )
        vat_return = calculate_vat_return([purchase], date(2025, 3, 1), date(2025, 3, 31), date(2025, 6, 1), rules)

        assert vat_return.net_vat == -7000
        assert vat_return.is_refund_due is True
        assert vat_return.penalty == 0
        assert vat_return.total_due == 0

    def test_inverted_period(self, rules):
        with pytest.raises(TaxInputError) as exc_info:
            calculate_vat_return([], date(2025, 3, 31), date(2025, 3, 1), date(2025, 4, 1), rules)
        assert exc_info.value.field == "period_start"


class TestRegistration:
    def test_over_threshold(self, rules):
        check = check_vat_registration_requirement(20_000_000, rules)
        assert check.requires_registration is True
        assert check.excess_amount == 5_000_000
        assert "mandatory" in check.recommendation

    def test_at_threshold(self, rules):
        assert check_vat_registration_requirement(15_000_000, rules).requires_registration is True

    def test_approaching(self, rules):
        check = check_vat_registration_requirement(13_000_000, rules)
        assert check.requires_registration is False
        assert check.approaching_threshold is True

    def test_well_below(self, rules):
        check = check_vat_registration_requirement(5_000_000, rules)
        assert check.approaching_threshold is False
        assert check.excess_amount == 0


class TestImportAndPartialExemption:
    def test_import_vat_includes_duty_and_costs(self, rules):
        result = calculate_import_vat(100000, rules, duty_rate=0.1, shipping_cost=5000, insurance_cost=5000)
        assert result.net_amount == 120000
        assert result.vat_amount == 16800
        assert result.transaction_type == "import"

    def test_import_negative_cost(self, rules):
        with pytest.raises(TaxInputError):
            calculate_import_vat(100000, rules, shipping_cost=-1)

    def test_partial_exemption(self, rules):
        result = calculate_partial_exemption(200000, 1_000_000, 100000, rules)
        assert result.exempt_percentage == 20.0
        assert result.non_recoverable_input_vat == 20000
        assert result.recoverable_input_vat == 80000
        assert result.is_de_minimis is False

    def test_de_minimis(self, rules):
        result = calculate_partial_exemption(200000, 1_000_000, 30000, rules)
        assert result.is_de_minimis is True
        assert result.recoverable_input_vat == 30000

    def test_exempt_exceeds_total(self, rules):
        with pytest.raises(TaxInputError):
            calculate_partial_exemption(2, 1, 100, rules)
