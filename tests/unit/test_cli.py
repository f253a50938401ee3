"""Tests for the gy-tax CLI."""

import json

import pytest
import yaml
from click.testing import CliRunner

from gytax import __version__
from gytax.cli.__main__ import cli


@pytest.fixture
def runner():
    return CliRunner()


def invoke_json(runner, args):
    result = runner.invoke(cli, args + ["--json"])
    assert result.exit_code == 0, result.output
    return json.loads(result.output)


class TestCalculatorCommands:
    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_paye_json(self, runner):
        data = invoke_json(runner, ["paye", "250000", "--dependents", "2"])
        assert data["total_tax"] == 21500
        assert data["net_pay"] == 214500
        assert data["frequency"] == "monthly"

    def test_paye_credits(self, runner):
        data = invoke_json(runner, ["paye", "250000", "--credits", "5000", "--tax-paid", "1500"])
        assert data["total_tax"] == 26500
        assert data["net_tax_owed"] == 20000

    def test_paye_table(self, runner):
        result = runner.invoke(cli, ["paye", "250000", "--overtime", "30000"])
        assert result.exit_code == 0, result.output
        assert "NET PAY" in result.output

    def test_paye_negative_salary(self, runner):
        result = runner.invoke(cli, ["paye", "--", "-100"])
        assert result.exit_code != 0

    def test_nis_json(self, runner):
        data = invoke_json(runner, ["nis", "100000"])
        assert data["mode"] == "combined"
        assert data["total_contribution"] == 14000

    def test_vat_json(self, runner):
        data = invoke_json(runner, ["vat", "100000"])
        assert data["vat_amount"] == 14000
        assert data["gross_amount"] == 114000

    def test_vat_inclusive(self, runner):
        data = invoke_json(runner, ["vat", "114000", "--includes-vat"])
        assert data["net_amount"] == 100000

    def test_corporate_json(self, runner):
        data = invoke_json(runner, [
            "corporate", "10000000", "--period-start", "2025-01-01", "--period-end", "2025-12-31",
        ])
        assert data["qualifies_for_small_business"] is True
        assert data["net_tax"] == 2500000
        assert data["due_date"] == "2026-06-30"

    def test_corporate_inverted_period(self, runner):
        result = runner.invoke(cli, [
            "corporate", "10000000", "--period-start", "2025-12-31", "--period-end", "2025-01-01",
        ])
        assert result.exit_code != 0

    def test_withholding_json(self, runner):
        data = invoke_json(runner, [
            "withholding", "500000", "--type", "dividend", "--payee-type", "non_resident",
            "--payee-name", "Acme", "--payment-date", "2025-03-10",
        ])
        assert data["withholding_tax"] == 125000
        assert data["due_date"] == "2025-04-15"


class TestRulesCommand:
    def test_list_years(self, runner):
        result = runner.invoke(cli, ["rules", "--list"])
        assert result.exit_code == 0
        assert "2025" in result.output

    def test_show_json(self, runner):
        data = invoke_json(runner, ["rules"])
        assert data["tax_year"] == 2025
        assert data["vat"]["standard_rate"] == 0.14

    def test_show_table(self, runner):
        result = runner.invoke(cli, ["rules"])
        assert result.exit_code == 0, result.output
        assert "Tax Rules 2025" in result.output

    def test_missing_year(self, runner, rules_dir):
        result = runner.invoke(cli, ["rules", "--year", "1999"])
        assert result.exit_code != 0
        assert "not found" in result.output


@pytest.fixture
def employees_file(tmp_path):
    path = tmp_path / "employees.yaml"
    path.write_text(yaml.safe_dump({"employees": [
        {"id": "E1", "first_name": "Jane", "last_name": "Doe", "nis_number": "A12345678",
         "tin": "123456789", "basic_salary": 250000, "dependents": 2},
        {"id": "E2", "first_name": "John", "last_name": "Smith", "nis_number": "B98765432",
         "basic_salary": 100000},
    ]}))
    return path


class TestPayrollCommand:
    def test_table(self, runner, employees_file):
        result = runner.invoke(cli, ["payroll", str(employees_file)])
        assert result.exit_code == 0, result.output
        assert "Payroll (monthly)" in result.output

    def test_json(self, runner, employees_file):
        result = runner.invoke(cli, ["payroll", str(employees_file), "--format", "json"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["totals"]["total_paye"] == 21500

    def test_form7b(self, runner, employees_file):
        result = runner.invoke(cli, ["payroll", str(employees_file), "--format", "form7b"])
        assert result.exit_code == 0, result.output
        assert result.output.splitlines()[0] == "TIN,Last_Name,First_Name,Gross_Earnings,Tax_Deducted,NIS_Employee"

    def test_cs3_to_file(self, runner, employees_file, tmp_path):
        output = tmp_path / "cs3.txt"
        result = runner.invoke(cli, [
            "payroll", str(employees_file), "--format", "cs3", "--employer-nis", "EMP1", "--month", "3",
            "--output", str(output),
        ])
        assert result.exit_code == 0, result.output
        assert output.read_text().splitlines()[0] == "NISEMP1032025"

    def test_cs3_requires_employer(self, runner, employees_file):
        result = runner.invoke(cli, ["payroll", str(employees_file), "--format", "cs3"])
        assert result.exit_code != 0
        assert "--employer-nis" in result.output


class TestComplianceCommand:
    def test_assessment(self, runner, tmp_path):
        business_file = tmp_path / "business.yaml"
        business_file.write_text(yaml.safe_dump({
            "business_id": "biz",
            "profile": {"registration_date": "2025-04-20"},
            "records": [{
                "id": "paye-monthly-biz-1742000000000",
                "requirement_id": "paye-monthly",
                "business_id": "biz",
                "due_date": "2025-03-15",
                "amount": 10000,
            }],
        }))

        data = invoke_json(runner, ["compliance", str(business_file), "--as-of", "2025-04-29"])
        assert data["overdue_count"] == 1
        assert data["records"][0]["penalty_amount"] == 1000

        result = runner.invoke(cli, ["compliance", str(business_file), "--as-of", "2025-04-29"])
        assert result.exit_code == 0, result.output
        assert "File overdue" in result.output

    def test_missing_profile(self, runner, tmp_path):
        business_file = tmp_path / "business.yaml"
        business_file.write_text(yaml.safe_dump({"business_id": "biz"}))
        result = runner.invoke(cli, ["compliance", str(business_file)])
        assert result.exit_code != 0
