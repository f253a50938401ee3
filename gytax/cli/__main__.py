"""Guyana Tax CLI - Command-line interface for Guyana tax calculations."""

import json
from datetime import date
from pathlib import Path

import click
import yaml
from pydantic import ValidationError
from rich.console import Console

from gytax import __version__
from gytax.sdk import (
    BusinessProfile,
    ComplianceRecord,
    PolicyConfigError,
    TaxInputError,
    assess_business_compliance,
    calculate_corporate_tax,
    calculate_nis,
    calculate_paye,
    calculate_vat,
    calculate_withholding_tax,
    form_7b_to_csv_string,
    get_available_years,
    get_tax_rules_dir,
    load_tax_rules,
    nis_cs3_schedule,
    process_payroll,
)
from gytax.sdk.schemas import (
    AccountingPeriod,
    CorporateTaxInput,
    NisInput,
    PayeInput,
    PayrollEmployee,
    VatInput,
    WithholdingTaxInput,
)
from gytax.sdk.taxes.frequency import FREQUENCIES

from .renderers.tax_renderer import (
    render_compliance,
    render_corporate,
    render_nis,
    render_paye,
    render_payroll,
    render_rules,
    render_vat,
    render_withholding,
)

DEFAULT_YEAR = 2025
ISO_DATE = click.DateTime(formats=["%Y-%m-%d"])

year_option = click.option(
    "--year", "-y", type=int, default=DEFAULT_YEAR, show_default=True,
    help="Tax year whose rules bundle to use.",
)
json_option = click.option("--json", "output_json", is_flag=True, help="Output as JSON")


def _load_rules(year: int):
    try:
        return load_tax_rules(year)
    except PolicyConfigError as e:
        raise click.ClickException(str(e))


def _build(model, **fields):
    """Construct an SDK input model, turning validation errors into usage errors."""
    try:
        return model(**fields)
    except ValidationError as e:
        raise click.BadParameter(str(e))


def _load_document(path: str):
    """Load a YAML (or JSON) input file."""
    with open(path) as f:
        return yaml.safe_load(f) or {}


def _output(result, output_json: bool, renderer) -> None:
    data = result.model_dump(mode="json")
    if output_json:
        click.echo(json.dumps(data, indent=2))
    else:
        renderer(Console(), data)


@click.group()
@click.version_option(version=__version__, prog_name="gy-tax")
def cli():
    """Guyana Tax - PAYE, NIS, VAT, corporate and withholding tax tools.

    Tax rules are loaded from (in order):

    \b
    1. GY_TAX_RULES_PATH environment variable (directory of YYYY.yaml files)
    2. tax_rules/ shipped with the package

    Run 'gy-tax rules' to see the rules in effect for a year.
    """
    pass


@cli.command("rules")
@year_option
@click.option("--list", "list_years", is_flag=True, help="List available tax years and exit.")
@json_option
def rules_cmd(year: int, list_years: bool, output_json: bool):
    """Show the tax rules bundle for a year."""
    if list_years:
        years = get_available_years()
        if output_json:
            click.echo(json.dumps({"rules_dir": str(get_tax_rules_dir()), "years": years}, indent=2))
        else:
            click.echo(f"Rules directory: {get_tax_rules_dir()}")
            for available in years:
                click.echo(f"  {available}")
        return

    _output(_load_rules(year), output_json, render_rules)


@cli.command("paye")
@click.argument("basic_salary", type=float)
@click.option("--overtime", type=float, default=0, help="Overtime pay this period.")
@click.option("--allowances", type=float, default=0, help="Allowances this period.")
@click.option("--bonuses", type=float, default=0, help="Bonuses this period.")
@click.option("--dependents", "-d", type=int, default=0, help="Number of dependent children.")
@click.option("--deductions", type=float, default=0, help="Other allowable deductions this period.")
@click.option("--credits", "tax_credits", type=float, default=0, help="Tax credits for the period.")
@click.option("--tax-paid", "previous_tax_paid", type=float, default=0, help="Tax already paid for the period.")
@click.option("--frequency", "-f", type=click.Choice(FREQUENCIES), default="monthly", show_default=True)
@year_option
@json_option
def paye_cmd(basic_salary, overtime, allowances, bonuses, dependents, deductions, tax_credits, previous_tax_paid,
             frequency, year, output_json):
    """Calculate PAYE and net pay for one pay period.

    \b
    Examples:
      gy-tax paye 250000 --dependents 2
      gy-tax paye 60000 --frequency weekly --json
    """
    rules = _load_rules(year)
    paye_input = _build(
        PayeInput,
        basic_salary=basic_salary,
        overtime=overtime,
        allowances=allowances,
        bonuses=bonuses,
        dependents=dependents,
        allowable_deductions=deductions,
        tax_credits=tax_credits,
        previous_tax_paid=previous_tax_paid,
        frequency=frequency,
    )
    _output(calculate_paye(paye_input, rules), output_json, render_paye)


@cli.command("nis")
@click.argument("gross_income", type=float)
@click.option("--frequency", "-f", type=click.Choice(FREQUENCIES), default="monthly", show_default=True)
@click.option(
    "--mode", "-m",
    type=click.Choice(["employee", "employer", "self_employed", "combined"]),
    default="combined", show_default=True,
)
@year_option
@json_option
def nis_cmd(gross_income, frequency, mode, year, output_json):
    """Calculate NIS contributions for one pay period."""
    rules = _load_rules(year)
    nis_input = _build(NisInput, gross_income=gross_income, frequency=frequency, mode=mode)
    _output(calculate_nis(nis_input, rules), output_json, render_nis)


@cli.command("vat")
@click.argument("amount", type=float)
@click.option("--category", "-c", type=click.Choice(["standard", "zero-rated", "exempt"]), default="standard",
              show_default=True)
@click.option("--type", "transaction_type", type=click.Choice(["sale", "purchase", "import", "export"]),
              default="sale", show_default=True)
@click.option("--includes-vat", is_flag=True, help="AMOUNT already includes VAT.")
@year_option
@json_option
def vat_cmd(amount, category, transaction_type, includes_vat, year, output_json):
    """Calculate VAT on a single transaction."""
    rules = _load_rules(year)
    vat_input = _build(
        VatInput,
        amount=amount,
        category=category,
        transaction_type=transaction_type,
        includes_vat=includes_vat,
    )
    _output(calculate_vat(vat_input, rules), output_json, render_vat)


@cli.command("corporate")
@click.argument("gross_income", type=float)
@click.option("--deductions", type=float, default=0, help="Allowable deductions.")
@click.option("--business-type", "-b", default="standard", show_default=True,
              type=click.Choice(["standard", "small_business", "manufacturing", "mining", "banking",
                                 "insurance", "telecommunications"]))
@click.option("--period-start", type=ISO_DATE, required=True, help="Accounting period start (YYYY-MM-DD).")
@click.option("--period-end", type=ISO_DATE, required=True, help="Accounting period end (YYYY-MM-DD).")
@click.option("--losses", type=float, default=0, help="Losses brought forward.")
@click.option("--capital-allowances", type=float, default=0)
@click.option("--donations", type=float, default=0, help="Donations to charity.")
@click.option("--advance-payments", type=float, default=0)
@click.option("--credits", "withholding_credits", type=float, default=0, help="Withholding tax credits.")
@year_option
@json_option
def corporate_cmd(gross_income, deductions, business_type, period_start, period_end, losses,
                  capital_allowances, donations, advance_payments, withholding_credits, year, output_json):
    """Calculate corporate income tax for an accounting period."""
    rules = _load_rules(year)
    period = _build(AccountingPeriod, start_date=period_start.date(), end_date=period_end.date())
    corporate_input = _build(
        CorporateTaxInput,
        gross_income=gross_income,
        allowable_deductions=deductions,
        business_type=business_type,
        accounting_period=period,
        previous_year_losses=losses,
        capital_allowances=capital_allowances,
        donations_to_charity=donations,
        advance_payments=advance_payments,
        withholding_tax_credits=withholding_credits,
    )
    _output(calculate_corporate_tax(corporate_input, rules), output_json, render_corporate)


@cli.command("withholding")
@click.argument("gross_amount", type=float)
@click.option("--type", "tax_type", required=True,
              type=click.Choice(["dividend", "interest", "royalty", "rent", "professional_services",
                                 "management_fees", "technical_services", "commission", "other"]))
@click.option("--payee-type", type=click.Choice(["resident", "non_resident", "company", "individual"]),
              default="resident", show_default=True)
@click.option("--payee-name", required=True)
@click.option("--payee-tin")
@click.option("--payment-date", type=ISO_DATE, default=None, help="Defaults to today.")
@click.option("--treaty-country", help="Treaty partner, e.g. canada.")
@year_option
@json_option
def withholding_cmd(gross_amount, tax_type, payee_type, payee_name, payee_tin, payment_date,
                    treaty_country, year, output_json):
    """Calculate tax withheld on a payment (Form 7B)."""
    rules = _load_rules(year)
    withholding_input = _build(
        WithholdingTaxInput,
        gross_amount=gross_amount,
        tax_type=tax_type,
        payee_type=payee_type,
        payee_name=payee_name,
        payee_tin=payee_tin,
        payment_date=payment_date.date() if payment_date else date.today(),
        treaty_country=treaty_country,
    )
    _output(calculate_withholding_tax(withholding_input, rules), output_json, render_withholding)


@cli.command("compliance")
@click.argument("business_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--as-of", type=ISO_DATE, default=None, help="Assessment date (default: today).")
@year_option
@json_option
def compliance_cmd(business_file, as_of, year, output_json):
    """Assess a business's filing and payment compliance.

    BUSINESS_FILE is YAML or JSON with keys business_id, profile and
    (optionally) records:

    \b
      business_id: acme
      profile:
        registration_date: 2023-03-01
        annual_turnover: 20000000
        employee_count: 5
        is_vat_registered: true
      records:
        - id: paye-monthly-acme-1739577600000
          ...
    """
    rules = _load_rules(year)
    document = _load_document(business_file)
    if "business_id" not in document or "profile" not in document:
        raise click.BadParameter("business file needs 'business_id' and 'profile'", param_hint="BUSINESS_FILE")

    profile = _build(BusinessProfile, **document["profile"])
    records = [_build(ComplianceRecord, **record) for record in document.get("records") or []]
    assessment_date = as_of.date() if as_of else date.today()

    try:
        assessment = assess_business_compliance(
            str(document["business_id"]), records, profile, assessment_date, rules
        )
    except PolicyConfigError as e:
        raise click.ClickException(str(e))
    _output(assessment, output_json, render_compliance)


@cli.command("payroll")
@click.argument("employees_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--frequency", "-f", type=click.Choice(FREQUENCIES), default="monthly", show_default=True)
@click.option("--format", "output_format", type=click.Choice(["table", "json", "form7b", "cs3"]),
              default="table", show_default=True)
@click.option("--employer-nis", help="Employer NIS number (required for cs3).")
@click.option("--month", type=click.IntRange(1, 12), help="Contribution month (cs3).")
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write export to a file instead of stdout.")
@year_option
def payroll_cmd(employees_file, frequency, output_format, employer_nis, month, output, year):
    """Run payroll for a list of employees.

    EMPLOYEES_FILE is YAML or JSON: a list of employees, or a mapping with an
    'employees' key. Each employee needs id, first_name, last_name,
    nis_number and basic_salary.

    \b
    Formats:
      --format=table   Rich table (default)
      --format=json    Full payroll run
      --format=form7b  GRA Form 7B CSV
      --format=cs3     NIS CS3 schedule (needs --employer-nis and --month)
    """
    rules = _load_rules(year)
    document = _load_document(employees_file)
    entries = document.get("employees", []) if isinstance(document, dict) else document
    employees = [_build(PayrollEmployee, **entry) for entry in entries]

    try:
        run = process_payroll(employees, rules, frequency=frequency)
    except TaxInputError as e:
        raise click.ClickException(str(e))

    if output_format == "table":
        render_payroll(Console(), run.model_dump(mode="json"))
        return

    if output_format == "json":
        content = json.dumps(run.model_dump(mode="json"), indent=2) + "\n"
    elif output_format == "form7b":
        content = form_7b_to_csv_string(run)
    else:
        if not employer_nis or month is None:
            raise click.UsageError("--employer-nis and --month are required for --format=cs3")
        try:
            content = nis_cs3_schedule(run, employer_nis, month, year)
        except TaxInputError as e:
            raise click.ClickException(str(e))

    if output:
        Path(output).write_text(content)
        click.echo(f"Wrote {output_format} export to {output}")
    else:
        click.echo(content, nl=False)


def main():
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
