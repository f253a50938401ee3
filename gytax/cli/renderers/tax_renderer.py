"""Rich renderers for calculator results.

Each renderer takes the SDK result dumped to JSON-compatible dicts
(model_dump(mode="json")) and prints formatted Rich tables.
"""

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table


def _fmt(amount: float | None) -> str:
    """Format a GYD amount."""
    if amount is None:
        return "-"
    return f"G${amount:,.2f}"


def _pct(rate: float | None) -> str:
    if rate is None:
        return "-"
    return f"{rate * 100:.2f}%"


def _two_column_table(title: str) -> Table:
    table = Table(title=title, box=box.ROUNDED)
    table.add_column("", style="bold", min_width=25)
    table.add_column("Amount", justify="right", min_width=14)
    return table


def render_rules(console: Console, data: dict) -> None:
    """Render the headline figures of a rules bundle."""
    paye = data["paye"]
    nis = data["nis"]
    vat = data["vat"]

    table = Table(title=f"Tax Rules {data['tax_year']} (effective {data['effective_date']})", box=box.ROUNDED)
    table.add_column("Regime", style="bold")
    table.add_column("Parameter")
    table.add_column("Value", justify="right")

    table.add_row("PAYE", "Statutory free pay (monthly)", _fmt(paye["statutory_free_pay"]))
    table.add_row("", "Child allowance per child", _fmt(paye["child_allowance_per_child"]))
    for bracket in paye["tax_brackets"]:
        if bracket.get("up_to") is not None:
            label = f"Up to {_fmt(bracket['up_to'])}"
        else:
            label = f"Over {_fmt(bracket['over'])}"
        table.add_row("", label, _pct(bracket["rate"]))
    table.add_row("NIS", "Employee rate", _pct(nis["employee_rate"]))
    table.add_row("", "Employer rate", _pct(nis["employer_rate"]))
    table.add_row("", "Weekly ceiling", _fmt(nis["weekly_ceiling"]))
    table.add_row("VAT", "Standard rate", _pct(vat["standard_rate"]))
    table.add_row("", "Registration threshold", _fmt(vat["registration_threshold"]))
    for name, rate in data["corporate"]["rates"].items():
        table.add_row("Corporate" if name == "standard" else "", name.replace("_", " ").title(), _pct(rate))
    for name, rate in data["withholding"]["rates"].items():
        table.add_row("Withholding" if name == "dividend" else "", name.replace("_", " ").title(), _pct(rate))

    console.print(table)


def render_paye(console: Console, data: dict) -> None:
    table = _two_column_table(f"PAYE ({data['frequency']})")

    table.add_row("Gross Income", _fmt(data["gross_income"]))
    table.add_row("", "")
    table.add_row("[bold]DEDUCTIONS BEFORE TAX[/bold]", "")
    table.add_row("  Statutory Free Pay", _fmt(data["statutory_free_pay"]))
    table.add_row("  Child Allowance", _fmt(data["child_allowance"]))
    table.add_row("  Tax-free Overtime", _fmt(data["overtime_tax_free"]))
    table.add_row("  Employee NIS", _fmt(data["nis_employee"]))
    if data["allowable_deductions"]:
        table.add_row("  Other Deductions", _fmt(data["allowable_deductions"]))
    table.add_row("Taxable Income", _fmt(data["taxable_income"]), style="dim")
    table.add_row("", "")

    table.add_row("[bold]TAX[/bold]", "")
    for band in data["bracket_breakdown"]:
        upper = _fmt(band["upper_bound"]) if band["upper_bound"] is not None else "+"
        table.add_row(f"  {_pct(band['rate'])} on {_fmt(band['lower_bound'])} - {upper}", _fmt(band["tax"]))
    table.add_row("  [dim]Total PAYE[/dim]", f"[dim]{_fmt(data['total_tax'])}[/dim]")
    table.add_row("  Effective / Marginal", f"{_pct(data['effective_rate'])} / {_pct(data['marginal_rate'])}")
    if data["tax_credits"] or data["previous_tax_paid"]:
        table.add_row("  Tax Credits", _fmt(data["tax_credits"]))
        table.add_row("  Tax Already Paid", _fmt(data["previous_tax_paid"]))
        table.add_row("  [bold]Net Tax Owed[/bold]", f"[bold]{_fmt(data['net_tax_owed'])}[/bold]")
    table.add_row("", "")

    table.add_row("[bold green]NET PAY[/bold green]", f"[bold green]{_fmt(data['net_pay'])}[/bold green]")
    table.add_row("Employer NIS", _fmt(data["nis_employer"]), style="dim")

    console.print(table)


def render_nis(console: Console, data: dict) -> None:
    table = _two_column_table(f"NIS ({data['frequency']}, {data['mode']})")

    table.add_row("Gross Income", _fmt(data["gross_income"]))
    table.add_row("Weekly Income", _fmt(data["weekly_income"]))
    table.add_row("Insurable Weekly Income", _fmt(data["insurable_weekly_income"]))
    table.add_row("Insurable Earnings", _fmt(data["insurable_earnings"]))
    table.add_row("", "")
    table.add_row(f"Employee ({_pct(data['employee_rate'])})", _fmt(data["employee_contribution"]))
    table.add_row(f"Employer ({_pct(data['employer_rate'])})", _fmt(data["employer_contribution"]))
    table.add_row("[bold]Total[/bold]", f"[bold]{_fmt(data['total_contribution'])}[/bold]")

    console.print(table)

    if data["exceeds_weekly_ceiling"]:
        console.print(Panel(
            f"[yellow]Weekly income exceeds the ceiling by {_fmt(data['exceeded_amount'])}[/yellow]",
            title="Note",
            border_style="yellow",
        ))
    if data["below_minimum_wage"]:
        console.print(Panel(
            "[yellow]Income is below the monthly minimum wage[/yellow]",
            title="Note",
            border_style="yellow",
        ))


def render_vat(console: Console, data: dict) -> None:
    table = _two_column_table(f"VAT ({data['category']} {data['transaction_type']})")

    table.add_row("Net Amount", _fmt(data["net_amount"]))
    table.add_row(f"VAT ({_pct(data['vat_rate'])})", _fmt(data["vat_amount"]))
    table.add_row("[bold]Gross Amount[/bold]", f"[bold]{_fmt(data['gross_amount'])}[/bold]")

    console.print(table)


def render_corporate(console: Console, data: dict) -> None:
    period = data["accounting_period"]
    table = _two_column_table(
        f"Corporate Tax ({data['business_type']}) {period['start_date']} to {period['end_date']}"
    )

    table.add_row("Gross Income", _fmt(data["gross_income"]))
    table.add_row("  Allowable Deductions", _fmt(data["allowable_deductions"]))
    table.add_row("  Capital Allowances", _fmt(data["capital_allowances"]))
    table.add_row("  Charitable Donations", _fmt(data["charitable_donations"]))
    table.add_row("  Loss Relief", _fmt(data["loss_relief"]))
    table.add_row("Taxable Income", _fmt(data["final_taxable_income"]), style="dim")
    table.add_row("", "")
    rate_label = f"Tax at {_pct(data['tax_rate'])}"
    if data["qualifies_for_small_business"]:
        rate_label += " (small business)"
    table.add_row(rate_label, _fmt(data["gross_tax"]))
    table.add_row("  Tax Credits", _fmt(data["tax_credits"]))
    table.add_row("  Advance Payments", _fmt(data["advance_payments"]))

    label = "REFUND DUE" if data["is_refund_due"] else "BALANCE DUE"
    table.add_row(f"[bold green]{label}[/bold green]", f"[bold green]{_fmt(abs(data['balance_due']))}[/bold green]")
    table.add_row("Due Date", str(data["due_date"]), style="dim")
    if data["loss_carryforward"]:
        table.add_row("Loss Carried Forward", _fmt(data["loss_carryforward"]), style="dim")

    console.print(table)


def render_withholding(console: Console, data: dict) -> None:
    table = _two_column_table(f"Withholding Tax: {data['payee_name']} ({data['tax_type']})")

    table.add_row("Gross Payment", _fmt(data["gross_amount"]))
    table.add_row(f"Withheld ({_pct(data['withholding_rate'])})", _fmt(data["withholding_tax"]))
    if data.get("treaty_reduction"):
        table.add_row("  Treaty Reduction", _pct(data["treaty_reduction"]), style="dim")
    table.add_row("[bold]Net Payment[/bold]", f"[bold]{_fmt(data['net_amount'])}[/bold]")
    table.add_row("Return Due", str(data["due_date"]), style="dim")

    console.print(table)

    if data["is_exempt"]:
        reason = data.get("exemption_reason") or "exempt"
        console.print(Panel(f"[yellow]Payment is exempt: {reason}[/yellow]", title="Note", border_style="yellow"))


_STATUS_STYLE = {
    "compliant": "green",
    "under_review": "yellow",
    "overdue": "red",
    "delinquent": "bold red",
}


def render_compliance(console: Console, data: dict) -> None:
    """Render a compliance assessment: summary panel, records, next actions."""
    status = data["overall_status"]
    style = _STATUS_STYLE.get(status, "white")
    summary = (
        f"Status: [{style}]{status}[/{style}]   "
        f"Score: {data['compliance_score']:.1f}   "
        f"Risk: {data['risk_level']}\n"
        f"Outstanding: {_fmt(data['total_outstanding'])}   "
        f"Overdue: {data['overdue_count']}   Upcoming: {data['upcoming_count']}"
    )
    console.print(Panel(summary, title=f"Compliance: {data['business_id']} as of {data['assessment_date']}"))

    table = Table(title="Records", box=box.ROUNDED)
    table.add_column("Requirement")
    table.add_column("Due")
    table.add_column("Filed")
    table.add_column("Paid")
    table.add_column("Status")
    table.add_column("Penalty", justify="right")
    table.add_column("Interest", justify="right")
    table.add_column("Total Due", justify="right")
    for record in data["records"]:
        record_style = _STATUS_STYLE.get(record["status"], "white")
        table.add_row(
            record["requirement_id"],
            str(record["due_date"]),
            str(record["filed_date"] or "-"),
            str(record["paid_date"] or "-"),
            f"[{record_style}]{record['status']}[/{record_style}]",
            _fmt(record["penalty_amount"]),
            _fmt(record["interest_amount"]),
            _fmt(record["total_due"]),
        )
    console.print(table)

    if data["next_actions"]:
        console.print("\n[bold]Next actions:[/bold]")
        for action in data["next_actions"]:
            console.print(f"  {action['priority'].upper()}: {action['description']} (by {action['due_date']})")
    if data["recommendations"]:
        console.print("\n[bold]Recommendations:[/bold]")
        for recommendation in data["recommendations"]:
            console.print(f"  - {recommendation}")


def render_payroll(console: Console, data: dict) -> None:
    table = Table(title=f"Payroll ({data['frequency']})", box=box.ROUNDED)
    table.add_column("Employee")
    table.add_column("Gross", justify="right")
    table.add_column("PAYE", justify="right")
    table.add_column("NIS (Employee)", justify="right")
    table.add_column("NIS (Employer)", justify="right")
    table.add_column("Net Pay", justify="right")

    for line in data["lines"]:
        employee = line["employee"]
        table.add_row(
            f"{employee['last_name']}, {employee['first_name']}",
            _fmt(line["paye"]["gross_income"]),
            _fmt(line["paye"]["total_tax"]),
            _fmt(line["nis"]["employee_contribution"]),
            _fmt(line["nis"]["employer_contribution"]),
            _fmt(line["paye"]["net_pay"]),
        )

    totals = data["totals"]
    table.add_row(
        f"[bold]TOTAL ({totals['employee_count']})[/bold]",
        _fmt(totals["total_gross_pay"]),
        _fmt(totals["total_paye"]),
        _fmt(totals["total_employee_nis"]),
        _fmt(totals["total_employer_nis"]),
        f"[bold green]{_fmt(totals['total_net_pay'])}[/bold green]",
    )
    console.print(table)
