"""Filing exports for payroll runs.

Formats a PayrollRun into the files employers submit:
- GRA Form 7B employee schedule (CSV)
- NIS CS3 contribution schedule (fixed width)

Column order, headers and widths are fixed by the receiving systems.
"""

import csv
import io
from pathlib import Path

from .errors import TaxInputError
from .schemas import PayrollRun

FORM_7B_HEADER = ["TIN", "Last_Name", "First_Name", "Gross_Earnings", "Tax_Deducted", "NIS_Employee"]

CS3_NIS_WIDTH = 15
CS3_EARNINGS_WIDTH = 12
CS3_CONTRIBUTION_WIDTH = 10


def _write_form_7b_rows(writer, run: PayrollRun) -> None:
    writer.writerow(FORM_7B_HEADER)
    for line in run.lines:
        employee = line.employee
        writer.writerow([
            employee.tin or "",
            employee.last_name,
            employee.first_name,
            f"{line.paye.gross_income:.2f}",
            f"{line.paye.total_tax:.2f}",
            f"{line.nis.employee_contribution:.2f}",
        ])


def form_7b_to_csv_string(run: PayrollRun) -> str:
    """Convert a payroll run to a Form 7B CSV string.

    Args:
        run: Result of process_payroll()

    Returns:
        CSV with one row per employee and \\n line endings
    """
    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    _write_form_7b_rows(writer, run)
    return output.getvalue()


def write_form_7b_csv(run: PayrollRun, output_path: Path) -> Path:
    """Write a payroll run to a Form 7B CSV file."""
    with open(output_path, "w", newline="") as csvfile:
        writer = csv.writer(csvfile, lineterminator="\n")
        _write_form_7b_rows(writer, run)

    return output_path


def _cs3_field(value: str, width: int, field: str, left: bool = False) -> str:
    """Pad a CS3 field to its column width; values wider than the column are rejected."""
    if len(value) > width:
        raise TaxInputError(f"CS3 {field} '{value}' exceeds {width} characters", field=field)
    return value.ljust(width) if left else value.rjust(width)


def nis_cs3_schedule(run: PayrollRun, employer_nis: str, month: int, year: int) -> str:
    """Format a payroll run as an NIS CS3 contribution schedule.

    Header is NIS{employer_nis}{MM}{YYYY}. Each line holds the employee NIS
    number (left-justified), insurable earnings, employee contribution and
    employer contribution (right-justified, 2 decimals). A value that does not
    fit its column raises TaxInputError rather than shifting later columns.
    """
    if not 1 <= month <= 12:
        raise TaxInputError(f"Month must be 1-12, got {month}", field="month")

    lines = [f"NIS{employer_nis}{month:02d}{year:04d}"]
    for line in run.lines:
        nis = line.nis
        lines.append(
            _cs3_field(line.employee.nis_number, CS3_NIS_WIDTH, "nis_number", left=True)
            + _cs3_field(f"{nis.insurable_earnings:.2f}", CS3_EARNINGS_WIDTH, "insurable_earnings")
            + _cs3_field(f"{nis.employee_contribution:.2f}", CS3_CONTRIBUTION_WIDTH, "employee_contribution")
            + _cs3_field(f"{nis.employer_contribution:.2f}", CS3_CONTRIBUTION_WIDTH, "employer_contribution")
        )
    return "\n".join(lines) + "\n"


def write_nis_cs3(run: PayrollRun, employer_nis: str, month: int, year: int, output_path: Path) -> Path:
    Path(output_path).write_text(nis_cs3_schedule(run, employer_nis, month, year))
    return output_path
