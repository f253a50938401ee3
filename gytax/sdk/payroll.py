"""Payroll runs.

Runs PAYE and NIS for every employee in a pay period and totals the
employer's liabilities. Output order matches input order.
"""

import logging
import re
from typing import Iterable

from .schemas import (
    NisInput,
    PayeInput,
    PayrollEmployee,
    PayrollLine,
    PayrollRun,
    PayrollTotals,
    utc_now,
)
from .taxes.frequency import check_frequency
from .taxes.money import round_money
from .taxes.nis import calculate_nis
from .taxes.paye import calculate_paye
from .taxes.schemas import TaxRules

logger = logging.getLogger(__name__)

_SEPARATORS = re.compile(r"[\s\-/]")
_NIS_PATTERN = re.compile(r"^[A-Za-z0-9]{9}$")
_TIN_PATTERN = re.compile(r"^\d{9}$")


def validate_nis_number(nis_number: str) -> bool:
    """NIS numbers are 9 alphanumerics once spaces, dashes and slashes are removed."""
    return bool(_NIS_PATTERN.match(_SEPARATORS.sub("", nis_number or "")))


def validate_tin_number(tin: str) -> bool:
    """TINs are exactly 9 digits."""
    return bool(_TIN_PATTERN.match(tin or ""))


def process_payroll(
    employees: Iterable[PayrollEmployee],
    rules: TaxRules,
    frequency: str = "monthly",
) -> PayrollRun:
    """Calculate PAYE and NIS for each employee and total the run.

    Args:
        employees: Employees to pay this period
        rules: Policy bundle for the tax year
        frequency: Pay frequency shared by all employees

    Returns:
        PayrollRun with one line per employee and run totals
    """
    check_frequency(frequency)
    generated_at = utc_now()

    lines = []
    for employee in employees:
        paye = calculate_paye(
            PayeInput(
                basic_salary=employee.basic_salary,
                overtime=employee.overtime,
                allowances=employee.allowances,
                bonuses=employee.bonuses,
                dependents=employee.dependents,
                frequency=frequency,
            ),
            rules,
            calculated_at=generated_at,
        )
        nis = calculate_nis(
            NisInput(gross_income=paye.gross_income, frequency=frequency, mode="combined"),
            rules,
            calculated_at=generated_at,
        )
        lines.append(PayrollLine(employee=employee, paye=paye, nis=nis))

    totals = PayrollTotals(
        employee_count=len(lines),
        total_gross_pay=round_money(sum(l.paye.gross_income for l in lines)),
        total_net_pay=round_money(sum(l.paye.net_pay for l in lines)),
        total_paye=round_money(sum(l.paye.total_tax for l in lines)),
        total_employee_nis=round_money(sum(l.nis.employee_contribution for l in lines)),
        total_employer_nis=round_money(sum(l.nis.employer_contribution for l in lines)),
    )
    logger.debug(f"Processed {frequency} payroll for {totals.employee_count} employees")

    return PayrollRun(frequency=frequency, lines=lines, totals=totals, generated_at=generated_at)
