"""Withholding tax (Form 7B).

Tax withheld at source on dividends, interest, royalties, rent and service
fees. Payments under the threshold, or marked exempt, carry no withholding.
Non-residents pay the base rate times the non-resident multiplier, capped;
a treaty with the payee's country reduces the rate per payment type.

Returns are monthly and due on the configured day of the following month.
"""

import hashlib
import logging
from collections import OrderedDict
from datetime import date, datetime
from typing import Collection, Dict, Iterable, List, Optional, Tuple

from ..errors import TaxInputError
from ..schemas import (
    BulkWithholdingResult,
    MonthlyWithholdingReturn,
    OverdueMonth,
    PayeeSummary,
    PayerDetails,
    WithholdingCertificate,
    WithholdingComplianceReport,
    WithholdingTaxInput,
    WithholdingTaxResult,
    utc_now,
)
from .dates import add_months, on_day
from .money import months_late, round_money, round_rate
from .schemas import TaxRules

logger = logging.getLogger(__name__)

CERTIFICATE_DECLARATION = (
    "This certificate confirms that withholding tax has been deducted from the above "
    "payment in accordance with the Income Tax Act of Guyana."
)


def withholding_rate(tax_type: str, payee_type: str, rules: TaxRules) -> float:
    """Base rate for a payment type, with the non-resident uplift and cap."""
    policy = rules.withholding
    rate = getattr(policy.rates, tax_type)
    if payee_type == "non_resident":
        rate = min(policy.non_resident_rate_cap, rate * policy.non_resident_multiplier)
    return rate


def treaty_reduction(treaty_country: Optional[str], tax_type: str, rules: TaxRules) -> float:
    """Rate reduction under a tax treaty; 0 when there is no treaty or no entry."""
    if not treaty_country:
        return 0.0
    reductions = rules.withholding.treaties.get(treaty_country.lower(), {})
    return reductions.get(tax_type, 0.0)


def withholding_due_date(payment_date: date, rules: TaxRules) -> date:
    following = add_months(payment_date.replace(day=1), 1)
    return on_day(following.year, following.month, rules.withholding.return_due_day)


def calculate_withholding_tax(
    withholding_input: WithholdingTaxInput,
    rules: TaxRules,
    calculated_at: Optional[datetime] = None,
) -> WithholdingTaxResult:
    """Calculate tax withheld on one payment.

    A custom_rate replaces both the configured rate and any treaty reduction.
    """
    policy = rules.withholding
    gross = withholding_input.gross_amount
    meets_threshold = gross >= policy.threshold
    subject = meets_threshold and not withholding_input.is_exempt

    reduction = treaty_reduction(withholding_input.treaty_country, withholding_input.tax_type, rules)
    rate = 0.0
    if subject:
        if withholding_input.custom_rate is not None:
            rate = withholding_input.custom_rate
        else:
            base = withholding_rate(withholding_input.tax_type, withholding_input.payee_type, rules)
            rate = max(0.0, base - reduction)

    withheld = gross * rate if subject else 0.0

    return WithholdingTaxResult(
        gross_amount=round_money(gross),
        withholding_rate=round_rate(rate),
        treaty_reduction=reduction if withholding_input.treaty_country else None,
        withholding_tax=round_money(withheld),
        net_amount=round_money(gross - withheld),
        tax_type=withholding_input.tax_type,
        payee_type=withholding_input.payee_type,
        payee_name=withholding_input.payee_name,
        payee_tin=withholding_input.payee_tin,
        payment_date=withholding_input.payment_date,
        is_subject_to_withholding=subject,
        is_exempt=withholding_input.is_exempt,
        exemption_reason=withholding_input.exemption_reason,
        form_required=meets_threshold,
        due_date=withholding_due_date(withholding_input.payment_date, rules),
        calculated_at=calculated_at or utc_now(),
    )


def calculate_bulk_withholding_tax(
    inputs: Iterable[WithholdingTaxInput], rules: TaxRules
) -> BulkWithholdingResult:
    """Calculate a batch of payments. Output order = input order."""
    calculations = [calculate_withholding_tax(i, rules) for i in inputs]
    total_gross = sum(c.gross_amount for c in calculations)
    total_withheld = sum(c.withholding_tax for c in calculations)

    return BulkWithholdingResult(
        calculations=calculations,
        total_gross_payments=round_money(total_gross),
        total_withholding_tax=round_money(total_withheld),
        total_net_payments=round_money(sum(c.net_amount for c in calculations)),
        exempt_payments=sum(1 for c in calculations if c.is_exempt),
        subject_to_withholding=sum(1 for c in calculations if c.is_subject_to_withholding),
        average_withholding_rate=round_rate(total_withheld / total_gross) if total_gross > 0 else 0.0,
    )


def _payee_key(calculation: WithholdingTaxResult) -> Tuple[str, str]:
    return (calculation.payee_name, calculation.payee_tin or "")


def calculate_monthly_withholding_return(
    calculations: Iterable[WithholdingTaxResult],
    month: int,
    year: int,
    as_of: date,
    rules: TaxRules,
) -> MonthlyWithholdingReturn:
    """Form 7B return for one calendar month, assessed as of a given date.

    Payments are grouped by payee (name and TIN). Late returns carry a
    penalty on the tax withheld for every started 30 days past the due date.
    """
    if not 1 <= month <= 12:
        raise TaxInputError(f"Month must be 1-12, got {month}", field="month")

    in_month = [
        c for c in calculations if c.payment_date.month == month and c.payment_date.year == year
    ]
    exempt = [c for c in in_month if c.is_exempt]
    withheld = sum(c.withholding_tax for c in in_month if not c.is_exempt)

    due_date = withholding_due_date(date(year, month, 1), rules)
    days_late = max(0, (as_of - due_date).days)
    penalty = 0.0
    if days_late > 0 and withheld > 0:
        penalty = withheld * rules.withholding.late_filing_rate * months_late(days_late)

    payees: Dict[Tuple[str, str], dict] = OrderedDict()
    for c in in_month:
        entry = payees.setdefault(
            _payee_key(c),
            {"payee_name": c.payee_name, "payee_tin": c.payee_tin, "gross": 0.0, "withheld": 0.0, "count": 0},
        )
        entry["gross"] += c.gross_amount
        entry["withheld"] += c.withholding_tax
        entry["count"] += 1

    return MonthlyWithholdingReturn(
        month=month,
        year=year,
        transactions=in_month,
        exempt_transactions=exempt,
        total_gross_payments=round_money(sum(c.gross_amount for c in in_month)),
        total_withholding_tax=round_money(withheld),
        total_net_payments=round_money(sum(c.net_amount for c in in_month)),
        due_date=due_date,
        as_of=as_of,
        is_late=days_late > 0,
        days_late=days_late,
        penalty=round_money(penalty),
        total_due=round_money(withheld + penalty),
        payee_breakdown=[
            PayeeSummary(
                payee_name=p["payee_name"],
                payee_tin=p["payee_tin"],
                total_gross=round_money(p["gross"]),
                total_withholding=round_money(p["withheld"]),
                transaction_count=p["count"],
            )
            for p in payees.values()
        ],
    )


def check_withholding_compliance(
    calculations: Iterable[WithholdingTaxResult],
    as_of: date,
    rules: TaxRules,
    remitted_months: Collection[Tuple[int, int]] = (),
) -> WithholdingComplianceReport:
    """Find months past due that still carry unremitted withholding.

    Args:
        calculations: Withholding calculations across any number of months
        as_of: Assessment date
        rules: Policy bundle for the tax year
        remitted_months: (year, month) pairs already filed and paid

    Returns:
        Report with overdue months, a 0-100 score and recommendations
    """
    calculations = list(calculations)
    months = sorted({(c.payment_date.year, c.payment_date.month) for c in calculations})
    remitted = set(remitted_months)

    overdue: List[OverdueMonth] = []
    for year, month in months:
        if (year, month) in remitted:
            continue
        monthly = calculate_monthly_withholding_return(calculations, month, year, as_of, rules)
        if monthly.due_date < as_of and monthly.total_withholding_tax > 0:
            overdue.append(
                OverdueMonth(
                    month=month,
                    year=year,
                    due_date=monthly.due_date,
                    days_overdue=monthly.days_late,
                    amount=monthly.total_due,
                )
            )

    total_overdue = sum(o.amount for o in overdue)
    score = 100.0 * (1 - len(overdue) / len(months)) if months else 100.0

    recommendations = []
    if overdue:
        recommendations.append(f"File {len(overdue)} overdue withholding tax return(s) immediately.")
        recommendations.append("Set up automatic reminders for monthly filing deadlines.")
    if score < 80:
        recommendations.append("Implement better record-keeping and filing procedures.")
    if total_overdue > 0:
        recommendations.append(f"Pay outstanding withholding tax liability of {total_overdue:.2f} GYD.")

    logger.debug(f"Withholding compliance as of {as_of}: {len(overdue)}/{len(months)} months overdue")

    return WithholdingComplianceReport(
        total_overdue=round_money(total_overdue),
        overdue_months=overdue,
        compliance_score=round_money(score),
        recommendations=recommendations,
    )


def generate_withholding_certificate(
    calculation: WithholdingTaxResult,
    payer: PayerDetails,
    issue_date: date,
) -> WithholdingCertificate:
    """Certificate of tax withheld for the payee.

    The certificate number is derived from the payer, payee and payment, so
    reissuing a certificate for the same payment yields the same number.
    """
    fingerprint = "|".join(
        [
            payer.tin,
            calculation.payee_name,
            calculation.payee_tin or "",
            calculation.payment_date.isoformat(),
            calculation.tax_type,
            f"{calculation.gross_amount:.2f}",
        ]
    )
    digest = hashlib.sha256(fingerprint.encode("utf-8")).hexdigest()[:6].upper()

    return WithholdingCertificate(
        certificate_number=f"WHT-{issue_date.year}-{digest}",
        issue_date=issue_date,
        payer=payer,
        payee_name=calculation.payee_name,
        payee_tin=calculation.payee_tin,
        payment_date=calculation.payment_date,
        tax_type=calculation.tax_type,
        rate=calculation.withholding_rate,
        gross_amount=calculation.gross_amount,
        withholding_tax=calculation.withholding_tax,
        net_amount=calculation.net_amount,
        declaration=CERTIFICATE_DECLARATION,
    )
