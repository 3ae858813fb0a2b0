"""Output helpers for the loan finance engine.

This module renders amounts in the Indian numbering system (``₹12,34,567``)
and prints EMI summaries, amortization schedules, yearly breakdowns and loan
breakups as simple text tables. We rely only on built-in printing and string
formatting.
"""

from __future__ import annotations

from typing import Any, Iterable, List

from .data_models import AmortizationEntry, BreakupResult, LiveOutstanding, LoanSummary, YearlyBreakdown
from .utils import round_amount, to_amount, to_decimal


def format_indian_number(value: Any) -> str:
    """Group the whole part of ``value`` as 2-2-3 digits, e.g. ``12,34,567``.

    Fractions are dropped. Empty input renders as an empty string.
    """
    if value is None or value == "":
        return ""
    number = int(to_amount(value))
    sign = "-" if number < 0 else ""
    digits = str(abs(number))
    if len(digits) <= 3:
        return sign + digits
    head, tail = digits[:-3], digits[-3:]
    groups: List[str] = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return sign + ",".join(groups + [tail])


def format_inr(amount: Any) -> str:
    """Format an amount as Indian Rupees rounded to whole units, e.g. ``₹12,34,567``."""
    number = round_amount(to_decimal(amount))
    if number < 0:
        return "-₹" + format_indian_number(-number)
    return "₹" + format_indian_number(number)


def print_summary(summary: LoanSummary) -> None:
    """Print the EMI and the totals of a loan in a human-readable format."""
    print("Summary")
    print("-" * 72)
    print(f"Loan amount        : {format_inr(summary.principal)}")
    print(f"Method             : {summary.rate_type}")
    years, months = divmod(summary.tenure_months, 12)
    print(f"Tenure             : {summary.tenure_months} months ({years} years {months} months)")
    print(f"Monthly EMI        : {format_inr(summary.emi)}")
    print(f"Total interest     : {format_inr(summary.total_interest)}")
    print(f"Total payment      : {format_inr(summary.total_payment)}")
    print(f"Interest / loan    : {summary.interest_percentage:.2f}%")
    print("-" * 72)


def print_schedule(schedule: Iterable[AmortizationEntry]) -> None:
    """Print the amortization schedule as a simple table."""
    headers = [
        "No",
        "Due date",
        "EMI",
        "Principal",
        "Interest",
        "Balance",
        "Paid",
    ]
    print("\t".join(headers))
    for entry in schedule:
        row = [
            str(entry.installment_number),
            entry.due_date.strftime("%d %b %Y"),
            format_indian_number(entry.installment_amount),
            format_indian_number(entry.principal_component),
            format_indian_number(entry.interest_component),
            format_indian_number(entry.outstanding_balance_after),
            format_indian_number(entry.cumulative_paid),
        ]
        print("\t".join(row))


def print_yearly_breakdown(rows: Iterable[YearlyBreakdown]) -> None:
    print(f"{'Year':>4s} {'Principal':>14s} {'Interest':>14s} {'Payment':>14s} {'Balance':>14s} {'Paid %':>8s}")
    for row in rows:
        print(
            f"{row.year:>4d} {format_inr(row.principal_paid):>14s} {format_inr(row.interest_paid):>14s} "
            f"{format_inr(row.total_payment):>14s} {format_inr(row.closing_balance):>14s} "
            f"{row.loan_paid_to_date:>7.2f}%"
        )


def print_outstanding(result: LiveOutstanding) -> None:
    print("Principal outstanding (assuming on-time EMIs)")
    print("-" * 72)
    print(f"Outstanding        : {format_inr(result.outstanding)}")
    print(f"EMIs paid          : {result.months_elapsed}")
    print(f"EMIs remaining     : {result.months_remaining}")
    print(f"Progress           : {result.progress_percentage}%")
    if result.emi:
        print(f"Monthly EMI        : {format_inr(result.emi)}")
        print(f"Total paid         : {format_inr(result.total_paid)}")
    print("-" * 72)


def print_breakup(result: BreakupResult) -> None:
    """Print each breakup component and the financed total."""
    labels = [
        ("Net loan", result.components.net_loan_amount),
        ("Credit assured finance", result.components.credit_assured_finance),
        ("Insurance finance", result.components.insurance_finance),
        ("Extended warranty finance", result.components.extended_warranty_finance),
    ]
    for label, value in labels:
        print(f"{label:26s} {format_inr(value):>16s}")
    print("=" * 43)
    print(f"{'Total loan amount':26s} {format_inr(result.total):>16s}")
