"""Command-line interface for the loan finance engine.

This module uses the ``click`` library to implement a multi-command
interface. Users can compute an EMI, print or export a full amortization
schedule, roll a schedule up by year, project the principal outstanding as of
today and aggregate a bank's loan breakup. Schedules can be exported to
JSON/CSV files.
"""

from __future__ import annotations

import csv
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import click

from .data_models import AmortizationEntry, LoanTerms, RateType
from .engine import (
    aggregate_breakup,
    calculate_live_outstanding,
    generate_schedule,
    summarize_loan,
    yearly_breakdown,
)
from .formatter import print_breakup, print_outstanding, print_schedule, print_summary, print_yearly_breakdown
from .utils import parse_date, to_amount

_SUFFIXES = {
    "k": 1_000,
    "l": 100_000,
    "lakh": 100_000,
    "cr": 10_000_000,
    "crore": 10_000_000,
}


def parse_amount(value: Optional[str]) -> Any:
    """Parse an amount with optional shorthand suffixes.

    Accepts anything :func:`to_amount` accepts (``"₹5,00,000"``) plus the
    ``k``, ``L``/``lakh`` and ``Cr``/``crore`` suffixes, e.g. ``"5.5L"``
    meaning 5,50,000.
    """
    if value is None:
        return 0
    text = value.strip().lower().replace(" ", "")
    for suffix in sorted(_SUFFIXES, key=len, reverse=True):
        if text.endswith(suffix) and text[: -len(suffix)]:
            base = text[: -len(suffix)]
            if not any(ch.isdigit() for ch in base):
                raise click.BadParameter(f"Invalid amount: {value}")
            return to_amount(to_amount(base) * _SUFFIXES[suffix])
    if text and not any(ch.isdigit() for ch in text):
        raise click.BadParameter(f"Invalid amount: {value}")
    return to_amount(text)


def parse_first_emi_date(value: Optional[str]):
    if not value:
        return None
    parsed = parse_date(value)
    if parsed is None:
        raise click.BadParameter(f"Invalid date: {value}")
    return parsed


def build_terms_from_options(
    principal: str,
    rate: float,
    tenure: int,
    rate_type: str,
    first_emi_date: Optional[str] = None,
) -> LoanTerms:
    return LoanTerms.from_raw(
        principal=parse_amount(principal),
        annual_rate_percent=rate,
        tenure_months=tenure,
        rate_type=rate_type,
        first_installment_date=parse_first_emi_date(first_emi_date),
    )


def export_to_json(path: Path, schedule: List[AmortizationEntry], summary: Dict[str, Any]) -> None:
    """Export schedule and summary to a JSON file."""
    data = {"summary": summary, "schedule": [e.to_dict() for e in schedule]}
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def export_to_csv(path: Path, schedule: List[AmortizationEntry]) -> None:
    """Export schedule to a CSV file."""
    header = [
        "Installment",
        "Due_Date",
        "EMI",
        "Principal",
        "Interest",
        "Outstanding",
        "Total_Paid",
        "Total_Principal",
        "Total_Interest",
    ]
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for e in schedule:
            writer.writerow(
                [
                    e.installment_number,
                    e.due_date.isoformat(),
                    e.installment_amount,
                    e.principal_component,
                    e.interest_component,
                    e.outstanding_balance_after,
                    e.cumulative_paid,
                    e.cumulative_principal_paid,
                    e.cumulative_interest_paid,
                ]
            )


def loan_options(func):
    """Attach the options shared by every loan command."""
    options = [
        click.option("--principal", "-p", "principal", required=True, help="Loan amount, e.g. 500000, 5L or ₹5,00,000"),
        click.option("--rate", "-r", "rate", required=True, type=float, help="Annual interest rate (percent)"),
        click.option("--tenure", "-t", "tenure", required=True, type=int, help="Tenure in months"),
        click.option(
            "--type",
            "rate_type",
            type=click.Choice([RateType.REDUCING, RateType.FLAT], case_sensitive=False),
            default=RateType.REDUCING,
            help="Interest method",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """A vehicle loan EMI and repayment calculator."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING)


@cli.command()
@loan_options
def emi(principal: str, rate: float, tenure: int, rate_type: str) -> None:
    """Compute the EMI and total cost of a loan."""
    terms = build_terms_from_options(principal, rate, tenure, rate_type)
    print_summary(
        summarize_loan(terms.principal, terms.annual_rate_percent, terms.tenure_months, terms.rate_type)
    )


@cli.command()
@loan_options
@click.option("--first-emi-date", "-s", "first_emi_date", help="Date of the first EMI (YYYY-MM-DD)")
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
def schedule(
    principal: str,
    rate: float,
    tenure: int,
    rate_type: str,
    first_emi_date: Optional[str],
    output: Optional[str],
) -> None:
    """Compute and print the full repayment schedule."""
    terms = build_terms_from_options(principal, rate, tenure, rate_type, first_emi_date)
    entries = generate_schedule(
        terms.principal,
        terms.annual_rate_percent,
        terms.tenure_months,
        terms.first_installment_date,
        terms.rate_type,
    )
    summary = summarize_loan(terms.principal, terms.annual_rate_percent, terms.tenure_months, terms.rate_type)
    if output:
        path = Path(output)
        if path.suffix.lower() == ".json":
            export_to_json(path, entries, summary.to_dict())
            click.echo(f"Schedule exported to {path}")
        elif path.suffix.lower() == ".csv":
            export_to_csv(path, entries)
            click.echo(f"Schedule exported to {path}")
        else:
            raise click.BadParameter("Unsupported output format; use .json or .csv")
    else:
        print_summary(summary)
        print_schedule(entries)


@cli.command()
@loan_options
def yearly(principal: str, rate: float, tenure: int, rate_type: str) -> None:
    """Print the schedule rolled up by loan year."""
    terms = build_terms_from_options(principal, rate, tenure, rate_type)
    entries = generate_schedule(
        terms.principal, terms.annual_rate_percent, terms.tenure_months, None, terms.rate_type
    )
    print_yearly_breakdown(yearly_breakdown(entries))


@cli.command()
@loan_options
@click.option("--first-emi-date", "-s", "first_emi_date", required=True, help="Date of the first EMI (YYYY-MM-DD)")
def outstanding(principal: str, rate: float, tenure: int, rate_type: str, first_emi_date: str) -> None:
    """Project the principal outstanding today, assuming every EMI was paid on time."""
    terms = build_terms_from_options(principal, rate, tenure, rate_type, first_emi_date)
    result = calculate_live_outstanding(
        terms.principal,
        terms.annual_rate_percent,
        terms.tenure_months,
        terms.first_installment_date,
        terms.rate_type,
    )
    print_outstanding(result)


@cli.command()
@click.option("--net", "net", help="Net loan amount")
@click.option("--credit-assured", "credit_assured", help="Credit assured finance")
@click.option("--insurance", "insurance", help="Insurance finance")
@click.option("--ew", "extended_warranty", help="Extended warranty finance")
@click.option("--approved", "approved", help="Approved loan amount used when no breakup is given")
def breakup(
    net: Optional[str],
    credit_assured: Optional[str],
    insurance: Optional[str],
    extended_warranty: Optional[str],
    approved: Optional[str],
) -> None:
    """Aggregate a bank's loan breakup into the financed total."""
    components = {
        "net_loan_amount": parse_amount(net),
        "credit_assured_finance": parse_amount(credit_assured),
        "insurance_finance": parse_amount(insurance),
        "extended_warranty_finance": parse_amount(extended_warranty),
    }
    print_breakup(aggregate_breakup(components, parse_amount(approved)))


if __name__ == "__main__":
    cli()
