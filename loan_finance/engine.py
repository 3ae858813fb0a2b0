"""Core calculation engine for vehicle loan finance.

This module implements the financial logic behind the loan approval and
post-file screens: EMI calculation for reducing balance and flat rate loans,
amortization schedule generation, projected and payment-based principal
outstanding, and aggregation of a bank's loan amount breakup.

Every function is pure. Inputs may be loosely formatted (currency strings,
ISO dates) and are normalized on the way in; degenerate inputs produce zero
results instead of exceptions, because these functions are re-run on every
keystroke of a partially filled form.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, List, Mapping, Optional, Union

from .data_models import (
    AmortizationEntry,
    BreakupComponents,
    BreakupResult,
    LiveOutstanding,
    LoanSummary,
    PaymentRecord,
    PrincipalOutstanding,
    RateType,
    YearlyBreakdown,
)
from .utils import (
    add_months,
    lenient_context,
    months_between,
    parse_date,
    round_amount,
    to_amount,
    to_count,
    to_decimal,
)

log = logging.getLogger(__name__)

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")
_TWELVE = Decimal("12")


def _monthly_rate(annual_rate_percent: Decimal) -> Decimal:
    return annual_rate_percent / _TWELVE / _HUNDRED


def _flat_total_interest(principal: Decimal, annual_rate_percent: Decimal, term: int) -> Decimal:
    """Interest charged once on the original principal for the whole tenure."""
    years = Decimal(term) / _TWELVE
    return principal * (annual_rate_percent / _HUNDRED) * years


def _annuity_payment(principal: Decimal, rate_per_month: Decimal, term: int) -> Decimal:
    """Return the unrounded equal installment for a reducing balance loan.

    The formula is:

        payment = P * (i * (1 + i)^n) / ((1 + i)^n - 1)

    where ``P`` is the principal, ``i`` is the monthly interest rate and
    ``n`` is the number of payments. When the interest rate is zero, the
    payment simplifies to ``P / n``, as it does for any rate where
    ``(1 + i)^n`` equals one. A factor too large to represent gives the
    limit of the formula, ``P * i``.
    """
    if rate_per_month == 0:
        return principal / Decimal(term)
    with lenient_context():
        factor = (1 + rate_per_month) ** term
    if not factor.is_finite():
        return principal * rate_per_month
    if factor == 1:
        return principal / Decimal(term)
    return principal * (rate_per_month * factor) / (factor - 1)


def calculate_emi(
    principal: Any,
    annual_rate_percent: Any,
    tenure_months: Any,
    rate_type: Any = RateType.REDUCING,
) -> int:
    """Return the monthly EMI rounded to the nearest whole currency unit.

    Parameters
    ----------
    principal:
        Loan amount; a number or a currency string such as ``"₹5,00,000"``.
    annual_rate_percent:
        Nominal annual rate in percent (``10.5`` means 10.5 % p.a.).
    tenure_months:
        Number of monthly installments.
    rate_type:
        ``"Reducing"`` (default) or ``"Flat"``. Unknown values are treated as
        ``"Reducing"``.

    Returns ``0`` when the principal or tenure is not positive.
    """
    p = to_decimal(principal)
    n = to_count(tenure_months)
    if p <= 0 or n <= 0:
        return 0
    rate = to_decimal(annual_rate_percent)

    if RateType.normalize(rate_type) == RateType.FLAT:
        total_interest = _flat_total_interest(p, rate, n)
        return round_amount((p + total_interest) / Decimal(n))

    return round_amount(_annuity_payment(p, _monthly_rate(rate), n))


def generate_schedule(
    principal: Any,
    annual_rate_percent: Any,
    tenure_months: Any,
    first_installment_date: Any = None,
    rate_type: Any = RateType.REDUCING,
) -> List[AmortizationEntry]:
    """Compute the amortization schedule for a loan.

    Returns
    -------
    schedule: List[AmortizationEntry]
        Exactly ``tenure_months`` entries ordered by installment number, or an
        empty list when the principal or tenure is not positive.

    The installment amount is the EMI from :func:`calculate_emi` on every
    row. Interest on reducing balance loans is charged on the balance before
    each installment; flat rate loans split the EMI into a constant principal
    and interest part. In both cases the final installment absorbs all
    accumulated rounding drift so the outstanding balance ends at exactly
    zero. Due dates advance one calendar month at a time from the first
    installment date (today when absent), clamped to the last day of shorter
    months.
    """
    p = to_decimal(principal)
    n = to_count(tenure_months)
    if p <= 0 or n <= 0:
        log.debug("No schedule for principal=%r tenure=%r", principal, tenure_months)
        return []

    rate = to_decimal(annual_rate_percent)
    loan_type = RateType.normalize(rate_type)
    emi = calculate_emi(p, rate, n, loan_type)
    anchor = parse_date(first_installment_date) or date.today()
    total_principal = round_amount(p)

    if loan_type == RateType.FLAT:
        total_interest = _flat_total_interest(p, rate, n)
        monthly_interest = round_amount(total_interest / Decimal(n))
        monthly_principal = round_amount(p / Decimal(n))
    else:
        rate_per_month = _monthly_rate(rate)

    schedule: List[AmortizationEntry] = []
    balance = p
    for period in range(1, n + 1):
        if loan_type == RateType.FLAT:
            principal_payment = Decimal(monthly_principal)
            interest_payment = Decimal(monthly_interest)
        else:
            interest_payment = Decimal(round_amount(balance * rate_per_month))
            principal_payment = emi - interest_payment

        # Last installment clears whatever balance is left
        if period == n:
            principal_payment = balance
            interest_payment = emi - principal_payment

        balance = max(_ZERO, balance - principal_payment)
        ending_balance = round_amount(balance)
        cumulative_paid = emi * period
        cumulative_principal = total_principal - ending_balance

        schedule.append(
            AmortizationEntry(
                installment_number=period,
                due_date=add_months(anchor, period - 1),
                installment_amount=emi,
                principal_component=round_amount(principal_payment),
                interest_component=round_amount(interest_payment),
                outstanding_balance_after=ending_balance,
                cumulative_paid=cumulative_paid,
                cumulative_principal_paid=cumulative_principal,
                cumulative_interest_paid=cumulative_paid - cumulative_principal,
            )
        )

    return schedule


def calculate_live_outstanding(
    principal: Any,
    annual_rate_percent: Any,
    tenure_months: Any,
    first_installment_date: Any,
    rate_type: Any = RateType.REDUCING,
    today: Optional[date] = None,
) -> LiveOutstanding:
    """Project today's outstanding principal, assuming every EMI was paid on time.

    This is not derived from payment records; see
    :func:`calculate_principal_outstanding` for that. Without a usable first
    installment date nothing can be projected and the full principal is
    reported as outstanding.
    """
    p = to_amount(principal)
    n = max(0, to_count(tenure_months))
    anchor = parse_date(first_installment_date)
    if anchor is None:
        return LiveOutstanding(
            outstanding=max(0, round_amount(Decimal(str(p)))),
            months_elapsed=0,
            months_remaining=n,
            progress_percentage=0,
        )

    today = today or date.today()
    months_elapsed = max(0, months_between(today, anchor))
    months_paid = min(months_elapsed, n)

    schedule = generate_schedule(p, annual_rate_percent, n, anchor, rate_type)
    emi = calculate_emi(p, annual_rate_percent, n, rate_type)
    if not schedule or months_paid >= n:
        outstanding = 0
    elif months_paid == 0:
        outstanding = max(0, round_amount(Decimal(str(p))))
    else:
        outstanding = schedule[months_paid - 1].outstanding_balance_after

    progress = round_amount(Decimal(100 * months_paid) / Decimal(n)) if n else 0
    return LiveOutstanding(
        outstanding=outstanding,
        months_elapsed=months_paid,
        months_remaining=max(0, n - months_paid),
        progress_percentage=progress,
        emi=emi,
        total_paid=months_paid * emi,
    )


def calculate_principal_outstanding(
    principal: Any,
    annual_rate_percent: Any,
    tenure_months: Any,
    disbursement_date: Any,
    payments: Optional[Iterable[Any]] = None,
    today: Optional[date] = None,
) -> PrincipalOutstanding:
    """Return the outstanding principal based on recorded payments.

    Each entry of ``payments`` counts as one installment; the total paid is
    the sum of their amounts. When no payments are recorded the count falls
    back to the number of installments due since ``disbursement_date``. The
    outstanding balance and the principal/interest split are read from the
    schedule row of the last counted installment.
    """
    p = to_amount(principal)
    n = max(0, to_count(tenure_months))
    anchor = parse_date(disbursement_date)
    records = [PaymentRecord.from_raw(item) for item in (payments or [])]

    if p <= 0 or n <= 0 or anchor is None:
        return PrincipalOutstanding(
            outstanding=max(0, round_amount(Decimal(str(p)))),
            paid_installments=0,
            total_paid=0,
            total_principal_paid=0,
            total_interest_paid=0,
            remaining_installments=n,
        )

    emi = calculate_emi(p, annual_rate_percent, n)
    schedule = generate_schedule(p, annual_rate_percent, n, anchor)

    if records:
        paid_count = len(records)
        total_paid = sum((to_decimal(r.amount) for r in records), _ZERO)
    else:
        today = today or date.today()
        paid_count = min(max(0, months_between(today, anchor)), n)
        total_paid = Decimal(emi * paid_count)

    scheduled_count = min(paid_count, n)
    if scheduled_count:
        last_paid = schedule[scheduled_count - 1]
        outstanding = last_paid.outstanding_balance_after
        principal_paid = last_paid.cumulative_principal_paid
        interest_paid = last_paid.cumulative_interest_paid
    else:
        outstanding = round_amount(Decimal(str(p)))
        principal_paid = interest_paid = 0

    return PrincipalOutstanding(
        outstanding=outstanding,
        paid_installments=paid_count,
        total_paid=round_amount(total_paid),
        total_principal_paid=principal_paid,
        total_interest_paid=interest_paid,
        remaining_installments=max(0, n - paid_count),
        emi=emi,
        schedule=schedule,
    )


def aggregate_breakup(
    components: Union[BreakupComponents, Mapping[str, Any], None],
    fallback_approved_total: Any = 0,
) -> BreakupResult:
    """Combine a bank's loan breakup into the amount that is actually financed.

    A populated breakup always wins, even over a larger approved figure. Only
    when all four components are zero or missing does the fallback become the
    total, attributed entirely to the net loan bucket.
    """
    if isinstance(components, BreakupComponents):
        normalized = BreakupComponents.from_mapping(components.to_dict())
    else:
        normalized = BreakupComponents.from_mapping(components)

    breakup_total = normalized.total
    if breakup_total > 0:
        return BreakupResult(total=breakup_total, components=normalized)

    total = to_amount(fallback_approved_total)
    return BreakupResult(total=total, components=BreakupComponents(net_loan_amount=total))


def summarize_loan(
    principal: Any,
    annual_rate_percent: Any,
    tenure_months: Any,
    rate_type: Any = RateType.REDUCING,
) -> LoanSummary:
    """EMI with the total payable, total interest and interest as a share of principal."""
    p = round_amount(to_decimal(principal))
    n = max(0, to_count(tenure_months))
    loan_type = RateType.normalize(rate_type)
    emi = calculate_emi(principal, annual_rate_percent, n, loan_type)
    total_payment = emi * n
    total_interest = total_payment - p if emi else 0
    interest_percentage = round(total_interest / p * 100, 2) if p > 0 else 0.0
    return LoanSummary(
        emi=emi,
        total_payment=total_payment,
        total_interest=total_interest,
        interest_percentage=interest_percentage,
        principal=p,
        tenure_months=n,
        rate_type=loan_type,
    )


def yearly_breakdown(schedule: List[AmortizationEntry]) -> List[YearlyBreakdown]:
    """Roll a schedule up into loan years of twelve installments each."""
    if not schedule:
        return []
    total_principal = schedule[-1].cumulative_principal_paid
    rows: List[YearlyBreakdown] = []
    for start in range(0, len(schedule), 12):
        block = schedule[start:start + 12]
        last = block[-1]
        paid_to_date = (
            round(last.cumulative_principal_paid / total_principal * 100, 2) if total_principal else 0.0
        )
        rows.append(
            YearlyBreakdown(
                year=start // 12 + 1,
                installments=len(block),
                principal_paid=sum(e.principal_component for e in block),
                interest_paid=sum(e.interest_component for e in block),
                total_payment=sum(e.installment_amount for e in block),
                closing_balance=last.outstanding_balance_after,
                loan_paid_to_date=paid_to_date,
            )
        )
    return rows
