"""Data models for the loan finance engine.

This module defines dataclasses for the inputs and outputs of the engine: the
terms of a loan, the rows of an amortization schedule, the four-way loan
amount breakup used on the bank approval and disbursal screens, and the
result objects returned by the outstanding-balance projections. All
monetary outputs are plain ``int`` values in whole currency units so callers
can format them without re-deriving precision.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Any, Dict, List, Mapping, Optional

from .utils import Number, parse_date, sum_amounts, to_amount, to_count


class RateType:
    """Interest rate methods understood by the engine."""

    REDUCING = "Reducing"
    FLAT = "Flat"

    @classmethod
    def normalize(cls, value: Any) -> str:
        """Return ``FLAT`` for any spelling of "flat"; everything else is ``REDUCING``."""
        if isinstance(value, str) and value.strip().lower() == "flat":
            return cls.FLAT
        return cls.REDUCING


@dataclass
class LoanTerms:
    """The inputs to any financial calculation.

    ``first_installment_date`` is optional; without it a schedule is anchored
    to today and the live outstanding projection cannot run.
    """

    principal: Number
    annual_rate_percent: Number
    tenure_months: int
    rate_type: str = RateType.REDUCING
    first_installment_date: Optional[date] = None

    @classmethod
    def from_raw(
        cls,
        principal: Any,
        annual_rate_percent: Any,
        tenure_months: Any,
        rate_type: Any = RateType.REDUCING,
        first_installment_date: Any = None,
    ) -> "LoanTerms":
        """Build terms from form values (currency strings, ISO dates and so on)."""
        return cls(
            principal=to_amount(principal),
            annual_rate_percent=to_amount(annual_rate_percent),
            tenure_months=to_count(tenure_months),
            rate_type=RateType.normalize(rate_type),
            first_installment_date=parse_date(first_installment_date),
        )


@dataclass(frozen=True)
class AmortizationEntry:
    """One installment of an amortization schedule."""

    installment_number: int
    due_date: date
    installment_amount: int
    principal_component: int
    interest_component: int
    outstanding_balance_after: int
    cumulative_paid: int
    cumulative_principal_paid: int
    cumulative_interest_paid: int

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["due_date"] = self.due_date.isoformat()
        return data


# Keys used by the loan forms for each breakup component.
BREAKUP_FIELD_ALIASES: Dict[str, tuple] = {
    "net_loan_amount": ("net_loan_amount", "netLoanAmount", "netLoanApproved", "net"),
    "credit_assured_finance": ("credit_assured_finance", "creditAssuredFinance", "creditAssured", "credit"),
    "insurance_finance": ("insurance_finance", "insuranceFinance", "insurance"),
    "extended_warranty_finance": (
        "extended_warranty_finance",
        "extendedWarrantyFinance",
        "ewFinance",
        "ew",
    ),
}


@dataclass
class BreakupComponents:
    """Decomposition of a bank's financed amount into its sub-purposes.

    Attributes
    ----------
    net_loan_amount: Number
        The core vehicle loan.
    credit_assured_finance: Number
        The credit-assurance add-on financed with the loan.
    insurance_finance: Number
        Vehicle insurance premium financed with the loan.
    extended_warranty_finance: Number
        Extended-warranty cost financed with the loan.
    """

    net_loan_amount: Number = 0
    credit_assured_finance: Number = 0
    insurance_finance: Number = 0
    extended_warranty_finance: Number = 0

    @property
    def total(self) -> Number:
        return sum_amounts(
            self.net_loan_amount,
            self.credit_assured_finance,
            self.insurance_finance,
            self.extended_warranty_finance,
        )

    @classmethod
    def from_mapping(cls, values: Optional[Mapping[str, Any]]) -> "BreakupComponents":
        """Normalize a partial mapping; missing or unparseable components are 0.

        Both the snake_case attribute names and the camelCase keys used by the
        loan forms are recognised.
        """
        values = values or {}
        normalized = {}
        for attr, aliases in BREAKUP_FIELD_ALIASES.items():
            raw = next((values[k] for k in aliases if k in values), None)
            normalized[attr] = to_amount(raw)
        return cls(**normalized)

    def to_dict(self) -> Dict[str, Number]:
        return asdict(self)


@dataclass
class BreakupResult:
    total: Number
    components: BreakupComponents

    def to_dict(self) -> Dict[str, Any]:
        return {"total": self.total, "components": self.components.to_dict()}


@dataclass
class LiveOutstanding:
    """Projected outstanding principal assuming every EMI was paid on time."""

    outstanding: int
    months_elapsed: int
    months_remaining: int
    progress_percentage: int
    emi: int = 0
    total_paid: int = 0

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


@dataclass
class PaymentRecord:
    """A repayment actually received against a loan."""

    date: Optional[date]
    amount: Number

    @classmethod
    def from_raw(cls, value: Any) -> "PaymentRecord":
        if isinstance(value, PaymentRecord):
            return value
        if isinstance(value, Mapping):
            return cls(date=parse_date(value.get("date")), amount=to_amount(value.get("amount")))
        return cls(date=None, amount=to_amount(value))


@dataclass
class PrincipalOutstanding:
    """Outstanding principal derived from recorded payments."""

    outstanding: int
    paid_installments: int
    total_paid: int
    total_principal_paid: int
    total_interest_paid: int
    remaining_installments: int
    emi: int = 0
    schedule: List[AmortizationEntry] = field(default_factory=list)

    def to_dict(self, include_schedule: bool = False) -> Dict[str, Any]:
        data = {k: v for k, v in asdict(self).items() if k != "schedule"}
        if include_schedule:
            data["schedule"] = [e.to_dict() for e in self.schedule]
        return data


@dataclass
class YearlyBreakdown:
    """Installments of one loan year rolled up into a single row."""

    year: int
    installments: int
    principal_paid: int
    interest_paid: int
    total_payment: int
    closing_balance: int
    loan_paid_to_date: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class LoanSummary:
    emi: int
    total_payment: int
    total_interest: int
    interest_percentage: float
    principal: int
    tenure_months: int
    rate_type: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
