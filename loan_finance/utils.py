"""Utility functions for the loan finance engine.

This module normalizes the loosely formatted values that arrive from loan
forms (currency strings with ``₹`` and Indian or Western digit grouping,
ISO date strings, native dates) into Python numbers and ``datetime.date``
instances, and provides the month arithmetic used by the schedule generator.
None of the helpers here raise on bad input: an unusable amount becomes ``0``
and an unusable date becomes ``None``.
"""

from __future__ import annotations

import calendar
import math
import re
from datetime import date, datetime
from decimal import (
    ROUND_FLOOR,
    Decimal,
    DivisionByZero,
    InvalidOperation,
    Overflow,
    getcontext,
    localcontext,
)
from typing import Any, ContextManager, Optional, Union

from dateutil import parser as date_parser

getcontext().prec = 28  # increase decimal precision to avoid rounding errors

Number = Union[int, float]

_NON_NUMERIC = re.compile(r"[^0-9.\-]")
_HALF = Decimal("0.5")


def to_amount(raw: Any) -> Number:
    """Normalize a monetary input to a plain number.

    Numbers are passed through unchanged. Strings have every character that
    is not a digit, ``.`` or ``-`` stripped, so ``"₹1,23,456.00"`` and
    ``"$123,456"`` both become ``123456``. Anything that cannot be parsed
    (``None``, ``""``, ``"abc"``, ``"1.2.3"``, NaN) yields ``0``. Negative
    values are preserved.

    Integral results are returned as ``int`` so that repeated normalization
    is idempotent.
    """
    if raw is None or isinstance(raw, bool):
        return 0
    if isinstance(raw, (int, float, Decimal)):
        value = raw
    else:
        cleaned = _NON_NUMERIC.sub("", str(raw))
        if not cleaned:
            return 0
        try:
            value = Decimal(cleaned)
        except InvalidOperation:
            return 0
    return _plain_number(value)


def _plain_number(value: Union[int, float, Decimal]) -> Number:
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            return 0
        return int(value) if value.is_integer() else value
    if not value.is_finite():
        return 0
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def to_decimal(raw: Any) -> Decimal:
    """Return ``to_amount(raw)`` as a ``Decimal``."""
    return Decimal(str(to_amount(raw)))


def to_count(raw: Any) -> int:
    """Normalize a tenure or installment count to an ``int`` (fractions truncate)."""
    return int(to_amount(raw))


def sum_amounts(*values: Any) -> Number:
    """Add normalized amounts exactly, without float drift."""
    return _plain_number(sum((to_decimal(v) for v in values), Decimal("0")))


def lenient_context() -> ContextManager:
    """A decimal context where overflow, division by zero and invalid operations
    produce Infinity or NaN instead of raising."""
    context = getcontext().copy()
    for signal in (DivisionByZero, Overflow, InvalidOperation):
        context.traps[signal] = False
    return localcontext(context)


def round_amount(value: Decimal) -> int:
    """Round to the nearest whole currency unit, halves towards positive infinity.

    Infinity and NaN round to 0.
    """
    if not value.is_finite():
        return 0
    return int((value + _HALF).to_integral_value(rounding=ROUND_FLOOR))


def parse_date(value: Any) -> Optional[date]:
    """Parse a date-like value into a ``date``.

    Accepts ``date``/``datetime`` objects and strings such as ``"2024-03-15"``,
    ``"2024-03-15T10:00:00Z"`` or ``"15 Mar 2024"``. A year-month string like
    ``"2024-03"`` resolves to the first of the month. Returns ``None`` for
    empty or unparseable values, and for strings without a year, instead of
    raising.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        parsed = date_parser.parse(text, default=datetime(2000, 1, 1))
        # a string without a year (e.g. "5", "12 Mar") picks it up from the default
        if parsed.year != date_parser.parse(text, default=datetime(2001, 1, 1)).year:
            return None
    except (ValueError, OverflowError):
        return None
    return parsed.date()


def add_months(dt: date, months: int) -> date:
    """Return a new date a number of months after ``dt``.

    The day of the month is clamped to the last valid day if needed (e.g.,
    adding one month to Jan 31 yields Feb 28 or 29).
    """
    year = dt.year + (dt.month - 1 + months) // 12
    month = (dt.month - 1 + months) % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def months_between(later: date, earlier: date) -> int:
    """Whole calendar months from ``earlier`` to ``later``; the day is ignored.

    The result is negative when ``later`` precedes ``earlier``.
    """
    return (later.year - earlier.year) * 12 + (later.month - earlier.month)
