"""Calendar arithmetic anchored to a day of the month.

Card closing and due days are plain integers between 1 and 31 that have no
knowledge of how long any given month is.  Every date built here from a
``(year, month, day)`` triple clamps the day to the month's real length, so
day 31 in April is April 30 and never May 1.  Months are one-based
throughout.

Dates are always reduced to calendar components; ``datetime`` values lose
their time of day and strings are read as ``YYYY-MM-DD`` without any UTC
conversion.
"""

from __future__ import annotations

import math
from calendar import monthrange
from datetime import date, datetime, timedelta

from dateutil.relativedelta import relativedelta

MIN_DAY = 1
MAX_DAY = 31

MONTH_NAMES = (
    "Janeiro",
    "Fevereiro",
    "Março",
    "Abril",
    "Maio",
    "Junho",
    "Julho",
    "Agosto",
    "Setembro",
    "Outubro",
    "Novembro",
    "Dezembro",
)


def to_date(value: date | datetime | str) -> date:
    """Return ``value`` as a calendar ``date``.

    Accepts ``date`` objects, ``datetime`` objects (the time of day is
    dropped) and ISO ``YYYY-MM-DD`` strings.  Anything else raises
    ``ValueError``.
    """

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    raise ValueError(f"Not a calendar date: {value!r}")


def _require_day(day: int) -> int:
    if isinstance(day, bool) or not isinstance(day, int) or not MIN_DAY <= day <= MAX_DAY:
        raise ValueError(f"Day of month must be between {MIN_DAY} and {MAX_DAY}, got {day!r}")
    return day


def last_day_of_month(year: int, month: int) -> int:
    return monthrange(year, month)[1]


def adjust_day_for_month(day: int, year: int, month: int) -> int:
    """Return ``day`` clamped to the last day of ``month``/``year``."""

    return min(day, last_day_of_month(year, month))


def build_date(year: int, month: int, day: int) -> date:
    """Return a date in ``month``/``year`` with ``day`` clamped to the month.

    ``month`` may run past either end of the year (13 is January of the
    following year, 0 is December of the previous one).
    """

    year += (month - 1) // 12
    month = (month - 1) % 12 + 1
    return date(year, month, adjust_day_for_month(day, year, month))


def next_occurrence_of_day(reference: date | datetime | str, day: int) -> date:
    """Return the first date on or after ``reference`` falling on ``day``.

    The search is reflexive: when ``reference`` already sits on ``day`` (after
    clamping) it is returned unchanged.
    """

    reference = to_date(reference)
    _require_day(day)
    candidate = build_date(reference.year, reference.month, day)
    if candidate >= reference:
        return candidate
    return build_date(reference.year, reference.month + 1, day)


def previous_occurrence_of_day(reference: date | datetime | str, day: int) -> date:
    """Return the last date on or before ``reference`` falling on ``day``."""

    reference = to_date(reference)
    _require_day(day)
    candidate = build_date(reference.year, reference.month, day)
    if candidate <= reference:
        return candidate
    return build_date(reference.year, reference.month - 1, day)


def next_occurrence_after(reference: date | datetime | str, day: int) -> date:
    """Strict variant of :func:`next_occurrence_of_day`."""

    return next_occurrence_of_day(to_date(reference) + timedelta(days=1), day)


def add_months(d: date | datetime | str, months: int) -> date:
    """Return ``d`` moved by ``months`` keeping the day where the month allows."""

    return to_date(d) + relativedelta(months=months)


def days_between(a: date | datetime | str, b: date | datetime | str) -> int:
    """Whole days from ``a`` to ``b``; negative when ``b`` comes first."""

    return (to_date(b) - to_date(a)).days


def is_same_month(a: date | datetime | str, b: date | datetime | str) -> bool:
    a, b = to_date(a), to_date(b)
    return (a.year, a.month) == (b.year, b.month)


def month_label(d: date | datetime | str) -> str:
    return MONTH_NAMES[to_date(d).month - 1]


def period_label(d: date | datetime | str) -> str:
    """Statement label such as ``"Fevereiro 2025"``."""

    d = to_date(d)
    return f"{month_label(d)} {d.year}"


def format_date_br(d: date | datetime | str) -> str:
    d = to_date(d)
    return f"{d.day:02d}/{d.month:02d}/{d.year}"


def normalize_day(value) -> int:
    """Coerce ``value`` into a usable day of month.

    Non-numeric values become 1, numbers are floored and clamped to 1..31.
    """

    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return MIN_DAY
    if isinstance(value, float) and math.isnan(value):
        return MIN_DAY
    if value >= MAX_DAY:
        return MAX_DAY
    if value <= MIN_DAY:
        return MIN_DAY
    return int(math.floor(value))
