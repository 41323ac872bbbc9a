"""Calendar-day arithmetic for planbox.

Everything here works at calendar-day granularity. Timestamps are reduced to
their ``YYYY-MM-DD`` prefix before comparison so that a UTC ISO string and the
day it names never drift apart.
"""

import calendar
from datetime import date, datetime, timedelta
from typing import List, Union

DayLike = Union[date, datetime, str]

# date.weekday() numbering: Monday=0 .. Sunday=6
SUNDAY = 6
WEEK_STARTS_ON = SUNDAY


def parse_day(value: DayLike) -> date:
    """Reduce a date, datetime or ISO string to its calendar day.

    ISO strings are cut to their first ten characters, so
    ``"2026-10-14T23:30:00Z"`` is the 14th regardless of the local timezone.

    Args:
        value: Date-like value

    Returns:
        The calendar day

    Raises:
        ValueError: If the string does not start with ``YYYY-MM-DD``
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return datetime.strptime(text[:10], "%Y-%m-%d").date()
        except ValueError as e:
            raise ValueError(f"Invalid calendar day: {value!r}") from e
    raise TypeError(f"Cannot read a calendar day from {type(value).__name__}")


def day_key(value: DayLike) -> str:
    """Format a date-like value as ``YYYY-MM-DD``."""
    return parse_day(value).isoformat()


def today() -> date:
    """Current local calendar day."""
    return date.today()


def add_days(day: date, days: int) -> date:
    return day + timedelta(days=days)


def add_weeks(day: date, weeks: int) -> date:
    return day + timedelta(weeks=weeks)


def add_months(day: date, months: int) -> date:
    """Shift by whole months, clamping the day to the target month's length."""
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def days_between(start: date, end: date) -> int:
    """Whole days from ``start`` to ``end`` (negative if ``end`` is earlier)."""
    return (end - start).days


def is_same_day(a: DayLike, b: DayLike) -> bool:
    return parse_day(a) == parse_day(b)


def start_of_week(day: DayLike) -> date:
    """First day of the week containing ``day`` (weeks start on Sunday)."""
    d = parse_day(day)
    offset = (d.weekday() - WEEK_STARTS_ON) % 7
    return d - timedelta(days=offset)


def end_of_week(day: DayLike) -> date:
    """Last day of the week containing ``day`` (inclusive)."""
    return start_of_week(day) + timedelta(days=6)


def start_of_month(day: DayLike) -> date:
    return parse_day(day).replace(day=1)


def end_of_month(day: DayLike) -> date:
    d = parse_day(day)
    return d.replace(day=calendar.monthrange(d.year, d.month)[1])


def week_starts_between(start: DayLike, end: DayLike) -> List[date]:
    """Start day of every week overlapping ``[start, end]``.

    Args:
        start: First day of the range
        end: Last day of the range (inclusive)

    Returns:
        Week start days in ascending order
    """
    first = start_of_week(start)
    last = parse_day(end)
    weeks: List[date] = []
    current = first
    while current <= last:
        weeks.append(current)
        current = current + timedelta(weeks=1)
    return weeks
