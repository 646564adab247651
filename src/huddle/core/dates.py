"""Calendar arithmetic shared by the recurrence and availability engines."""

from __future__ import annotations

import calendar
import re
from datetime import date, datetime, time, timedelta
from typing import Any, Iterable, Optional

from dateutil.relativedelta import relativedelta

_CLOCK_PATTERN = re.compile(r"^\s*(?P<hour>\d{1,2}):(?P<minute>\d{2})(?::\d{2})?\s*$")


def date_range(start: date, end: date) -> Iterable[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def start_of_day(value: date) -> datetime:
    if isinstance(value, datetime):
        value = value.date()
    return datetime.combine(value, time.min)


def end_of_day(value: date) -> datetime:
    if isinstance(value, datetime):
        value = value.date()
    return datetime.combine(value, time.max)


def weekday_index(value: date) -> int:
    """Weekday with Sunday as 0 and Saturday as 6."""

    return (value.weekday() + 1) % 7


def start_of_week(value: datetime) -> datetime:
    """Midnight of the Sunday that opens the week containing ``value``."""

    return start_of_day(value) - timedelta(days=weekday_index(value))


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def add_months(value: datetime, months: int) -> datetime:
    # relativedelta clamps to the last day of shorter months (Jan 31 + 1 month = Feb 28).
    return value + relativedelta(months=months)


def add_years(value: datetime, years: int) -> datetime:
    return value + relativedelta(years=years)


def with_day(value: datetime, day: int) -> datetime:
    """Move ``value`` to ``day`` of its month, clamped to the month's last day."""

    return value.replace(day=min(max(day, 1), days_in_month(value.year, value.month)))


def at_time_of(day: date, reference: datetime) -> datetime:
    """Combine the calendar day of ``day`` with the clock time of ``reference``."""

    if isinstance(day, datetime):
        day = day.date()
    return datetime.combine(day, reference.time())


def parse_clock(text: Any) -> Optional[time]:
    if isinstance(text, time):
        return text
    if not isinstance(text, str):
        return None
    match = _CLOCK_PATTERN.match(text)
    if not match:
        return None
    hour = int(match.group("hour"))
    minute = int(match.group("minute"))
    if hour > 23 or minute > 59:
        return None
    return time(hour=hour, minute=minute)


def parse_bound(value: Any, *, end: bool = False) -> Optional[datetime]:
    """Resolve a range bound to a timestamp, or ``None`` when it is unusable.

    Plain dates widen to the whole day: midnight for a start bound and the last
    instant of the day for an end bound.
    """

    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    if isinstance(value, date):
        return end_of_day(value) if end else start_of_day(value)
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    try:
        return parse_bound(date.fromisoformat(text), end=end)
    except ValueError:
        pass
    try:
        return parse_bound(datetime.fromisoformat(text.replace("Z", "+00:00")), end=end)
    except ValueError:
        return None


__all__ = [
    "add_months",
    "add_years",
    "at_time_of",
    "date_range",
    "days_in_month",
    "end_of_day",
    "parse_bound",
    "parse_clock",
    "start_of_day",
    "start_of_week",
    "weekday_index",
    "with_day",
]
