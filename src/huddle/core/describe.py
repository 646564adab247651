from __future__ import annotations

from calendar import month_name
from typing import List

from ..domain import RecurrenceFrequency, RecurrenceRule

_DAY_NAMES = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")
_UNITS = {
    RecurrenceFrequency.DAILY: "day",
    RecurrenceFrequency.WEEKLY: "week",
    RecurrenceFrequency.MONTHLY: "month",
    RecurrenceFrequency.YEARLY: "year",
}


def ordinal(value: int) -> str:
    if value % 100 in (11, 12, 13):
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(value % 10, "th")
    return f"{value}{suffix}"


def format_list(items: List[str]) -> str:
    if not items:
        return ""
    if len(items) == 1:
        return items[0]
    if len(items) == 2:
        return f"{items[0]} and {items[1]}"
    return f"{', '.join(items[:-1])}, and {items[-1]}"


def describe_recurrence(rule: RecurrenceRule) -> str:
    """Human-readable summary such as ``"Every 2 weeks on Mon and Wed, 5 times"``."""

    unit = _UNITS[rule.frequency]
    parts = ["Every"]
    if rule.interval > 1:
        parts.append(f" {rule.interval} {unit}s")
    else:
        parts.append(f" {unit}")

    if rule.frequency is RecurrenceFrequency.WEEKLY and rule.days_of_week:
        parts.append(f" on {format_list([_DAY_NAMES[day] for day in rule.weekdays])}")
    elif rule.frequency is RecurrenceFrequency.MONTHLY and rule.day_of_month:
        parts.append(f" on the {ordinal(rule.day_of_month)}")
    elif rule.frequency is RecurrenceFrequency.YEARLY and rule.month_of_year and rule.day_of_month:
        parts.append(f" on {month_name[rule.month_of_year]} {rule.day_of_month}")

    if rule.count is not None:
        parts.append(f", {rule.count} times")
    elif rule.end_date is not None:
        end = rule.end_date
        parts.append(f", until {end:%b} {end.day}, {end.year}")
    return "".join(parts)


__all__ = ["describe_recurrence", "format_list", "ordinal"]
