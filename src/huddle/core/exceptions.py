"""Builders for recurrence exception rows.

The engines never persist anything; these produce the rows an external store
writes when a single occurrence is cancelled or edited, or when a series is
split for a "this and following" edit.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Any, Optional

from ..domain import CalendarEvent, ExceptionKind
from .dates import at_time_of, parse_bound, start_of_day

_EDITABLE_FIELDS = {
    "title",
    "starts_at",
    "ends_at",
    "is_all_day",
    "location",
    "notes",
    "category_id",
    "group_id",
    "event_type",
    "has_attendees",
    "is_current_user_attendee",
    "metadata",
}


def exception_kind(row: CalendarEvent) -> Optional[ExceptionKind]:
    return row.exception_kind


def cancel_occurrence(
    parent: CalendarEvent,
    occurrence_start: datetime,
    *,
    exception_id: str,
    owner_id: Optional[str] = None,
) -> CalendarEvent:
    """Hidden placeholder marking one occurrence of ``parent`` as skipped."""

    return replace(
        parent,
        id=exception_id,
        owner_id=owner_id or parent.owner_id,
        starts_at=occurrence_start,
        ends_at=occurrence_start + parent.duration,
        is_public=False,
        recurrence_rule=None,
        parent_event_id=parent.id,
        is_exception=True,
        original_occurrence_date=occurrence_start,
    )


def modify_occurrence(
    parent: CalendarEvent,
    occurrence_start: datetime,
    *,
    exception_id: str,
    owner_id: Optional[str] = None,
    **changes: Any,
) -> CalendarEvent:
    """Standalone row replacing one occurrence of ``parent`` with new details.

    Unchanged fields are copied from the parent and the occurrence keeps the
    parent's duration unless new start/end times are supplied.
    """

    unknown = set(changes) - _EDITABLE_FIELDS
    if unknown:
        raise TypeError(f"Cannot modify occurrence fields: {', '.join(sorted(unknown))}")
    starts_at = changes.pop("starts_at", occurrence_start)
    ends_at = changes.pop("ends_at", starts_at + parent.duration)
    return replace(
        parent,
        id=exception_id,
        owner_id=owner_id or parent.owner_id,
        starts_at=starts_at,
        ends_at=ends_at,
        is_public=True,
        recurrence_rule=None,
        parent_event_id=parent.id,
        is_exception=True,
        original_occurrence_date=occurrence_start,
        **changes,
    )


def split_series(series: CalendarEvent, from_date: date) -> CalendarEvent:
    """End ``series`` the day before ``from_date``.

    The caller creates the follow-on series starting at ``from_date``. A
    non-recurring event is returned unchanged.
    """

    rule = series.recurrence_rule
    if rule is None:
        return series
    cutoff = at_time_of(start_of_day(from_date) - timedelta(days=1), series.starts_at)
    current_end = parse_bound(rule.end_date, end=True)
    if current_end is not None and current_end <= cutoff:
        return series
    return replace(series, recurrence_rule=replace(rule, end_date=cutoff))


__all__ = ["cancel_occurrence", "exception_kind", "modify_occurrence", "split_series"]
