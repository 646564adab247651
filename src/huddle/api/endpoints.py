from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from ..core import (
    collect_busy_intervals,
    describe_recurrence,
    everyone_free_highlights,
    merge_series,
)
from ..core.dates import parse_bound
from ..domain import BusyInterval, CalendarEvent
from .models import (
    AvailabilityQueryPayload,
    BusyIntervalPayload,
    DateRangePayload,
    EventPayload,
    RecurrenceRulePayload,
)
from .registry import register_api
from .serializers import serialize_event, serialize_highlight, serialize_rule, serialize_slot
from .state import api_state


def _parse_datetime(timestamp: str) -> datetime:
    parsed = parse_bound(timestamp)
    if parsed is None:
        raise ValueError(f"Invalid ISO timestamp: {timestamp}")
    return parsed


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as exc:  # noqa: TRY003
        raise ValueError(f"Invalid ISO date: {value}") from exc


def _busy_from_payload(busy: Optional[Dict[str, List[Dict[str, Any]]]]) -> Dict[str, List[BusyInterval]]:
    intervals: Dict[str, List[BusyInterval]] = {}
    for user_id, entries in (busy or {}).items():
        intervals[user_id] = [BusyIntervalPayload.model_validate(entry).to_domain(user_id) for entry in entries or ()]
    return intervals


def _rows_from_payload(events: Optional[List[Dict[str, Any]]]) -> List[CalendarEvent]:
    return [EventPayload.model_validate(row).to_domain() for row in events or ()]


def _gather_busy(
    busy: Optional[Dict[str, List[Dict[str, Any]]]],
    events: Optional[List[Dict[str, Any]]],
    search_start: datetime,
    search_end: datetime,
) -> Dict[str, List[BusyInterval]]:
    """Explicit busy intervals plus the expansion of any stored event rows."""

    gathered = _busy_from_payload(busy)
    rows = _rows_from_payload(events)
    if rows:
        expanded = collect_busy_intervals(rows, (search_start, search_end), api_state.recurrence)
        for owner_id, intervals in expanded.items():
            gathered.setdefault(owner_id, []).extend(intervals)
    return gathered


@register_api(
    "availability.find_free_slots",
    description="Rank duration-sized time slots when the requested users are free.",
    category="availability",
    tags=("read", "slots"),
)
def find_free_slots(
    users: List[str],
    duration_hours: float,
    busy: Optional[Dict[str, List[Dict[str, Any]]]] = None,
    events: Optional[List[Dict[str, Any]]] = None,
    time_window: Optional[Dict[str, str]] = None,
    date_range: Optional[Dict[str, str]] = None,
    limit: Optional[int] = None,
) -> Dict[str, Any]:
    query = AvailabilityQueryPayload.model_validate(
        {
            "requested_user_ids": users,
            "duration_hours": duration_hours,
            "time_window": time_window,
            "date_range": date_range,
        }
    ).to_domain()
    engine = api_state.availability
    search_start, search_end = engine.resolve_date_range(query.date_range)
    gathered = _gather_busy(busy, events, search_start, search_end)
    slots = engine.find_free_time_slots(
        query.requested_user_ids,
        gathered,
        query.duration_hours,
        time_window=query.time_window,
        date_range=(search_start, search_end),
    )
    limit = limit if limit and limit > 0 else api_state.settings.availability.max_suggestions
    return {
        "start": search_start.isoformat(),
        "end": search_end.isoformat(),
        "total": len(slots),
        "slots": [serialize_slot(slot) for slot in slots[:limit]],
    }


@register_api(
    "recurrence.expand",
    description="Expand a recurring event into the virtual instances inside a date range.",
    category="recurrence",
    tags=("read", "occurrences"),
)
def expand(
    event: Dict[str, Any],
    exceptions: Optional[List[Dict[str, Any]]] = None,
    date_range: Optional[Dict[str, str]] = None,
    include_exceptions: bool = False,
) -> Dict[str, Any]:
    series = EventPayload.model_validate(event).to_domain()
    exception_rows = _rows_from_payload(exceptions)
    resolved = DateRangePayload.model_validate(date_range or {}).to_domain()
    engine = api_state.recurrence
    if include_exceptions:
        occurrences = merge_series(series, exception_rows, resolved, engine)
    else:
        occurrences = engine.expand_recurring_event(series, resolved, exception_rows)
    return {
        "event_id": series.id,
        "rule": serialize_rule(series.recurrence_rule) if series.recurrence_rule else None,
        "occurrences": [serialize_event(occurrence) for occurrence in occurrences],
    }


@register_api(
    "recurrence.next",
    description="Return the first occurrence of a rule strictly after a timestamp.",
    category="recurrence",
    tags=("read",),
)
def next_after(rule: Dict[str, Any], after: str, anchor_start: str) -> Dict[str, Any]:
    domain_rule = RecurrenceRulePayload.model_validate(rule).to_domain()
    found = api_state.recurrence.next_occurrence(domain_rule, _parse_datetime(after), _parse_datetime(anchor_start))
    return {"next": found.isoformat() if found else None}


@register_api(
    "recurrence.describe",
    description="Summarise a recurrence rule in plain English.",
    category="recurrence",
    tags=("read", "text"),
)
def describe(rule: Dict[str, Any]) -> Dict[str, Any]:
    domain_rule = RecurrenceRulePayload.model_validate(rule).to_domain()
    return {"description": describe_recurrence(domain_rule)}


@register_api(
    "availability.highlights",
    description="List multi-hour stretches when every member of the group is free.",
    category="availability",
    tags=("read", "group"),
)
def highlights(
    users: List[str],
    start: str,
    end: str,
    busy: Optional[Dict[str, List[Dict[str, Any]]]] = None,
    events: Optional[List[Dict[str, Any]]] = None,
    min_hours: int = 2,
) -> Dict[str, Any]:
    start_day = _parse_date(start)
    end_day = _parse_date(end)
    gathered = _gather_busy(busy, events, parse_bound(start_day), parse_bound(end_day, end=True))
    found = everyone_free_highlights(users, gathered, start_day, end_day, min_hours=min_hours)
    return {
        "start": start_day.isoformat(),
        "end": end_day.isoformat(),
        "highlights": [serialize_highlight(highlight) for highlight in found],
    }
