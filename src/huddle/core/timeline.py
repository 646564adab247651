from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..domain import BusyInterval, CalendarEvent, ExceptionKind
from .dates import date_range as _date_range
from .dates import start_of_day
from .recurrence import RangeLike, RecurrenceEngine, default_recurrence_engine

logger = logging.getLogger(__name__)


def _to_interval(owner_id: Any, value: Any) -> Optional[BusyInterval]:
    if isinstance(value, BusyInterval):
        start, end = value.start, value.end
    elif isinstance(value, CalendarEvent):
        start, end = value.starts_at, value.ends_at
    elif isinstance(value, (tuple, list)) and len(value) == 2:
        start, end = value
    else:
        return None
    if not isinstance(start, datetime) or not isinstance(end, datetime) or end < start:
        return None
    return BusyInterval(owner_id=owner_id, start=start, end=end)


@dataclass(frozen=True)
class BusyTimeline:
    """Read-only owner -> busy intervals mapping, indexed by calendar day.

    Intervals of different owners are never merged here; merging only happens
    when the availability engine asks whether anyone is busy.
    """

    intervals_by_owner: Mapping[Any, Tuple[BusyInterval, ...]]
    days_index: Mapping[date, Mapping[Any, Tuple[BusyInterval, ...]]] = field(repr=False)

    @classmethod
    def build(
        cls,
        busy_intervals_by_user: Mapping[Any, Iterable[Any]],
        *,
        owners: Optional[Iterable[Any]] = None,
        first_day: Optional[date] = None,
        last_day: Optional[date] = None,
    ) -> "BusyTimeline":
        wanted = set(owners) if owners is not None else None
        by_owner: Dict[Any, Tuple[BusyInterval, ...]] = {}
        days: Dict[date, Dict[Any, List[BusyInterval]]] = {}

        for owner_id, values in (busy_intervals_by_user or {}).items():
            if wanted is not None and owner_id not in wanted:
                continue
            intervals: List[BusyInterval] = []
            for value in values or ():
                interval = _to_interval(owner_id, value)
                if interval is None:
                    logger.debug("Ignoring unusable busy entry for %s: %r", owner_id, value)
                    continue
                intervals.append(interval)
            intervals.sort(key=lambda item: (item.start, item.end))
            by_owner[owner_id] = tuple(intervals)

            for interval in intervals:
                span_start = interval.start.date()
                span_end = interval.end.date()
                if first_day is not None:
                    span_start = max(span_start, first_day)
                if last_day is not None:
                    span_end = min(span_end, last_day)
                for day in _date_range(span_start, span_end):
                    days.setdefault(day, {}).setdefault(owner_id, []).append(interval)

        frozen_days = {
            day: MappingProxyType({owner: tuple(items) for owner, items in owners_map.items()})
            for day, owners_map in days.items()
        }
        return cls(
            intervals_by_owner=MappingProxyType(by_owner),
            days_index=MappingProxyType(frozen_days),
        )

    @property
    def owners(self) -> Tuple[Any, ...]:
        return tuple(self.intervals_by_owner)

    def intervals_for(self, owner_id: Any) -> Tuple[BusyInterval, ...]:
        return self.intervals_by_owner.get(owner_id, ())

    def intervals_on(self, owner_id: Any, day: date) -> Tuple[BusyInterval, ...]:
        """Intervals of ``owner_id`` that start on, end on, or span ``day``."""

        return self.days_index.get(day, {}).get(owner_id, ())


def group_exceptions(rows: Iterable[CalendarEvent]) -> Dict[str, List[CalendarEvent]]:
    grouped: Dict[str, List[CalendarEvent]] = {}
    for row in rows:
        if row.is_exception and row.parent_event_id:
            grouped.setdefault(row.parent_event_id, []).append(row)
    return grouped


def _overlaps_range(event: CalendarEvent, start: datetime, end: datetime) -> bool:
    return event.starts_at <= end and event.ends_at >= start


def merge_series(
    series: CalendarEvent,
    exceptions: Sequence[CalendarEvent],
    date_range: RangeLike,
    engine: Optional[RecurrenceEngine] = None,
) -> List[CalendarEvent]:
    """Displayable events for one recurring series.

    Base instances are generated for every day without an exception row.
    Modified rows replace the base instance of their original day; cancelled
    rows leave the day empty.
    """

    engine = engine or default_recurrence_engine()
    range_start, range_end = engine.resolve_range(date_range, series.starts_at)
    # Start early enough to catch an instance still running at range_start.
    expand_from = start_of_day(range_start) - series.duration
    visible = [
        instance
        for instance in engine.expand_recurring_event(series, (expand_from, range_end), exceptions)
        if _overlaps_range(instance, range_start, range_end)
    ]
    for exception in exceptions:
        if exception.exception_kind is ExceptionKind.CANCELLED:
            continue
        if _overlaps_range(exception, range_start, range_end):
            visible.append(exception)
    return sorted(visible, key=lambda item: (item.starts_at, item.id))


def build_timeline(
    rows: Iterable[CalendarEvent],
    date_range: RangeLike,
    engine: Optional[RecurrenceEngine] = None,
) -> List[CalendarEvent]:
    """Every displayable event for a batch of stored rows, sorted by start."""

    engine = engine or default_recurrence_engine()
    rows = list(rows)
    exceptions = group_exceptions(rows)
    series_ids = {row.id for row in rows if not row.is_exception}
    collected: List[CalendarEvent] = []
    for row in rows:
        if row.is_exception:
            # Orphans whose series is absent from the batch still show as plain events.
            if row.parent_event_id not in series_ids and row.exception_kind is ExceptionKind.MODIFIED:
                range_start, range_end = engine.resolve_range(date_range, row.starts_at)
                if _overlaps_range(row, range_start, range_end):
                    collected.append(row)
            continue
        collected.extend(merge_series(row, exceptions.get(row.id, ()), date_range, engine))
    return sorted(collected, key=lambda item: (item.starts_at, item.id))


def collect_busy_intervals(
    rows: Iterable[CalendarEvent],
    date_range: RangeLike,
    engine: Optional[RecurrenceEngine] = None,
) -> Dict[str, List[BusyInterval]]:
    """Per-owner busy intervals, the input the availability engine expects."""

    busy: Dict[str, List[BusyInterval]] = {}
    for event in build_timeline(rows, date_range, engine):
        busy.setdefault(event.owner_id, []).append(BusyInterval.from_event(event))
    return busy


__all__ = [
    "BusyTimeline",
    "build_timeline",
    "collect_busy_intervals",
    "group_exceptions",
    "merge_series",
]
