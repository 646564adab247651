"""Hour-by-hour group availability, as shown in the heat map."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Any, Dict, Hashable, Iterable, List, Mapping, Sequence

from ..domain import AvailabilitySummary, EveryoneFreeHighlight
from .dates import date_range as _date_range
from .timeline import BusyTimeline


def summarize_availability(
    user_ids: Sequence[Hashable],
    busy_intervals_by_user: Mapping[Hashable, Iterable[Any]],
    start_day: date,
    end_day: date,
    hours: Iterable[int] = range(24),
) -> List[AvailabilitySummary]:
    """One summary per (day, hour) with the members free for that whole hour."""

    users = list(dict.fromkeys(user_ids or ()))
    hour_list = sorted({hour for hour in hours if 0 <= hour <= 23})
    timeline = BusyTimeline.build(
        busy_intervals_by_user or {},
        owners=users,
        first_day=start_day,
        last_day=end_day,
    )
    summaries: List[AvailabilitySummary] = []
    for day in _date_range(start_day, end_day):
        for hour in hour_list:
            slot_start = datetime.combine(day, time(hour=hour))
            slot_end = slot_start + timedelta(hours=1)
            free = tuple(
                user_id
                for user_id in users
                if not any(interval.overlaps(slot_start, slot_end) for interval in timeline.intervals_on(user_id, day))
            )
            summaries.append(
                AvailabilitySummary(
                    slot_date=day,
                    slot_hour=hour,
                    total_members=len(users),
                    free_members=len(free),
                    free_member_ids=free,
                )
            )
    return summaries


def everyone_free_highlights(
    user_ids: Sequence[Hashable],
    busy_intervals_by_user: Mapping[Hashable, Iterable[Any]],
    start_day: date,
    end_day: date,
    hours: Iterable[int] = range(24),
    *,
    min_hours: int = 2,
) -> List[EveryoneFreeHighlight]:
    """Runs of consecutive hours where every member is free.

    Only runs of at least ``min_hours`` are kept. Sorted by date, then longest
    run first.
    """

    by_day: Dict[date, List[AvailabilitySummary]] = {}
    for summary in summarize_availability(user_ids, busy_intervals_by_user, start_day, end_day, hours):
        if summary.is_everyone_free:
            by_day.setdefault(summary.slot_date, []).append(summary)

    highlights: List[EveryoneFreeHighlight] = []
    for day, summaries in by_day.items():
        ordered = sorted(summary.slot_hour for summary in summaries)
        member_count = summaries[0].total_members
        run_start = run_end = ordered[0]
        for hour in ordered[1:] + [None]:
            if hour is not None and hour == run_end + 1:
                run_end = hour
                continue
            if run_end + 1 - run_start >= min_hours:
                highlights.append(
                    EveryoneFreeHighlight(
                        date=day,
                        start_hour=run_start,
                        end_hour=run_end + 1,
                        member_count=member_count,
                    )
                )
            if hour is not None:
                run_start = run_end = hour

    highlights.sort(key=lambda item: (item.date, -item.hours, item.start_hour))
    return highlights


__all__ = ["everyone_free_highlights", "summarize_availability"]
