from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from functools import lru_cache
from typing import Any, Callable, Hashable, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..config import AppSettings, get_settings
from ..domain import AvailabilityQuery, DateRange, FreeTimeSlot, TimeWindow
from .dates import date_range as _date_range
from .dates import parse_bound, parse_clock
from .timeline import BusyTimeline

logger = logging.getLogger(__name__)

_FALLBACK_WINDOW = (time(hour=9), time(hour=17))

Period = Tuple[datetime, datetime]


def merge_periods(periods: Iterable[Period]) -> List[Period]:
    """Collapse overlapping or touching periods into disjoint ones, sorted by start."""

    merged: List[Period] = []
    for start, end in sorted(periods):
        if merged and start <= merged[-1][1]:
            last_start, last_end = merged[-1]
            merged[-1] = (last_start, max(last_end, end))
        else:
            merged.append((start, end))
    return merged


def _window_bounds(time_window: Any) -> Tuple[Any, Any]:
    if isinstance(time_window, TimeWindow):
        return time_window.start, time_window.end
    if isinstance(time_window, Mapping):
        return time_window.get("start"), time_window.get("end")
    if isinstance(time_window, (tuple, list)) and len(time_window) == 2:
        return time_window[0], time_window[1]
    return None, None


def _range_bounds(date_range: Any) -> Tuple[Any, Any]:
    if isinstance(date_range, DateRange):
        return date_range.start, date_range.end
    if isinstance(date_range, Mapping):
        return date_range.get("start"), date_range.get("end")
    if isinstance(date_range, (tuple, list)) and len(date_range) == 2:
        return date_range[0], date_range[1]
    return None, None


def _hours(value: Any) -> Optional[float]:
    try:
        hours = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(hours) or math.isinf(hours) or hours <= 0:
        return None
    return hours


@dataclass(frozen=True)
class AvailabilityEngine:
    """Finds time slots when the requested users are free.

    Inputs are read once into a :class:`BusyTimeline` per call and never
    mutated, so concurrent calls need no coordination.
    """

    default_window_start: str = "09:00"
    default_window_end: str = "17:00"
    search_days: int = 30
    clock: Callable[[], datetime] = field(default=datetime.now, repr=False, compare=False)
    logger: logging.Logger = field(default=logger, repr=False, compare=False)

    @classmethod
    def from_settings(
        cls,
        settings: Optional[AppSettings] = None,
        *,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> "AvailabilityEngine":
        resolved = (settings or get_settings()).availability
        return cls(
            default_window_start=resolved.default_window_start,
            default_window_end=resolved.default_window_end,
            search_days=resolved.search_days,
            clock=clock or datetime.now,
        )

    def default_window(self) -> Tuple[time, time]:
        start = parse_clock(self.default_window_start)
        end = parse_clock(self.default_window_end)
        if start is None or end is None:
            return _FALLBACK_WINDOW
        return start, end

    def resolve_time_window(self, time_window: Any = None) -> Tuple[time, time]:
        """Clock bounds for the daily search; the default window when unusable."""

        if time_window is None:
            return self.default_window()
        raw_start, raw_end = _window_bounds(time_window)
        start = parse_clock(raw_start)
        end = parse_clock(raw_end)
        if start is None or end is None:
            self.logger.debug("Unparseable time window %r, using default", time_window)
            return self.default_window()
        return start, end

    def resolve_date_range(self, date_range: Any = None, *, now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
        """Search bounds; a missing or unparseable bound becomes now / now + search_days."""

        now = now or self.clock()
        raw_start, raw_end = _range_bounds(date_range)
        start = parse_bound(raw_start) or now
        end = parse_bound(raw_end, end=True) or now + timedelta(days=self.search_days)
        return start, end

    def find_free_time_slots(
        self,
        user_ids: Sequence[Hashable],
        busy_intervals_by_user: Mapping[Hashable, Iterable[Any]],
        duration_hours: float,
        time_window: Any = None,
        date_range: Any = None,
    ) -> List[FreeTimeSlot]:
        """Ranked duration-sized slots, best confidence first, then earliest.

        Each slot is taken from the start of a gap in the merged busy time of
        the requested users, so every slot is exactly ``duration_hours`` long.
        """

        users = list(dict.fromkeys(user_ids or ()))
        if not users:
            return []
        hours = _hours(duration_hours)
        if hours is None:
            self.logger.warning("Ignoring availability search with duration %r", duration_hours)
            return []

        search_start, search_end = self.resolve_date_range(date_range)
        first_day, last_day = search_start.date(), search_end.date()
        window = self.resolve_time_window(time_window)
        timeline = BusyTimeline.build(
            busy_intervals_by_user or {},
            owners=users,
            first_day=first_day,
            last_day=last_day,
        )
        required = timedelta(hours=hours)

        slots: List[FreeTimeSlot] = []
        for day in _date_range(first_day, last_day):
            day_slots = self._slots_for_day(day, users, timeline, window, required, hours)
            slots.extend(day_slots)

        slots.sort(key=lambda slot: (-slot.confidence, slot.start))
        self.logger.debug(
            "Found %d free slot(s) for %d user(s) between %s and %s",
            len(slots),
            len(users),
            first_day.isoformat(),
            last_day.isoformat(),
        )
        return slots

    def find_for_query(
        self,
        query: AvailabilityQuery,
        busy_intervals_by_user: Mapping[Hashable, Iterable[Any]],
    ) -> List[FreeTimeSlot]:
        return self.find_free_time_slots(
            query.requested_user_ids,
            busy_intervals_by_user,
            query.duration_hours,
            time_window=query.time_window,
            date_range=query.date_range,
        )

    def _slots_for_day(
        self,
        day: date,
        users: List[Hashable],
        timeline: BusyTimeline,
        window: Tuple[time, time],
        required: timedelta,
        hours: float,
    ) -> List[FreeTimeSlot]:
        day_start = datetime.combine(day, window[0])
        day_end = datetime.combine(day, window[1])

        periods: List[Period] = []
        for user_id in users:
            for interval in timeline.intervals_on(user_id, day):
                clipped_start = max(interval.start, day_start)
                clipped_end = min(interval.end, day_end)
                if clipped_start < clipped_end:
                    periods.append((clipped_start, clipped_end))

        candidates: List[datetime] = []
        cursor = day_start
        for period_start, period_end in merge_periods(periods):
            if period_start - cursor >= required:
                candidates.append(cursor)
            cursor = max(cursor, period_end)
        if day_end - cursor >= required:
            candidates.append(cursor)

        slots: List[FreeTimeSlot] = []
        for start in candidates:
            end = start + required
            available = tuple(
                user_id
                for user_id in users
                if not any(interval.overlaps(start, end) for interval in timeline.intervals_on(user_id, day))
            )
            confidence = len(available) / len(users)
            if confidence == 0:
                continue
            slots.append(
                FreeTimeSlot(
                    start=start,
                    end=end,
                    duration_hours=hours,
                    confidence=confidence,
                    available_user_ids=available,
                )
            )
        return slots


@lru_cache(maxsize=1)
def default_availability_engine() -> AvailabilityEngine:
    return AvailabilityEngine.from_settings()


def find_free_time_slots(
    user_ids: Sequence[Hashable],
    busy_intervals_by_user: Mapping[Hashable, Iterable[Any]],
    duration_hours: float,
    time_window: Any = None,
    date_range: Any = None,
) -> List[FreeTimeSlot]:
    return default_availability_engine().find_free_time_slots(
        user_ids,
        busy_intervals_by_user,
        duration_hours,
        time_window=time_window,
        date_range=date_range,
    )


__all__ = [
    "AvailabilityEngine",
    "default_availability_engine",
    "find_free_time_slots",
    "merge_periods",
]
