from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta
from functools import lru_cache
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from ..config import AppSettings, get_settings
from ..domain import CalendarEvent, DateRange, RecurrenceFrequency, RecurrenceRule
from .dates import (
    add_months,
    add_years,
    at_time_of,
    days_in_month,
    parse_bound,
    start_of_week,
    weekday_index,
    with_day,
)

logger = logging.getLogger(__name__)

RangeLike = Union[DateRange, Tuple[object, object]]


def _as_day(value: Union[date, datetime]) -> date:
    return value.date() if isinstance(value, datetime) else value


def _cursor_positions(rule: RecurrenceRule, anchor: datetime) -> Iterator[datetime]:
    """Yield candidate dates for ``rule`` in ascending order.

    Every position is derived from the anchor by its step index so month and
    year clamping never accumulates (a day-31 rule returns to the 31st after
    February).
    """

    step = 0
    weekdays = rule.weekdays
    try:
        while True:
            if rule.frequency is RecurrenceFrequency.DAILY:
                yield anchor + timedelta(days=step * rule.interval)
            elif rule.frequency is RecurrenceFrequency.WEEKLY:
                if len(weekdays) > 1:
                    yield start_of_week(anchor) + timedelta(days=step)
                elif weekdays:
                    first = start_of_week(anchor) + timedelta(days=weekdays[0])
                    yield first + timedelta(weeks=step * rule.interval)
                else:
                    yield anchor + timedelta(weeks=step * rule.interval)
            elif rule.frequency is RecurrenceFrequency.MONTHLY:
                month_start = add_months(anchor.replace(day=1), step * rule.interval)
                yield with_day(month_start, rule.day_of_month or anchor.day)
            else:
                if rule.month_of_year and rule.day_of_month:
                    month, day = rule.month_of_year, rule.day_of_month
                else:
                    month, day = anchor.month, anchor.day
                year_start = add_years(anchor.replace(month=1, day=1), step * rule.interval)
                yield with_day(year_start.replace(month=month), day)
            step += 1
    except (OverflowError, ValueError):
        # Ran off the end of the representable calendar.
        return


def _matches(rule: RecurrenceRule, cursor: datetime, anchor: datetime) -> bool:
    if rule.frequency is RecurrenceFrequency.DAILY:
        return True
    if rule.frequency is RecurrenceFrequency.WEEKLY:
        if rule.days_of_week:
            return weekday_index(cursor) in rule.days_of_week
        return weekday_index(cursor) == weekday_index(anchor)
    if rule.frequency is RecurrenceFrequency.MONTHLY:
        if rule.day_of_month:
            return cursor.day == min(rule.day_of_month, days_in_month(cursor.year, cursor.month))
        return cursor.day == anchor.day
    if rule.month_of_year and rule.day_of_month:
        return cursor.month == rule.month_of_year and cursor.day == rule.day_of_month
    return cursor.month == anchor.month and cursor.day == anchor.day


@dataclass(frozen=True)
class RecurrenceEngine:
    """Expands recurrence rules into concrete occurrence start times.

    Stateless: every call is a pure function of its arguments, so one engine
    can be shared freely between threads.
    """

    max_occurrences: int = 365
    lookahead_years: int = 1
    logger: logging.Logger = field(default=logger, repr=False, compare=False)

    @classmethod
    def from_settings(cls, settings: Optional[AppSettings] = None) -> "RecurrenceEngine":
        resolved = settings or get_settings()
        return cls(
            max_occurrences=resolved.recurrence.max_occurrences,
            lookahead_years=resolved.recurrence.lookahead_years,
        )

    def resolve_range(self, date_range: Optional[RangeLike], anchor_start: datetime) -> Tuple[datetime, datetime]:
        if date_range is None:
            raw_start = raw_end = None
        elif isinstance(date_range, DateRange):
            raw_start, raw_end = date_range.start, date_range.end
        else:
            raw_start, raw_end = date_range
        range_start = parse_bound(raw_start) or anchor_start
        range_end = parse_bound(raw_end, end=True) or add_years(range_start, self.lookahead_years)
        return range_start, range_end

    def generate_occurrences(
        self,
        rule: RecurrenceRule,
        anchor_start: datetime,
        date_range: RangeLike,
        excluded_days: Iterable[Union[date, datetime]] = (),
    ) -> List[datetime]:
        """Occurrence start times of ``rule`` inside ``date_range``.

        Excluded days are dropped from the output but still consume the rule's
        ``count`` budget, so cancelling one instance never pulls another one in
        at the end of the series.
        """

        range_start, range_end = self.resolve_range(date_range, anchor_start)
        effective_end = range_end
        if rule.end_date is not None:
            rule_end = parse_bound(rule.end_date, end=True)
            if rule_end is not None:
                effective_end = min(rule_end, range_end)
        excluded = {_as_day(day) for day in excluded_days}

        occurrences: List[datetime] = []
        generated = 0
        for cursor in _cursor_positions(rule, anchor_start):
            if cursor > effective_end or generated >= self.max_occurrences:
                break
            if rule.count is not None and generated >= rule.count:
                break
            if not _matches(rule, cursor, anchor_start):
                continue
            candidate = at_time_of(cursor, anchor_start)
            if candidate < anchor_start:
                continue
            generated += 1
            if candidate < range_start:
                continue
            if candidate.date() in excluded:
                self.logger.debug("Skipping excluded occurrence %s", candidate.isoformat())
                continue
            occurrences.append(candidate)

        self.logger.debug(
            "Generated %d occurrence(s) for %s rule (%d counted against budget)",
            len(occurrences),
            rule.frequency.value,
            generated,
        )
        return occurrences

    def expand_recurring_event(
        self,
        event: CalendarEvent,
        date_range: RangeLike,
        exceptions: Sequence[CalendarEvent] = (),
    ) -> List[CalendarEvent]:
        """Virtual instances of ``event`` for display.

        Exception rows are not returned; their ``original_occurrence_date`` only
        suppresses the base instance on that calendar day.
        """

        rule = event.recurrence_rule
        if rule is None:
            return [event]

        excluded = {
            exception.original_occurrence_date.date()
            for exception in exceptions
            if exception.original_occurrence_date is not None
        }
        duration = event.duration
        starts = self.generate_occurrences(rule, event.starts_at, date_range, excluded)
        return [
            replace(
                event,
                starts_at=start,
                ends_at=start + duration,
                parent_event_id=None,
                is_exception=False,
                original_occurrence_date=start,
            )
            for start in starts
        ]

    def next_occurrence(
        self,
        rule: RecurrenceRule,
        after: datetime,
        anchor_start: datetime,
    ) -> Optional[datetime]:
        horizon = add_years(after, self.lookahead_years)
        for occurrence in self.generate_occurrences(rule, anchor_start, DateRange(after, horizon)):
            if occurrence > after:
                return occurrence
        return None


@lru_cache(maxsize=1)
def default_recurrence_engine() -> RecurrenceEngine:
    return RecurrenceEngine.from_settings()


def generate_occurrences(
    rule: RecurrenceRule,
    anchor_start: datetime,
    date_range: RangeLike,
    excluded_days: Iterable[Union[date, datetime]] = (),
) -> List[datetime]:
    return default_recurrence_engine().generate_occurrences(rule, anchor_start, date_range, excluded_days)


def expand_recurring_event(
    event: CalendarEvent,
    date_range: RangeLike,
    exceptions: Sequence[CalendarEvent] = (),
) -> List[CalendarEvent]:
    return default_recurrence_engine().expand_recurring_event(event, date_range, exceptions)


def next_occurrence(rule: RecurrenceRule, after: datetime, anchor_start: datetime) -> Optional[datetime]:
    return default_recurrence_engine().next_occurrence(rule, after, anchor_start)


__all__ = [
    "RecurrenceEngine",
    "default_recurrence_engine",
    "expand_recurring_event",
    "generate_occurrences",
    "next_occurrence",
]
