"""Recurrence expansion, timeline assembly and availability search."""

from .availability import AvailabilityEngine, default_availability_engine, find_free_time_slots, merge_periods
from .describe import describe_recurrence
from .exceptions import cancel_occurrence, exception_kind, modify_occurrence, split_series
from .highlights import everyone_free_highlights, summarize_availability
from .recurrence import (
    RecurrenceEngine,
    default_recurrence_engine,
    expand_recurring_event,
    generate_occurrences,
    next_occurrence,
)
from .timeline import BusyTimeline, build_timeline, collect_busy_intervals, group_exceptions, merge_series

__all__ = [
    "AvailabilityEngine",
    "BusyTimeline",
    "RecurrenceEngine",
    "build_timeline",
    "cancel_occurrence",
    "collect_busy_intervals",
    "default_availability_engine",
    "default_recurrence_engine",
    "describe_recurrence",
    "everyone_free_highlights",
    "exception_kind",
    "expand_recurring_event",
    "find_free_time_slots",
    "generate_occurrences",
    "group_exceptions",
    "merge_periods",
    "merge_series",
    "modify_occurrence",
    "next_occurrence",
    "split_series",
    "summarize_availability",
]
