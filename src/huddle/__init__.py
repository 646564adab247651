"""Huddle recurrence and group availability engine."""

from __future__ import annotations

from .core import (
    AvailabilityEngine,
    RecurrenceEngine,
    build_timeline,
    collect_busy_intervals,
    expand_recurring_event,
    find_free_time_slots,
    generate_occurrences,
    next_occurrence,
)

__all__ = [
    "AvailabilityEngine",
    "RecurrenceEngine",
    "build_timeline",
    "collect_busy_intervals",
    "expand_recurring_event",
    "find_free_time_slots",
    "generate_occurrences",
    "next_occurrence",
]
