"""Domain models for recurrence expansion and group availability."""

from __future__ import annotations

from .enums import ExceptionKind, RecurrenceFrequency
from .models import (
    AvailabilityQuery,
    AvailabilitySummary,
    BusyInterval,
    CalendarEvent,
    DateRange,
    EveryoneFreeHighlight,
    FreeTimeSlot,
    RecurrenceRule,
    TimeWindow,
)

__all__ = [
    "AvailabilityQuery",
    "AvailabilitySummary",
    "BusyInterval",
    "CalendarEvent",
    "DateRange",
    "EveryoneFreeHighlight",
    "ExceptionKind",
    "FreeTimeSlot",
    "RecurrenceFrequency",
    "RecurrenceRule",
    "TimeWindow",
]
