from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from ..domain import (
    AvailabilityQuery,
    BusyInterval,
    CalendarEvent,
    DateRange,
    EveryoneFreeHighlight,
    FreeTimeSlot,
    RecurrenceFrequency,
    RecurrenceRule,
    TimeWindow,
)


def _naive(value: Optional[datetime]) -> Optional[datetime]:
    return value.replace(tzinfo=None) if value is not None else None


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


class RecurrenceRulePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    frequency: RecurrenceFrequency
    interval: int = Field(default=1)
    days_of_week: Optional[List[int]] = Field(default=None, validation_alias=AliasChoices("days_of_week", "daysOfWeek"))
    day_of_month: Optional[int] = Field(default=None, validation_alias=AliasChoices("day_of_month", "dayOfMonth"))
    month_of_year: Optional[int] = Field(default=None, validation_alias=AliasChoices("month_of_year", "monthOfYear"))
    count: Optional[int] = Field(default=None)
    end_date: Optional[datetime] = Field(default=None, validation_alias=AliasChoices("end_date", "endDate"))

    def to_domain(self) -> RecurrenceRule:
        return RecurrenceRule(
            frequency=self.frequency,
            interval=self.interval,
            days_of_week=frozenset(self.days_of_week) if self.days_of_week is not None else None,
            day_of_month=self.day_of_month,
            month_of_year=self.month_of_year,
            count=self.count,
            end_date=_naive(self.end_date),
        )

    @classmethod
    def from_domain(cls, rule: RecurrenceRule) -> "RecurrenceRulePayload":
        end_date = rule.end_date
        if end_date is not None and not isinstance(end_date, datetime):
            end_date = datetime.combine(end_date, datetime.max.time())
        return cls(
            frequency=rule.frequency,
            interval=rule.interval,
            days_of_week=list(rule.weekdays) if rule.days_of_week is not None else None,
            day_of_month=rule.day_of_month,
            month_of_year=rule.month_of_year,
            count=rule.count,
            end_date=end_date,
        )


class EventPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    owner_id: str = Field(validation_alias=AliasChoices("owner_id", "user_id", "ownerId"))
    title: str = Field(default="")
    starts_at: datetime = Field(validation_alias=AliasChoices("starts_at", "start_date", "start"))
    ends_at: datetime = Field(validation_alias=AliasChoices("ends_at", "end_date", "end"))
    is_all_day: bool = Field(default=False, validation_alias=AliasChoices("is_all_day", "isAllDay"))
    location: Optional[str] = Field(default=None)
    notes: str = Field(default="")
    category_id: Optional[str] = Field(default=None)
    group_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("group_id", "groupId"))
    event_type: str = Field(default="personal", validation_alias=AliasChoices("event_type", "eventType"))
    is_public: bool = Field(default=True)
    has_attendees: bool = Field(default=False, validation_alias=AliasChoices("has_attendees", "hasAttendees"))
    is_current_user_attendee: bool = Field(
        default=False, validation_alias=AliasChoices("is_current_user_attendee", "isCurrentUserAttendee")
    )
    recurrence_rule: Optional[RecurrenceRulePayload] = Field(
        default=None, validation_alias=AliasChoices("recurrence_rule", "recurrenceRule")
    )
    parent_event_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("parent_event_id", "parentEventId")
    )
    is_exception: bool = Field(
        default=False, validation_alias=AliasChoices("is_exception", "is_recurrence_exception", "isException")
    )
    original_occurrence_date: Optional[datetime] = Field(
        default=None, validation_alias=AliasChoices("original_occurrence_date", "originalOccurrenceDate")
    )
    metadata: Dict[str, Any] = Field(default_factory=dict)

    def to_domain(self) -> CalendarEvent:
        return CalendarEvent(
            id=self.id,
            owner_id=self.owner_id,
            title=self.title,
            starts_at=_naive(self.starts_at),
            ends_at=_naive(self.ends_at),
            is_all_day=self.is_all_day,
            location=self.location,
            notes=self.notes,
            category_id=self.category_id,
            group_id=self.group_id,
            event_type=self.event_type or "personal",
            is_public=self.is_public,
            has_attendees=self.has_attendees,
            is_current_user_attendee=self.is_current_user_attendee,
            recurrence_rule=self.recurrence_rule.to_domain() if self.recurrence_rule else None,
            parent_event_id=self.parent_event_id,
            is_exception=self.is_exception,
            original_occurrence_date=_naive(self.original_occurrence_date),
            metadata=dict(self.metadata),
        )

    @classmethod
    def from_domain(cls, event: CalendarEvent) -> "EventPayload":
        return cls(
            id=event.id,
            owner_id=event.owner_id,
            title=event.title,
            starts_at=event.starts_at,
            ends_at=event.ends_at,
            is_all_day=event.is_all_day,
            location=event.location,
            notes=event.notes,
            category_id=event.category_id,
            group_id=event.group_id,
            event_type=event.event_type,
            is_public=event.is_public,
            has_attendees=event.has_attendees,
            is_current_user_attendee=event.is_current_user_attendee,
            recurrence_rule=RecurrenceRulePayload.from_domain(event.recurrence_rule) if event.recurrence_rule else None,
            parent_event_id=event.parent_event_id,
            is_exception=event.is_exception,
            original_occurrence_date=event.original_occurrence_date,
            metadata=dict(event.metadata),
        )


class BusyIntervalPayload(BaseModel):
    start: datetime
    end: datetime

    def to_domain(self, owner_id: str) -> BusyInterval:
        return BusyInterval(owner_id=owner_id, start=_naive(self.start), end=_naive(self.end))


class TimeWindowPayload(BaseModel):
    start: str = Field(default="09:00")
    end: str = Field(default="17:00")

    def to_domain(self) -> TimeWindow:
        return TimeWindow(start=self.start, end=self.end)


class DateRangePayload(BaseModel):
    start: Optional[str] = Field(default=None)
    end: Optional[str] = Field(default=None)

    def to_domain(self) -> DateRange:
        return DateRange(start=self.start, end=self.end)


class AvailabilityQueryPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    requested_user_ids: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("requested_user_ids", "requestedUserIds", "users"),
    )
    duration_hours: float = Field(gt=0, validation_alias=AliasChoices("duration_hours", "durationHours"))
    time_window: Optional[TimeWindowPayload] = Field(
        default=None, validation_alias=AliasChoices("time_window", "timeWindow")
    )
    date_range: Optional[DateRangePayload] = Field(
        default=None, validation_alias=AliasChoices("date_range", "dateRange")
    )

    def to_domain(self) -> AvailabilityQuery:
        return AvailabilityQuery(
            requested_user_ids=tuple(self.requested_user_ids),
            duration_hours=self.duration_hours,
            time_window=self.time_window.to_domain() if self.time_window else None,
            date_range=self.date_range.to_domain() if self.date_range else None,
        )


class FreeTimeSlotPayload(BaseModel):
    start: str
    end: str
    duration_hours: float
    confidence: float
    available_user_ids: List[str] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, slot: FreeTimeSlot) -> "FreeTimeSlotPayload":
        return cls(
            start=_iso(slot.start),
            end=_iso(slot.end),
            duration_hours=slot.duration_hours,
            confidence=slot.confidence,
            available_user_ids=[str(user_id) for user_id in slot.available_user_ids],
        )


class HighlightPayload(BaseModel):
    date: str
    start_hour: int
    end_hour: int
    member_count: int
    description: str

    @classmethod
    def from_domain(cls, highlight: EveryoneFreeHighlight) -> "HighlightPayload":
        return cls(
            date=highlight.date.isoformat(),
            start_hour=highlight.start_hour,
            end_hour=highlight.end_hour,
            member_count=highlight.member_count,
            description=highlight.friendly_description,
        )
