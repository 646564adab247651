from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Dict, FrozenSet, Iterable, Optional, Tuple, Union

from .enums import ExceptionKind, RecurrenceFrequency

RangeBound = Union[date, datetime, str]


def _parse_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, datetime.min.time())
    if isinstance(value, str):
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        # Rows arrive in UTC notation but the calendar is a single local clock.
        return parsed.replace(tzinfo=None)
    raise ValueError(f"Unsupported datetime value: {value!r}")


def _parse_optional_datetime(value: Any) -> Optional[datetime]:
    if value in (None, ""):
        return None
    try:
        return _parse_datetime(value)
    except (TypeError, ValueError):
        return None


def _pick(record: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in record and record[key] is not None:
            return record[key]
    return None


def _coerce_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True, slots=True)
class RecurrenceRule:
    """How a series repeats.

    Out-of-range values are normalised on construction instead of rejected: the
    engines fall back to the anchor event's own weekday, day or month whenever a
    frequency-specific field is missing.

    The frequency is the one exception. Constructing a rule directly with a
    value that is not a known frequency is a programming error and raises
    ``ValueError``. Untrusted input goes through ``RecurrenceRule.from_record``,
    which returns ``None`` (the event does not repeat), or through the API
    payload model, which reports a validation error.
    """

    frequency: RecurrenceFrequency
    interval: int = 1
    days_of_week: Optional[FrozenSet[int]] = None
    day_of_month: Optional[int] = None
    month_of_year: Optional[int] = None
    count: Optional[int] = None
    end_date: Optional[Union[date, datetime]] = None

    def __post_init__(self) -> None:
        frequency = RecurrenceFrequency.parse(self.frequency)
        if frequency is None:
            raise ValueError(f"Unknown recurrence frequency: {self.frequency!r}")
        object.__setattr__(self, "frequency", frequency)

        interval = _coerce_int(self.interval)
        object.__setattr__(self, "interval", interval if interval and interval > 0 else 1)

        if self.days_of_week is not None:
            days = {_coerce_int(day) for day in self.days_of_week}
            object.__setattr__(
                self,
                "days_of_week",
                frozenset(day for day in days if day is not None and 0 <= day <= 6),
            )

        day_of_month = _coerce_int(self.day_of_month)
        if day_of_month is not None:
            day_of_month = min(max(day_of_month, 1), 31)
        object.__setattr__(self, "day_of_month", day_of_month)

        month_of_year = _coerce_int(self.month_of_year)
        if month_of_year is not None and not 1 <= month_of_year <= 12:
            month_of_year = None
        object.__setattr__(self, "month_of_year", month_of_year)

        count = _coerce_int(self.count)
        object.__setattr__(self, "count", max(count, 0) if count is not None else None)

    @property
    def weekdays(self) -> Tuple[int, ...]:
        return tuple(sorted(self.days_of_week or ()))

    @classmethod
    def daily(cls, interval: int = 1, **terminator: Any) -> "RecurrenceRule":
        return cls(RecurrenceFrequency.DAILY, interval=interval, **terminator)

    @classmethod
    def weekly(cls, interval: int = 1, days_of_week: Optional[Iterable[int]] = None, **terminator: Any) -> "RecurrenceRule":
        days = frozenset(days_of_week) if days_of_week is not None else None
        return cls(RecurrenceFrequency.WEEKLY, interval=interval, days_of_week=days, **terminator)

    @classmethod
    def monthly(cls, interval: int = 1, day_of_month: Optional[int] = None, **terminator: Any) -> "RecurrenceRule":
        return cls(RecurrenceFrequency.MONTHLY, interval=interval, day_of_month=day_of_month, **terminator)

    @classmethod
    def yearly(
        cls,
        interval: int = 1,
        month_of_year: Optional[int] = None,
        day_of_month: Optional[int] = None,
        **terminator: Any,
    ) -> "RecurrenceRule":
        return cls(
            RecurrenceFrequency.YEARLY,
            interval=interval,
            month_of_year=month_of_year,
            day_of_month=day_of_month,
            **terminator,
        )

    @classmethod
    def from_record(cls, record: Optional[Dict[str, Any]]) -> Optional["RecurrenceRule"]:
        """Build a rule from a stored JSON payload; ``None`` when it cannot repeat."""

        if not record:
            return None
        frequency = RecurrenceFrequency.parse(record.get("frequency"))
        if frequency is None:
            return None
        days = _pick(record, "days_of_week", "daysOfWeek")
        return cls(
            frequency=frequency,
            interval=_pick(record, "interval") or 1,
            days_of_week=frozenset(days) if isinstance(days, (list, tuple, set, frozenset)) else None,
            day_of_month=_pick(record, "day_of_month", "dayOfMonth"),
            month_of_year=_pick(record, "month_of_year", "monthOfYear"),
            count=_pick(record, "count"),
            end_date=_parse_optional_datetime(_pick(record, "end_date", "endDate")),
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            "frequency": self.frequency.value,
            "interval": self.interval,
            "days_of_week": list(self.weekdays) if self.days_of_week is not None else None,
            "day_of_month": self.day_of_month,
            "month_of_year": self.month_of_year,
            "count": self.count,
            "end_date": self.end_date.isoformat() if self.end_date else None,
        }


@dataclass(frozen=True, slots=True)
class CalendarEvent:
    """A stored event row: single event, recurring series anchor, or exception."""

    id: str
    owner_id: str
    title: str
    starts_at: datetime
    ends_at: datetime
    is_all_day: bool = False
    location: Optional[str] = None
    notes: str = ""
    category_id: Optional[str] = None
    group_id: Optional[str] = None
    event_type: str = "personal"
    is_public: bool = True
    has_attendees: bool = False
    is_current_user_attendee: bool = False
    recurrence_rule: Optional[RecurrenceRule] = None
    parent_event_id: Optional[str] = None
    is_exception: bool = False
    original_occurrence_date: Optional[datetime] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.ends_at < self.starts_at:
            object.__setattr__(self, "ends_at", self.starts_at)

    @property
    def duration(self) -> timedelta:
        return self.ends_at - self.starts_at

    @property
    def exception_kind(self) -> Optional[ExceptionKind]:
        if not self.is_exception:
            return None
        # Cancelled placeholders are stored hidden; modified rows stay visible.
        return ExceptionKind.MODIFIED if self.is_public else ExceptionKind.CANCELLED

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "CalendarEvent":
        return cls(
            id=str(record["id"]),
            owner_id=str(_pick(record, "owner_id", "user_id")),
            title=str(record.get("title") or ""),
            starts_at=_parse_datetime(_pick(record, "start_date", "starts_at", "start")),
            ends_at=_parse_datetime(_pick(record, "end_date", "ends_at", "end")),
            is_all_day=bool(record.get("is_all_day", False)),
            location=record.get("location"),
            notes=record.get("notes") or "",
            category_id=record.get("category_id"),
            group_id=record.get("group_id"),
            event_type=record.get("event_type") or "personal",
            is_public=bool(record.get("is_public", True)),
            has_attendees=bool(record.get("has_attendees", False)),
            is_current_user_attendee=bool(record.get("is_current_user_attendee", False)),
            recurrence_rule=RecurrenceRule.from_record(record.get("recurrence_rule")),
            parent_event_id=record.get("parent_event_id"),
            is_exception=bool(_pick(record, "is_recurrence_exception", "is_exception") or False),
            original_occurrence_date=_parse_optional_datetime(record.get("original_occurrence_date")),
            metadata=dict(record.get("metadata") or {}),
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.owner_id,
            "title": self.title,
            "start_date": self.starts_at.isoformat(),
            "end_date": self.ends_at.isoformat(),
            "is_all_day": self.is_all_day,
            "location": self.location,
            "notes": self.notes,
            "category_id": self.category_id,
            "group_id": self.group_id,
            "event_type": self.event_type,
            "is_public": self.is_public,
            "has_attendees": self.has_attendees,
            "is_current_user_attendee": self.is_current_user_attendee,
            "recurrence_rule": self.recurrence_rule.to_record() if self.recurrence_rule else None,
            "parent_event_id": self.parent_event_id,
            "is_recurrence_exception": self.is_exception,
            "original_occurrence_date": (
                self.original_occurrence_date.isoformat() if self.original_occurrence_date else None
            ),
            "metadata": self.metadata,
        }


@dataclass(frozen=True, slots=True)
class BusyInterval:
    owner_id: str
    start: datetime
    end: datetime

    def overlaps(self, start: datetime, end: datetime) -> bool:
        return self.start < end and self.end > start

    @classmethod
    def from_event(cls, event: CalendarEvent) -> "BusyInterval":
        return cls(owner_id=event.owner_id, start=event.starts_at, end=event.ends_at)


@dataclass(frozen=True, slots=True)
class FreeTimeSlot:
    start: datetime
    end: datetime
    duration_hours: float
    confidence: float
    available_user_ids: Tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class TimeWindow:
    """Daily local clock range as ``HH:mm`` strings."""

    start: str = "09:00"
    end: str = "17:00"


@dataclass(frozen=True, slots=True)
class DateRange:
    start: Optional[RangeBound] = None
    end: Optional[RangeBound] = None


@dataclass(frozen=True, slots=True)
class AvailabilityQuery:
    requested_user_ids: Tuple[str, ...]
    duration_hours: float
    time_window: Optional[TimeWindow] = None
    date_range: Optional[DateRange] = None


@dataclass(frozen=True, slots=True)
class AvailabilitySummary:
    slot_date: date
    slot_hour: int
    total_members: int
    free_members: int
    free_member_ids: Tuple[str, ...] = ()

    @property
    def free_percentage(self) -> float:
        if self.total_members <= 0:
            return 0.0
        return self.free_members / self.total_members

    @property
    def is_everyone_free(self) -> bool:
        return self.total_members > 0 and self.free_members == self.total_members


def _hour_label(hour: int) -> str:
    hour %= 24
    suffix = "am" if hour < 12 else "pm"
    return f"{hour % 12 or 12}{suffix}"


@dataclass(frozen=True, slots=True)
class EveryoneFreeHighlight:
    date: date
    start_hour: int
    end_hour: int
    member_count: int

    @property
    def hours(self) -> int:
        return self.end_hour - self.start_hour

    @property
    def friendly_description(self) -> str:
        day_name = self.date.strftime("%A")
        if self.start_hour >= 12 and self.end_hour <= 17:
            return f"{day_name} afternoon"
        if self.start_hour >= 6 and self.end_hour <= 12:
            return f"{day_name} morning"
        if self.start_hour >= 17 and self.end_hour <= 21:
            return f"{day_name} evening"
        return f"{day_name} {_hour_label(self.start_hour)}-{_hour_label(self.end_hour)}"
