from __future__ import annotations

from typing import Any, Dict

import orjson

from ..domain import CalendarEvent, EveryoneFreeHighlight, FreeTimeSlot, RecurrenceRule
from .models import EventPayload, FreeTimeSlotPayload, HighlightPayload, RecurrenceRulePayload


def serialize_slot(slot: FreeTimeSlot) -> Dict[str, Any]:
    return FreeTimeSlotPayload.from_domain(slot).model_dump(mode="json")


def serialize_event(event: CalendarEvent) -> Dict[str, Any]:
    return EventPayload.from_domain(event).model_dump(mode="json")


def serialize_rule(rule: RecurrenceRule) -> Dict[str, Any]:
    return RecurrenceRulePayload.from_domain(rule).model_dump(mode="json")


def serialize_highlight(highlight: EveryoneFreeHighlight) -> Dict[str, Any]:
    return HighlightPayload.from_domain(highlight).model_dump(mode="json")


def encode_result(payload: Any) -> bytes:
    return orjson.dumps(payload, option=orjson.OPT_NON_STR_KEYS)
