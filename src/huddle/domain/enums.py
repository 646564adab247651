from __future__ import annotations

from enum import Enum
from typing import Any, Optional


class RecurrenceFrequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"

    @classmethod
    def parse(cls, value: Any) -> Optional["RecurrenceFrequency"]:
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


class ExceptionKind(str, Enum):
    CANCELLED = "cancelled"
    MODIFIED = "modified"
