from __future__ import annotations

from dataclasses import dataclass, field

from ..config import AppSettings, get_settings
from ..core import AvailabilityEngine, RecurrenceEngine


@dataclass(slots=True)
class ApiState:
    settings: AppSettings = field(default_factory=get_settings)
    recurrence: RecurrenceEngine = field(init=False)
    availability: AvailabilityEngine = field(init=False)

    def __post_init__(self) -> None:
        self.recurrence = RecurrenceEngine.from_settings(self.settings)
        self.availability = AvailabilityEngine.from_settings(self.settings)


api_state = ApiState()
