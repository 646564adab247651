from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from platformdirs import user_log_dir

load_dotenv()

APP_NAME = "Huddle"
APP_AUTHOR = "Huddle"


@dataclass(frozen=True)
class RecurrenceSettings:
    max_occurrences: int
    lookahead_years: int


@dataclass(frozen=True)
class AvailabilitySettings:
    default_window_start: str
    default_window_end: str
    search_days: int
    max_suggestions: int


@dataclass(frozen=True)
class LoggingSettings:
    level: str
    log_dir: Path

    @property
    def log_file(self) -> Path:
        return self.log_dir / "huddle.log"


@dataclass(frozen=True)
class AppSettings:
    recurrence: RecurrenceSettings
    availability: AvailabilitySettings
    logging: LoggingSettings


def _int_from_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    recurrence = RecurrenceSettings(
        max_occurrences=_int_from_env("HUDDLE_MAX_OCCURRENCES", 365),
        lookahead_years=_int_from_env("HUDDLE_LOOKAHEAD_YEARS", 1),
    )

    availability = AvailabilitySettings(
        default_window_start=os.getenv("HUDDLE_DEFAULT_WINDOW_START", "09:00"),
        default_window_end=os.getenv("HUDDLE_DEFAULT_WINDOW_END", "17:00"),
        search_days=_int_from_env("HUDDLE_SEARCH_DAYS", 30),
        max_suggestions=_int_from_env("HUDDLE_MAX_SUGGESTIONS", 5),
    )

    logging = LoggingSettings(
        level=os.getenv("HUDDLE_LOG_LEVEL", "INFO").upper(),
        log_dir=Path(os.getenv("HUDDLE_LOG_DIR") or user_log_dir(APP_NAME, APP_AUTHOR)),
    )

    return AppSettings(recurrence=recurrence, availability=availability, logging=logging)
