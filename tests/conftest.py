from __future__ import annotations

import pytest

from huddle.config import get_settings
from huddle.core import RecurrenceEngine, default_availability_engine, default_recurrence_engine


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    default_recurrence_engine.cache_clear()
    default_availability_engine.cache_clear()
    yield
    get_settings.cache_clear()
    default_recurrence_engine.cache_clear()
    default_availability_engine.cache_clear()


@pytest.fixture
def recurrence_engine() -> RecurrenceEngine:
    return RecurrenceEngine()
