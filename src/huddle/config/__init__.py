"""Configuration models and helpers."""

from __future__ import annotations

from .settings import AppSettings, AvailabilitySettings, LoggingSettings, RecurrenceSettings, get_settings

__all__ = ["AppSettings", "AvailabilitySettings", "LoggingSettings", "RecurrenceSettings", "get_settings"]
