from __future__ import annotations

from datetime import date, datetime, time

import pytest

from huddle.core.dates import (
    add_months,
    add_years,
    at_time_of,
    date_range,
    days_in_month,
    end_of_day,
    parse_bound,
    parse_clock,
    start_of_week,
    weekday_index,
    with_day,
)


def test_weekday_index_starts_on_sunday():
    assert weekday_index(date(2025, 1, 5)) == 0
    assert weekday_index(date(2025, 1, 6)) == 1
    assert weekday_index(date(2025, 1, 11)) == 6


def test_start_of_week():
    assert start_of_week(datetime(2025, 1, 8, 15, 30)) == datetime(2025, 1, 5)
    assert start_of_week(datetime(2025, 1, 5, 23, 0)) == datetime(2025, 1, 5)


def test_month_arithmetic_clamps():
    assert add_months(datetime(2025, 1, 31, 9), 1) == datetime(2025, 2, 28, 9)
    assert add_years(datetime(2024, 2, 29), 1) == datetime(2025, 2, 28)
    assert with_day(datetime(2025, 4, 1, 8), 31) == datetime(2025, 4, 30, 8)
    assert days_in_month(2024, 2) == 29


def test_date_range_is_inclusive():
    assert list(date_range(date(2025, 1, 30), date(2025, 2, 2))) == [
        date(2025, 1, 30),
        date(2025, 1, 31),
        date(2025, 2, 1),
        date(2025, 2, 2),
    ]
    assert list(date_range(date(2025, 2, 2), date(2025, 2, 1))) == []


def test_at_time_of():
    assert at_time_of(date(2025, 3, 1), datetime(2020, 1, 1, 7, 45)) == datetime(2025, 3, 1, 7, 45)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("09:00", time(9, 0)),
        ("9:30", time(9, 30)),
        (" 17:05 ", time(17, 5)),
        ("23:59:59", time(23, 59)),
        ("24:00", None),
        ("12:60", None),
        ("noon", None),
        (None, None),
    ],
)
def test_parse_clock(text, expected):
    assert parse_clock(text) == expected


def test_parse_bound():
    assert parse_bound(date(2025, 1, 2)) == datetime(2025, 1, 2)
    assert parse_bound(date(2025, 1, 2), end=True) == end_of_day(date(2025, 1, 2))
    assert parse_bound("2025-01-02", end=True) == datetime.combine(date(2025, 1, 2), time.max)
    assert parse_bound("2025-01-02T10:00:00Z") == datetime(2025, 1, 2, 10)
    assert parse_bound("whenever") is None
    assert parse_bound("") is None
    assert parse_bound(42) is None
