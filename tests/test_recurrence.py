from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest

from huddle.core import expand_recurring_event, generate_occurrences, next_occurrence
from huddle.core.dates import weekday_index
from huddle.domain import CalendarEvent, DateRange, RecurrenceFrequency, RecurrenceRule


def _series(rule: RecurrenceRule, starts_at: datetime, hours: int = 1, **extra) -> CalendarEvent:
    return CalendarEvent(
        id="series-1",
        owner_id="user-a",
        title="Standup",
        starts_at=starts_at,
        ends_at=starts_at + timedelta(hours=hours),
        location="Room 4",
        recurrence_rule=rule,
        **extra,
    )


def _exception(day: datetime) -> CalendarEvent:
    return CalendarEvent(
        id=f"exception-{day:%m%d}",
        owner_id="user-a",
        title="Standup",
        starts_at=day,
        ends_at=day + timedelta(hours=1),
        is_public=False,
        parent_event_id="series-1",
        is_exception=True,
        original_occurrence_date=day,
    )


class TestDaily:
    def test_ten_day_range_yields_one_occurrence_per_day(self, recurrence_engine):
        anchor = datetime(2025, 1, 1, 9, 0)

        occurrences = recurrence_engine.generate_occurrences(
            RecurrenceRule.daily(), anchor, (date(2025, 1, 1), date(2025, 1, 10))
        )

        assert len(occurrences) == 10
        assert occurrences[0] == anchor
        assert occurrences[-1] == datetime(2025, 1, 10, 9, 0)
        assert all(occurrence.time() == anchor.time() for occurrence in occurrences)

    @pytest.mark.parametrize("interval", [1, 2, 3, 7])
    def test_consecutive_occurrences_are_interval_days_apart(self, recurrence_engine, interval):
        occurrences = recurrence_engine.generate_occurrences(
            RecurrenceRule.daily(interval=interval),
            datetime(2025, 1, 1, 9, 0),
            (date(2025, 1, 1), date(2025, 3, 31)),
        )

        assert len(occurrences) > 2
        gaps = {later - earlier for earlier, later in zip(occurrences, occurrences[1:])}
        assert gaps == {timedelta(days=interval)}

    def test_count_terminator(self, recurrence_engine):
        occurrences = recurrence_engine.generate_occurrences(
            RecurrenceRule.daily(count=5),
            datetime(2025, 1, 1, 9, 0),
            (date(2025, 1, 1), date(2025, 12, 31)),
        )

        assert len(occurrences) == 5

    def test_end_date_terminator_includes_its_whole_day(self, recurrence_engine):
        occurrences = recurrence_engine.generate_occurrences(
            RecurrenceRule.daily(end_date=date(2025, 1, 5)),
            datetime(2025, 1, 1, 9, 0),
            (date(2025, 1, 1), date(2025, 1, 31)),
        )

        assert [occurrence.day for occurrence in occurrences] == [1, 2, 3, 4, 5]

    def test_earliest_terminator_wins(self, recurrence_engine):
        anchor = datetime(2025, 1, 1, 9, 0)
        window = (date(2025, 1, 1), date(2025, 1, 31))

        by_count = recurrence_engine.generate_occurrences(
            RecurrenceRule.daily(count=3, end_date=date(2025, 1, 10)), anchor, window
        )
        by_end = recurrence_engine.generate_occurrences(
            RecurrenceRule.daily(count=10, end_date=date(2025, 1, 4)), anchor, window
        )

        assert len(by_count) == 3
        assert len(by_end) == 4

    def test_hard_cap_bounds_unterminated_rules(self, recurrence_engine):
        occurrences = recurrence_engine.generate_occurrences(
            RecurrenceRule.daily(),
            datetime(2025, 1, 1, 9, 0),
            (date(2025, 1, 1), date(2027, 12, 31)),
        )

        assert len(occurrences) == 365

    def test_range_after_anchor_still_counts_earlier_occurrences(self, recurrence_engine):
        anchor = datetime(2025, 1, 1, 9, 0)
        window = (date(2025, 1, 5), date(2025, 1, 7))

        unbounded = recurrence_engine.generate_occurrences(RecurrenceRule.daily(), anchor, window)
        counted = recurrence_engine.generate_occurrences(RecurrenceRule.daily(count=5), anchor, window)

        assert [occurrence.day for occurrence in unbounded] == [5, 6, 7]
        assert counted == [datetime(2025, 1, 5, 9, 0)]


class TestExclusions:
    def test_excluded_day_still_consumes_count(self, recurrence_engine):
        occurrences = recurrence_engine.generate_occurrences(
            RecurrenceRule.daily(count=5),
            datetime(2025, 1, 1, 9, 0),
            (date(2025, 1, 1), date(2025, 1, 31)),
            excluded_days=[date(2025, 1, 3)],
        )

        assert [occurrence.day for occurrence in occurrences] == [1, 2, 4, 5]

    def test_exclusion_matches_by_calendar_day(self, recurrence_engine):
        occurrences = recurrence_engine.generate_occurrences(
            RecurrenceRule.daily(),
            datetime(2025, 1, 1, 9, 0),
            (date(2025, 1, 1), date(2025, 1, 3)),
            excluded_days=[datetime(2025, 1, 2, 23, 30)],
        )

        assert [occurrence.day for occurrence in occurrences] == [1, 3]


class TestWeekly:
    def test_multiple_days_only_yield_those_weekdays(self, recurrence_engine):
        occurrences = recurrence_engine.generate_occurrences(
            RecurrenceRule.weekly(days_of_week=[1, 3]),
            datetime(2025, 1, 1, 10, 0),
            (date(2025, 1, 1), date(2025, 1, 31)),
        )

        assert {weekday_index(occurrence) for occurrence in occurrences} == {1, 3}
        assert [occurrence.day for occurrence in occurrences] == [1, 6, 8, 13, 15, 20, 22, 27, 29]

    def test_single_day_starts_on_that_weekday(self, recurrence_engine):
        # Anchor is a Wednesday; the series repeats on Tuesdays.
        occurrences = recurrence_engine.generate_occurrences(
            RecurrenceRule.weekly(days_of_week=[2], count=3),
            datetime(2025, 1, 1, 10, 0),
            (date(2025, 1, 1), date(2025, 3, 31)),
        )

        assert occurrences == [
            datetime(2025, 1, 7, 10, 0),
            datetime(2025, 1, 14, 10, 0),
            datetime(2025, 1, 21, 10, 0),
        ]

    def test_single_day_honours_interval(self, recurrence_engine):
        occurrences = recurrence_engine.generate_occurrences(
            RecurrenceRule.weekly(interval=2, days_of_week=[2]),
            datetime(2025, 1, 7, 10, 0),
            (date(2025, 1, 1), date(2025, 2, 10)),
        )

        assert [occurrence.date() for occurrence in occurrences] == [
            date(2025, 1, 7),
            date(2025, 1, 21),
            date(2025, 2, 4),
        ]

    def test_without_days_falls_back_to_anchor_weekday(self, recurrence_engine):
        anchor = datetime(2025, 1, 1, 10, 0)

        occurrences = recurrence_engine.generate_occurrences(
            RecurrenceRule.weekly(), anchor, (date(2025, 1, 1), date(2025, 1, 31))
        )

        assert [occurrence.day for occurrence in occurrences] == [1, 8, 15, 22, 29]
        assert {weekday_index(occurrence) for occurrence in occurrences} == {weekday_index(anchor)}

    def test_cancelled_tuesday_keeps_count_consumed(self, recurrence_engine):
        series = _series(RecurrenceRule.weekly(days_of_week=[2], count=5), datetime(2025, 1, 7, 10, 0))
        cancelled = _exception(datetime(2025, 1, 21, 10, 0))

        instances = recurrence_engine.expand_recurring_event(
            series, (date(2025, 1, 1), date(2025, 3, 31)), [cancelled]
        )

        assert [instance.starts_at.date() for instance in instances] == [
            date(2025, 1, 7),
            date(2025, 1, 14),
            date(2025, 1, 28),
            date(2025, 2, 4),
        ]


class TestMonthlyAndYearly:
    def test_day_31_clamps_in_short_months(self, recurrence_engine):
        occurrences = recurrence_engine.generate_occurrences(
            RecurrenceRule.monthly(day_of_month=31),
            datetime(2025, 1, 31, 9, 0),
            (date(2025, 1, 1), date(2025, 5, 31)),
        )

        assert [occurrence.date() for occurrence in occurrences] == [
            date(2025, 1, 31),
            date(2025, 2, 28),
            date(2025, 3, 31),
            date(2025, 4, 30),
            date(2025, 5, 31),
        ]

    def test_anchor_day_fallback_skips_months_without_that_day(self, recurrence_engine):
        occurrences = recurrence_engine.generate_occurrences(
            RecurrenceRule.monthly(),
            datetime(2025, 1, 31, 9, 0),
            (date(2025, 1, 1), date(2025, 5, 31)),
        )

        assert [occurrence.month for occurrence in occurrences] == [1, 3, 5]

    def test_monthly_interval(self, recurrence_engine):
        occurrences = recurrence_engine.generate_occurrences(
            RecurrenceRule.monthly(interval=3, day_of_month=15),
            datetime(2025, 1, 15, 18, 30),
            (date(2025, 1, 1), date(2025, 12, 31)),
        )

        assert [occurrence.month for occurrence in occurrences] == [1, 4, 7, 10]

    def test_yearly_on_explicit_month_and_day(self, recurrence_engine):
        occurrences = recurrence_engine.generate_occurrences(
            RecurrenceRule.yearly(month_of_year=3, day_of_month=14),
            datetime(2025, 1, 10, 9, 0),
            (date(2025, 1, 1), date(2026, 12, 31)),
        )

        assert occurrences == [datetime(2025, 3, 14, 9, 0), datetime(2026, 3, 14, 9, 0)]

    def test_leap_day_only_in_leap_years(self, recurrence_engine):
        occurrences = recurrence_engine.generate_occurrences(
            RecurrenceRule.yearly(),
            datetime(2024, 2, 29, 12, 0),
            (date(2024, 1, 1), date(2029, 1, 1)),
        )

        assert [occurrence.date() for occurrence in occurrences] == [date(2024, 2, 29), date(2028, 2, 29)]


class TestMalformedRules:
    def test_non_positive_interval_becomes_one(self):
        assert RecurrenceRule(RecurrenceFrequency.DAILY, interval=0).interval == 1
        assert RecurrenceRule(RecurrenceFrequency.DAILY, interval=-4).interval == 1

    def test_out_of_range_fields_are_normalised(self):
        rule = RecurrenceRule.yearly(month_of_year=13, day_of_month=40)

        assert rule.month_of_year is None
        assert rule.day_of_month == 31

    def test_record_with_unknown_frequency_does_not_repeat(self):
        assert RecurrenceRule.from_record({"frequency": "hourly"}) is None
        assert RecurrenceRule.from_record({}) is None

    def test_record_accepts_camel_case(self):
        rule = RecurrenceRule.from_record({"frequency": "Weekly", "daysOfWeek": [3, 1, 9], "interval": "2"})

        assert rule.frequency is RecurrenceFrequency.WEEKLY
        assert rule.weekdays == (1, 3)
        assert rule.interval == 2

    def test_unknown_frequency_on_construction_raises(self):
        with pytest.raises(ValueError):
            RecurrenceRule("fortnightly")

    def test_unknown_frequency_in_stored_row_means_one_off_event(self, recurrence_engine):
        event = CalendarEvent.from_record(
            {
                "id": "odd",
                "user_id": "alice",
                "start_date": "2025-01-06T09:00:00",
                "end_date": "2025-01-06T10:00:00",
                "recurrence_rule": {"frequency": "fortnightly"},
            }
        )

        assert event.recurrence_rule is None
        assert recurrence_engine.expand_recurring_event(event, (date(2025, 1, 1), date(2025, 1, 31))) == [event]


class TestExpandRecurringEvent:
    def test_non_recurring_event_is_returned_as_is(self, recurrence_engine):
        event = CalendarEvent(
            id="one-off",
            owner_id="user-a",
            title="Dentist",
            starts_at=datetime(2025, 1, 2, 15, 0),
            ends_at=datetime(2025, 1, 2, 16, 0),
        )

        assert recurrence_engine.expand_recurring_event(event, DateRange(date(2025, 1, 1), date(2025, 1, 31))) == [event]

    def test_virtual_instances_carry_display_fields(self, recurrence_engine):
        series = _series(RecurrenceRule.daily(count=3), datetime(2025, 1, 1, 9, 0), hours=2, category_id="work")

        instances = recurrence_engine.expand_recurring_event(series, (date(2025, 1, 1), date(2025, 1, 31)))

        assert len(instances) == 3
        for instance in instances:
            assert instance.title == "Standup"
            assert instance.location == "Room 4"
            assert instance.category_id == "work"
            assert instance.duration == timedelta(hours=2)
            assert instance.original_occurrence_date == instance.starts_at
            assert instance.is_exception is False

    def test_module_function_uses_default_engine(self):
        series = _series(RecurrenceRule.daily(count=2), datetime(2025, 1, 1, 9, 0))

        instances = expand_recurring_event(series, (date(2025, 1, 1), date(2025, 1, 31)))

        assert [instance.starts_at.day for instance in instances] == [1, 2]


class TestNextOccurrence:
    def test_strictly_after(self, recurrence_engine):
        rule = RecurrenceRule.daily()
        anchor = datetime(2025, 1, 1, 9, 0)

        assert recurrence_engine.next_occurrence(rule, datetime(2025, 1, 3, 9, 0), anchor) == datetime(2025, 1, 4, 9, 0)
        assert recurrence_engine.next_occurrence(rule, datetime(2025, 1, 3, 8, 0), anchor) == datetime(2025, 1, 3, 9, 0)

    def test_exhausted_series_has_no_next(self, recurrence_engine):
        rule = RecurrenceRule.daily(count=3)

        assert recurrence_engine.next_occurrence(rule, datetime(2025, 1, 3, 10, 0), datetime(2025, 1, 1, 9, 0)) is None

    def test_nothing_within_lookahead(self, recurrence_engine):
        rule = RecurrenceRule.yearly()

        assert recurrence_engine.next_occurrence(rule, datetime(2024, 3, 1), datetime(2024, 2, 29, 12, 0)) is None

    def test_module_function(self):
        found = next_occurrence(RecurrenceRule.weekly(), datetime(2025, 1, 1, 12, 0), datetime(2025, 1, 1, 10, 0))

        assert found == datetime(2025, 1, 8, 10, 0)


def test_generation_is_deterministic():
    rule = RecurrenceRule.weekly(days_of_week=[0, 6], count=20)
    anchor = datetime(2025, 1, 4, 8, 0)
    window = DateRange(date(2025, 1, 1), date(2025, 6, 30))

    assert generate_occurrences(rule, anchor, window) == generate_occurrences(rule, anchor, window)
