"""Tests for core calendar logic."""

import random
from datetime import date, datetime, time, timedelta, timezone

import pytest

from conftest import all_day, timed
from termcal.core.calendar import (
    AccessRole,
    AllDay,
    CalendarSource,
    EventRecord,
    Timed,
    day_range,
    filter_modifiable,
    filter_selected,
    format_kitchen,
    merge_events,
    new_event,
    sort_calendars,
)
from termcal.errors import ParseError

UTC = timezone.utc


@pytest.fixture
def today():
    return date(2024, 6, 3)


@pytest.fixture
def mixed(today):
    return [
        timed("t2", "B", "Lunch", today, 12),
        all_day("a2", "A", "Vacation", today),
        timed("t1", "A", "Standup", today, 9),
        all_day("a1", "B", "Holiday", today),
        timed("t3", "B", "Review", today, 9),
    ]


class TestTiming:
    def test_all_day_rejects_datetimes(self):
        with pytest.raises(ParseError):
            AllDay(datetime(2024, 6, 3, 0, 0), date(2024, 6, 4))

    def test_timed_rejects_naive_datetimes(self):
        with pytest.raises(ParseError):
            Timed(datetime(2024, 6, 3, 9, 0), datetime(2024, 6, 3, 10, 0))

    def test_describe_all_day(self, today):
        assert all_day("a", "A", "Holiday", today).describe_time(UTC) == "all day"

    def test_describe_timed(self, today):
        event = timed("t", "A", "Standup", today, 9)
        assert event.describe_time(UTC) == "9:00 AM - 9:30 AM"

    def test_start_date(self, today):
        assert timed("t", "A", "x", today, 9).start_date == today
        assert all_day("a", "A", "x", today).start_date == today

    def test_format_kitchen_strips_leading_zero(self):
        assert format_kitchen(time(15, 4)) == "3:04 PM"
        assert format_kitchen(time(10, 0)) == "10:00 AM"


class TestDayRange:
    def test_half_open_midnight_to_midnight(self, today):
        start, end = day_range(today, UTC)
        assert start == datetime(2024, 6, 3, tzinfo=UTC)
        assert end == datetime(2024, 6, 4, tzinfo=UTC)

    def test_same_date_same_key(self, today):
        assert day_range(today, UTC) == day_range(date(2024, 6, 3), UTC)


class TestMergeEvents:
    def test_all_day_before_timed(self, mixed):
        merged = merge_events(mixed)
        kinds = [e.is_all_day for e in merged]
        assert kinds == [True, True, False, False, False]

    def test_all_day_ordered_by_summary(self, mixed):
        merged = merge_events(mixed)
        assert [e.summary for e in merged[:2]] == ["Holiday", "Vacation"]

    def test_timed_ordered_by_start_then_summary(self, mixed):
        merged = merge_events(mixed)
        assert [e.summary for e in merged[2:]] == ["Review", "Standup", "Lunch"]

    def test_is_idempotent(self, mixed):
        once = merge_events(mixed)
        assert merge_events(once) == once

    def test_permutation_invariant(self, mixed):
        expected = merge_events(mixed)
        rng = random.Random(7)
        for _ in range(20):
            shuffled = list(mixed)
            rng.shuffle(shuffled)
            assert merge_events(shuffled) == expected

    def test_identical_summary_and_start_break_on_calendar(self, today):
        a = timed("x", "B", "Sync", today, 10)
        b = timed("x", "A", "Sync", today, 10)
        assert merge_events([a, b]) == [b, a]
        assert merge_events([b, a]) == [b, a]

    def test_keeps_every_event(self, mixed):
        merged = merge_events(mixed)
        assert sorted(e.id for e in merged) == sorted(e.id for e in mixed)

    def test_empty(self):
        assert merge_events([]) == []

    def test_timed_events_across_zones_compare_by_instant(self, today):
        east = timezone(timedelta(hours=2))
        early = EventRecord(
            id="e",
            calendar_id="A",
            summary="Zulu",
            timing=Timed(
                datetime.combine(today, time(10, 0), tzinfo=east),
                datetime.combine(today, time(11, 0), tzinfo=east),
            ),
        )
        late = timed("l", "A", "Alpha", today, 9)
        assert merge_events([late, early]) == [early, late]


class TestCalendarSources:
    def test_modifiable_roles(self):
        sources = [
            CalendarSource("o", "Owner", access_role=AccessRole.OWNER),
            CalendarSource("w", "Writer", access_role=AccessRole.WRITER),
            CalendarSource("r", "Reader", access_role=AccessRole.READER),
            CalendarSource("f", "FreeBusy", access_role=AccessRole.FREE_BUSY_READER),
        ]
        assert [c.id for c in filter_modifiable(sources)] == ["o", "w"]

    def test_filter_selected(self):
        sources = [
            CalendarSource("a", "A", selected=True),
            CalendarSource("b", "B", selected=False),
        ]
        assert [c.id for c in filter_selected(sources)] == ["a"]

    def test_sort_by_display_name(self):
        sources = [CalendarSource("1", "Work"), CalendarSource("2", "Holidays")]
        assert [c.display_name for c in sort_calendars(sources)] == ["Holidays", "Work"]

    def test_unknown_access_role(self):
        assert AccessRole.parse("bogus") is AccessRole.NONE
        assert AccessRole.parse(None) is AccessRole.NONE


class TestNewEvent:
    def test_has_empty_id(self, today):
        event = new_event("A", "Lunch", AllDay(today, date(2024, 6, 4)))
        assert event.id == ""
        assert event.calendar_id == "A"
        assert event.is_all_day
