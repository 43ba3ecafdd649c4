"""Tests for the event cache."""

from datetime import date, timezone

import pytest

from conftest import all_day, timed
from termcal.cache import EventCache
from termcal.core.calendar import day_range

UTC = timezone.utc


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def monday_range():
    return day_range(date(2024, 6, 3), UTC)


class TestEventCache:
    def test_get_returns_what_was_put(self, monday_range):
        cache = EventCache()
        events = [all_day("h", "A", "Holiday", date(2024, 6, 3))]
        cache.put("A", *monday_range, events)
        assert cache.get("A", *monday_range) == tuple(events)

    def test_miss_is_none(self, monday_range):
        assert EventCache().get("A", *monday_range) is None

    def test_empty_list_is_a_hit(self, monday_range):
        cache = EventCache()
        cache.put("A", *monday_range, [])
        assert cache.get("A", *monday_range) == ()

    def test_key_must_match_exactly(self, monday_range):
        cache = EventCache()
        cache.put("A", *monday_range, [])
        start, end = monday_range
        assert cache.get("B", start, end) is None
        assert cache.get("A", start, day_range(date(2024, 6, 5), UTC)[0]) is None

    def test_put_replaces_entry(self, monday_range):
        cache = EventCache()
        first = [timed("1", "A", "Old", date(2024, 6, 3), 9)]
        second = [timed("2", "A", "New", date(2024, 6, 3), 10)]
        cache.put("A", *monday_range, first)
        cache.put("A", *monday_range, second)
        assert cache.get("A", *monday_range) == tuple(second)
        assert len(cache) == 1

    def test_flush_all(self, monday_range):
        cache = EventCache()
        cache.put("A", *monday_range, [])
        cache.put("B", *monday_range, [])
        cache.flush_all()
        assert len(cache) == 0
        assert cache.get("A", *monday_range) is None

    def test_entry_expires_after_ttl(self, clock, monday_range):
        cache = EventCache(ttl_seconds=300, clock=clock)
        cache.put("A", *monday_range, [])
        clock.now += 299
        assert cache.get("A", *monday_range) == ()
        clock.now += 1
        assert cache.get("A", *monday_range) is None
        assert len(cache) == 0

    def test_stored_events_are_not_aliased(self, monday_range):
        cache = EventCache()
        events = [all_day("h", "A", "Holiday", date(2024, 6, 3))]
        cache.put("A", *monday_range, events)
        events.clear()
        assert len(cache.get("A", *monday_range)) == 1


class TestGenerations:
    def test_flush_starts_new_generation(self):
        cache = EventCache()
        before = cache.generation
        cache.flush_all()
        assert cache.generation == before + 1

    def test_put_from_before_flush_is_dropped(self, monday_range):
        cache = EventCache()
        generation = cache.generation
        cache.flush_all()

        stale = [all_day("h", "A", "Stale", date(2024, 6, 3))]
        stored = cache.put("A", *monday_range, stale, generation=generation)

        assert not stored
        assert cache.get("A", *monday_range) is None

    def test_put_in_current_generation_is_kept(self, monday_range):
        cache = EventCache()
        cache.flush_all()
        assert cache.put("A", *monday_range, [], generation=cache.generation)
        assert cache.get("A", *monday_range) == ()
