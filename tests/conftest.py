"""Shared fixtures: an in-memory calendar provider."""

import threading
from datetime import date, datetime, time, timezone

import pytest

from termcal.cache import EventCache
from termcal.core.calendar import AccessRole, AllDay, CalendarSource, EventRecord, Timed
from termcal.errors import ProviderError

UTC = timezone.utc


class FakeProvider:
    """Thread-safe in-memory CalendarProvider that records its calls."""

    def __init__(self, calendars=None, events=None):
        self.calendars: list[CalendarSource] = list(calendars or [])
        self.events: dict[str, list[EventRecord]] = {k: list(v) for k, v in (events or {}).items()}
        self.failing: set[str] = set()
        self.calendar_list_error: ProviderError | None = None
        self.list_events_calls: list[tuple[str, datetime, datetime]] = []
        self.blockers: dict[str, threading.Event] = {}
        self._lock = threading.Lock()
        self._next_id = 1

    def list_calendars(self) -> list[CalendarSource]:
        with self._lock:
            if self.calendar_list_error is not None:
                raise self.calendar_list_error
            return sorted(self.calendars, key=lambda c: c.display_name)

    def list_events(self, calendar_id, range_start, range_end):
        # The answer is fixed when the call starts; a blocker only delays it
        with self._lock:
            self.list_events_calls.append((calendar_id, range_start, range_end))
            failed = calendar_id in self.failing
            found = [
                e for e in self.events.get(calendar_id, []) if _overlaps(e, range_start, range_end)
            ]
        blocker = self.blockers.get(calendar_id)
        if blocker is not None:
            blocker.wait(timeout=5)
        if failed:
            raise ProviderError(f"{calendar_id} unavailable", calendar_id)
        return found

    def create_event(self, calendar_id, event):
        with self._lock:
            created = EventRecord(
                id=f"evt-{self._next_id}",
                calendar_id=calendar_id,
                summary=event.summary,
                timing=event.timing,
                location=event.location,
                description=event.description,
            )
            self._next_id += 1
            self.events.setdefault(calendar_id, []).append(created)
            return created

    def update_event(self, calendar_id, event_id, event):
        with self._lock:
            events = self.events.get(calendar_id, [])
            for i, existing in enumerate(events):
                if existing.id == event_id:
                    events[i] = EventRecord(
                        id=event_id,
                        calendar_id=calendar_id,
                        summary=event.summary,
                        timing=event.timing,
                        location=event.location,
                        description=event.description,
                    )
                    return events[i]
        raise ProviderError(f"No event {event_id}", calendar_id)

    def delete_event(self, calendar_id, event_id):
        with self._lock:
            events = self.events.get(calendar_id, [])
            self.events[calendar_id] = [e for e in events if e.id != event_id]

    def set_calendar_selected(self, calendar_id, selected):
        with self._lock:
            self.calendars = [
                CalendarSource(
                    id=c.id,
                    display_name=c.display_name,
                    selected=selected if c.id == calendar_id else c.selected,
                    access_role=c.access_role,
                )
                for c in self.calendars
            ]

    def calls_for(self, calendar_id: str) -> int:
        with self._lock:
            return sum(1 for call in self.list_events_calls if call[0] == calendar_id)


def _overlaps(event: EventRecord, range_start: datetime, range_end: datetime) -> bool:
    timing = event.timing
    if isinstance(timing, AllDay):
        tz = range_start.tzinfo
        start = datetime.combine(timing.start_date, time(0, 0), tzinfo=tz)
        end = datetime.combine(timing.end_date, time(0, 0), tzinfo=tz)
    else:
        start, end = timing.start, timing.end
    return start < range_end and end > range_start


def all_day(id, calendar_id, summary, day: date, days: int = 1) -> EventRecord:
    return EventRecord(
        id=id,
        calendar_id=calendar_id,
        summary=summary,
        timing=AllDay(day, date.fromordinal(day.toordinal() + days)),
    )


def timed(id, calendar_id, summary, day: date, hour: int, minutes: int = 30) -> EventRecord:
    start = datetime.combine(day, time(hour, 0), tzinfo=UTC)
    end = datetime.fromtimestamp(start.timestamp() + minutes * 60, tz=UTC)
    return EventRecord(id=id, calendar_id=calendar_id, summary=summary, timing=Timed(start, end))


def calendar(id, name=None, selected=True, role=AccessRole.OWNER) -> CalendarSource:
    return CalendarSource(id=id, display_name=name or id, selected=selected, access_role=role)


@pytest.fixture
def monday():
    return date(2024, 6, 3)


@pytest.fixture
def provider(monday):
    return FakeProvider(
        calendars=[calendar("A", "Personal"), calendar("B", "Work")],
        events={
            "A": [all_day("h1", "A", "Holiday", monday)],
            "B": [timed("s1", "B", "Standup", monday, 9)],
        },
    )


@pytest.fixture
def cache():
    return EventCache(ttl_seconds=300)
