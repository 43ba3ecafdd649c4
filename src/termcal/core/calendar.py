"""Pure calendar domain logic - no I/O dependencies."""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo
from enum import Enum

from termcal.errors import ParseError


class AccessRole(str, Enum):
    """A user's access level on a calendar source."""

    OWNER = "owner"
    WRITER = "writer"
    READER = "reader"
    FREE_BUSY_READER = "freeBusyReader"
    NONE = "none"

    @classmethod
    def parse(cls, value: str | None) -> "AccessRole":
        try:
            return cls(value)
        except ValueError:
            return cls.NONE


@dataclass(frozen=True)
class CalendarSource:
    """One selectable remote calendar."""

    id: str
    display_name: str
    selected: bool = False
    access_role: AccessRole = AccessRole.READER
    description: str = ""

    @property
    def is_modifiable(self) -> bool:
        return self.access_role in (AccessRole.OWNER, AccessRole.WRITER)


@dataclass(frozen=True)
class AllDay:
    """All-day timing. end_date is exclusive, as the provider reports it."""

    start_date: date
    end_date: date

    def __post_init__(self):
        if isinstance(self.start_date, datetime) or isinstance(self.end_date, datetime):
            raise ParseError("All-day timing takes calendar dates, not datetimes")


@dataclass(frozen=True)
class Timed:
    """Timing between two zoned instants."""

    start: datetime
    end: datetime

    def __post_init__(self):
        if self.start.tzinfo is None or self.end.tzinfo is None:
            raise ParseError("Timed events need timezone-aware start and end")


Timing = AllDay | Timed


@dataclass(frozen=True)
class EventRecord:
    """One event occurrence belonging to exactly one calendar."""

    id: str
    calendar_id: str
    summary: str
    timing: Timing
    location: str = ""
    description: str = ""

    @property
    def is_all_day(self) -> bool:
        return isinstance(self.timing, AllDay)

    @property
    def start_date(self) -> date:
        if isinstance(self.timing, AllDay):
            return self.timing.start_date
        return self.timing.start.date()

    def describe_time(self, tz: tzinfo | None = None) -> str:
        """Format the event time for display."""
        if isinstance(self.timing, AllDay):
            return "all day"
        start = self.timing.start.astimezone(tz)
        end = self.timing.end.astimezone(tz)
        return f"{format_kitchen(start)} - {format_kitchen(end)}"


def format_kitchen(dt: datetime | time) -> str:
    """3:04 PM style, without a leading zero on the hour."""
    return dt.strftime("%I:%M %p").lstrip("0")


def new_event(
    calendar_id: str,
    summary: str,
    timing: Timing,
    location: str = "",
    description: str = "",
) -> EventRecord:
    """An event that has not been created on the provider yet (empty id)."""
    return EventRecord(
        id="",
        calendar_id=calendar_id,
        summary=summary,
        timing=timing,
        location=location,
        description=description,
    )


def day_range(target_date: date, tz: tzinfo) -> tuple[datetime, datetime]:
    """Half-open [midnight, next midnight) range of a date in a zone."""
    start = datetime.combine(target_date, time(0, 0), tzinfo=tz)
    end = datetime.combine(target_date + timedelta(days=1), time(0, 0), tzinfo=tz)
    return start, end


def _all_day_key(event: EventRecord) -> tuple:
    return (event.timing.start_date, event.summary, event.calendar_id, event.id)


def _timed_key(event: EventRecord) -> tuple:
    return (event.timing.start, event.summary, event.calendar_id, event.id)


def merge_events(events: list[EventRecord]) -> list[EventRecord]:
    """
    Combine events from any number of calendars into one display order.

    All-day events come first, ordered by date then summary; timed events
    follow, ordered by start instant then summary. Calendar id and event id
    break any remaining tie, so the result never depends on fetch order.

    Pure function - no I/O.
    """
    all_day = [e for e in events if e.is_all_day]
    timed = [e for e in events if not e.is_all_day]
    return sorted(all_day, key=_all_day_key) + sorted(timed, key=_timed_key)


def filter_selected(calendars: list[CalendarSource]) -> list[CalendarSource]:
    return [c for c in calendars if c.selected]


def filter_modifiable(calendars: list[CalendarSource]) -> list[CalendarSource]:
    """Calendars the user may create events in (owner or writer)."""
    return [c for c in calendars if c.is_modifiable]


def sort_calendars(calendars: list[CalendarSource]) -> list[CalendarSource]:
    """Sort calendars by display name."""
    return sorted(calendars, key=lambda c: c.display_name)

