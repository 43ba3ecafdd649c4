"""Messages delivered to the app's event loop."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum

from termcal.core.calendar import CalendarSource, EventRecord


class Mutation(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class KeyPressed:
    key: str


@dataclass(frozen=True)
class CalendarsLoaded:
    calendars: list[CalendarSource]


@dataclass(frozen=True)
class EventsLoaded:
    date: date
    events: list[EventRecord]
    warnings: list[str] = field(default_factory=list)
    version: int | None = None


@dataclass(frozen=True)
class ErrorOccurred:
    error: Exception
    date: date | None = None
    version: int | None = None
    from_dialog: bool = False


@dataclass(frozen=True)
class CalendarsFailed:
    """The calendar list could not be loaded; the grid stays empty until a retry."""

    error: Exception


@dataclass(frozen=True)
class GotoDate:
    date: date


@dataclass(frozen=True)
class MutationRequested:
    """A create/update/delete the user confirmed in a dialog."""

    kind: Mutation
    calendar_id: str
    event_id: str = ""
    event: EventRecord | None = None


@dataclass(frozen=True)
class MutationSucceeded:
    kind: Mutation
    event: EventRecord | None = None


@dataclass(frozen=True)
class ToggleCalendarRequested:
    calendar_id: str
    selected: bool


@dataclass(frozen=True)
class CalendarUpdated:
    calendar_id: str


@dataclass(frozen=True)
class DialogClosed:
    """A dialog ended without producing a request."""

    pass
