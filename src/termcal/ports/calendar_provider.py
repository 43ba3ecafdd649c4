"""Calendar provider interface."""

from datetime import datetime
from typing import Protocol

from termcal.core.calendar import CalendarSource, EventRecord


class CalendarProvider(Protocol):
    """
    Interface to a remote calendar service.

    Methods block on the network and raise ProviderError on failure; callers
    on the event loop run them in a worker thread.
    """

    def list_calendars(self) -> list[CalendarSource]:
        """List the user's calendars, sorted by display name."""
        ...

    def list_events(
        self, calendar_id: str, range_start: datetime, range_end: datetime
    ) -> list[EventRecord]:
        """
        Non-cancelled single occurrences in [range_start, range_end).

        Recurring events come back expanded, ordered by start time.
        """
        ...

    def create_event(self, calendar_id: str, event: EventRecord) -> EventRecord:
        """Create an event; the id of the given record is ignored."""
        ...

    def update_event(self, calendar_id: str, event_id: str, event: EventRecord) -> EventRecord:
        """Replace summary, timing, location and description of an event."""
        ...

    def delete_event(self, calendar_id: str, event_id: str) -> None:
        ...

    def set_calendar_selected(self, calendar_id: str, selected: bool) -> None:
        """Persist a calendar's selected flag."""
        ...
