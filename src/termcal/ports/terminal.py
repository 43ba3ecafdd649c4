"""Terminal front-end interface."""

from datetime import date, tzinfo
from typing import TYPE_CHECKING, Protocol

from termcal.core.calendar import CalendarSource, EventRecord

if TYPE_CHECKING:
    from termcal.app import CalendarApp


class Terminal(Protocol):
    """
    Interface for drawing the grid and running dialogs.

    Everything except render blocks on user input and is called from a
    worker thread, never from the event loop.
    """

    def render(self, app: "CalendarApp") -> None:
        """Redraw the calendar grid."""
        ...

    def read_key(self) -> str:
        """Block until a key is pressed."""
        ...

    def prompt_date(self, default: date) -> date | None:
        """Ask for a date to jump to. None if cancelled."""
        ...

    def prompt_event(
        self,
        calendars: list[CalendarSource],
        event: EventRecord | None,
        focused_date: date,
        tz: tzinfo,
    ) -> EventRecord | None:
        """Collect a new or edited event. None if cancelled."""
        ...

    def confirm_delete(self, event: EventRecord) -> bool:
        ...

    def prompt_calendar_toggle(self, calendars: list[CalendarSource]) -> CalendarSource | None:
        """Pick a calendar whose selected flag should flip. None if cancelled."""
        ...
