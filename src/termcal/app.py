"""Message-driven event loop for the interactive calendar.

All state lives on CalendarApp and is only touched by update(), which runs
on the event loop one message at a time. Anything that blocks (provider
calls, reading keys, dialogs) runs as a command: a coroutine whose return
value is posted back to the loop as the next message.
"""

import asyncio
import logging
from datetime import date, tzinfo
from enum import Enum, auto
from typing import Awaitable, Callable

from termcal.aggregator import Aggregator
from termcal.cache import EventCache
from termcal.core.calendar import (
    CalendarSource,
    filter_modifiable,
    filter_selected,
)
from termcal.core.navigation import FocusState, Navigator, ViewPeriod
from termcal.errors import ProviderError
from termcal.keymap import DEFAULT_KEYMAP, Action
from termcal.messages import (
    CalendarsFailed,
    CalendarsLoaded,
    CalendarUpdated,
    DialogClosed,
    ErrorOccurred,
    EventsLoaded,
    GotoDate,
    KeyPressed,
    Mutation,
    MutationRequested,
    MutationSucceeded,
    ToggleCalendarRequested,
)
from termcal.ports.calendar_provider import CalendarProvider
from termcal.ports.terminal import Terminal

logger = logging.getLogger(__name__)

Command = Callable[[], Awaitable[object | None]]

_MUTATION_DONE = {
    Mutation.CREATE: "Event created",
    Mutation.UPDATE: "Event updated",
    Mutation.DELETE: "Event deleted",
}

# Keys that retry a failed calendar list load
_RETRIES_CALENDARS = {
    Action.NEXT_PERIOD,
    Action.PREV_PERIOD,
    Action.NEXT_DAY,
    Action.PREV_DAY,
    Action.TODAY,
    Action.DAY_VIEW,
    Action.WEEK_VIEW,
}


class Screen(Enum):
    LOADING = auto()
    BROWSING = auto()
    DIALOG = auto()


class CalendarApp:
    """Owns the grid state and turns messages into state changes and commands."""

    def __init__(
        self,
        provider: CalendarProvider,
        cache: EventCache,
        aggregator: Aggregator,
        terminal: Terminal,
        today: date,
        tz: tzinfo,
        view: ViewPeriod = ViewPeriod.WEEK,
    ):
        self.provider = provider
        self.cache = cache
        self.aggregator = aggregator
        self.terminal = terminal
        self.tz = tz
        self.navigator = Navigator(FocusState(current_date=today, focused_date=today, view_period=view))
        self.keymap = dict(DEFAULT_KEYMAP)
        self.calendars: list[CalendarSource] = []
        self.calendars_failed = False
        self.screen = Screen.LOADING
        self.status = ""
        self.show_help = False
        self.running = True
        self._queue: asyncio.Queue = asyncio.Queue()
        self._tasks: set[asyncio.Task] = set()

    # ---- event loop ----

    async def run(self) -> None:
        """Process messages until the user quits."""
        self.dispatch(self.init())
        self.terminal.render(self)
        while self.running:
            msg = await self._queue.get()
            commands = self.update(msg)
            if self.screen is not Screen.DIALOG:
                self.terminal.render(self)
            self.dispatch(commands)
        for task in list(self._tasks):
            task.cancel()

    def init(self) -> list[Command]:
        return [self.load_calendars(), self.read_key()]

    def dispatch(self, commands: list[Command]) -> None:
        """Start commands; each posts its resulting message back to the loop."""
        for command in commands:
            task = asyncio.create_task(self._execute(command))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def _execute(self, command: Command) -> None:
        try:
            msg = await command()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception("Command failed")
            msg = ErrorOccurred(e)
        if msg is not None:
            await self._queue.put(msg)

    # ---- update ----

    def update(self, msg) -> list[Command]:
        """Apply one message and return the commands it triggers."""
        match msg:
            case KeyPressed(key=key):
                return self.handle_key(key)

            case CalendarsLoaded(calendars=calendars):
                self.calendars = calendars
                self.calendars_failed = False
                if self.screen is Screen.LOADING:
                    self.screen = Screen.BROWSING
                return self.refresh(self.navigator.relabel())

            case CalendarsFailed(error=error):
                self.calendars_failed = True
                for d in self.navigator.window_dates():
                    self.navigator.mark_failed(d)
                if self.screen is Screen.LOADING:
                    self.screen = Screen.BROWSING
                self.status = f"Error: {error} (press r to retry)"
                return []

            case EventsLoaded(date=d, events=events, warnings=warnings, version=version):
                if not self.navigator.apply_events(d, events, version):
                    logger.debug(f"Dropping stale events for {d.isoformat()}")
                if warnings:
                    self.status = "Some calendars failed: " + "; ".join(warnings)
                return []

            case ErrorOccurred(error=error, date=d, version=version, from_dialog=from_dialog):
                if d is not None:
                    self.navigator.mark_failed(d, version)
                if self.screen is Screen.LOADING:
                    self.screen = Screen.BROWSING
                self.status = f"Error: {error}"
                if from_dialog:
                    # The dialog owned input; hand it back to the grid
                    self.screen = Screen.BROWSING
                    return [self.read_key()]
                return []

            case GotoDate(date=d):
                self.screen = Screen.BROWSING
                return self.refresh(self.navigator.goto(d)) + [self.read_key()]

            case MutationRequested():
                self.screen = Screen.BROWSING
                return [self.mutate(msg), self.read_key()]

            case MutationSucceeded(kind=kind):
                self.status = _MUTATION_DONE[kind]
                return self._invalidate()

            case ToggleCalendarRequested():
                self.screen = Screen.BROWSING
                return [self.toggle_calendar(msg), self.read_key()]

            case CalendarUpdated():
                return [self.load_calendars()]

            case DialogClosed():
                self.screen = Screen.BROWSING
                return [self.read_key()]

        logger.warning(f"Unhandled message: {msg!r}")
        return []

    def handle_key(self, key: str) -> list[Command]:
        action = self.keymap.get(key)
        if action is Action.QUIT:
            self.running = False
            return []
        if self.screen is Screen.LOADING or action is None:
            return [self.read_key()]

        nav = self.navigator
        dates: list[date] = []
        match action:
            case Action.NEXT_PERIOD:
                dates = nav.next_period()
            case Action.PREV_PERIOD:
                dates = nav.prev_period()
            case Action.NEXT_DAY:
                dates = nav.next_day()
            case Action.PREV_DAY:
                dates = nav.prev_day()
            case Action.TODAY:
                dates = nav.today()
            case Action.DAY_VIEW:
                dates = nav.set_view(ViewPeriod.DAY)
            case Action.WEEK_VIEW:
                dates = nav.set_view(ViewPeriod.WEEK)
            case Action.SELECT_NEXT:
                nav.select_next()
            case Action.SELECT_PREV:
                nav.select_prev()
            case Action.HELP:
                self.show_help = not self.show_help
            case Action.GOTO_DATE:
                return self._open(self.goto_dialog())
            case Action.CREATE:
                if not filter_modifiable(self.calendars):
                    self.status = "No calendar you can write to"
                else:
                    return self._open(self.event_dialog(editing=False))
            case Action.EDIT:
                event = nav.selected_event()
                if event is not None:
                    if self._is_modifiable(event.calendar_id):
                        return self._open(self.event_dialog(editing=True))
                    self.status = "That calendar is read-only"
            case Action.DELETE:
                event = nav.selected_event()
                if event is not None:
                    if self._is_modifiable(event.calendar_id):
                        return self._open(self.delete_dialog())
                    self.status = "That calendar is read-only"
            case Action.CALENDAR_LIST:
                return self._open(self.calendar_dialog())
            case Action.RELOAD:
                self.cache.flush_all()
                self.calendars_failed = False
                return [self.load_calendars(), self.read_key()]
        if self.calendars_failed and action in _RETRIES_CALENDARS:
            # Loading the list refreshes the whole window
            self.calendars_failed = False
            return [self.load_calendars(), self.read_key()]
        return self.refresh(dates) + [self.read_key()]

    def _open(self, dialog: Command) -> list[Command]:
        """Hand input to a dialog; the grid reads no keys until it answers."""
        self.screen = Screen.DIALOG
        self.status = ""

        async def command():
            try:
                return await dialog()
            except Exception as e:
                logger.exception("Dialog failed")
                return ErrorOccurred(e, from_dialog=True)

        return [command]

    def _is_modifiable(self, calendar_id: str) -> bool:
        return any(c.id == calendar_id and c.is_modifiable for c in self.calendars)

    # ---- aggregation and invalidation ----

    def refresh(self, dates: list[date]) -> list[Command]:
        """One aggregation per date, tagged with the bucket version it was made for."""
        return [self.aggregate_date(d, self.navigator.bucket_for(d).version) for d in dates]

    def _invalidate(self) -> list[Command]:
        self.cache.flush_all()
        return self.refresh(self.navigator.relabel())

    def invalidate_and_refetch(self) -> None:
        """Flush the cache and re-aggregate the focused window."""
        self.dispatch(self._invalidate())

    # ---- commands ----

    def aggregate_date(self, d: date, version: int | None = None) -> Command:
        calendars = filter_selected(self.calendars)

        async def command():
            result = await self.aggregator.aggregate(calendars, d)
            if result.error is not None:
                return ErrorOccurred(result.error, date=d, version=version)
            return EventsLoaded(
                d,
                result.events,
                warnings=[str(f) for f in result.failures],
                version=version,
            )

        return command

    def load_calendars(self) -> Command:
        async def command():
            try:
                calendars = await asyncio.to_thread(self.provider.list_calendars)
            except ProviderError as e:
                logger.warning(f"Could not load calendars: {e}")
                return CalendarsFailed(e)
            return CalendarsLoaded(calendars)

        return command

    def mutate(self, request: MutationRequested) -> Command:
        async def command():
            event = None
            try:
                match request.kind:
                    case Mutation.CREATE:
                        event = await asyncio.to_thread(
                            self.provider.create_event, request.calendar_id, request.event
                        )
                    case Mutation.UPDATE:
                        event = await asyncio.to_thread(
                            self.provider.update_event,
                            request.calendar_id,
                            request.event_id,
                            request.event,
                        )
                    case Mutation.DELETE:
                        await asyncio.to_thread(
                            self.provider.delete_event, request.calendar_id, request.event_id
                        )
            except ProviderError as e:
                logger.warning(f"{request.kind.value} failed: {e}")
                return ErrorOccurred(e)
            return MutationSucceeded(request.kind, event)

        return command

    def toggle_calendar(self, request: ToggleCalendarRequested) -> Command:
        async def command():
            try:
                await asyncio.to_thread(
                    self.provider.set_calendar_selected, request.calendar_id, request.selected
                )
            except ProviderError as e:
                return ErrorOccurred(e)
            return CalendarUpdated(request.calendar_id)

        return command

    def read_key(self) -> Command:
        async def command():
            key = await asyncio.to_thread(self.terminal.read_key)
            return KeyPressed(key)

        return command

    # ---- dialogs ----

    def goto_dialog(self) -> Command:
        focused = self.navigator.focused_date

        async def command():
            target = await asyncio.to_thread(self.terminal.prompt_date, focused)
            if target is None:
                return DialogClosed()
            return GotoDate(target)

        return command

    def event_dialog(self, editing: bool) -> Command:
        calendars = filter_modifiable(self.calendars)
        event = self.navigator.selected_event() if editing else None
        focused = self.navigator.focused_date

        async def command():
            result = await asyncio.to_thread(
                self.terminal.prompt_event, calendars, event, focused, self.tz
            )
            if result is None:
                return DialogClosed()
            if event is None:
                return MutationRequested(Mutation.CREATE, result.calendar_id, event=result)
            return MutationRequested(
                Mutation.UPDATE, event.calendar_id, event_id=event.id, event=result
            )

        return command

    def delete_dialog(self) -> Command:
        event = self.navigator.selected_event()

        async def command():
            confirmed = await asyncio.to_thread(self.terminal.confirm_delete, event)
            if not confirmed:
                return DialogClosed()
            return MutationRequested(Mutation.DELETE, event.calendar_id, event_id=event.id)

        return command

    def calendar_dialog(self) -> Command:
        calendars = list(self.calendars)

        async def command():
            chosen = await asyncio.to_thread(self.terminal.prompt_calendar_toggle, calendars)
            if chosen is None:
                return DialogClosed()
            return ToggleCalendarRequested(chosen.id, not chosen.selected)

        return command
