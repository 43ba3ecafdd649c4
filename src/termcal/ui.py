"""Terminal rendering and dialogs, drawn with click."""

import shutil
from datetime import date, datetime, timedelta, tzinfo
from itertools import zip_longest
from typing import Callable, TypeVar

import click

from termcal.app import CalendarApp, Screen
from termcal.core.calendar import (
    AllDay,
    CalendarSource,
    EventRecord,
    Timed,
    format_kitchen,
    new_event,
)
from termcal.core.navigation import DayBucket, ViewPeriod
from termcal.core.timeparse import format_date_fields, parse_date, parse_time
from termcal.errors import ParseError
from termcal.keymap import HELP_TEXT

T = TypeVar("T")

TITLE = "termcal"
ACCENT = "blue"
MIN_COLUMN_WIDTH = 12


def _truncate(text: str, width: int) -> str:
    if len(text) <= width:
        return text
    return text[: max(width - 1, 0)] + "…"


def _pad(text: str, visible: str, width: int) -> str:
    """Pad a styled string using the length of its unstyled text."""
    return text + " " * max(width - len(visible), 0)


def bucket_lines(
    bucket: DayBucket,
    width: int,
    is_today: bool,
    is_focused: bool,
    selected: int | None,
    tz: tzinfo | None,
) -> list[str]:
    """Render one day bucket as a column of fixed-width lines."""
    title = _truncate(bucket.title, width)
    style = {"bold": True}
    if is_today:
        style.update(fg="white", bg=ACCENT)
    elif is_focused:
        style.update(underline=True)
    lines = [_pad(click.style(title, **style), title, width)]

    if bucket.loading:
        lines.append(_pad(click.style("loading…", dim=True), "loading…", width))
    elif not bucket.events:
        lines.append(_pad(click.style("no events", dim=True), "no events", width))

    for i, event in enumerate(bucket.events):
        summary = _truncate(event.summary or "(no title)", width)
        when = _truncate(event.describe_time(tz), width)
        if selected == i:
            lines.append(_pad(click.style(summary, fg=ACCENT, bold=True), summary, width))
            lines.append(_pad(click.style(when, fg=ACCENT), when, width))
        else:
            lines.append(_pad(summary, summary, width))
            lines.append(_pad(click.style(when, dim=True), when, width))
    return lines


def render_grid(app: CalendarApp, width: int) -> list[str]:
    """The day or week grid as printable lines."""
    nav = app.navigator
    buckets = nav.visible_buckets()
    if nav.view_period is ViewPeriod.DAY:
        column_width = max(width - 2, MIN_COLUMN_WIDTH)
    else:
        column_width = max(width // len(buckets) - 1, MIN_COLUMN_WIDTH)

    columns = []
    for bucket in buckets:
        focused = bucket is nav.focused_bucket
        columns.append(
            bucket_lines(
                bucket,
                column_width,
                is_today=nav.is_today(bucket),
                is_focused=focused,
                selected=nav.selected_index if focused else None,
                tz=app.tz,
            )
        )

    blank = " " * column_width
    return [" ".join(row) for row in zip_longest(*columns, fillvalue=blank)]


def render_help(show_all: bool) -> str:
    if not show_all:
        return click.style("? help", dim=True)
    return click.style("  ".join(f"{k} {label}" for k, label in HELP_TEXT), dim=True)


class ClickTerminal:
    """
    Terminal front end built on click.

    Implements Terminal protocol. Dialogs are sequential prompts; a ctrl+c or
    EOF inside a dialog cancels it.
    """

    def render(self, app: CalendarApp) -> None:
        width = shutil.get_terminal_size().columns
        click.clear()
        click.echo(click.style(f" {TITLE} ", bold=True, bg=ACCENT, fg="white").center(width))
        click.echo()
        if app.screen is Screen.LOADING:
            click.echo("Loading...")
            return

        nav = app.navigator
        view = "Day" if nav.view_period is ViewPeriod.DAY else "Week"
        click.echo(f"{view} of {nav.focused_date.strftime('%A, %B %d, %Y')}")
        click.echo()
        for line in render_grid(app, width):
            click.echo(line)
        click.echo()
        if app.status:
            click.echo(click.style(app.status, fg="red" if app.status.startswith("Error") else None))
        click.echo(render_help(app.show_help))

    def read_key(self) -> str:
        try:
            return click.getchar()
        except KeyboardInterrupt:
            return "\x03"
        except EOFError:
            return "q"

    # ---- dialogs ----

    def prompt_date(self, default: date) -> date | None:
        click.echo()
        try:
            return _prompt_parsed("Go to date", format_date_fields(default), parse_date)
        except click.Abort:
            return None

    def prompt_event(
        self,
        calendars: list[CalendarSource],
        event: EventRecord | None,
        focused_date: date,
        tz: tzinfo,
    ) -> EventRecord | None:
        click.echo()
        try:
            if event is None:
                click.echo("Create event")
                calendar_id = _choose_calendar(calendars).id
                start, end = _default_times(focused_date, tz)
                summary_default, all_day_default = "", False
            else:
                click.echo(f"Edit event: {event.summary}")
                calendar_id = event.calendar_id
                summary_default = event.summary
                all_day_default = event.is_all_day
                start, end = _event_times(event, tz)

            summary = click.prompt("Title", default=summary_default or None, type=str)
            all_day = click.confirm("All day?", default=all_day_default)
            start_date = _prompt_parsed("Start date", format_date_fields(start.date()), parse_date)

            if all_day:
                last_date = _prompt_parsed(
                    "End date", format_date_fields(max(end.date(), start_date)), parse_date
                )
                while last_date < start_date:
                    click.echo("End date must not be before start date")
                    last_date = _prompt_parsed("End date", format_date_fields(start_date), parse_date)
                timing = AllDay(start_date, last_date + timedelta(days=1))
            else:
                start_time = _prompt_parsed("Start time", format_kitchen(start), parse_time)
                end_date = _prompt_parsed(
                    "End date", format_date_fields(max(end.date(), start_date)), parse_date
                )
                end_time = _prompt_parsed("End time", format_kitchen(end), parse_time)
                begins = datetime.combine(start_date, start_time, tzinfo=tz)
                ends = datetime.combine(end_date, end_time, tzinfo=tz)
                while ends <= begins:
                    click.echo("End must be after start")
                    fallback = begins + timedelta(hours=1)
                    end_date = _prompt_parsed("End date", format_date_fields(fallback.date()), parse_date)
                    end_time = _prompt_parsed("End time", format_kitchen(fallback), parse_time)
                    ends = datetime.combine(end_date, end_time, tzinfo=tz)
                timing = Timed(begins, ends)
        except click.Abort:
            return None

        if event is None:
            return new_event(calendar_id, summary, timing)
        return new_event(
            calendar_id,
            summary,
            timing,
            location=event.location,
            description=event.description,
        )

    def confirm_delete(self, event: EventRecord) -> bool:
        click.echo()
        try:
            return click.confirm(f"Delete '{event.summary}'?", default=False)
        except click.Abort:
            return False

    def prompt_calendar_toggle(self, calendars: list[CalendarSource]) -> CalendarSource | None:
        click.echo()
        if not calendars:
            click.echo("No calendars.")
            return None
        for i, calendar in enumerate(calendars, start=1):
            mark = "[x]" if calendar.selected else "[ ]"
            click.echo(f"  {i:2}. {mark} {calendar.display_name}")
        try:
            choice = click.prompt(
                "Toggle calendar (0 to cancel)",
                type=click.IntRange(0, len(calendars)),
                default=0,
            )
        except click.Abort:
            return None
        if choice == 0:
            return None
        return calendars[choice - 1]


def _prompt_parsed(label: str, default: str, parse: Callable[[str], T]) -> T:
    """click.prompt that re-asks until parse accepts the input."""

    def convert(value: str) -> T:
        try:
            return parse(value)
        except ParseError as e:
            raise click.BadParameter(str(e))

    return click.prompt(label, default=default, value_proc=convert)


def _choose_calendar(calendars: list[CalendarSource]) -> CalendarSource:
    if len(calendars) == 1:
        return calendars[0]
    for i, calendar in enumerate(calendars, start=1):
        click.echo(f"  {i:2}. {calendar.display_name}")
    choice = click.prompt("Calendar", type=click.IntRange(1, len(calendars)), default=1)
    return calendars[choice - 1]


def _default_times(focused_date: date, tz: tzinfo) -> tuple[datetime, datetime]:
    """Current time of day on the focused date, lasting an hour."""
    now = datetime.now(tz)
    start = datetime.combine(focused_date, now.time().replace(second=0, microsecond=0), tzinfo=tz)
    return start, start + timedelta(hours=1)


def _event_times(event: EventRecord, tz: tzinfo) -> tuple[datetime, datetime]:
    timing = event.timing
    if isinstance(timing, AllDay):
        start = datetime.combine(timing.start_date, datetime.min.time(), tzinfo=tz)
        last = max(timing.end_date - timedelta(days=1), timing.start_date)
        return start, datetime.combine(last, datetime.min.time(), tzinfo=tz)
    return timing.start.astimezone(tz), timing.end.astimezone(tz)
