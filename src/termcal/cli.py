"""termcal CLI - terminal calendar client."""

import asyncio
import json
import sys
from datetime import date, datetime

import click

from .adapters.google_calendar import GoogleCalendarProvider
from .aggregator import AggregateResult, Aggregator
from .app import CalendarApp
from .cache import EventCache
from .config import Config, configure_logging, load_config
from .core.calendar import EventRecord, filter_selected
from .core.navigation import ViewPeriod, week_dates
from .errors import ProviderError
from .ui import ClickTerminal


def _provider(config: Config) -> GoogleCalendarProvider:
    return GoogleCalendarProvider(
        config_folder=config.google_config_folder,
        client_secret_file=config.google_client_secret_file,
    )


def _aggregator(config: Config, provider: GoogleCalendarProvider) -> Aggregator:
    return Aggregator(
        provider,
        EventCache(ttl_seconds=config.cache_ttl_seconds),
        config.tz(),
        strict=config.strict_aggregation,
    )


@click.group(invoke_without_command=True)
@click.version_option(package_name="termcal")
@click.pass_context
def main(ctx):
    """termcal - Google Calendar in the terminal."""
    if ctx.invoked_subcommand is None:
        ctx.invoke(run)


@main.command()
@click.option("--debug", is_flag=True, help="Log debug output to the log file")
@click.option("--day", "view", flag_value="day", help="Start in Day view")
@click.option("--week", "view", flag_value="week", help="Start in Week view")
def run(debug: bool = False, view: str | None = None):
    """Open the interactive calendar."""
    configure_logging(debug)
    config = load_config()
    tz = config.tz()
    provider = _provider(config)
    aggregator = _aggregator(config, provider)

    async def _run():
        app = CalendarApp(
            provider=provider,
            cache=aggregator.cache,
            aggregator=aggregator,
            terminal=ClickTerminal(),
            today=datetime.now(tz).date(),
            tz=tz,
            view=ViewPeriod.parse(view or config.default_view),
        )
        await app.run()

    try:
        asyncio.run(_run())
    except ProviderError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    click.clear()


@main.command()
def auth():
    """Authenticate with Google Calendar."""
    configure_logging()
    config = load_config()
    provider = _provider(config)
    try:
        provider.authenticate()
    except ProviderError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    click.echo(f"✓ Token saved to {provider._token_path}")


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def calendars(as_json: bool):
    """List calendars and whether each is shown."""
    configure_logging()
    config = load_config()
    try:
        sources = _provider(config).list_calendars()
    except ProviderError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if as_json:
        click.echo(
            json.dumps(
                [
                    {
                        "id": c.id,
                        "name": c.display_name,
                        "selected": c.selected,
                        "access_role": c.access_role.value,
                    }
                    for c in sources
                ],
                indent=2,
            )
        )
        return

    if not sources:
        click.echo("No calendars.")
        return
    for c in sources:
        mark = "[x]" if c.selected else "[ ]"
        click.echo(f"{mark} {c.access_role.value:16} {c.display_name}  ({c.id})")


def _event_json(event: EventRecord) -> dict:
    timing = event.timing
    if event.is_all_day:
        start, end = timing.start_date.isoformat(), timing.end_date.isoformat()
    else:
        start, end = timing.start.isoformat(), timing.end.isoformat()
    return {
        "id": event.id,
        "calendar_id": event.calendar_id,
        "summary": event.summary,
        "start": start,
        "end": end,
        "all_day": event.is_all_day,
        "location": event.location,
    }


def _show_results(results: list[AggregateResult], as_json: bool, tz) -> None:
    if as_json:
        click.echo(
            json.dumps(
                {r.date.isoformat(): [_event_json(e) for e in r.events] for r in results},
                indent=2,
            )
        )
        return

    for i, result in enumerate(results):
        if i:
            click.echo()
        click.echo(f"### {result.date.strftime('%A, %B %d')}")
        if not result.events:
            click.echo("  No events.")
        for event in result.events:
            loc = f" @ {event.location}" if event.location else ""
            click.echo(f"  {event.describe_time(tz):20} {event.summary}{loc}")


@main.command()
@click.option(
    "--date",
    "on",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    default=None,
    help="Day to show (default: today)",
)
@click.option("--week", is_flag=True, help="Show the whole Sunday-Saturday week")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def agenda(on: datetime | None, week: bool, as_json: bool):
    """Print one day's (or week's) merged events."""
    configure_logging()
    config = load_config()
    tz = config.tz()
    provider = _provider(config)
    aggregator = _aggregator(config, provider)
    target: date = on.date() if on else datetime.now(tz).date()
    dates = week_dates(target) if week else [target]

    async def _aggregate():
        sources = await asyncio.to_thread(provider.list_calendars)
        selected = filter_selected(sources)
        results = await asyncio.gather(*(aggregator.aggregate(selected, d) for d in dates))
        # A failed day leaves fetches for other calendars running
        await aggregator.drain()
        return results

    try:
        results = asyncio.run(_aggregate())
    except ProviderError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    failed = [r for r in results if not r.ok]
    if failed:
        click.echo(f"Error: {failed[0].error}", err=True)
        sys.exit(1)
    for result in results:
        for failure in result.failures:
            click.echo(f"Warning: skipped {failure.calendar_id}: {failure}", err=True)

    _show_results(list(results), as_json, tz)


@main.command()
@click.argument("calendar_id")
def toggle(calendar_id: str):
    """Show or hide a calendar."""
    configure_logging()
    config = load_config()
    provider = _provider(config)
    try:
        sources = provider.list_calendars()
        source = next((c for c in sources if c.id == calendar_id), None)
        if source is None:
            click.echo(f"Error: no calendar with id '{calendar_id}'", err=True)
            sys.exit(1)
        provider.set_calendar_selected(calendar_id, not source.selected)
    except ProviderError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    click.echo(f"{source.display_name}: {'hidden' if source.selected else 'shown'}")
