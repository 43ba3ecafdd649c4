"""Fan-out/fan-in aggregation of one day's events across calendars."""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, tzinfo

from termcal.cache import EventCache
from termcal.core.calendar import CalendarSource, EventRecord, day_range, merge_events
from termcal.errors import ProviderError
from termcal.ports.calendar_provider import CalendarProvider

logger = logging.getLogger(__name__)


@dataclass
class AggregateResult:
    """Merged events for one date, or the error that aborted the aggregation."""

    date: date
    events: list[EventRecord] = field(default_factory=list)
    error: ProviderError | None = None
    failures: list[ProviderError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class _Fetched:
    calendar_id: str
    events: tuple[EventRecord, ...]


@dataclass
class _Failed:
    calendar_id: str
    error: ProviderError


class Aggregator:
    """
    Gets one date's events from every selected calendar concurrently.

    Each calendar runs as its own task: a cache hit is sent straight away, a
    miss calls the provider in a worker thread and caches the result before
    sending it. Results fan in through a queue with room for one item, and a
    counter of outstanding tasks tells the consumer when everyone reported.

    In strict mode the first failure discards the whole aggregation. The
    consumer then stops reading and sets a done flag, which releases any task
    blocked on sending. Tasks still waiting on the network finish in the
    background; their results go to the cache or are dropped.
    """

    def __init__(
        self,
        provider: CalendarProvider,
        cache: EventCache,
        tz: tzinfo,
        strict: bool = True,
    ):
        self.provider = provider
        self.cache = cache
        self.tz = tz
        self.strict = strict
        self._background: set[asyncio.Task] = set()

    async def aggregate(
        self, calendars: list[CalendarSource], target_date: date
    ) -> AggregateResult:
        range_start, range_end = day_range(target_date, self.tz)
        if not calendars:
            return AggregateResult(date=target_date)

        results: asyncio.Queue = asyncio.Queue(maxsize=1)
        done = asyncio.Event()
        tasks = [
            asyncio.create_task(self._forward(cal.id, range_start, range_end, results, done))
            for cal in calendars
        ]
        for task in tasks:
            self._background.add(task)
            task.add_done_callback(self._background.discard)

        events: list[EventRecord] = []
        failures: list[ProviderError] = []
        pending = len(tasks)
        try:
            while pending:
                outcome = await results.get()
                pending -= 1
                if isinstance(outcome, _Failed):
                    failures.append(outcome.error)
                    if self.strict:
                        break
                else:
                    events.extend(outcome.events)
        finally:
            done.set()

        if failures and self.strict:
            logger.warning(
                f"Aggregation for {target_date.isoformat()} failed on "
                f"{failures[0].calendar_id}: {failures[0]}"
            )
            return AggregateResult(date=target_date, error=failures[0], failures=failures)

        for failure in failures:
            logger.warning(f"Skipping calendar {failure.calendar_id}: {failure}")
        return AggregateResult(date=target_date, events=merge_events(events), failures=failures)

    async def _forward(
        self,
        calendar_id: str,
        range_start: datetime,
        range_end: datetime,
        results: asyncio.Queue,
        done: asyncio.Event,
    ) -> None:
        outcome: _Fetched | _Failed
        try:
            events = await self._fetch(calendar_id, range_start, range_end)
            outcome = _Fetched(calendar_id, events)
        except ProviderError as e:
            if e.calendar_id is None:
                e.calendar_id = calendar_id
            outcome = _Failed(calendar_id, e)
        except Exception as e:
            logger.exception(f"Unexpected error fetching {calendar_id}")
            outcome = _Failed(calendar_id, ProviderError(str(e), calendar_id=calendar_id))
        await _send(results, outcome, done)

    async def _fetch(
        self, calendar_id: str, range_start: datetime, range_end: datetime
    ) -> tuple[EventRecord, ...]:
        cached = self.cache.get(calendar_id, range_start, range_end)
        if cached is not None:
            return cached
        generation = self.cache.generation
        fetched = await asyncio.to_thread(
            self.provider.list_events, calendar_id, range_start, range_end
        )
        events = tuple(fetched)
        self.cache.put(calendar_id, range_start, range_end, events, generation=generation)
        return events

    async def drain(self) -> None:
        """Wait for background fetches still in flight before the event loop closes."""
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)


async def _send(queue: asyncio.Queue, item, done: asyncio.Event) -> bool:
    """Put item on the queue unless the consumer has stopped reading."""
    if done.is_set():
        return False
    put = asyncio.ensure_future(queue.put(item))
    stop = asyncio.ensure_future(done.wait())
    finished, unfinished = await asyncio.wait({put, stop}, return_when=asyncio.FIRST_COMPLETED)
    for task in unfinished:
        task.cancel()
    return put in finished
