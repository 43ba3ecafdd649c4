"""In-process event cache keyed by calendar and time range."""

import logging
import threading
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable

from termcal.core.calendar import EventRecord

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300  # 5 minutes

CacheKey = tuple[str, datetime, datetime]


@dataclass(frozen=True)
class CacheEntry:
    """Events returned by the provider for one exact key."""

    events: tuple[EventRecord, ...]
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class EventCache:
    """
    Thread-safe cache of per-calendar event lists.

    Keys must match exactly on (calendar_id, range_start, range_end); a cached
    range is never reused to answer a different one. Expiry is checked
    lazily when an entry is read. A single lock guards the key map, so two
    writers racing on one key leave whichever wrote last.

    Every flush starts a new generation. A writer that read the provider
    before a flush passes the generation it started in, and its put is
    dropped, so a fetch begun before a mutation cannot repopulate the cache.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[CacheKey, CacheEntry] = {}
        self._generation = 0
        self._lock = threading.Lock()

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    def get(
        self, calendar_id: str, range_start: datetime, range_end: datetime
    ) -> tuple[EventRecord, ...] | None:
        """Cached events for the exact key, or None on a miss or expiry."""
        key = (calendar_id, range_start, range_end)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                logger.debug(f"Cache miss for {calendar_id} {range_start.isoformat()}")
                return None
            if entry.is_expired(self._clock()):
                del self._entries[key]
                logger.debug(f"Cache entry expired for {calendar_id} {range_start.isoformat()}")
                return None
            return entry.events

    def put(
        self,
        calendar_id: str,
        range_start: datetime,
        range_end: datetime,
        events: Iterable[EventRecord],
        generation: int | None = None,
    ) -> bool:
        """
        Store events for a key, replacing any previous entry wholesale.

        Returns False without storing when generation is given and a flush
        has happened since it was read.
        """
        entry = CacheEntry(events=tuple(events), expires_at=self._clock() + self.ttl_seconds)
        with self._lock:
            if generation is not None and generation != self._generation:
                logger.debug(f"Dropping fetch of {calendar_id} started before a flush")
                return False
            self._entries[(calendar_id, range_start, range_end)] = entry
        return True

    def flush_all(self) -> None:
        """Drop every entry and start a new generation."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            self._generation += 1
        logger.debug(f"Flushed {count} cache entries")

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
