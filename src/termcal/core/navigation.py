"""Navigation and focus state for the day/week grid - no I/O.

The grid owns seven day buckets, one per weekday slot (Sunday = 0). Moving
the focused date either stays inside the loaded window, in which case only
the focus changes, or leaves it, in which case the buckets are relabelled
for the new window and the caller is told which dates to aggregate.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum

from .calendar import EventRecord

DAYS_IN_WEEK = 7


class ViewPeriod(Enum):
    """How many dates the grid shows at once."""

    DAY = 1
    WEEK = 7

    @property
    def days(self) -> int:
        return self.value

    @classmethod
    def parse(cls, value: str) -> "ViewPeriod":
        return cls.DAY if value.lower() == "day" else cls.WEEK


def truncate_to_day(value: date | datetime) -> date:
    """Drop any time-of-day component."""
    if isinstance(value, datetime):
        return value.date()
    return value


def weekday_slot(d: date) -> int:
    """Sunday-based weekday index (Sunday = 0, Saturday = 6)."""
    return (d.weekday() + 1) % DAYS_IN_WEEK


def start_of_week(d: date) -> date:
    """The Sunday on or before d."""
    return d - timedelta(days=weekday_slot(d))


def week_dates(d: date) -> list[date]:
    """The seven dates, Sunday through Saturday, of d's week."""
    first = start_of_week(d)
    return [first + timedelta(days=i) for i in range(DAYS_IN_WEEK)]


def in_different_weeks(a: date, b: date) -> bool:
    """True if b falls outside the Sunday-Saturday week containing a."""
    first = start_of_week(a)
    last = first + timedelta(days=DAYS_IN_WEEK - 1)
    return b < first or b > last


@dataclass
class FocusState:
    """Real today, the date under focus, and the current view period."""

    current_date: date
    focused_date: date
    view_period: ViewPeriod = ViewPeriod.WEEK

    def __post_init__(self):
        self.current_date = truncate_to_day(self.current_date)
        self.focused_date = truncate_to_day(self.focused_date)


@dataclass
class DayBucket:
    """Merged events shown for one date in one weekday slot."""

    slot: int
    date: date
    events: list[EventRecord] = field(default_factory=list)
    loading: bool = False
    version: int = 0

    @property
    def title(self) -> str:
        return f"{self.date:%a %b} {self.date.day}"


class Navigator:
    """
    Focus state machine over the seven day buckets.

    Every navigation command returns the dates that need a fresh aggregation.
    An empty list means the move stayed inside the loaded window.
    """

    def __init__(self, state: FocusState):
        self.state = state
        self.buckets = [
            DayBucket(slot=weekday_slot(d), date=d) for d in week_dates(state.focused_date)
        ]
        self.selected_index = 0

    @property
    def focused_date(self) -> date:
        return self.state.focused_date

    @property
    def view_period(self) -> ViewPeriod:
        return self.state.view_period

    @property
    def focused_bucket(self) -> DayBucket:
        return self.buckets[weekday_slot(self.state.focused_date)]

    def bucket_for(self, d: date) -> DayBucket:
        return self.buckets[weekday_slot(d)]

    def visible_buckets(self) -> list[DayBucket]:
        """Buckets to draw, in display order."""
        if self.state.view_period is ViewPeriod.DAY:
            return [self.focused_bucket]
        return [self.bucket_for(d) for d in week_dates(self.state.focused_date)]

    def window_dates(self) -> list[date]:
        """Dates covered by the current view (1 for Day, 7 for Week)."""
        if self.state.view_period is ViewPeriod.DAY:
            return [self.state.focused_date]
        return week_dates(self.state.focused_date)

    def is_today(self, bucket: DayBucket) -> bool:
        return bucket.date == self.state.current_date

    def is_out_of_view(self, prev: date, curr: date) -> bool:
        if self.state.view_period is ViewPeriod.DAY:
            return prev != curr
        return in_different_weeks(prev, curr)

    # ---- navigation commands ----

    def focus(self, target: date | datetime) -> list[date]:
        """Move focus to target; relabel and return the window if it left view."""
        prev = self.state.focused_date
        self.state.focused_date = truncate_to_day(target)
        self.selected_index = 0
        if self.is_out_of_view(prev, self.state.focused_date):
            return self.relabel()
        return []

    def next_period(self) -> list[date]:
        return self.focus(self.state.focused_date + timedelta(days=self.state.view_period.days))

    def prev_period(self) -> list[date]:
        return self.focus(self.state.focused_date - timedelta(days=self.state.view_period.days))

    def next_day(self) -> list[date]:
        return self.focus(self.state.focused_date + timedelta(days=1))

    def prev_day(self) -> list[date]:
        return self.focus(self.state.focused_date - timedelta(days=1))

    def today(self) -> list[date]:
        return self.focus(self.state.current_date)

    def goto(self, target: date | datetime) -> list[date]:
        return self.focus(target)

    def set_view(self, period: ViewPeriod) -> list[date]:
        """Switch Day/Week; the newly visible window is always refetched."""
        self.state.view_period = period
        return self.relabel()

    def relabel(self) -> list[date]:
        """
        Point the buckets of the current window at their new dates.

        In Day view only the focused slot is relabelled; in Week view all
        seven are. Relabelled buckets are emptied and marked loading, and their
        version is bumped so replies to earlier requests can be told apart.
        """
        dates = self.window_dates()
        for d in dates:
            bucket = self.bucket_for(d)
            if bucket.date != d:
                bucket.events = []
            bucket.date = d
            bucket.loading = True
            bucket.version += 1
        return dates

    # ---- results ----

    def _is_current(self, bucket: DayBucket, d: date, version: int | None) -> bool:
        return bucket.date == d and (version is None or bucket.version == version)

    def apply_events(self, d: date, events: list[EventRecord], version: int | None = None) -> bool:
        """
        Store aggregated events for d.

        Returns False, leaving the bucket untouched, when the slot has since
        been relabelled to another date, or when version is given and the
        bucket has been relabelled again since that request was made.
        """
        bucket = self.bucket_for(d)
        if not self._is_current(bucket, d, version):
            return False
        bucket.events = list(events)
        bucket.loading = False
        if bucket is self.focused_bucket:
            self.selected_index = min(self.selected_index, max(len(events) - 1, 0))
        return True

    def mark_failed(self, d: date, version: int | None = None) -> None:
        bucket = self.bucket_for(d)
        if self._is_current(bucket, d, version):
            bucket.loading = False

    # ---- selection within the focused bucket ----

    def select_next(self) -> None:
        count = len(self.focused_bucket.events)
        if count:
            self.selected_index = min(self.selected_index + 1, count - 1)

    def select_prev(self) -> None:
        self.selected_index = max(self.selected_index - 1, 0)

    def selected_event(self) -> EventRecord | None:
        events = self.focused_bucket.events
        if 0 <= self.selected_index < len(events):
            return events[self.selected_index]
        return None
