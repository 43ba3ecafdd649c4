"""Functional core - pure business logic with no I/O."""

from .calendar import (
    AccessRole,
    AllDay,
    CalendarSource,
    EventRecord,
    Timed,
    day_range,
    filter_modifiable,
    filter_selected,
    merge_events,
    new_event,
)
from .navigation import DayBucket, FocusState, Navigator, ViewPeriod
from .timeparse import parse_date, parse_time

__all__ = [
    # Calendar
    "AccessRole",
    "AllDay",
    "CalendarSource",
    "EventRecord",
    "Timed",
    "day_range",
    "filter_modifiable",
    "filter_selected",
    "merge_events",
    "new_event",
    # Navigation
    "DayBucket",
    "FocusState",
    "Navigator",
    "ViewPeriod",
    # Parsing
    "parse_date",
    "parse_time",
]
