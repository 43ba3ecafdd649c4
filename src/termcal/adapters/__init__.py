"""Adapters - I/O implementations of ports."""

from .google_calendar import GoogleCalendarProvider

__all__ = [
    "GoogleCalendarProvider",
]
