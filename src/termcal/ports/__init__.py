"""Ports - interfaces/protocols for external dependencies."""

from .calendar_provider import CalendarProvider
from .terminal import Terminal

__all__ = [
    "CalendarProvider",
    "Terminal",
]
