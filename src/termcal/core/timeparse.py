"""Parsing of user-entered dates and times."""

from datetime import date, datetime, time

from termcal.errors import ParseError

# Tried in order; "3:04PM", "3:04 PM", "15:04", "3", "3PM", "3 PM"
_TIME_FORMATS = ["%I:%M%p", "%I:%M %p", "%H:%M", "%H", "%I%p", "%I %p"]
_DATE_FORMATS = ["%Y-%m-%d", "%b %d %Y", "%B %d %Y", "%m/%d/%Y"]


def parse_time(text: str) -> time:
    """
    Parse a loosely formatted time of day.

    Accepts 12h and 24h forms. Digits-only input of three or more characters
    gets a colon inserted before the last two digits, so "1530" means 15:30.
    """
    value = text.strip().upper()
    if ":" not in value and not any(c in value for c in "APM") and len(value) >= 3:
        value = f"{value[:-2]}:{value[-2:]}"

    for fmt in _TIME_FORMATS:
        try:
            return datetime.strptime(value, fmt).time()
        except ValueError:
            continue
    raise ParseError(f"Failed to parse time: '{text}'")


def parse_date(text: str) -> date:
    """Parse a date such as "2024-06-03", "Jun 3 2024" or "06/03/2024"."""
    value = " ".join(text.split())
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    raise ParseError(f"Failed to parse date: '{text}'")


def format_date_fields(d: date) -> str:
    """Render a date in the form parse_date reads back, e.g. "Jun 03 2024"."""
    return d.strftime("%b %d %Y")
