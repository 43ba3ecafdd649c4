"""Key bindings for the calendar grid."""

from enum import Enum, auto


class Action(Enum):
    NEXT_PERIOD = auto()
    PREV_PERIOD = auto()
    NEXT_DAY = auto()
    PREV_DAY = auto()
    SELECT_NEXT = auto()
    SELECT_PREV = auto()
    TODAY = auto()
    GOTO_DATE = auto()
    DAY_VIEW = auto()
    WEEK_VIEW = auto()
    CREATE = auto()
    EDIT = auto()
    DELETE = auto()
    CALENDAR_LIST = auto()
    RELOAD = auto()
    HELP = auto()
    QUIT = auto()


DEFAULT_KEYMAP: dict[str, Action] = {
    "n": Action.NEXT_PERIOD,
    "p": Action.PREV_PERIOD,
    "l": Action.NEXT_DAY,
    "h": Action.PREV_DAY,
    "j": Action.SELECT_NEXT,
    "k": Action.SELECT_PREV,
    "t": Action.TODAY,
    "g": Action.GOTO_DATE,
    "d": Action.DAY_VIEW,
    "w": Action.WEEK_VIEW,
    "c": Action.CREATE,
    "e": Action.EDIT,
    "x": Action.DELETE,
    "\x7f": Action.DELETE,  # backspace
    "s": Action.CALENDAR_LIST,
    "r": Action.RELOAD,
    "?": Action.HELP,
    "\x1b[C": Action.NEXT_DAY,  # right
    "\x1b[D": Action.PREV_DAY,  # left
    "\x1b[B": Action.SELECT_NEXT,  # down
    "\x1b[A": Action.SELECT_PREV,  # up
    "q": Action.QUIT,
    "\x03": Action.QUIT,  # ctrl+c
}

HELP_TEXT = [
    ("n/p", "next/prev period"),
    ("l/h", "next/prev day"),
    ("j/k", "select event"),
    ("t", "today"),
    ("g", "go to date"),
    ("d/w", "day/week view"),
    ("c", "create event"),
    ("e", "edit event"),
    ("x/del", "delete event"),
    ("s", "calendars"),
    ("r", "reload"),
    ("?", "toggle help"),
    ("q", "quit"),
]
