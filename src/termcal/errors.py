"""Error types shared by the provider, the aggregator and the front end."""


class TermcalError(Exception):
    """Base class for termcal errors."""

    pass


class ProviderError(TermcalError):
    """Raised when the calendar provider fails (network, auth, quota)."""

    def __init__(self, message: str, calendar_id: str | None = None):
        super().__init__(message)
        self.calendar_id = calendar_id


class AuthenticationError(ProviderError):
    """Raised when credentials are missing or cannot be refreshed."""

    pass


class ParseError(TermcalError, ValueError):
    """Raised when a date or time value cannot be parsed."""

    pass
