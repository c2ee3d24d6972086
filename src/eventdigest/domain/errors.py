"""Error taxonomy shared by the domain and its adapters."""

from __future__ import annotations


class EventDigestError(RuntimeError):
    """Base class for failures raised inside the event digest pipeline."""


class OracleInvocationError(EventDigestError):
    """Raised when the text-generation oracle cannot be reached or refuses the call."""


class MalformedOracleResponse(EventDigestError):
    """Raised when an oracle reply is not valid JSON or does not match the expected shape."""

    def __init__(self, message: str, *, raw: str | None = None) -> None:
        super().__init__(message)
        self.raw = raw


class StoreAccessError(EventDigestError):
    """Raised when the event, source or snapshot store cannot be read or written."""


class DateParseError(ValueError):
    """Raised when a free-form event date or time cannot be interpreted."""
