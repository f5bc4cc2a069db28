"""Error types shared by the core and adapters.

Startup and stream errors are fatal; everything else is recoverable and only
skips a single effect (one send, one gif, one poll).
"""

from __future__ import annotations


class GabelnError(Exception):
    """Base class for all gabeln errors."""


class StartupError(GabelnError):
    """Missing credentials or a platform client that cannot be brought up."""


class StreamClosedError(GabelnError):
    """One of the router's input streams ended or failed."""

    def __init__(self, source: str) -> None:
        super().__init__(f"Input stream '{source}' closed")
        self.source = source


class EventFetchError(GabelnError):
    """Fetching the public events of a GitHub user failed."""

    def __init__(self, user: str, detail: str = "") -> None:
        message = f"Failed to fetch the events for the user {user}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.user = user


class EventParseError(GabelnError):
    """The GitHub events response body could not be parsed."""


class NoGifAvailable(GabelnError):
    """No gif could be fetched from Giphy."""


class AdminFetchError(GabelnError):
    """The administrator list of a chat could not be fetched."""
