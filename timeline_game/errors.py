"""
Error taxonomy for the game session engine.

Only InitializationError reaches the player (as the ``error`` status screen).
Everything else is logged and absorbed by the engine, degrading at most a
non-essential feature such as persistence or remote analytics.
"""

from typing import Optional


class TimelineGameError(Exception):
    """Base class for all engine errors."""


class InitializationError(TimelineGameError):
    """Remote session creation or event fetch failed while starting a game."""


class InvalidStateError(TimelineGameError):
    """Operation attempted outside its legal status.

    Never raised to callers of the engine: public operations convert it into a
    structured result carrying ``reason``.
    """

    def __init__(self, reason: str = "invalid_state", message: Optional[str] = None):
        super().__init__(message or reason)
        self.reason = reason


class ReplacementUnavailableError(TimelineGameError):
    """Neither the pool nor a remote refill could supply a replacement card."""


class PersistenceError(TimelineGameError):
    """Saving, loading or clearing the session snapshot failed."""


class RemoteSyncError(TimelineGameError):
    """Move recording or completion notification failed."""


class EventSourceError(TimelineGameError):
    """Transport-level failure talking to the event/session backend."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
