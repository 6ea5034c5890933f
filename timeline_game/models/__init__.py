"""Data models for the timeline game engine."""

from .event import MAX_DIFFICULTY, MIN_DIFFICULTY, Event, ensure_events
from .placement import (
    ActionResult,
    InsertionPoint,
    PlacementOutcome,
    PlacementResult,
    Replacement,
)
from .remote import CompletionReport, MoveReport, RemoteSession, SessionSettings
from .session import (
    ACTIVE_STATUSES,
    EPHEMERAL_FIELDS,
    SNAPSHOT_VERSION,
    Feedback,
    GameStats,
    GameStatus,
    MoveRecord,
    Session,
)
from .settings import DEFAULT_SETTINGS, SETTING_KEYS, DifficultyRange, Settings

__all__ = [
    "ACTIVE_STATUSES",
    "ActionResult",
    "CompletionReport",
    "DEFAULT_SETTINGS",
    "DifficultyRange",
    "EPHEMERAL_FIELDS",
    "Event",
    "Feedback",
    "GameStats",
    "GameStatus",
    "InsertionPoint",
    "MAX_DIFFICULTY",
    "MIN_DIFFICULTY",
    "MoveRecord",
    "MoveReport",
    "PlacementOutcome",
    "PlacementResult",
    "RemoteSession",
    "Replacement",
    "SETTING_KEYS",
    "SNAPSHOT_VERSION",
    "Session",
    "SessionSettings",
    "Settings",
    "ensure_events",
]
