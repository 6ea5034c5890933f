"""
Timeline Game Session Engine

Session/state engine for a turn-based historical-ordering card game: players
place undated event cards on a chronological timeline; the engine validates
placements, scores them, deals replacement cards and keeps the session in step
with user settings.

Usage:
    from timeline_game import create_app_state

    state = create_app_state()
    await state.engine.initialize()
    state.engine.select_card(state.engine.session.hand[0])
    outcome = await state.engine.place_card(1)
"""

from .config import AppConfig, GameConfig, get_config, reload_config
from .engine import GameSessionEngine
from .errors import (
    EventSourceError,
    InitializationError,
    InvalidStateError,
    PersistenceError,
    RemoteSyncError,
    ReplacementUnavailableError,
    TimelineGameError,
)
from .models import Event, GameStatus, Session, Settings
from .state import AppState, create_app_state

__version__ = "1.0.0"

__all__ = [
    "AppConfig",
    "AppState",
    "Event",
    "EventSourceError",
    "GameConfig",
    "GameSessionEngine",
    "GameStatus",
    "InitializationError",
    "InvalidStateError",
    "PersistenceError",
    "RemoteSyncError",
    "ReplacementUnavailableError",
    "Session",
    "Settings",
    "TimelineGameError",
    "create_app_state",
    "get_config",
    "reload_config",
]
