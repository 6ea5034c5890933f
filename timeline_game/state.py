"""Application state: stores, event source and the engine, built from AppConfig."""

import logging
from typing import Optional

from .config import AppConfig, GameConfig, get_config
from .engine import GameSessionEngine
from .services import HttpEventSource, InMemoryEventSource, JsonSessionStore, JsonSettingsStore

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)


class AppState:
    """
    One player's game stack. Owns every collaborator it creates; close()
    releases them. Nothing here is process-global: build as many as needed.
    """

    def __init__(self, config: AppConfig, game_config: Optional[GameConfig] = None):
        self.config = config
        config.ensure_directories()

        self.settings_store = JsonSettingsStore(config.settings_path)
        self.session_store = JsonSessionStore(config.session_state_path)
        self.event_source = self._create_event_source(config)
        logger.info("[startup] Event source: %s", type(self.event_source).__name__)

        game_config = game_config or GameConfig(player_name=config.player_name)
        self.engine = GameSessionEngine(
            self.event_source,
            self.settings_store,
            self.session_store,
            config=game_config,
        )

    def _create_event_source(self, config: AppConfig):
        """HTTP backend when EVENTS_API_URL is set, else the bundled dataset in-process."""
        if config.use_mock_events:
            return InMemoryEventSource.from_file(config.events_dataset_path)
        return HttpEventSource(config.events_api_url, timeout=config.request_timeout)

    def restore(self) -> bool:
        """Resume a saved game if one exists. Call once at startup."""
        restored = self.engine.restore_saved_session()
        if restored:
            logger.info("[startup] Resumed saved game")
        return restored

    def close(self) -> None:
        self.engine.close()
        if isinstance(self.event_source, HttpEventSource):
            self.event_source.close()


def create_app_state(
    config: Optional[AppConfig] = None,
    game_config: Optional[GameConfig] = None,
    restore: bool = True,
) -> AppState:
    """Build an AppState, validating config and resuming a saved game when asked."""
    config = config or get_config()
    ok, errors = config.validate()
    if not ok:
        raise ValueError("Invalid configuration: " + "; ".join(errors))
    configure_logging(config.log_level)
    state = AppState(config, game_config)
    if restore:
        state.restore()
    return state
