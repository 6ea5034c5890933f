"""
Configuration

AppConfig loads deployment settings (backend URL, storage paths, logging) from
environment variables, with a root .env file picked up by python-dotenv.
GameConfig holds gameplay policy (pool sizes, scoring, tolerance curve); the app
may pass a dict (e.g. from a JSON file) and from_dict() merges it with defaults.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator, model_validator

from .models.event import MAX_DIFFICULTY, MIN_DIFFICULTY

# Load .env from project root (parent of the package directory)
_root_env = Path(__file__).resolve().parent.parent / ".env"
if _root_env.exists():
    load_dotenv(_root_env)

PACKAGE_DIR = Path(__file__).resolve().parent
DEFAULT_DATASET = PACKAGE_DIR / "data" / "events.json"


@dataclass
class AppConfig:
    """Deployment configuration."""

    # Remote event/session backend. None means use the bundled dataset in-process.
    events_api_url: Optional[str] = None
    request_timeout: float = 10.0

    # Local storage
    data_dir: Path = Path.home() / ".timeline_game"
    session_state_path: Optional[Path] = None
    settings_path: Optional[Path] = None

    # In-process event source dataset (used when events_api_url is not set)
    events_dataset_path: Path = DEFAULT_DATASET

    player_name: str = "Player"
    log_level: str = "INFO"

    def __post_init__(self):
        if self.session_state_path is None:
            self.session_state_path = self.data_dir / "session_state.json"
        if self.settings_path is None:
            self.settings_path = self.data_dir / "settings.json"

    @property
    def use_mock_events(self) -> bool:
        return not self.events_api_url

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Load configuration from environment variables."""
        data_dir = Path(os.getenv("TIMELINE_DATA_DIR", str(Path.home() / ".timeline_game")))

        def _path_env(key: str) -> Optional[Path]:
            v = os.getenv(key)
            if not v:
                return None
            p = Path(v)
            return p if p.is_absolute() else (data_dir / p).resolve()

        return cls(
            events_api_url=(os.getenv("EVENTS_API_URL") or "").strip().rstrip("/") or None,
            request_timeout=float(os.getenv("EVENTS_API_TIMEOUT", "10")),
            data_dir=data_dir,
            session_state_path=_path_env("SESSION_STATE_PATH"),
            settings_path=_path_env("SETTINGS_PATH"),
            events_dataset_path=_path_env("EVENTS_DATASET_PATH") or DEFAULT_DATASET,
            player_name=os.getenv("PLAYER_NAME", "Player"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    def validate(self) -> tuple[bool, list[str]]:
        """
        Validate the configuration.

        Returns:
            (is_valid, list_of_errors)
        """
        errors = []
        if self.use_mock_events and not self.events_dataset_path.exists():
            errors.append(f"Events dataset not found: {self.events_dataset_path}")
        if self.request_timeout <= 0:
            errors.append(f"Request timeout must be positive, got {self.request_timeout}")
        return len(errors) == 0, errors

    def ensure_directories(self):
        """Create storage directories if they don't exist."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.session_state_path.parent.mkdir(parents=True, exist_ok=True)
        self.settings_path.parent.mkdir(parents=True, exist_ok=True)


_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get the process configuration, loading it from the environment once."""
    global _config
    if _config is None:
        _config = AppConfig.from_env()
    return _config


def reload_config() -> AppConfig:
    """Reload configuration from environment."""
    global _config
    _config = None
    return get_config()


class GameConfig(BaseModel):
    """Gameplay policy for the engine."""

    # -------------------------------------------------------------------------
    # Dealing
    # -------------------------------------------------------------------------

    # Card count used when settings do not provide one.
    default_card_count: int = 5
    # Size of the reserve batch fetched at game start.
    pool_card_count: int = 10
    # Size of the single remote refill when the pool has nothing eligible.
    replacement_batch_size: int = 5

    # -------------------------------------------------------------------------
    # Scoring
    # exact placement > within tolerance > miss; aggregate clamped at min_score
    # -------------------------------------------------------------------------

    exact_points: int = 100
    tolerance_points: int = 50
    # Zero keeps score monotone; a negative value penalizes misses.
    miss_points: int = 0
    min_score: int = 0

    # -------------------------------------------------------------------------
    # Tolerance window (in timeline positions) per difficulty level.
    # Looser at low difficulty, zero at maximum difficulty.
    # -------------------------------------------------------------------------

    tolerance_by_difficulty: Dict[int, int] = Field(
        default_factory=lambda: {1: 2, 2: 1, 3: 0, 4: 0}
    )

    # -------------------------------------------------------------------------
    # Timing
    # -------------------------------------------------------------------------

    # Delay before transient placement feedback clears itself.
    feedback_clear_seconds: float = 3.0

    player_name: str = "Player"

    @field_validator("tolerance_by_difficulty")
    @classmethod
    def tolerance_non_negative(cls, value: Dict[int, int]) -> Dict[int, int]:
        for level, width in value.items():
            if width < 0:
                raise ValueError(f"Tolerance for difficulty {level} must be >= 0, got {width}")
        return value

    @model_validator(mode="after")
    def points_ordered(self):
        if not self.exact_points >= self.tolerance_points > self.miss_points:
            raise ValueError(
                "Scoring must satisfy exact_points >= tolerance_points > miss_points, got "
                f"{self.exact_points}/{self.tolerance_points}/{self.miss_points}"
            )
        return self

    def tolerance_for(self, difficulty: int) -> int:
        """Tolerance width for a difficulty level; out-of-range levels clamp to the table ends."""
        level = min(max(int(difficulty), MIN_DIFFICULTY), MAX_DIFFICULTY)
        return self.tolerance_by_difficulty.get(level, 0)

    @classmethod
    def from_dict(cls, config_dict: Dict) -> "GameConfig":
        """Create config from dictionary (e.g., loaded from JSON)."""
        flat = {}
        if "scoring" in config_dict:
            flat.update(config_dict["scoring"])
        if "dealing" in config_dict:
            flat.update(config_dict["dealing"])
        if "tolerance" in config_dict:
            flat["tolerance_by_difficulty"] = {
                int(k): v for k, v in config_dict["tolerance"].items()
            }
        for key, value in config_dict.items():
            if key not in ("scoring", "dealing", "tolerance"):
                flat[key] = value
        allowed = set(cls.model_fields)
        filtered = {k: v for k, v in flat.items() if k in allowed}
        return cls.model_validate(filtered)


DEFAULT_GAME_CONFIG = GameConfig()

TolerancePolicy = Callable[[int], int]


def resolve_game_config(config: Optional[GameConfig]) -> GameConfig:
    """Return config or DEFAULT_GAME_CONFIG when none is provided."""
    return config if config is not None else DEFAULT_GAME_CONFIG
