"""
Settings model: user preferences that parameterize a game.

Settings defaults are defined here. Stores persist Settings.model_dump() and
merge whatever they load back over these defaults, so older files missing a key
still validate.
"""

import math
from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .event import MAX_DIFFICULTY, MIN_DIFFICULTY

SETTINGS_VERSION = "1.0.0"

# Card count bounds: one seed card plus at least one hand card.
MIN_CARD_COUNT = 2
MAX_CARD_COUNT = 20
DEFAULT_CARD_COUNT = 5


class DifficultyRange(BaseModel):
    """Inclusive difficulty band used for backend filtering."""

    model_config = ConfigDict(frozen=True)

    min: int = Field(default=MIN_DIFFICULTY, ge=MIN_DIFFICULTY, le=MAX_DIFFICULTY)
    max: int = Field(default=MAX_DIFFICULTY, ge=MIN_DIFFICULTY, le=MAX_DIFFICULTY)

    @model_validator(mode="after")
    def min_not_above_max(self):
        if self.min > self.max:
            raise ValueError(f"Difficulty range min ({self.min}) must not exceed max ({self.max})")
        return self

    @property
    def average(self) -> int:
        """Midpoint rounded half up: {1, 4} -> 3."""
        return int(math.floor((self.min + self.max) / 2 + 0.5))


class Settings(BaseModel):
    """All user preferences. Game-relevant keys first, UI-only keys after."""

    model_config = ConfigDict(validate_assignment=True)

    # Game settings
    difficulty_range: DifficultyRange = Field(default_factory=DifficultyRange)
    card_count: int = Field(default=DEFAULT_CARD_COUNT, ge=MIN_CARD_COUNT, le=MAX_CARD_COUNT)
    # Empty list means all categories
    categories: List[str] = Field(default_factory=list)

    # UI settings (acknowledged by the engine, consumed by collaborators)
    animations: bool = True
    sound_effects: bool = True
    reduced_motion: bool = False

    # Accessibility
    high_contrast: bool = False
    large_text: bool = False
    screen_reader_support: bool = True

    # Persistence / performance
    auto_save: bool = True
    performance_mode: bool = False

    version: str = Field(default=SETTINGS_VERSION, pattern=r"^\d+\.\d+\.\d+$")

    @field_validator("categories")
    @classmethod
    def strip_categories(cls, value: List[str]) -> List[str]:
        out = []
        for c in value:
            c = c.strip()
            if c and c not in out:
                out.append(c)
        return out


DEFAULT_SETTINGS = Settings()
SETTING_KEYS = frozenset(Settings.model_fields)
