"""
Session model: the game aggregate owned by GameSessionEngine.

Contains:
- GameStatus: finite status set of the state machine
- GameStats, Feedback, MoveRecord: bookkeeping carried by the session
- Session: the aggregate, plus snapshot helpers used by persistence
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .event import Event
from .placement import InsertionPoint
from .settings import DifficultyRange

SNAPSHOT_VERSION = "1.0.0"

# UI-only fields: never persisted, reset to empty on load.
EPHEMERAL_FIELDS = frozenset({"selected_card_id", "insertion_points", "feedback", "error"})


class GameStatus(str, Enum):
    LOBBY = "lobby"
    LOADING = "loading"
    PLAYING = "playing"
    PAUSED = "paused"
    WON = "won"
    ERROR = "error"


ACTIVE_STATUSES = frozenset({GameStatus.PLAYING, GameStatus.PAUSED})


class GameStats(BaseModel):
    total_moves: int = 0
    correct_moves: int = 0
    incorrect_moves: int = 0
    hints_used: int = 0
    average_time_per_move: float = 0.0


class Feedback(BaseModel):
    """Transient placement feedback; cleared by a timer after a fixed delay."""

    type: str  # "success" | "error"
    message: str
    points: int = 0
    correct_index: Optional[int] = None
    attempts: int = 0


class MoveRecord(BaseModel):
    card_id: str
    hand_slot: int
    target_index: int
    correct_index: int
    is_correct: bool
    score_delta: int
    elapsed_seconds: int
    replaced_by: Optional[str] = None


class Session(BaseModel):
    """Authoritative game state. Mutated only by GameSessionEngine."""

    timeline: List[Event] = Field(default_factory=list)
    hand: List[Event] = Field(default_factory=list)
    pool: List[Event] = Field(default_factory=list)

    status: GameStatus = GameStatus.LOBBY
    mode: str = "single"
    difficulty: int = 3
    difficulty_range: DifficultyRange = Field(default_factory=DifficultyRange)
    categories: List[str] = Field(default_factory=list)

    selected_card_id: Optional[str] = None
    insertion_points: List[InsertionPoint] = Field(default_factory=list)
    feedback: Optional[Feedback] = None
    error: Optional[str] = None

    score: int = 0
    attempts_by_card_id: Dict[str, int] = Field(default_factory=dict)
    start_time: Optional[float] = None
    turn_start_time: Optional[float] = None
    dealt_count: int = 0
    stats: GameStats = Field(default_factory=GameStats)
    turn_history: List[MoveRecord] = Field(default_factory=list)
    remote_session_id: Optional[str] = None

    def find_in_hand(self, card_id: str) -> Optional[int]:
        """Hand slot holding card_id, or None."""
        for slot, card in enumerate(self.hand):
            if card.id == card_id:
                return slot
        return None

    def all_ids(self) -> Dict[str, List[str]]:
        return {
            "timeline": [c.id for c in self.timeline],
            "hand": [c.id for c in self.hand],
            "pool": [c.id for c in self.pool],
        }

    def to_snapshot(self) -> Dict[str, Any]:
        """JSON-ready dict without ephemeral UI fields."""
        data = self.model_dump(mode="json", exclude=set(EPHEMERAL_FIELDS))
        data["version"] = SNAPSHOT_VERSION
        return data

    @classmethod
    def from_snapshot(cls, data: Dict[str, Any]) -> "Session":
        """Rebuild a session from a snapshot; ephemeral fields start empty."""
        payload = {
            k: v
            for k, v in data.items()
            if k in cls.model_fields and k not in EPHEMERAL_FIELDS
        }
        return cls.model_validate(payload)
