"""Payloads exchanged with the remote event/session backend."""

from typing import List, Optional

from pydantic import BaseModel, Field

from .settings import DifficultyRange


class SessionSettings(BaseModel):
    """Body of create_session; mirrors what the backend stores per game."""

    player_name: str = "Player"
    difficulty_level: int
    card_count: int
    categories: List[str] = Field(default_factory=list)
    difficulty_range: DifficultyRange = Field(default_factory=DifficultyRange)
    mode: str = "single"


class RemoteSession(BaseModel):
    session_id: str
    status: str = "active"


class MoveReport(BaseModel):
    card_id: str
    position_before: int
    position_after: int
    is_correct: bool
    elapsed_seconds: int = 0


class CompletionReport(BaseModel):
    final_score: int
    total_moves: int
    duration_ms: int
    completed: bool = True
    correct_moves: Optional[int] = None
