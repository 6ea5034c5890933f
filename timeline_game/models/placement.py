"""
Placement models: validator output, insertion points and operation results.
"""

from typing import List, Optional

from pydantic import BaseModel

from .event import Event


class PlacementResult(BaseModel):
    """Outcome of validating one placement attempt. Pure data, no side effects."""

    is_correct: bool
    is_exact: bool
    correct_index: int
    target_index: int
    distance: int
    tolerance: int
    feedback_type: str  # "perfect" | "close" | "miss"
    feedback: str
    score_delta: int


class InsertionPoint(BaseModel):
    """A candidate timeline index for UI highlighting."""

    index: int
    position: str  # "before" | "between" | "after"
    reference_card_id: Optional[str] = None
    next_card_id: Optional[str] = None
    difficulty: str = "easy"  # gap-based: "easy" | "medium" | "hard"
    gap_years: Optional[int] = None
    relevance: Optional[float] = None


class ActionResult(BaseModel):
    """Structured result for engine operations; failures carry a reason code."""

    success: bool
    reason: Optional[str] = None
    message: Optional[str] = None


class PlacementOutcome(ActionResult):
    is_correct: Optional[bool] = None
    card_replaced: Optional[Event] = None
    validation: Optional[PlacementResult] = None
    score: Optional[int] = None


class Replacement(BaseModel):
    """Card handed back by the pool manager together with the pool that remains."""

    new_card: Event
    updated_pool: List[Event]
    refilled: bool = False
