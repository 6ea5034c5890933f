"""
Gameplay rules: placement validation, insertion points and card replacement.
"""

from .card_pool import CardPoolManager
from .insertion_points import generate_insertion_points, insertion_point_relevance
from .placement import (
    apply_score,
    find_correct_position,
    generate_hint,
    is_chronological,
    score_delta,
    validate_placement,
)

__all__ = [
    "CardPoolManager",
    "apply_score",
    "find_correct_position",
    "generate_hint",
    "generate_insertion_points",
    "insertion_point_relevance",
    "is_chronological",
    "score_delta",
    "validate_placement",
]
