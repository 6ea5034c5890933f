"""
Placement Validation

Decides whether a card dropped at a timeline index is chronologically right.
A placement is correct when it lands within the tolerance window of the true
index; the window width comes from a tolerance policy keyed by difficulty.

Pure functions only. The public entry point is validate_placement.
"""

from typing import List, Optional

from ..config import GameConfig, TolerancePolicy, resolve_game_config
from ..models.event import Event
from ..models.placement import PlacementResult


def find_correct_position(card: Event, timeline: List[Event]) -> int:
    """
    Index at which card belongs in a chronologically sorted timeline.

    Equal dates go before the existing event.
    """
    for i, existing in enumerate(timeline):
        if card.date_occurred <= existing.date_occurred:
            return i
    return len(timeline)


def is_chronological(timeline: List[Event]) -> bool:
    """True if the timeline is sorted ascending by date."""
    return all(
        timeline[i].date_occurred <= timeline[i + 1].date_occurred
        for i in range(len(timeline) - 1)
    )


# =============================================================================
# Feedback text
# =============================================================================


def exact_feedback(card: Event) -> str:
    return f"Perfect placement! {card.title} is exactly where it belongs."


def close_feedback(card: Event, target_index: int, correct_index: int) -> str:
    direction = "earlier" if target_index > correct_index else "later"
    return f"Very close! {card.title} ({card.year}) belongs a little {direction} in the timeline."


def miss_feedback(card: Event, target_index: int, correct_index: int) -> str:
    direction = ""
    if target_index > correct_index:
        direction = " Try looking earlier in the timeline."
    elif target_index < correct_index:
        direction = " Try looking later in the timeline."
    return f"Incorrect placement! {card.title} occurred in {card.year} ({card.decade}s).{direction}"


def generate_hint(card: Event, timeline: List[Event]) -> str:
    """Year/decade hint for card relative to the span of the current timeline."""
    if not timeline:
        return f"This event happened in the {card.decade}s."

    years = [e.year for e in timeline]
    hint = f"This event occurred in {card.year}. "
    if card.year < min(years):
        return hint + "It happened before all events currently on the timeline."
    if card.year > max(years):
        return hint + "It happened after all events currently on the timeline."
    return hint + "It fits somewhere in the middle of your current timeline."


# =============================================================================
# Scoring
# =============================================================================


def score_delta(is_exact: bool, is_correct: bool, config: Optional[GameConfig] = None) -> int:
    """Points for one placement: exact > within tolerance > miss."""
    config = resolve_game_config(config)
    if is_exact:
        return config.exact_points
    if is_correct:
        return config.tolerance_points
    return config.miss_points


def apply_score(score: int, delta: int, config: Optional[GameConfig] = None) -> int:
    """Add delta to the running score, clamped at the configured floor."""
    config = resolve_game_config(config)
    return max(config.min_score, score + delta)


# =============================================================================
# Public entry point
# =============================================================================


def validate_placement(
    card: Event,
    timeline: List[Event],
    target_index: int,
    difficulty: int,
    config: Optional[GameConfig] = None,
    tolerance: Optional[TolerancePolicy] = None,
) -> PlacementResult:
    """
    Validate a placement attempt.

    Args:
        card: Card being placed
        timeline: Current timeline, sorted ascending
        target_index: Index the player dropped the card at (0..len(timeline))
        difficulty: Session difficulty used to look up the tolerance window
        config: Scoring and tolerance policy (defaults to DEFAULT_GAME_CONFIG)
        tolerance: Optional override of the difficulty -> window function

    Returns:
        PlacementResult. Has no side effects; identical inputs give identical results.
    """
    config = resolve_game_config(config)
    window = (tolerance or config.tolerance_for)(difficulty)

    correct_index = find_correct_position(card, timeline)
    distance = abs(target_index - correct_index)
    is_exact = distance == 0
    is_correct = distance <= window

    if is_exact:
        feedback_type = "perfect"
        feedback = exact_feedback(card)
    elif is_correct:
        feedback_type = "close"
        feedback = close_feedback(card, target_index, correct_index)
    else:
        feedback_type = "miss"
        feedback = miss_feedback(card, target_index, correct_index)

    return PlacementResult(
        is_correct=is_correct,
        is_exact=is_exact,
        correct_index=correct_index,
        target_index=target_index,
        distance=distance,
        tolerance=window,
        feedback_type=feedback_type,
        feedback=feedback,
        score_delta=score_delta(is_exact, is_correct, config),
    )
