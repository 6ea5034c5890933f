"""
Insertion points: the candidate drop indices shown while a card is selected.

Every timeline of n cards has n + 1 points. Points between two cards are rated
by the year gap around them (wide gaps are easy, narrow ones hard). When a card
is given, each point also gets a relevance in [0, 1] for how well the card's
date fits there.
"""

from datetime import date
from typing import List, Optional

from ..models.event import Event
from ..models.placement import InsertionPoint

EASY_GAP_YEARS = 50
HARD_GAP_YEARS = 10

_DAYS_PER_YEAR = 365


def _gap_difficulty(gap_years: int) -> str:
    if gap_years > EASY_GAP_YEARS:
        return "easy"
    if gap_years < HARD_GAP_YEARS:
        return "hard"
    return "medium"


def insertion_point_relevance(
    card_date: date,
    reference: Optional[Event],
    next_card: Optional[Event],
) -> float:
    """
    Score how well card_date fits between reference and next_card.

    Between two cards, the closer the date sits to the midpoint the higher the
    score. Next to a single card, nearness in years decides.
    """
    if reference is None and next_card is None:
        return 0.5

    if reference is not None and next_card is not None:
        total = (next_card.date_occurred - reference.date_occurred).days
        if total == 0:
            return 1.0
        ratio = (card_date - reference.date_occurred).days / total
        off = abs(ratio - 0.5)
        if off == 0:
            return 1.0
        if off < 0.1:
            return 0.9
        if off < 0.3:
            return 0.7
        return 0.3

    neighbour = reference if reference is not None else next_card
    diff_days = abs((card_date - neighbour.date_occurred).days)
    if diff_days < 5 * _DAYS_PER_YEAR:
        return 0.9
    if diff_days < 20 * _DAYS_PER_YEAR:
        return 0.7
    return 0.3


def generate_insertion_points(
    timeline: List[Event],
    card: Optional[Event] = None,
) -> List[InsertionPoint]:
    """Build the n + 1 insertion points for timeline, scored against card when given."""
    ordered = sorted(timeline, key=lambda e: e.date_occurred)
    points: List[InsertionPoint] = []

    first = ordered[0] if ordered else None
    points.append(InsertionPoint(
        index=0,
        position="before",
        next_card_id=first.id if first else None,
        difficulty="easy",
        relevance=(insertion_point_relevance(card.date_occurred, None, first)
                   if card else None),
    ))

    for i in range(len(ordered) - 1):
        current, following = ordered[i], ordered[i + 1]
        gap = following.year - current.year
        points.append(InsertionPoint(
            index=i + 1,
            position="between",
            reference_card_id=current.id,
            next_card_id=following.id,
            difficulty=_gap_difficulty(gap),
            gap_years=gap,
            relevance=(insertion_point_relevance(card.date_occurred, current, following)
                       if card else None),
        ))

    if ordered:
        last = ordered[-1]
        points.append(InsertionPoint(
            index=len(ordered),
            position="after",
            reference_card_id=last.id,
            difficulty="easy",
            relevance=(insertion_point_relevance(card.date_occurred, last, None)
                       if card else None),
        ))

    return points
