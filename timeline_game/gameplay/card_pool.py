"""
Card Pool Manager

Supplies a replacement card after an incorrect placement.

Order of preference:
1. A random card from the in-memory pool whose id is not forbidden
2. One remote fetch of a fresh batch; the first eligible card is returned and
   the rest of the batch joins the pool

Cards whose ids collide with forbidden or already pooled ids are dropped so the
timeline, hand and pool never share an id.
"""

import logging
import random
from typing import Iterable, List, Optional, Set

from ..config import GameConfig, resolve_game_config
from ..models.event import Event
from ..models.placement import Replacement
from ..models.settings import DifficultyRange

logger = logging.getLogger(__name__)


def _matches_filters(
    card: Event,
    categories: List[str],
    difficulty_range: Optional[DifficultyRange],
) -> bool:
    if categories and card.category not in categories:
        return False
    if difficulty_range is not None and not (
        difficulty_range.min <= card.difficulty <= difficulty_range.max
    ):
        return False
    return True


class CardPoolManager:
    """Draws replacements from the pool and refills it from the event source when empty."""

    def __init__(self, event_source, config: Optional[GameConfig] = None,
                 rng: Optional[random.Random] = None):
        self.event_source = event_source
        self.config = resolve_game_config(config)
        self.rng = rng or random.Random()

    def draw_from_pool(self, forbidden_ids: Set[str], pool: List[Event]) -> Optional[Replacement]:
        """Random eligible card from pool, or None if every pooled id is forbidden."""
        eligible = [i for i, card in enumerate(pool) if card.id not in forbidden_ids]
        if not eligible:
            return None
        pick = self.rng.choice(eligible)
        updated = [card for i, card in enumerate(pool) if i != pick]
        return Replacement(new_card=pool[pick], updated_pool=updated)

    async def supply_replacement(
        self,
        forbidden_ids: Iterable[str],
        pool: List[Event],
        categories: Optional[List[str]] = None,
        difficulty_range: Optional[DifficultyRange] = None,
    ) -> Optional[Replacement]:
        """
        Get a replacement card.

        Args:
            forbidden_ids: Ids already on the timeline or in the hand (incl. the card being replaced)
            pool: Current reserve; never mutated
            categories: Category filter for a remote refill (empty means all)
            difficulty_range: Difficulty filter for a remote refill

        Returns:
            Replacement with the card and the pool left over, or None when the
            pool is exhausted and the refill failed or came back empty.
        """
        forbidden = set(forbidden_ids)
        categories = list(categories or [])

        drawn = self.draw_from_pool(forbidden, pool)
        if drawn is not None:
            return drawn

        logger.info("[pool] Pool exhausted (%d cards, all forbidden); fetching %d more",
                    len(pool), self.config.replacement_batch_size)
        try:
            batch = await self.event_source.fetch_random_events(
                self.config.replacement_batch_size, categories, difficulty_range
            )
        except Exception as e:
            logger.warning("[pool] Refill failed: %r", e)
            return None

        pooled_ids = {card.id for card in pool}
        seen: Set[str] = set()
        fresh: List[Event] = []
        for card in batch:
            if card.id in forbidden or card.id in pooled_ids or card.id in seen:
                continue
            if not _matches_filters(card, categories, difficulty_range):
                continue
            seen.add(card.id)
            fresh.append(card)

        if not fresh:
            logger.warning("[pool] Refill returned no usable cards (%d fetched)", len(batch))
            return None

        return Replacement(new_card=fresh[0], updated_pool=list(pool) + fresh[1:], refilled=True)
