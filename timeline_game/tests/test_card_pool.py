"""
Card Pool Manager Tests

Replacement comes from the pool first; only when nothing in the pool is
eligible does the manager make a single refill fetch.
"""

import asyncio
import random

from timeline_game.config import GameConfig
from timeline_game.gameplay.card_pool import CardPoolManager
from timeline_game.models import DifficultyRange
from timeline_game.tests.helpers import POOL_EVENTS, ScriptedEventSource, make_event


def _manager(source, **config):
    return CardPoolManager(source, GameConfig(**config), rng=random.Random(1))


class TestPoolDraw:
    def test_draws_from_pool_without_fetching(self):
        source = ScriptedEventSource()
        pool = list(POOL_EVENTS)

        replacement = asyncio.run(_manager(source).supply_replacement({"e1"}, pool))

        assert replacement.new_card in POOL_EVENTS
        assert len(replacement.updated_pool) == 4
        assert replacement.new_card not in replacement.updated_pool
        assert not replacement.refilled
        assert source.fetch_calls == []
        assert pool == POOL_EVENTS

    def test_skips_forbidden_ids(self):
        source = ScriptedEventSource()
        forbidden = {p.id for p in POOL_EVENTS[:4]}

        replacement = asyncio.run(_manager(source).supply_replacement(forbidden, list(POOL_EVENTS)))

        assert replacement.new_card.id == "p5"


class TestRefill:
    def test_refill_when_pool_exhausted(self):
        fresh = [make_event("r1", 1800), make_event("r2", 1810), make_event("r3", 1820)]
        source = ScriptedEventSource(batches=[fresh])

        replacement = asyncio.run(_manager(source, replacement_batch_size=3).supply_replacement(
            {"e1"}, [], ["History"], DifficultyRange(min=1, max=4)
        ))

        assert replacement.refilled
        assert replacement.new_card.id == "r1"
        assert [c.id for c in replacement.updated_pool] == ["r2", "r3"]
        assert len(source.fetch_calls) == 1
        count, categories, difficulty_range = source.fetch_calls[0]
        assert count == 3
        assert categories == ["History"]
        assert difficulty_range.max == 4

    def test_refill_drops_colliding_and_filtered_cards(self):
        batch = [
            make_event("e1", 1800),                       # forbidden
            make_event("p1", 1810),                       # already pooled
            make_event("x1", 1820, category="Science"),   # wrong category
            make_event("x2", 1830, difficulty=4),         # outside range
            make_event("x3", 1840),
        ]
        source = ScriptedEventSource(batches=[batch])
        pool = [POOL_EVENTS[0]]

        replacement = asyncio.run(_manager(source).supply_replacement(
            {"e1", "p1"}, pool, ["History"], DifficultyRange(min=1, max=2)
        ))

        assert replacement.new_card.id == "x3"
        assert [c.id for c in replacement.updated_pool] == ["p1"]

    def test_refill_failure_returns_none(self):
        source = ScriptedEventSource()
        source.fail_fetch = True

        assert asyncio.run(_manager(source).supply_replacement({"e1"}, [])) is None
        assert len(source.fetch_calls) == 1

    def test_refill_timeout_returns_none(self):
        source = ScriptedEventSource()
        source.fail_fetch = True
        source.failure = asyncio.TimeoutError()

        assert asyncio.run(_manager(source).supply_replacement({"e1"}, [])) is None

    def test_refill_with_nothing_usable_returns_none(self):
        source = ScriptedEventSource(batches=[[make_event("e1", 1800)]])

        assert asyncio.run(_manager(source).supply_replacement({"e1"}, [])) is None
