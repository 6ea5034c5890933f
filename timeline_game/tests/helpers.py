"""
Test helpers: deterministic events and a scripted event source.

Events are dated one decade apart so the correct position of any card is
unambiguous. ScriptedEventSource hands out prepared batches in order, which
makes dealing deterministic: the first batch is the play deal (seed card
first), the second the reserve pool.
"""

import asyncio
import random
from typing import List, Optional

from timeline_game.engine import GameSessionEngine
from timeline_game.errors import EventSourceError
from timeline_game.gameplay.placement import find_correct_position
from timeline_game.models import Event
from timeline_game.services import InMemoryEventSource


def make_event(event_id: str, year: int, category: str = "History", difficulty: int = 2) -> Event:
    return Event(
        id=event_id,
        title=f"Event {event_id}",
        date_occurred=f"{year}-06-01",
        category=category,
        difficulty=difficulty,
    )


# Play deal: E3 seeds the timeline, the rest form the hand.
PLAY_EVENTS = [
    make_event("e3", 1920),
    make_event("e1", 1900),
    make_event("e2", 1910),
    make_event("e4", 1930),
    make_event("e5", 1940),
]

POOL_EVENTS = [make_event(f"p{i}", 1950 + 10 * i) for i in range(1, 6)]


class ScriptedEventSource(InMemoryEventSource):
    """
    InMemoryEventSource whose fetches return queued batches.

    fail_fetch / fail_create / fail_record / fail_complete make the
    corresponding call raise. The error is EventSourceError unless failure
    holds another exception to raise instead. When gate is an asyncio.Event,
    record_move waits on it.
    """

    def __init__(self, batches: Optional[List[List[Event]]] = None):
        super().__init__(PLAY_EVENTS + POOL_EVENTS, rng=random.Random(7))
        self.batches = [list(b) for b in (batches or [])]
        self.fetch_calls = []
        self.fail_fetch = False
        self.fail_create = False
        self.fail_record = False
        self.fail_complete = False
        self.failure: Optional[Exception] = None
        self.gate: Optional[asyncio.Event] = None

    def _raise(self, default: Exception):
        raise self.failure if self.failure is not None else default

    async def create_session(self, settings):
        if self.fail_create:
            self._raise(EventSourceError("backend unavailable", status_code=503))
        return await super().create_session(settings)

    async def fetch_random_events(self, count, categories=None, difficulty_range=None):
        self.fetch_calls.append((count, list(categories or []), difficulty_range))
        if self.fail_fetch:
            self._raise(EventSourceError("fetch failed", status_code=500))
        if not self.batches:
            return []
        return self.batches.pop(0)[:count]

    async def record_move(self, session_id, move):
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_record:
            self._raise(EventSourceError("record failed"))
        await super().record_move(session_id, move)

    async def complete_session(self, session_id, report):
        if self.fail_complete:
            self._raise(EventSourceError("complete failed"))
        await super().complete_session(session_id, report)

    def queue_game(self):
        """Queue the standard play deal and pool batch."""
        self.batches.extend([list(PLAY_EVENTS), list(POOL_EVENTS)])


def correct_index_for(engine: GameSessionEngine, card: Event) -> int:
    return find_correct_position(card, engine.session.timeline)


def assert_disjoint(engine: GameSessionEngine) -> None:
    ids = engine.session.all_ids()
    timeline, hand, pool = set(ids["timeline"]), set(ids["hand"]), set(ids["pool"])
    assert not timeline & hand
    assert not timeline & pool
    assert not hand & pool
