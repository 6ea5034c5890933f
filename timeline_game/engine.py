"""
Game Session Engine

Authoritative state machine for one player's game.

    lobby -> loading -> playing <-> paused
                 |         |
                 v         v
               error      won

restart() returns any status to lobby; initialize() is accepted from lobby and
error. Local state is the source of truth: remote calls only report what
already happened, and their failures are logged, never surfaced. Only a failed
initialize reaches the player, as the error status.

Public operations never raise for illegal calls. They return an ActionResult
(or PlacementOutcome) whose reason is one of:
    invalid_state, invalid_position, busy, not_in_hand, closed,
    session_reset, initialization_failed
"""

import logging
import random
import time
from typing import Any, Callable, Dict, List, Optional, Union

from pydantic import ValidationError

from .config import GameConfig, TolerancePolicy, resolve_game_config
from .errors import (
    InitializationError,
    InvalidStateError,
    PersistenceError,
    RemoteSyncError,
    ReplacementUnavailableError,
)
from .gameplay.card_pool import CardPoolManager
from .gameplay.insertion_points import generate_insertion_points
from .gameplay.placement import apply_score, generate_hint, validate_placement
from .models.event import Event
from .models.placement import ActionResult, PlacementOutcome
from .models.remote import CompletionReport, MoveReport, SessionSettings
from .models.session import ACTIVE_STATUSES, Feedback, GameStatus, MoveRecord, Session
from .models.settings import DifficultyRange, Settings
from .timers import FeedbackTimer

logger = logging.getLogger(__name__)

# Settings the engine acknowledges but that never change game state.
PRESENTATION_KEYS = frozenset({"animations", "reduced_motion", "sound_effects",
                               "high_contrast", "large_text", "screen_reader_support",
                               "performance_mode"})


def _failure(error: InvalidStateError) -> ActionResult:
    return ActionResult(success=False, reason=error.reason, message=str(error))


class GameSessionEngine:
    """
    Owns the Session aggregate and every transition on it.

    Collaborators are injected: the event source (cards and remote session
    lifecycle), the settings store (subscribed for live changes) and the
    session persistence slot. At most one of initialize/place_card runs at a
    time; restart() and close() bump a generation counter so a coroutine that
    resumes afterwards drops its result.
    """

    def __init__(
        self,
        event_source,
        settings_store,
        persistence,
        config: Optional[GameConfig] = None,
        pool_manager: Optional[CardPoolManager] = None,
        tolerance: Optional[TolerancePolicy] = None,
        clock: Callable[[], float] = time.time,
        rng: Optional[random.Random] = None,
    ):
        self.event_source = event_source
        self.settings_store = settings_store
        self.persistence = persistence
        self.config = resolve_game_config(config)
        self.pool_manager = pool_manager or CardPoolManager(event_source, self.config, rng=rng)
        self.tolerance = tolerance
        self._clock = clock

        self._session = Session()
        self._feedback_timer = FeedbackTimer()
        self._busy = False
        self._generation = 0
        self._closed = False
        self._restore_attempted = False
        self._unsubscribe = settings_store.subscribe(self._on_setting_changed)

    # -------------------------------------------------------------------------
    # Read-only views
    # -------------------------------------------------------------------------

    @property
    def session(self) -> Session:
        """Deep copy of the aggregate; mutating it has no effect on the engine."""
        return self._session.model_copy(deep=True)

    @property
    def status(self) -> GameStatus:
        return self._session.status

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def settings(self) -> Settings:
        return self.settings_store.get()

    @property
    def progress(self) -> float:
        """Fraction of the dealt hand already placed on the timeline."""
        dealt = self._session.dealt_count
        if dealt <= 0:
            return 0.0
        return (dealt - len(self._session.hand)) / dealt

    @property
    def feedback_pending(self) -> bool:
        return self._feedback_timer.active

    def get_stats(self) -> Dict[str, Any]:
        s = self._session
        now = self._clock()
        total = s.stats.total_moves
        return {
            "status": s.status.value,
            "score": s.score,
            "total_moves": total,
            "correct_moves": s.stats.correct_moves,
            "incorrect_moves": s.stats.incorrect_moves,
            "hints_used": s.stats.hints_used,
            "accuracy": round(100.0 * s.stats.correct_moves / total, 1) if total else 0.0,
            "average_time_per_move": s.stats.average_time_per_move,
            "elapsed_seconds": int(now - s.start_time) if s.start_time else 0,
            "cards_placed": max(s.dealt_count - len(s.hand), 0),
            "cards_remaining": len(s.hand),
            "progress": self.progress,
        }

    # -------------------------------------------------------------------------
    # Guards
    # -------------------------------------------------------------------------

    def _require_open(self) -> None:
        if self._closed:
            raise InvalidStateError("closed", "Engine has been closed")

    def _require_idle(self) -> None:
        if self._busy:
            raise InvalidStateError("busy", "Another operation is in progress")

    def _require_status(self, *allowed: GameStatus) -> None:
        if self._session.status not in allowed:
            raise InvalidStateError(
                "invalid_state",
                f"Not allowed while {self._session.status.value}",
            )

    def _is_stale(self, generation: int) -> bool:
        return generation != self._generation or self._closed

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def _persist(self) -> None:
        """Mirror the aggregate into the snapshot slot (active games only)."""
        if self._session.status not in ACTIVE_STATUSES:
            if self.persistence.exists():
                self.persistence.clear()
            return
        if not self.settings_store.get_setting("auto_save"):
            return
        if not self.persistence.save(self._session.to_snapshot()):
            error = PersistenceError("Session snapshot was not saved")
            logger.warning("[engine] %s", error)

    def has_saved_session(self) -> bool:
        return self.persistence.exists()

    def restore_saved_session(self) -> bool:
        """
        Resume the persisted game, once, at startup.

        Returns False (and leaves the engine in lobby) when nothing usable is
        stored: no snapshot, a snapshot that fails validation, or one that was
        not mid-game.
        """
        if self._closed or self._restore_attempted or self._busy:
            return False
        self._restore_attempted = True
        if self._session.status != GameStatus.LOBBY:
            return False

        data = self.persistence.load()
        if data is None:
            return False
        try:
            restored = Session.from_snapshot(data)
        except ValidationError as e:
            logger.warning("[engine] Discarding invalid saved session: %s", e.errors()[0].get("msg"))
            self.persistence.clear()
            return False

        if restored.status not in ACTIVE_STATUSES:
            logger.info("[engine] Saved session has status %s; not restoring", restored.status.value)
            return False

        ids = restored.all_ids()
        all_ids = ids["timeline"] + ids["hand"] + ids["pool"]
        if len(all_ids) != len(set(all_ids)):
            logger.warning("[engine] Saved session has overlapping card ids; discarding")
            self.persistence.clear()
            return False

        restored.turn_start_time = self._clock()
        self._session = restored
        logger.info("[engine] Restored %s game: %d on timeline, %d in hand",
                    restored.status.value, len(restored.timeline), len(restored.hand))
        return True

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def _resolve_range(
        self,
        override: Optional[Union[DifficultyRange, Dict[str, int]]],
        settings: Settings,
    ) -> DifficultyRange:
        if override is None:
            return settings.difficulty_range
        if isinstance(override, DifficultyRange):
            return override
        return DifficultyRange.model_validate(override)

    async def initialize(
        self,
        mode: str = "single",
        difficulty_override: Optional[Union[DifficultyRange, Dict[str, int]]] = None,
    ) -> ActionResult:
        """
        Start a new game.

        Opens a remote session, deals card_count events (one seeds the
        timeline, the rest form the hand) and fetches a separate reserve pool.
        On failure the status becomes error with a readable message; call
        initialize() again to retry.
        """
        try:
            self._require_open()
            self._require_idle()
            self._require_status(GameStatus.LOBBY, GameStatus.ERROR)
        except InvalidStateError as e:
            return _failure(e)

        settings = self.settings_store.get()
        try:
            difficulty_range = self._resolve_range(difficulty_override, settings)
        except ValidationError as e:
            return ActionResult(success=False, reason="invalid_state",
                                message=f"Invalid difficulty range: {e.errors()[0].get('msg')}")

        self._busy = True
        generation = self._generation
        self._feedback_timer.cancel()
        self.persistence.clear()

        card_count = settings.card_count or self.config.default_card_count
        categories = list(settings.categories)
        self._session = Session(
            status=GameStatus.LOADING,
            mode=mode,
            difficulty=difficulty_range.average,
            difficulty_range=difficulty_range,
            categories=categories,
        )
        logger.info("[engine] Starting %s game: %d cards, difficulty %d-%d, categories=%s",
                    mode, card_count, difficulty_range.min, difficulty_range.max, categories or "all")

        try:
            remote = await self.event_source.create_session(SessionSettings(
                player_name=self.config.player_name,
                difficulty_level=difficulty_range.average,
                card_count=card_count,
                categories=categories,
                difficulty_range=difficulty_range,
                mode=mode,
            ))
            if self._is_stale(generation):
                return ActionResult(success=False, reason="session_reset")

            play = await self.event_source.fetch_random_events(card_count, categories, difficulty_range)
            if self._is_stale(generation):
                return ActionResult(success=False, reason="session_reset")
            play = _unique(play)
            if len(play) < 2:
                raise InitializationError(
                    f"Not enough events available ({len(play)} found, need at least 2)"
                )
            if len(play) < card_count:
                logger.warning("[engine] Requested %d events, dealing %d", card_count, len(play))

            batch = await self.event_source.fetch_random_events(
                self.config.pool_card_count, categories, difficulty_range
            )
            if self._is_stale(generation):
                return ActionResult(success=False, reason="session_reset")
        except Exception as e:
            if self._is_stale(generation):
                return ActionResult(success=False, reason="session_reset")
            message = f"Failed to load game: {str(e) or type(e).__name__}"
            logger.error("[engine] %s", message)
            self._session.status = GameStatus.ERROR
            self._session.error = message
            return ActionResult(success=False, reason="initialization_failed", message=message)
        finally:
            if not self._is_stale(generation):
                self._busy = False

        play_ids = {card.id for card in play}
        pool = [card for card in _unique(batch) if card.id not in play_ids]

        now = self._clock()
        s = self._session
        s.timeline = [play[0]]
        s.hand = list(play[1:])
        s.pool = pool
        s.dealt_count = len(s.hand)
        s.remote_session_id = remote.session_id
        s.start_time = now
        s.turn_start_time = now
        s.status = GameStatus.PLAYING
        self._persist()
        logger.info("[engine] Game %s ready: 1 on timeline, %d in hand, %d in pool",
                    remote.session_id, len(s.hand), len(s.pool))
        return ActionResult(success=True)

    def restart(self) -> ActionResult:
        """Abandon the current game and return to lobby. Always succeeds unless closed."""
        if self._closed:
            return ActionResult(success=False, reason="closed")
        self._generation += 1
        self._busy = False
        self._feedback_timer.cancel()
        self.persistence.clear()
        self._session = Session()
        logger.info("[engine] Restarted; back to lobby")
        return ActionResult(success=True)

    def toggle_pause(self) -> ActionResult:
        try:
            self._require_open()
            self._require_idle()
            self._require_status(GameStatus.PLAYING, GameStatus.PAUSED)
        except InvalidStateError as e:
            return _failure(e)

        s = self._session
        if s.status == GameStatus.PLAYING:
            s.status = GameStatus.PAUSED
            s.selected_card_id = None
            s.insertion_points = []
        else:
            s.status = GameStatus.PLAYING
            s.turn_start_time = self._clock()
        self._persist()
        return ActionResult(success=True)

    def close(self) -> None:
        """Tear down: cancel timers, stop listening to settings, drop in-flight work."""
        if self._closed:
            return
        self._generation += 1
        self._closed = True
        self._busy = False
        self._feedback_timer.cancel()
        self._unsubscribe()

    # -------------------------------------------------------------------------
    # Turn actions
    # -------------------------------------------------------------------------

    def select_card(self, card: Optional[Union[Event, str]]) -> ActionResult:
        """Select a hand card (by Event or id) and compute its insertion points; None deselects."""
        s = self._session
        if card is None:
            s.selected_card_id = None
            s.insertion_points = []
            return ActionResult(success=True)

        try:
            self._require_open()
            self._require_idle()
            self._require_status(GameStatus.PLAYING)
        except InvalidStateError as e:
            return _failure(e)

        card_id = card.id if isinstance(card, Event) else str(card)
        slot = s.find_in_hand(card_id)
        if slot is None:
            return ActionResult(success=False, reason="not_in_hand",
                                message=f"Card {card_id} is not in the hand")

        s.selected_card_id = card_id
        s.insertion_points = generate_insertion_points(s.timeline, s.hand[slot])
        return ActionResult(success=True)

    def request_hint(self) -> Optional[str]:
        """Hint for the selected card, or None when nothing is selected."""
        s = self._session
        if self._closed or self._busy or s.status != GameStatus.PLAYING or s.selected_card_id is None:
            return None
        slot = s.find_in_hand(s.selected_card_id)
        if slot is None:
            return None
        s.stats.hints_used += 1
        self._persist()
        return generate_hint(s.hand[slot], s.timeline)

    async def place_card(self, target_index: int) -> PlacementOutcome:
        """
        Place the selected card at target_index (0..len(timeline)).

        Correct: the card moves into the timeline at its true index and leaves
        the hand; an empty hand wins the game. Incorrect: the card is swapped
        in place for a replacement when one is available and the game goes on.
        """
        try:
            self._require_open()
            self._require_idle()
            self._require_status(GameStatus.PLAYING)
            if self._session.selected_card_id is None:
                raise InvalidStateError("invalid_state", "No card selected")
        except InvalidStateError as e:
            return PlacementOutcome(success=False, reason=e.reason, message=str(e))

        s = self._session
        if (isinstance(target_index, bool) or not isinstance(target_index, int)
                or not 0 <= target_index <= len(s.timeline)):
            return PlacementOutcome(
                success=False,
                reason="invalid_position",
                message=f"Position must be between 0 and {len(s.timeline)}",
            )

        slot = s.find_in_hand(s.selected_card_id)
        if slot is None:
            s.selected_card_id = None
            s.insertion_points = []
            return PlacementOutcome(success=False, reason="invalid_state",
                                    message="Selected card is no longer in the hand")

        card = s.hand[slot]
        result = validate_placement(card, s.timeline, target_index, s.difficulty,
                                    self.config, self.tolerance)
        now = self._clock()
        elapsed = int(now - s.turn_start_time) if s.turn_start_time else 0

        self._busy = True
        generation = self._generation
        try:
            await self._record_move(s.remote_session_id, MoveReport(
                card_id=card.id,
                position_before=slot,
                position_after=target_index,
                is_correct=result.is_correct,
                elapsed_seconds=elapsed,
            ))
            if self._is_stale(generation):
                return PlacementOutcome(success=False, reason="session_reset")

            replacement = None
            if not result.is_correct:
                forbidden = {c.id for c in s.timeline} | {c.id for c in s.hand}
                replacement = await self.pool_manager.supply_replacement(
                    forbidden, s.pool, s.categories, s.difficulty_range
                )
                if self._is_stale(generation):
                    return PlacementOutcome(success=False, reason="session_reset")
        finally:
            if not self._is_stale(generation):
                self._busy = False

        s.attempts_by_card_id[card.id] = s.attempts_by_card_id.get(card.id, 0) + 1
        s.score = apply_score(s.score, result.score_delta, self.config)
        s.selected_card_id = None
        s.insertion_points = []
        s.turn_start_time = self._clock()
        self._record_stats(result.is_correct, elapsed)

        record = MoveRecord(
            card_id=card.id,
            hand_slot=slot,
            target_index=target_index,
            correct_index=result.correct_index,
            is_correct=result.is_correct,
            score_delta=result.score_delta,
            elapsed_seconds=elapsed,
        )

        if result.is_correct:
            s.timeline.insert(result.correct_index, card)
            s.hand.pop(slot)
            s.feedback = Feedback(
                type="success",
                message=result.feedback,
                points=result.score_delta,
                correct_index=result.correct_index,
                attempts=s.attempts_by_card_id[card.id],
            )
            s.turn_history.append(record)

            if not s.hand:
                s.status = GameStatus.WON
                self._feedback_timer.cancel()
                self._persist()
                logger.info("[engine] Game won with score %d in %d moves",
                            s.score, s.stats.total_moves)
                await self._complete(s.remote_session_id, CompletionReport(
                    final_score=s.score,
                    total_moves=s.stats.total_moves,
                    duration_ms=int((self._clock() - (s.start_time or now)) * 1000),
                    completed=True,
                    correct_moves=s.stats.correct_moves,
                ))
            else:
                self._schedule_feedback_clear()
                self._persist()

            return PlacementOutcome(success=True, is_correct=True, validation=result, score=s.score)

        if replacement is not None:
            s.hand[slot] = replacement.new_card
            s.pool = replacement.updated_pool
            record.replaced_by = replacement.new_card.id
        else:
            error = ReplacementUnavailableError(f"No replacement for card {card.id}; keeping it in hand")
            logger.warning("[engine] %s", error)

        s.feedback = Feedback(
            type="error",
            message=result.feedback,
            points=result.score_delta,
            correct_index=result.correct_index,
            attempts=s.attempts_by_card_id[card.id],
        )
        s.turn_history.append(record)
        self._schedule_feedback_clear()
        self._persist()

        return PlacementOutcome(
            success=True,
            is_correct=False,
            card_replaced=replacement.new_card if replacement else None,
            validation=result,
            score=s.score,
        )

    def _record_stats(self, is_correct: bool, elapsed: int) -> None:
        stats = self._session.stats
        previous_total = stats.total_moves
        stats.total_moves += 1
        if is_correct:
            stats.correct_moves += 1
        else:
            stats.incorrect_moves += 1
        stats.average_time_per_move = round(
            (stats.average_time_per_move * previous_total + elapsed) / stats.total_moves, 2
        )

    # -------------------------------------------------------------------------
    # Remote notifications (best effort)
    # -------------------------------------------------------------------------

    async def _record_move(self, session_id: Optional[str], move: MoveReport) -> None:
        if not session_id:
            return
        try:
            await self.event_source.record_move(session_id, move)
        except Exception as e:
            logger.warning("[engine] %s", RemoteSyncError(f"record_move failed: {e!r}"))

    async def _complete(self, session_id: Optional[str], report: CompletionReport) -> None:
        if not session_id:
            return
        try:
            await self.event_source.complete_session(session_id, report)
        except Exception as e:
            logger.warning("[engine] %s", RemoteSyncError(f"complete_session failed: {e!r}"))

    # -------------------------------------------------------------------------
    # Transient feedback
    # -------------------------------------------------------------------------

    def _schedule_feedback_clear(self) -> None:
        generation = self._generation

        def clear() -> None:
            if self._is_stale(generation):
                return
            self._session.feedback = None

        self._feedback_timer.schedule(self.config.feedback_clear_seconds, clear)

    # -------------------------------------------------------------------------
    # Settings
    # -------------------------------------------------------------------------

    def update_setting(self, key: str, value: Any) -> bool:
        return self.settings_store.set(key, value)

    def update_settings(self, values: Dict[str, Any]) -> bool:
        return self.settings_store.update(values)

    def _on_setting_changed(self, key: str, new_value: Any, old_value: Any) -> None:
        if self._closed:
            return
        s = self._session
        if key == "difficulty_range":
            if s.status in ACTIVE_STATUSES:
                s.difficulty_range = new_value
                s.difficulty = new_value.average
                logger.info("[engine] Difficulty range now %d-%d (difficulty %d)",
                            new_value.min, new_value.max, s.difficulty)
                self._persist()
        elif key == "auto_save":
            if new_value:
                if s.status in ACTIVE_STATUSES:
                    self._persist()
            elif self.persistence.exists():
                # a snapshot left behind would resume stale state later
                self.persistence.clear()
                logger.info("[engine] Auto-save disabled; cleared saved session")
        elif key in PRESENTATION_KEYS:
            logger.debug("[engine] Setting %s changed to %r", key, new_value)
        else:
            logger.debug("[engine] Setting %s changed; applies to the next game", key)


def _unique(cards: List[Event]) -> List[Event]:
    """Drop repeated ids, keeping first occurrence order."""
    seen = set()
    out = []
    for card in cards:
        if card.id not in seen:
            seen.add(card.id)
            out.append(card)
    return out
