"""
Event Source abstraction.

Supplies event cards and the remote game-session lifecycle to the engine.
Implementations: HTTP backend (requests) and in-memory (bundled dataset, tests).

All methods are coroutines. Failures raise EventSourceError; the engine decides
which of them matter (only fetches during initialize do).
"""

import asyncio
import json
import logging
import random
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Union

import requests

from ..errors import EventSourceError
from ..models.event import Event, ensure_events
from ..models.remote import CompletionReport, MoveReport, RemoteSession, SessionSettings
from ..models.settings import DifficultyRange

logger = logging.getLogger(__name__)


class EventSource(Protocol):
    """Protocol for the event/session backend."""

    async def create_session(self, settings: SessionSettings) -> RemoteSession:
        """Open a remote game session. Returns its id."""
        ...

    async def fetch_random_events(
        self,
        count: int,
        categories: Optional[List[str]] = None,
        difficulty_range: Optional[DifficultyRange] = None,
    ) -> List[Event]:
        """Return up to count random events matching the filters."""
        ...

    async def record_move(self, session_id: str, move: MoveReport) -> None:
        """Report one placement. Analytics only."""
        ...

    async def complete_session(self, session_id: str, report: CompletionReport) -> None:
        """Report the end of a game. Analytics only."""
        ...


def select_random_events(
    events: List[Event],
    count: int,
    categories: Optional[List[str]] = None,
    difficulty_range: Optional[DifficultyRange] = None,
    rng: Optional[random.Random] = None,
) -> List[Event]:
    """
    Random sample of events passing the category and difficulty filters.

    Returns fewer than count when not enough events match. Shared by the
    in-memory source and the mock HTTP API so both filter identically.
    """
    rng = rng or random.Random()
    wanted = {c.lower() for c in (categories or [])}
    eligible = [
        e for e in events
        if (not wanted or e.category.lower() in wanted)
        and (difficulty_range is None
             or difficulty_range.min <= e.difficulty <= difficulty_range.max)
    ]
    if count >= len(eligible):
        picked = list(eligible)
        rng.shuffle(picked)
        return picked
    return rng.sample(eligible, count)


def load_events_file(path: Union[Path, str]) -> List[Event]:
    """Load events from a JSON file: either a list or {"events": [...]}."""
    with open(path) as f:
        data = json.load(f)
    items = data.get("events", []) if isinstance(data, dict) else data
    return ensure_events(items)


class InMemoryEventSource:
    """
    Event source backed by an in-process list of events.
    Used when no backend URL is configured, and in tests.
    """

    def __init__(self, events: List[Union[Dict[str, Any], Event]],
                 rng: Optional[random.Random] = None):
        self._events = ensure_events(events)
        self._rng = rng or random.Random()
        self.sessions: Dict[str, Dict[str, Any]] = {}
        self.moves: Dict[str, List[MoveReport]] = {}

    @classmethod
    def from_file(cls, path: Union[Path, str], rng: Optional[random.Random] = None) -> "InMemoryEventSource":
        return cls(load_events_file(path), rng=rng)

    @property
    def events(self) -> List[Event]:
        return list(self._events)

    async def create_session(self, settings: SessionSettings) -> RemoteSession:
        session_id = str(uuid.uuid4())[:12]
        self.sessions[session_id] = {
            "session_id": session_id,
            "status": "active",
            "settings": settings.model_dump(mode="json"),
        }
        self.moves[session_id] = []
        return RemoteSession(session_id=session_id)

    async def fetch_random_events(
        self,
        count: int,
        categories: Optional[List[str]] = None,
        difficulty_range: Optional[DifficultyRange] = None,
    ) -> List[Event]:
        return select_random_events(self._events, count, categories, difficulty_range, self._rng)

    async def record_move(self, session_id: str, move: MoveReport) -> None:
        if session_id not in self.sessions:
            raise EventSourceError(f"Game session not found: {session_id}", status_code=404)
        self.moves[session_id].append(move)

    async def complete_session(self, session_id: str, report: CompletionReport) -> None:
        if session_id not in self.sessions:
            raise EventSourceError(f"Game session not found: {session_id}", status_code=404)
        self.sessions[session_id]["status"] = "completed" if report.completed else "abandoned"
        self.sessions[session_id]["result"] = report.model_dump(mode="json")


class HttpEventSource:
    """
    Event source backed by the timeline HTTP API.

    Responses use the {"success": bool, "data": ...} envelope. requests is
    blocking, so each call runs in a worker thread via asyncio.to_thread.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._http = session or requests.Session()

    def _request(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self._http.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.ConnectionError as e:
            raise EventSourceError(f"Cannot connect to event API at {self.base_url}") from e
        except requests.exceptions.RequestException as e:
            raise EventSourceError(f"Request to {url} failed: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.status_code >= 400:
            detail = body.get("error") if isinstance(body, dict) else None
            raise EventSourceError(
                f"{method} {path} returned {response.status_code}: {detail or response.text[:200]}",
                status_code=response.status_code,
            )
        if not isinstance(body, dict) or not body.get("success", False):
            detail = body.get("error") if isinstance(body, dict) else "malformed response"
            raise EventSourceError(f"{method} {path} failed: {detail}", status_code=response.status_code)
        return body.get("data")

    # -------------------------------------------------------------------------
    # Sync API
    # -------------------------------------------------------------------------

    def create_session_sync(self, settings: SessionSettings) -> RemoteSession:
        data = self._request("POST", "/api/game-sessions", json=settings.model_dump(mode="json"))
        if not isinstance(data, dict) or "session_id" not in data:
            raise EventSourceError("Create session response has no session_id")
        return RemoteSession(session_id=str(data["session_id"]), status=data.get("status", "active"))

    def fetch_random_events_sync(
        self,
        count: int,
        categories: Optional[List[str]] = None,
        difficulty_range: Optional[DifficultyRange] = None,
    ) -> List[Event]:
        params: Dict[str, Any] = {}
        if categories:
            params["categories"] = ",".join(categories)
        if difficulty_range is not None:
            params["difficulty_min"] = difficulty_range.min
            params["difficulty_max"] = difficulty_range.max
        data = self._request("GET", f"/api/events/random/{int(count)}", params=params)
        if not isinstance(data, list):
            raise EventSourceError("Random events response is not a list")
        try:
            return ensure_events(data)
        except ValueError as e:
            raise EventSourceError(f"Invalid event payload: {e}") from e

    def record_move_sync(self, session_id: str, move: MoveReport) -> None:
        self._request("POST", f"/api/game-sessions/{session_id}/moves", json=move.model_dump(mode="json"))

    def complete_session_sync(self, session_id: str, report: CompletionReport) -> None:
        self._request("PUT", f"/api/game-sessions/{session_id}/complete", json=report.model_dump(mode="json"))

    # -------------------------------------------------------------------------
    # Async API
    # -------------------------------------------------------------------------

    async def create_session(self, settings: SessionSettings) -> RemoteSession:
        return await asyncio.to_thread(self.create_session_sync, settings)

    async def fetch_random_events(
        self,
        count: int,
        categories: Optional[List[str]] = None,
        difficulty_range: Optional[DifficultyRange] = None,
    ) -> List[Event]:
        return await asyncio.to_thread(self.fetch_random_events_sync, count, categories, difficulty_range)

    async def record_move(self, session_id: str, move: MoveReport) -> None:
        await asyncio.to_thread(self.record_move_sync, session_id, move)

    async def complete_session(self, session_id: str, report: CompletionReport) -> None:
        await asyncio.to_thread(self.complete_session_sync, session_id, report)

    def close(self) -> None:
        self._http.close()
