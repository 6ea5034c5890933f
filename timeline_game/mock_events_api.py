"""
Mock Events API: the timeline backend contract served from a JSON dataset.

Serves random event batches and an in-memory game-session log so the engine's
HttpEventSource can be exercised end to end without the real backend.
Every response uses the {"success": bool, "data": ...} envelope; failures
carry an "error" string instead of "data".

Run:
  From repo root:
    python -m timeline_game.mock_events_api
  Or:
    uvicorn timeline_game.mock_events_api:app --reload --port 8001

  Then point the engine at it with EVENTS_API_URL=http://localhost:8001
"""

import json
import os
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List

from fastapi import FastAPI, Query
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from .config import DEFAULT_DATASET
from .models.event import MAX_DIFFICULTY, MIN_DIFFICULTY, Event
from .models.remote import CompletionReport, MoveReport, SessionSettings
from .models.settings import DifficultyRange
from .services.event_source import select_random_events

MAX_RANDOM_COUNT = 50


def _load_data():
    """Load events from EVENTS_DATASET_PATH env or the bundled dataset."""
    path = Path(os.environ.get("EVENTS_DATASET_PATH", str(DEFAULT_DATASET)))
    if not path.exists():
        raise FileNotFoundError(f"Events dataset not found: {path}")
    with open(path) as f:
        raw = json.load(f)
    if isinstance(raw, dict):
        raw = raw.get("events", [])
    raw = [dict(e, id=str(e["id"])) for e in raw]
    events = [Event.model_validate(e) for e in raw]
    return raw, events


_raw_by_id: Dict[str, dict] = {}
_events: List[Event] = []
_sessions: Dict[str, dict] = {}


def _load_into_globals() -> None:
    global _raw_by_id, _events
    raw, events = _load_data()
    _raw_by_id = {e["id"]: e for e in raw}
    _events = events


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        _load_into_globals()
        print(f"Mock Events API: loaded {len(_events)} events")
    except FileNotFoundError as e:
        print(f"WARNING: {e}. Set EVENTS_DATASET_PATH to a JSON file with a list of events.")
    yield
    _sessions.clear()


app = FastAPI(
    title="Mock Events API",
    description="Timeline event catalog and game-session log for local play and testing",
    version="1.0.0",
    lifespan=lifespan,
)


def _ok(data, status_code: int = 200, **extra):
    return JSONResponse(status_code=status_code, content={"success": True, "data": data, **extra})


def _fail(error: str, status_code: int):
    return JSONResponse(status_code=status_code, content={"success": False, "error": error})


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@app.get("/health")
def health():
    return {"success": True, "status": "ok", "events_loaded": len(_events), "sessions": len(_sessions)}


@app.get("/api/events")
def list_events(
    category: str = Query(None, description="Only events in this category (case-insensitive)"),
    limit: int = Query(None, ge=1, description="Max number to return; omit for all"),
    offset: int = Query(0, ge=0),
):
    out = [_raw_by_id[e.id] for e in sorted(_events, key=lambda e: e.date_occurred)]
    if category:
        out = [e for e in out if str(e.get("category", "")).lower() == category.lower()]
    if offset:
        out = out[offset:]
    if limit is not None:
        out = out[:limit]
    return _ok(out, count=len(out))


@app.get("/api/categories")
def list_categories():
    return _ok(sorted({e.category for e in _events if e.category}))


@app.get("/api/events/random/{count}")
def random_events(
    count: int,
    categories: str = Query(None, description="Comma-separated category filter"),
    difficulty_min: int = Query(MIN_DIFFICULTY, ge=MIN_DIFFICULTY, le=MAX_DIFFICULTY),
    difficulty_max: int = Query(MAX_DIFFICULTY, ge=MIN_DIFFICULTY, le=MAX_DIFFICULTY),
):
    """Random events matching the filters; fewer than count when the catalog runs short."""
    if not 1 <= count <= MAX_RANDOM_COUNT:
        return _fail(f"Count must be between 1 and {MAX_RANDOM_COUNT}", 400)
    if difficulty_min > difficulty_max:
        return _fail("difficulty_min must not exceed difficulty_max", 400)

    wanted = [c.strip() for c in categories.split(",") if c.strip()] if categories else []
    picked = select_random_events(
        _events, count, wanted, DifficultyRange(min=difficulty_min, max=difficulty_max)
    )
    data = [_raw_by_id[e.id] for e in picked]
    return _ok(data, count=len(data))


@app.post("/api/game-sessions")
def create_session(body: dict):
    try:
        settings = SessionSettings.model_validate(body)
    except ValidationError as e:
        return _fail(f"Invalid session settings: {e.errors()[0].get('msg')}", 400)

    session_id = str(uuid.uuid4())[:12]
    session = {
        "session_id": session_id,
        "player_name": settings.player_name,
        "difficulty_level": settings.difficulty_level,
        "card_count": settings.card_count,
        "categories": settings.categories,
        "status": "active",
        "start_time": _now(),
        "moves": [],
    }
    _sessions[session_id] = session
    return _ok({k: v for k, v in session.items() if k != "moves"}, status_code=201,
               message="Game session created successfully")


@app.get("/api/game-sessions/{session_id}")
def get_session(session_id: str):
    session = _sessions.get(session_id)
    if session is None:
        return _fail("Game session not found", 404)
    return _ok(session)


@app.post("/api/game-sessions/{session_id}/moves")
def record_move(session_id: str, body: dict):
    session = _sessions.get(session_id)
    if session is None:
        return _fail("Game session not found", 404)
    if session["status"] != "active":
        return _fail("Game session is not active", 409)
    try:
        move = MoveReport.model_validate(body)
    except ValidationError as e:
        return _fail(f"Invalid move: {e.errors()[0].get('msg')}", 400)

    entry = move.model_dump(mode="json")
    entry["move_number"] = len(session["moves"]) + 1
    entry["recorded_at"] = _now()
    session["moves"].append(entry)
    return _ok(entry, status_code=201)


@app.put("/api/game-sessions/{session_id}/complete")
def complete_session(session_id: str, body: dict):
    session = _sessions.get(session_id)
    if session is None:
        return _fail("Game session not found", 404)
    try:
        report = CompletionReport.model_validate(body)
    except ValidationError as e:
        return _fail(f"Invalid completion report: {e.errors()[0].get('msg')}", 400)

    session["status"] = "completed" if report.completed else "abandoned"
    session["end_time"] = _now()
    session.update(report.model_dump(mode="json", exclude_none=True))
    return _ok({k: v for k, v in session.items() if k != "moves"})


def reset_state() -> None:
    """Reload the catalog and drop all sessions."""
    _sessions.clear()
    _load_into_globals()


if __name__ == "__main__":
    import uvicorn
    port = int(os.environ.get("MOCK_EVENTS_PORT", "8001"))
    uvicorn.run(app, host="0.0.0.0", port=port)
