"""Session persistence slot: JSON file and in-memory implementations."""

import json

import pytest

from timeline_game.models import Session
from timeline_game.models.session import SNAPSHOT_VERSION, GameStatus
from timeline_game.services import JsonSessionStore, MemorySessionStore, session_store
from timeline_game.tests.helpers import PLAY_EVENTS


def _snapshot():
    session = Session(
        timeline=PLAY_EVENTS[:1],
        hand=PLAY_EVENTS[1:],
        status=GameStatus.PLAYING,
        score=150,
        selected_card_id="e1",
    )
    return session.to_snapshot()


@pytest.fixture(params=["json", "memory"])
def store(request, tmp_path):
    if request.param == "json":
        return JsonSessionStore(tmp_path / "state" / "session.json")
    return MemorySessionStore()


class TestSlot:
    def test_empty_slot(self, store):
        assert not store.exists()
        assert store.load() is None

    def test_save_then_load(self, store):
        assert store.save(_snapshot())
        assert store.exists()
        loaded = store.load()
        assert loaded["score"] == 150
        assert loaded["version"] == SNAPSHOT_VERSION
        assert "saved_at" in loaded
        assert "selected_card_id" not in loaded
        restored = Session.from_snapshot(loaded)
        assert [c.id for c in restored.hand] == ["e1", "e2", "e4", "e5"]
        assert restored.selected_card_id is None

    def test_save_replaces_previous(self, store):
        store.save(_snapshot())
        second = _snapshot()
        second["score"] = 300
        store.save(second)
        assert store.load()["score"] == 300

    def test_clear(self, store):
        store.save(_snapshot())
        assert store.clear()
        assert not store.exists()
        assert store.clear()

    def test_oversized_snapshot_refused_and_slot_cleared(self, store, monkeypatch):
        store.save(_snapshot())
        monkeypatch.setattr(session_store, "MAX_SNAPSHOT_BYTES", 100)
        assert not store.save(_snapshot())
        assert not store.exists()


class TestCorruption:
    def test_invalid_json_file_cleared(self, tmp_path):
        path = tmp_path / "session.json"
        path.write_text("{not json")
        store = JsonSessionStore(path)
        assert store.load() is None
        assert not path.exists()

    def test_missing_required_fields_cleared(self, tmp_path):
        path = tmp_path / "session.json"
        path.write_text(json.dumps({"version": SNAPSHOT_VERSION, "timeline": []}))
        store = JsonSessionStore(path)
        assert store.load() is None
        assert not store.exists()

    def test_version_mismatch_still_loads(self, tmp_path):
        path = tmp_path / "session.json"
        data = _snapshot()
        data["version"] = "0.9.0"
        path.write_text(json.dumps(data))
        assert JsonSessionStore(path).load()["score"] == 150

    def test_memory_store_corruption(self):
        store = MemorySessionStore()
        store.write_raw("[1, 2, 3]")
        assert store.load() is None
        assert not store.exists()
