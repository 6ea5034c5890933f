"""
Session store: one persisted snapshot slot for the in-progress game.
Persistence to a JSON file or process memory.

Snapshots are versioned dicts produced by Session.to_snapshot(). A slot that
cannot be parsed or lacks the core fields is cleared and reported as empty.
"""

import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, Union

from ..models.session import SNAPSHOT_VERSION

logger = logging.getLogger(__name__)

# Serialized snapshots above this size are refused.
MAX_SNAPSHOT_BYTES = int(4.5 * 1024 * 1024)

REQUIRED_FIELDS = ("timeline", "hand", "status")


class SessionPersistence(Protocol):
    """Protocol for the single session slot. Implement for file or memory."""

    def save(self, snapshot: Dict[str, Any]) -> bool:
        """Write snapshot, replacing whatever the slot held. False on failure."""
        ...

    def load(self) -> Optional[Dict[str, Any]]:
        """Return the stored snapshot, or None if empty, corrupt or invalid."""
        ...

    def clear(self) -> bool:
        """Empty the slot. True if the slot is empty afterwards."""
        ...

    def exists(self) -> bool:
        """True if the slot holds something."""
        ...


def encode_snapshot(snapshot: Dict[str, Any]) -> Optional[str]:
    """Serialize snapshot with version and saved_at stamped; None if over the size limit."""
    payload = dict(snapshot)
    payload.setdefault("version", SNAPSHOT_VERSION)
    payload["saved_at"] = time.time()
    text = json.dumps(payload)
    if len(text.encode("utf-8")) > MAX_SNAPSHOT_BYTES:
        return None
    return text


def decode_snapshot(text: str) -> Dict[str, Any]:
    """
    Parse and structurally check a serialized snapshot.

    Raises ValueError if it is not JSON, not an object, or misses a required field.
    """
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError("Snapshot is not a JSON object")
    missing = [f for f in REQUIRED_FIELDS if f not in data]
    if missing:
        raise ValueError(f"Snapshot missing required fields: {missing}")
    if data.get("version") != SNAPSHOT_VERSION:
        logger.warning("[persistence] Snapshot version mismatch: expected %s, got %s",
                       SNAPSHOT_VERSION, data.get("version"))
    return data


class JsonSessionStore:
    """Session slot backed by a JSON file (e.g. ~/.timeline_game/session_state.json)."""

    def __init__(self, path: Union[Path, str]):
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self._path

    def save(self, snapshot: Dict[str, Any]) -> bool:
        text = encode_snapshot(snapshot)
        if text is None:
            logger.warning("[persistence] Snapshot exceeds %d bytes; clearing slot", MAX_SNAPSHOT_BYTES)
            self.clear()
            return False
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            with open(tmp, "w") as f:
                f.write(text)
            tmp.replace(self._path)
            return True
        except OSError as e:
            logger.error("[persistence] Failed to save session to %s: %s", self._path, e)
            return False

    def load(self) -> Optional[Dict[str, Any]]:
        if not self._path.exists():
            return None
        try:
            with open(self._path) as f:
                return decode_snapshot(f.read())
        except (ValueError, OSError) as e:
            logger.warning("[persistence] Discarding unreadable session at %s: %s", self._path, e)
            self.clear()
            return None

    def clear(self) -> bool:
        try:
            self._path.unlink(missing_ok=True)
            return True
        except OSError as e:
            logger.error("[persistence] Failed to clear session at %s: %s", self._path, e)
            return False

    def exists(self) -> bool:
        return self._path.exists()


class MemorySessionStore:
    """Session slot held in process memory. Used in tests and when persistence is disabled."""

    def __init__(self):
        self._text: Optional[str] = None

    def save(self, snapshot: Dict[str, Any]) -> bool:
        text = encode_snapshot(snapshot)
        if text is None:
            logger.warning("[persistence] Snapshot exceeds %d bytes; clearing slot", MAX_SNAPSHOT_BYTES)
            self._text = None
            return False
        self._text = text
        return True

    def load(self) -> Optional[Dict[str, Any]]:
        if self._text is None:
            return None
        try:
            return decode_snapshot(self._text)
        except ValueError as e:
            logger.warning("[persistence] Discarding unreadable session: %s", e)
            self._text = None
            return None

    def clear(self) -> bool:
        self._text = None
        return True

    def exists(self) -> bool:
        return self._text is not None

    def write_raw(self, text: str) -> None:
        """Put arbitrary text in the slot (simulates external corruption)."""
        self._text = text
