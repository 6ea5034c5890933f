"""
Settings store: user preferences persisted as JSON, with change notifications.

Each store is an explicit object passed to whoever needs it (the engine, the UI).
subscribe() returns an unsubscribe callable. Listeners are called as
listener(key, new_value, old_value), once per key whose value actually changed.
"""

import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Protocol, Union

from pydantic import ValidationError

from ..models.settings import DEFAULT_SETTINGS, SETTING_KEYS, Settings

logger = logging.getLogger(__name__)

SettingsListener = Callable[[str, Any, Any], None]


class SettingsStore(Protocol):
    """Protocol for preference storage."""

    def get(self) -> Settings:
        """Current settings (a copy)."""
        ...

    def get_setting(self, key: str) -> Any:
        """Value of one setting, or None for an unknown key."""
        ...

    def set(self, key: str, value: Any) -> bool:
        """Change one setting. False for unknown keys, invalid values or save failures."""
        ...

    def update(self, values: Dict[str, Any]) -> bool:
        """Change several settings atomically. All-or-nothing."""
        ...

    def reset_to_defaults(self) -> bool:
        ...

    def subscribe(self, listener: SettingsListener) -> Callable[[], None]:
        """Register listener. Returns a function that removes it."""
        ...

    def clear(self) -> bool:
        """Remove persisted settings; in-memory values are kept."""
        ...


class JsonSettingsStore:
    """
    Settings store backed by a JSON file.

    With path=None nothing is written to disk (tests, ephemeral runs).
    Unreadable or invalid files fall back to defaults.
    """

    def __init__(self, path: Optional[Union[Path, str]] = None):
        self._path = Path(path) if path is not None else None
        self._settings: Settings = DEFAULT_SETTINGS.model_copy(deep=True)
        self._listeners: List[SettingsListener] = []
        self._load()

    def _load(self) -> None:
        if self._path is None or not self._path.exists():
            return
        try:
            with open(self._path) as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError("settings file is not a JSON object")
            # Merge over defaults so files written by older versions still validate.
            merged = DEFAULT_SETTINGS.model_dump()
            merged.update({k: v for k, v in data.items() if k in SETTING_KEYS})
            self._settings = Settings.model_validate(merged)
        except (ValueError, OSError) as e:
            logger.warning("[settings] Could not load %s, using defaults: %s", self._path, e)
            self._settings = DEFAULT_SETTINGS.model_copy(deep=True)

    def _save(self, settings: Settings) -> None:
        if self._path is None:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._path, "w") as f:
            json.dump(settings.model_dump(mode="json"), f, indent=2)

    def _notify(self, key: str, new_value: Any, old_value: Any) -> None:
        if new_value == old_value:
            return
        for listener in list(self._listeners):
            try:
                listener(key, new_value, old_value)
            except Exception:
                logger.exception("[settings] Listener failed for %s", key)

    def _commit(self, candidate: Settings, keys: List[str]) -> bool:
        """Persist candidate and notify for keys; the previous settings stay on save failure."""
        try:
            self._save(candidate)
        except OSError as e:
            logger.error("[settings] Failed to save settings to %s: %s", self._path, e)
            return False
        previous = self._settings
        self._settings = candidate
        for key in keys:
            self._notify(key, getattr(candidate, key), getattr(previous, key))
        return True

    def get(self) -> Settings:
        return self._settings.model_copy(deep=True)

    def get_setting(self, key: str) -> Any:
        if key not in SETTING_KEYS:
            return None
        return getattr(self._settings, key)

    def set(self, key: str, value: Any) -> bool:
        return self.update({key: value})

    def update(self, values: Dict[str, Any]) -> bool:
        unknown = [k for k in values if k not in SETTING_KEYS]
        if unknown:
            logger.warning("[settings] Rejected unknown setting(s): %s", unknown)
            return False
        merged = self._settings.model_dump()
        merged.update(values)
        try:
            candidate = Settings.model_validate(merged)
        except ValidationError as e:
            logger.warning("[settings] Rejected invalid value(s) for %s: %s",
                           list(values), e.errors()[0].get("msg"))
            return False
        return self._commit(candidate, list(values))

    def reset_to_defaults(self) -> bool:
        return self._commit(DEFAULT_SETTINGS.model_copy(deep=True), list(Settings.model_fields))

    def subscribe(self, listener: SettingsListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def clear(self) -> bool:
        if self._path is None:
            return True
        try:
            self._path.unlink(missing_ok=True)
            return True
        except OSError as e:
            logger.error("[settings] Failed to clear %s: %s", self._path, e)
            return False

    @property
    def listener_count(self) -> int:
        return len(self._listeners)
