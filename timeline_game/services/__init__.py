"""
Service layer: settings, session persistence and the event/session backend.
"""

from .event_source import (
    EventSource,
    HttpEventSource,
    InMemoryEventSource,
    load_events_file,
    select_random_events,
)
from .session_store import (
    MAX_SNAPSHOT_BYTES,
    JsonSessionStore,
    MemorySessionStore,
    SessionPersistence,
)
from .settings_store import JsonSettingsStore, SettingsStore

__all__ = [
    "EventSource",
    "HttpEventSource",
    "InMemoryEventSource",
    "JsonSessionStore",
    "JsonSettingsStore",
    "MAX_SNAPSHOT_BYTES",
    "MemorySessionStore",
    "SessionPersistence",
    "SettingsStore",
    "load_events_file",
    "select_random_events",
]
