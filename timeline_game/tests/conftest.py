"""Shared fixtures for the timeline game tests."""

import random

import pytest

from timeline_game.config import GameConfig
from timeline_game.engine import GameSessionEngine
from timeline_game.services import JsonSettingsStore, MemorySessionStore
from timeline_game.tests.helpers import ScriptedEventSource


@pytest.fixture
def source():
    src = ScriptedEventSource()
    src.queue_game()
    return src


@pytest.fixture
def settings_store():
    return JsonSettingsStore(None)


@pytest.fixture
def persistence():
    return MemorySessionStore()


@pytest.fixture
def game_config():
    return GameConfig(feedback_clear_seconds=0.05)


@pytest.fixture
def engine(source, settings_store, persistence, game_config):
    eng = GameSessionEngine(
        source,
        settings_store,
        persistence,
        config=game_config,
        rng=random.Random(3),
    )
    yield eng
    eng.close()
