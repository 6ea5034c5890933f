"""
Placement Validation Tests

Timeline used below (ascending):
    t1 1900, t2 1950, t3 2000

Tolerance table (default GameConfig):
    difficulty 1 -> 2, 2 -> 1, 3 -> 0, 4 -> 0

Run:
----
    pytest timeline_game/tests/test_placement.py -v
"""

import pytest
from pydantic import ValidationError

from timeline_game.config import DEFAULT_GAME_CONFIG, GameConfig
from timeline_game.gameplay.placement import (
    apply_score,
    find_correct_position,
    generate_hint,
    is_chronological,
    score_delta,
    validate_placement,
)
from timeline_game.tests.helpers import make_event

TIMELINE = [make_event("t1", 1900), make_event("t2", 1950), make_event("t3", 2000)]


class TestFindCorrectPosition:
    def test_before_between_after(self):
        assert find_correct_position(make_event("c", 1800), TIMELINE) == 0
        assert find_correct_position(make_event("c", 1920), TIMELINE) == 1
        assert find_correct_position(make_event("c", 1999), TIMELINE) == 2
        assert find_correct_position(make_event("c", 2020), TIMELINE) == 3

    def test_equal_date_goes_before_existing(self):
        assert find_correct_position(make_event("c", 1950), TIMELINE) == 1

    def test_empty_timeline(self):
        assert find_correct_position(make_event("c", 1950), []) == 0

    def test_is_chronological(self):
        assert is_chronological(TIMELINE)
        assert is_chronological([])
        assert not is_chronological(list(reversed(TIMELINE)))


class TestValidatePlacement:
    def test_exact_placement(self):
        card = make_event("c", 1920)
        result = validate_placement(card, TIMELINE, 1, difficulty=3)
        assert result.is_correct and result.is_exact
        assert result.feedback_type == "perfect"
        assert result.score_delta == 100
        assert result.distance == 0

    def test_off_by_one_fails_at_high_difficulty(self):
        card = make_event("c", 1920)
        result = validate_placement(card, TIMELINE, 2, difficulty=3)
        assert not result.is_correct
        assert result.correct_index == 1
        assert result.feedback_type == "miss"
        assert result.score_delta == 0

    @pytest.mark.parametrize("difficulty,target,expected", [
        (1, 3, True),   # distance 2 within tolerance 2
        (2, 3, False),  # distance 2 outside tolerance 1
        (2, 2, True),
        (4, 2, False),
    ])
    def test_tolerance_by_difficulty(self, difficulty, target, expected):
        card = make_event("c", 1920)
        result = validate_placement(card, TIMELINE, target, difficulty=difficulty)
        assert result.is_correct is expected

    def test_close_placement_scores_tolerance_points(self):
        card = make_event("c", 1920)
        result = validate_placement(card, TIMELINE, 2, difficulty=1)
        assert result.is_correct and not result.is_exact
        assert result.feedback_type == "close"
        assert result.score_delta == 50
        assert "earlier" in result.feedback

    def test_miss_feedback_gives_year_decade_and_direction(self):
        card = make_event("c", 1925)
        late = validate_placement(card, TIMELINE, 3, difficulty=4)
        early = validate_placement(make_event("d", 2010), TIMELINE, 0, difficulty=4)
        assert "1925 (1920s)" in late.feedback
        assert "earlier" in late.feedback
        assert "later" in early.feedback

    def test_custom_tolerance_callable(self):
        card = make_event("c", 1800)
        result = validate_placement(card, TIMELINE, 3, difficulty=4, tolerance=lambda d: 5)
        assert result.is_correct
        assert result.tolerance == 5

    def test_custom_scoring_config(self):
        config = GameConfig(exact_points=10, tolerance_points=5, miss_points=-5)
        card = make_event("c", 1920)
        assert validate_placement(card, TIMELINE, 1, 3, config).score_delta == 10
        assert validate_placement(card, TIMELINE, 0, 3, config).score_delta == -5

    def test_is_pure(self):
        card = make_event("c", 1920)
        before = list(TIMELINE)
        first = validate_placement(card, TIMELINE, 2, difficulty=2)
        second = validate_placement(card, TIMELINE, 2, difficulty=2)
        assert first == second
        assert TIMELINE == before


class TestScoring:
    def test_score_delta_ordering(self):
        assert score_delta(True, True) > score_delta(False, True) > score_delta(False, False)

    def test_apply_score_clamps_at_min(self):
        config = GameConfig(miss_points=-40)
        assert apply_score(10, -40, config) == 0
        assert apply_score(100, 50) == 150

    def test_points_must_be_ordered(self):
        with pytest.raises(ValidationError):
            GameConfig(exact_points=10, tolerance_points=50)
        with pytest.raises(ValidationError):
            GameConfig(tolerance_points=0, miss_points=0)

    def test_negative_tolerance_rejected(self):
        with pytest.raises(ValidationError):
            GameConfig(tolerance_by_difficulty={1: -1})


class TestGameConfig:
    def test_defaults(self):
        assert DEFAULT_GAME_CONFIG.pool_card_count == 10
        assert DEFAULT_GAME_CONFIG.replacement_batch_size == 5
        assert DEFAULT_GAME_CONFIG.feedback_clear_seconds == 3.0
        assert DEFAULT_GAME_CONFIG.tolerance_by_difficulty == {1: 2, 2: 1, 3: 0, 4: 0}

    def test_tolerance_for_clamps_level(self):
        assert DEFAULT_GAME_CONFIG.tolerance_for(0) == 2
        assert DEFAULT_GAME_CONFIG.tolerance_for(9) == 0

    def test_from_dict_flattens_sections(self):
        config = GameConfig.from_dict({
            "scoring": {"exact_points": 200, "tolerance_points": 80},
            "dealing": {"pool_card_count": 20},
            "tolerance": {"1": 3, "2": 2, "3": 1, "4": 0},
            "feedback_clear_seconds": 1.5,
            "unknown_key": True,
        })
        assert config.exact_points == 200
        assert config.pool_card_count == 20
        assert config.tolerance_for(1) == 3
        assert config.feedback_clear_seconds == 1.5


class TestHint:
    def test_hint_on_empty_timeline_gives_decade(self):
        assert "1960s" in generate_hint(make_event("c", 1969), [])

    def test_hint_relative_to_span(self):
        assert "before all events" in generate_hint(make_event("c", 1800), TIMELINE)
        assert "after all events" in generate_hint(make_event("c", 2020), TIMELINE)
        assert "middle" in generate_hint(make_event("c", 1960), TIMELINE)
