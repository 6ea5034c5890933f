"""Insertion point generation and relevance scoring."""

from datetime import date

from timeline_game.gameplay.insertion_points import (
    generate_insertion_points,
    insertion_point_relevance,
)
from timeline_game.tests.helpers import make_event


def test_empty_timeline_has_single_point():
    points = generate_insertion_points([])
    assert len(points) == 1
    assert points[0].index == 0
    assert points[0].position == "before"


def test_n_cards_give_n_plus_one_points():
    timeline = [make_event("a", 1900), make_event("b", 1905), make_event("c", 1940),
                make_event("d", 2000)]
    points = generate_insertion_points(timeline)
    assert [p.index for p in points] == [0, 1, 2, 3, 4]
    assert [p.position for p in points] == ["before", "between", "between", "between", "after"]


def test_gap_difficulty():
    timeline = [make_event("a", 1900), make_event("b", 1905), make_event("c", 1940),
                make_event("d", 2000)]
    between = [p for p in generate_insertion_points(timeline) if p.position == "between"]
    assert [(p.gap_years, p.difficulty) for p in between] == [
        (5, "hard"), (35, "medium"), (60, "easy"),
    ]
    assert between[0].reference_card_id == "a"
    assert between[0].next_card_id == "b"


def test_relevance_only_with_card():
    timeline = [make_event("a", 1900), make_event("b", 2000)]
    assert all(p.relevance is None for p in generate_insertion_points(timeline))
    scored = generate_insertion_points(timeline, make_event("x", 1950))
    assert all(p.relevance is not None for p in scored)
    assert max(scored, key=lambda p: p.relevance).index == 1


def test_relevance_between_two_cards():
    a, b = make_event("a", 1900), make_event("b", 2000)
    assert insertion_point_relevance(date(1950, 6, 1), a, b) >= 0.9
    assert insertion_point_relevance(date(1935, 6, 1), a, b) == 0.7
    assert insertion_point_relevance(date(1905, 6, 1), a, b) == 0.3


def test_relevance_next_to_single_card():
    a = make_event("a", 1900)
    assert insertion_point_relevance(date(1902, 6, 1), a, None) == 0.9
    assert insertion_point_relevance(date(1910, 6, 1), a, None) == 0.7
    assert insertion_point_relevance(date(1990, 6, 1), None, a) == 0.3
    assert insertion_point_relevance(date(1990, 6, 1), None, None) == 0.5
