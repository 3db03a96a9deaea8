"""Tests for levelup/penalties.py and levelup/stats.py."""

from datetime import date, datetime

from levelup.models import Goal, Habit, Penalty, Task
from levelup.penalties import (
    add_user_penalty_points,
    create_penalty,
    delete_penalty,
    load_penalties,
    load_user,
    penalties_between,
    save_penalties,
    total_penalty_points,
    validate_penalty,
)
from levelup.stats import compute_overview
from levelup.storage import USER_KEY

NOW = datetime(2026, 2, 11, 18, 30)


def test_validate_penalty():
    assert validate_penalty({"description": "Skipped gym", "points": 3}) == []
    assert len(validate_penalty({"description": "", "points": 11})) == 2
    assert validate_penalty({"description": "x", "points": 1, "date": "yesterday"})


def test_create_penalty_defaults_to_today(store):
    penalties = []
    penalty, errors = create_penalty(penalties, {"description": "Skipped gym", "points": 3}, NOW)
    assert errors == []
    assert penalty.penalty_date == date(2026, 2, 11)
    assert penalty.added_at == "2026-02-11T18:30:00"
    save_penalties(store, penalties)
    assert load_penalties(store)[0].to_dict()["date"] == "2026-02-11"


def test_create_penalty_invalid():
    penalties = []
    _, errors = create_penalty(penalties, {"description": "x", "points": 0}, NOW)
    assert errors
    assert penalties == []


def test_penalty_queries():
    penalties = [
        Penalty(id="a", points=2, penalty_date=date(2026, 2, 1)),
        Penalty(id="b", points=3, penalty_date=date(2026, 2, 9)),
        Penalty(id="c", points=5, penalty_date=date(2026, 2, 15)),
    ]
    assert total_penalty_points(penalties) == 10
    window = penalties_between(penalties, date(2026, 2, 9), date(2026, 2, 15))
    assert [p.id for p in window] == ["b", "c"]
    assert delete_penalty(penalties, "a") is True
    assert delete_penalty(penalties, "a") is False


def test_user_penalty_points(store):
    assert load_user(store).penalty_points == 0
    add_user_penalty_points(store, 4)
    user = add_user_penalty_points(store, 2)
    assert user.penalty_points == 6
    store.set(USER_KEY, "garbage")
    assert load_user(store).penalty_points == 0


def test_overview():
    today = date(2026, 2, 11)
    overview = compute_overview(
        [Habit(id="h1", name="Read", streak=8, last_completed=today), Habit(id="h2", name="Run", streak=2)],
        [Task(id="t1", completed=True), Task(id="t2")],
        [Goal(id="g1")],
        [Penalty(points=2), Penalty(points=1)],
        today,
    )
    assert overview["habits"] == {"total": 2, "completed": 1}
    assert overview["tasks"] == {"total": 2, "completed": 1}
    assert overview["goals"] == {"total": 1, "completed": 0}
    assert overview["penaltyPoints"] == 3
    assert overview["bestStreak"] == {"habitId": "h1", "name": "Read", "streak": 8}


def test_overview_empty():
    overview = compute_overview([], [], [], [], date(2026, 2, 11))
    assert overview["bestStreak"] is None
    assert overview["penaltyPoints"] == 0
