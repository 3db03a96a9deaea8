"""Tests for levelup/goals.py."""

from datetime import date

import pytest

from levelup.errors import InvalidInputError, RecordNotFoundError
from levelup.goals import (
    create_goal,
    delete_goal,
    load_goals,
    save_goals,
    set_goal_completion,
    update_goal_progress,
    validate_goal,
)
from levelup.models import Goal


def test_validate_goal():
    assert validate_goal({"name": "Marathon", "deadline": "2026-10-01"}) == []
    errors = validate_goal({"name": "", "progress": 120})
    assert len(errors) == 3


def test_create_goal(store):
    goals = []
    goal, errors = create_goal(goals, {"name": "Marathon", "deadline": "2026-10-01", "progress": 10})
    assert errors == []
    assert goal.deadline == date(2026, 10, 1)
    assert goal.progress == 10
    assert goal.deadline_locked is True
    save_goals(store, goals)
    assert load_goals(store)[0].name == "Marathon"


def test_update_goal_progress():
    goals = [Goal(id="g1", name="Marathon")]
    assert update_goal_progress(goals, "g1", 40).progress == 40
    with pytest.raises(InvalidInputError):
        update_goal_progress(goals, "g1", 101)
    with pytest.raises(RecordNotFoundError):
        update_goal_progress(goals, "g2", 10)


def test_goal_completion():
    goals = [Goal(id="g1", name="Marathon", progress=80)]
    goal = set_goal_completion(goals, "g1", True, date(2026, 2, 11))
    assert goal.completed is True
    assert goal.progress == 100
    assert goal.completed_date == date(2026, 2, 11)
    goal = set_goal_completion(goals, "g1", False, date(2026, 2, 12))
    assert goal.completed is False
    assert goal.completed_date is None


def test_delete_goal():
    goals = [Goal(id="g1")]
    assert delete_goal(goals, "g1") is True
    assert goals == []
