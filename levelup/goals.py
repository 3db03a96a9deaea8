"""Long-term goals: CRUD, progress, and completion. Goals carry no XP."""

from __future__ import annotations

import uuid
from datetime import date
from typing import Any

from levelup.errors import InvalidInputError, RecordNotFoundError
from levelup.models import Goal
from levelup.storage import GOALS_KEY, KeyValueStore, load_json_list, save_json


def validate_goal(goal: dict[str, Any]) -> list[str]:
    """Validate goal fields and return list of errors (empty if valid)."""
    errors = []
    name = goal.get("name")
    if not isinstance(name, str) or not name.strip():
        errors.append("Missing required field: name")
    if not goal.get("deadline"):
        errors.append("Missing required field: deadline")
    else:
        try:
            date.fromisoformat(str(goal["deadline"]))
        except ValueError:
            errors.append(f"Invalid deadline: {goal['deadline']}")
    if "progress" in goal:
        p = goal["progress"]
        if isinstance(p, bool) or not isinstance(p, int) or not 0 <= p <= 100:
            errors.append("progress must be integer 0-100")
    return errors


def load_goals(store: KeyValueStore) -> list[Goal]:
    return [Goal.from_dict(d) for d in load_json_list(store, GOALS_KEY)]


def save_goals(store: KeyValueStore, goals: list[Goal]) -> None:
    save_json(store, GOALS_KEY, [g.to_dict() for g in goals])


def find_goal(goals: list[Goal], goal_id: str) -> Goal | None:
    for g in goals:
        if g.id == goal_id:
            return g
    return None


def create_goal(goals: list[Goal], goal_data: dict[str, Any]) -> tuple[Goal, list[str]]:
    errors = validate_goal(goal_data)
    if errors:
        return Goal(), errors

    goal_id = str(goal_data.get("id") or uuid.uuid4().hex[:12])
    if find_goal(goals, goal_id):
        return Goal(), [f"Goal ID already exists: {goal_id}"]

    goal = Goal.from_dict({**goal_data, "id": goal_id})
    goal.completed = False
    goal.completed_date = None
    goals.append(goal)
    return goal, []


def update_goal_progress(goals: list[Goal], goal_id: str, progress: int) -> Goal:
    """Set progress percent (0-100). Raises RecordNotFoundError / InvalidInputError."""
    goal = find_goal(goals, goal_id)
    if goal is None:
        raise RecordNotFoundError("goal", goal_id)
    if isinstance(progress, bool) or not isinstance(progress, int) or not 0 <= progress <= 100:
        raise InvalidInputError(f"progress must be integer 0-100, got {progress!r}", {"progress": progress})
    goal.progress = progress
    return goal


def set_goal_completion(goals: list[Goal], goal_id: str, completed: bool, today: date) -> Goal:
    goal = find_goal(goals, goal_id)
    if goal is None:
        raise RecordNotFoundError("goal", goal_id)
    if goal.completed != completed:
        goal.completed = completed
        goal.completed_date = today if completed else None
        if completed:
            goal.progress = 100
    return goal


def delete_goal(goals: list[Goal], goal_id: str) -> bool:
    for i, g in enumerate(goals):
        if g.id == goal_id:
            goals.pop(i)
            return True
    return False
