"""Task CRUD, validation, and completion toggling for LevelUp."""

from __future__ import annotations

import uuid
from datetime import date
from typing import Any

from levelup.errors import RecordNotFoundError
from levelup.leveling import TASK_XP
from levelup.models import CompletionResult, Task
from levelup.storage import TASKS_KEY, KeyValueStore, load_json_list, save_json


# ── Validation ────────────────────────────────────────────────


def validate_task(task: dict[str, Any]) -> list[str]:
    """Validate task fields and return list of errors (empty if valid)."""
    errors = []
    name = task.get("name")
    if not isinstance(name, str) or not name.strip():
        errors.append("Missing required field: name")
    if task.get("deadline"):
        try:
            date.fromisoformat(str(task["deadline"]))
        except ValueError:
            errors.append(f"Invalid deadline: {task['deadline']}")
    return errors


# ── CRUD ──────────────────────────────────────────────────────


def load_tasks(store: KeyValueStore) -> list[Task]:
    return [Task.from_dict(d) for d in load_json_list(store, TASKS_KEY)]


def save_tasks(store: KeyValueStore, tasks: list[Task]) -> None:
    save_json(store, TASKS_KEY, [t.to_dict() for t in tasks])


def find_task(tasks: list[Task], task_id: str) -> Task | None:
    """Find a task by ID."""
    for t in tasks:
        if t.id == task_id:
            return t
    return None


def create_task(tasks: list[Task], task_data: dict[str, Any]) -> tuple[Task, list[str]]:
    """Create and add a new, open task. Returns (task, errors)."""
    errors = validate_task(task_data)
    if errors:
        return Task(), errors

    task_id = str(task_data.get("id") or uuid.uuid4().hex[:12])
    if find_task(tasks, task_id):
        return Task(), [f"Task ID already exists: {task_id}"]

    task = Task.from_dict({**task_data, "id": task_id})
    task.completed = False
    task.completed_date = None
    tasks.append(task)
    return task, []


def update_task(tasks: list[Task], task_id: str, updates: dict[str, Any]) -> tuple[Task | None, list[str]]:
    """Update a task by ID. Completion goes through set_task_completion instead."""
    task = find_task(tasks, task_id)
    if not task:
        return None, [f"Task not found: {task_id}"]

    task_dict = task.to_dict()
    task_dict.update({k: v for k, v in updates.items() if k not in {"id", "completed", "completedDate"}})

    errors = validate_task(task_dict)
    if errors:
        return None, errors

    updated = Task.from_dict(task_dict)
    for i, t in enumerate(tasks):
        if t.id == task_id:
            tasks[i] = updated
            break
    return updated, []


def delete_task(tasks: list[Task], task_id: str) -> bool:
    for i, t in enumerate(tasks):
        if t.id == task_id:
            tasks.pop(i)
            return True
    return False


# ── Completion ────────────────────────────────────────────────


def set_task_completion(
    tasks: list[Task],
    task_id: str,
    completed: bool,
    engine,
    today: date,
) -> CompletionResult:
    """Complete or reopen a task, awarding or revoking TASK_XP exactly once."""
    task = find_task(tasks, task_id)
    if task is None:
        raise RecordNotFoundError("task", task_id)

    result = CompletionResult(item_id=task_id, completed=completed)
    if task.completed == completed:
        return result

    points = TASK_XP if completed else -TASK_XP
    award = engine.award_xp(points, f"task:{task.id}")
    task.completed = completed
    task.completed_date = today if completed else None

    result.changed = True
    result.xp_delta = points
    result.leveled_up = award.leveled_up
    return result


def toggle_task(
    store: KeyValueStore,
    task_id: str,
    completed: bool,
    engine,
    today: date | None = None,
) -> tuple[Task, CompletionResult]:
    """Load, toggle, and save a task as one step, rolling XP back if the save fails."""
    with engine.transaction():
        tasks = load_tasks(store)
        result = set_task_completion(tasks, task_id, completed, engine, today or engine.clock.today())
        if result.changed:
            save_tasks(store, tasks)
    return find_task(tasks, task_id), result


# ── Views ─────────────────────────────────────────────────────


def get_tasks_with_computed_fields(tasks: list[Task], today: date) -> list[dict[str, Any]]:
    """Return tasks with days_until_deadline/overdue, open tasks first by deadline."""
    result = []
    for task in tasks:
        d = task.to_dict()
        if task.deadline:
            days_left = (task.deadline - today).days
            d["days_until_deadline"] = days_left
            d["overdue"] = days_left < 0 and not task.completed
        result.append(d)

    def sort_key(d: dict[str, Any]) -> tuple:
        days = d.get("days_until_deadline")
        return (d["completed"], days is None, days if days is not None else 0)

    result.sort(key=sort_key)
    return result
