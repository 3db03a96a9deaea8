from __future__ import annotations

import os
import secrets
import threading
from datetime import date
from pathlib import Path
from typing import Any

from fastapi import Body, Depends, FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from levelup import (
    InvalidInputError,
    RecordNotFoundError,
    Services,
    StorageError,
    add_user_penalty_points,
    build_services,
    compute_overview,
    create_goal,
    create_habit,
    create_penalty,
    create_task,
    delete_goal,
    delete_habit,
    delete_penalty,
    delete_task,
    find_habit,
    get_tasks_with_computed_fields,
    is_completed_today,
    load_goals,
    load_habits,
    load_penalties,
    load_tasks,
    penalties_between,
    save_goals,
    save_habits,
    save_penalties,
    save_tasks,
    set_goal_completion,
    toggle_habit,
    toggle_task,
    total_penalty_points,
    update_goal_progress,
    update_habit,
    update_task,
    workspace_root,
)
from levelup.log import configure_logging


configure_logging()

app = FastAPI(title="LevelUp API", version="0.1.0")

security = HTTPBasic(auto_error=False)


# ── Services ──────────────────────────────────────────────────

_services: dict[Path, Services] = {}
_services_lock = threading.Lock()


def get_services() -> Services:
    """One Services per workspace so every request shares the same XP lock."""
    root = workspace_root()
    with _services_lock:
        if root not in _services:
            _services[root] = build_services(root)
        return _services[root]


# ── Auth ──────────────────────────────────────────────────────


def get_current_user(credentials: HTTPBasicCredentials | None = Depends(security)) -> str:
    expected_username = os.environ.get("LEVELUP_USERNAME", "")
    expected_password = os.environ.get("LEVELUP_PASSWORD", "")

    if not expected_username or not expected_password:
        return "guest"

    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Basic"},
        )

    correct_username = secrets.compare_digest(credentials.username.encode("utf-8"), expected_username.encode("utf-8"))
    correct_password = secrets.compare_digest(credentials.password.encode("utf-8"), expected_password.encode("utf-8"))

    if not (correct_username and correct_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )

    return credentials.username


# ── Error mapping ─────────────────────────────────────────────


@app.exception_handler(InvalidInputError)
def _invalid_input(request: Request, exc: InvalidInputError) -> JSONResponse:
    return JSONResponse(status_code=400, content=exc.to_dict())


@app.exception_handler(RecordNotFoundError)
def _not_found(request: Request, exc: RecordNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content=exc.to_dict())


@app.exception_handler(StorageError)
def _storage_failed(request: Request, exc: StorageError) -> JSONResponse:
    return JSONResponse(status_code=503, content=exc.to_dict())


def _parse_day(value: Any, field: str) -> date:
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid {field}: {value}")


@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"ok": "true"}


# ── XP ────────────────────────────────────────────────────────


@app.get("/api/progress")
def api_progress(svc: Services = Depends(get_services), username: str = Depends(get_current_user)) -> dict[str, Any]:
    return svc.engine.get_progress().to_dict()


@app.get("/api/progress/level")
def api_level_progress(svc: Services = Depends(get_services), username: str = Depends(get_current_user)) -> dict[str, Any]:
    return svc.engine.get_level_progress().to_dict()


@app.post("/api/xp/award")
def api_award_xp(
    payload: dict[str, Any] = Body(...),
    svc: Services = Depends(get_services),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    """Manual award/revoke, mostly for debugging."""
    if "points" not in payload:
        raise HTTPException(status_code=400, detail="Missing points")
    result = svc.engine.award_xp(payload["points"], str(payload.get("source", "manual")))
    return {"ok": True, **result.to_dict()}


@app.post("/api/xp/reset")
def api_reset_xp(svc: Services = Depends(get_services), username: str = Depends(get_current_user)) -> dict[str, Any]:
    return {"ok": True, "progress": svc.engine.reset_xp().to_dict()}


# ── Weekly commitment ─────────────────────────────────────────


@app.get("/api/weekly")
def api_weekly(svc: Services = Depends(get_services), username: str = Depends(get_current_user)) -> dict[str, Any]:
    return svc.tracker.get_weekly_status()


@app.post("/api/weekly")
def api_set_weekly(
    payload: dict[str, Any] = Body(...),
    svc: Services = Depends(get_services),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    """Commit to habits/tasks by id for the running week."""
    habit_ids = [str(i) for i in payload.get("habits", []) or []]
    task_ids = [str(i) for i in payload.get("tasks", []) or []]

    habits_by_id = {h.id: h for h in load_habits(svc.store)}
    tasks_by_id = {t.id: t for t in load_tasks(svc.store)}
    missing = [i for i in habit_ids if i not in habits_by_id] + [i for i in task_ids if i not in tasks_by_id]
    if missing:
        raise HTTPException(status_code=400, detail=f"Unknown ids: {', '.join(missing)}")

    commitment = svc.tracker.set_commitment(
        [habits_by_id[i] for i in habit_ids],
        [tasks_by_id[i] for i in task_ids],
    )
    return {"ok": True, "commitment": commitment.to_dict()}


@app.post("/api/weekly/check")
def api_check_weekly(svc: Services = Depends(get_services), username: str = Depends(get_current_user)) -> dict[str, Any]:
    completed = svc.tracker.check_completion()
    return {"ok": True, "completed": completed}


# ── Habits ────────────────────────────────────────────────────


@app.get("/api/habits")
def api_list_habits(svc: Services = Depends(get_services), username: str = Depends(get_current_user)) -> dict[str, Any]:
    today = svc.clock.today()
    habits = load_habits(svc.store)
    return {
        "habits": [
            {**h.to_dict(), "completedToday": is_completed_today(h, today)}
            for h in habits
        ]
    }


@app.post("/api/habits")
def api_create_habit(
    payload: dict[str, Any] = Body(...),
    svc: Services = Depends(get_services),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    with svc.engine.lock:
        habits = load_habits(svc.store)
        habit, errors = create_habit(habits, payload)
        if errors:
            raise HTTPException(status_code=400, detail="; ".join(errors))
        save_habits(svc.store, habits)
        if habit.reminder_time:
            svc.notifier.schedule_habit_reminder(habit)
    return {"ok": True, "habit": habit.to_dict()}


@app.put("/api/habits/{habit_id}")
def api_update_habit(
    habit_id: str,
    payload: dict[str, Any] = Body(...),
    svc: Services = Depends(get_services),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    with svc.engine.lock:
        habits = load_habits(svc.store)
        updated, errors = update_habit(habits, habit_id, payload)
        if errors:
            raise HTTPException(status_code=400, detail="; ".join(errors))
        save_habits(svc.store, habits)
        if "reminderTime" in payload:
            if updated.reminder_time:
                svc.notifier.schedule_habit_reminder(updated)
            else:
                svc.notifier.cancel_habit_reminders(habit_id)
    return {"ok": True, "habit": updated.to_dict()}


@app.delete("/api/habits/{habit_id}")
def api_delete_habit(habit_id: str, svc: Services = Depends(get_services), username: str = Depends(get_current_user)) -> dict[str, Any]:
    with svc.engine.lock:
        habits = load_habits(svc.store)
        if not delete_habit(habits, habit_id):
            raise HTTPException(status_code=404, detail=f"Habit not found: {habit_id}")
        save_habits(svc.store, habits)
        svc.notifier.cancel_habit_reminders(habit_id)
    return {"ok": True, "habit_id": habit_id}


@app.post("/api/habits/{habit_id}/complete")
def api_complete_habit(
    habit_id: str,
    payload: dict[str, Any] = Body(default={}),
    svc: Services = Depends(get_services),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    completed = bool(payload.get("completed", True))
    habit, result = toggle_habit(svc.store, habit_id, completed, svc.engine, notifier=svc.notifier)
    weekly_done = svc.tracker.check_completion() if result.changed and completed else False
    return {"ok": True, "habit": habit.to_dict(), "result": result.to_dict(), "weeklyGoalCompleted": weekly_done}


@app.post("/api/habits/{habit_id}/reminder")
def api_schedule_reminder(
    habit_id: str,
    payload: dict[str, Any] = Body(default={}),
    svc: Services = Depends(get_services),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    habit = find_habit(load_habits(svc.store), habit_id)
    if habit is None:
        raise HTTPException(status_code=404, detail=f"Habit not found: {habit_id}")
    reminder = svc.notifier.schedule_habit_reminder(habit, payload.get("time"))
    return {"ok": True, "reminder": reminder.to_dict()}


@app.delete("/api/habits/{habit_id}/reminder")
def api_cancel_reminder(habit_id: str, svc: Services = Depends(get_services), username: str = Depends(get_current_user)) -> dict[str, Any]:
    return {"ok": True, "cancelled": svc.notifier.cancel_habit_reminders(habit_id)}


@app.get("/api/reminders")
def api_reminders(svc: Services = Depends(get_services), username: str = Depends(get_current_user)) -> dict[str, Any]:
    return {"reminders": [r.to_dict() for r in svc.notifier.scheduled_reminders()]}


# ── Tasks ─────────────────────────────────────────────────────


@app.get("/api/tasks")
def api_list_tasks(svc: Services = Depends(get_services), username: str = Depends(get_current_user)) -> dict[str, Any]:
    """List tasks with deadline fields, open tasks first."""
    tasks = load_tasks(svc.store)
    return {"tasks": get_tasks_with_computed_fields(tasks, svc.clock.today())}


@app.post("/api/tasks")
def api_create_task(
    payload: dict[str, Any] = Body(...),
    svc: Services = Depends(get_services),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    with svc.engine.lock:
        tasks = load_tasks(svc.store)
        task, errors = create_task(tasks, payload)
        if errors:
            raise HTTPException(status_code=400, detail="; ".join(errors))
        save_tasks(svc.store, tasks)
    return {"ok": True, "task": task.to_dict()}


@app.put("/api/tasks/{task_id}")
def api_update_task(
    task_id: str,
    payload: dict[str, Any] = Body(...),
    svc: Services = Depends(get_services),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    with svc.engine.lock:
        tasks = load_tasks(svc.store)
        updated, errors = update_task(tasks, task_id, payload)
        if errors:
            raise HTTPException(status_code=400, detail="; ".join(errors))
        save_tasks(svc.store, tasks)
    return {"ok": True, "task": updated.to_dict()}


@app.delete("/api/tasks/{task_id}")
def api_delete_task(task_id: str, svc: Services = Depends(get_services), username: str = Depends(get_current_user)) -> dict[str, Any]:
    with svc.engine.lock:
        tasks = load_tasks(svc.store)
        if not delete_task(tasks, task_id):
            raise HTTPException(status_code=404, detail=f"Task not found: {task_id}")
        save_tasks(svc.store, tasks)
    return {"ok": True, "task_id": task_id}


@app.post("/api/tasks/{task_id}/complete")
def api_complete_task(
    task_id: str,
    payload: dict[str, Any] = Body(default={}),
    svc: Services = Depends(get_services),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    completed = bool(payload.get("completed", True))
    task, result = toggle_task(svc.store, task_id, completed, svc.engine)
    weekly_done = svc.tracker.check_completion() if result.changed and completed else False
    return {"ok": True, "task": task.to_dict(), "result": result.to_dict(), "weeklyGoalCompleted": weekly_done}


# ── Goals ─────────────────────────────────────────────────────


@app.get("/api/goals")
def api_list_goals(svc: Services = Depends(get_services), username: str = Depends(get_current_user)) -> dict[str, Any]:
    return {"goals": [g.to_dict() for g in load_goals(svc.store)]}


@app.post("/api/goals")
def api_create_goal(
    payload: dict[str, Any] = Body(...),
    svc: Services = Depends(get_services),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    with svc.engine.lock:
        goals = load_goals(svc.store)
        goal, errors = create_goal(goals, payload)
        if errors:
            raise HTTPException(status_code=400, detail="; ".join(errors))
        save_goals(svc.store, goals)
    return {"ok": True, "goal": goal.to_dict()}


@app.put("/api/goals/{goal_id}/progress")
def api_goal_progress(
    goal_id: str,
    payload: dict[str, Any] = Body(...),
    svc: Services = Depends(get_services),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    with svc.engine.lock:
        goals = load_goals(svc.store)
        goal = update_goal_progress(goals, goal_id, payload.get("progress"))
        save_goals(svc.store, goals)
    return {"ok": True, "goal": goal.to_dict()}


@app.post("/api/goals/{goal_id}/complete")
def api_complete_goal(
    goal_id: str,
    payload: dict[str, Any] = Body(default={}),
    svc: Services = Depends(get_services),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    with svc.engine.lock:
        goals = load_goals(svc.store)
        goal = set_goal_completion(goals, goal_id, bool(payload.get("completed", True)), svc.clock.today())
        save_goals(svc.store, goals)
    return {"ok": True, "goal": goal.to_dict()}


@app.delete("/api/goals/{goal_id}")
def api_delete_goal(goal_id: str, svc: Services = Depends(get_services), username: str = Depends(get_current_user)) -> dict[str, Any]:
    with svc.engine.lock:
        goals = load_goals(svc.store)
        if not delete_goal(goals, goal_id):
            raise HTTPException(status_code=404, detail=f"Goal not found: {goal_id}")
        save_goals(svc.store, goals)
    return {"ok": True, "goal_id": goal_id}


# ── Penalties & stats ─────────────────────────────────────────


@app.get("/api/penalties")
def api_list_penalties(
    start: str | None = None,
    end: str | None = None,
    svc: Services = Depends(get_services),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    penalties = load_penalties(svc.store)
    if start or end:
        lo = _parse_day(start, "start") if start else date.min
        hi = _parse_day(end, "end") if end else date.max
        penalties = penalties_between(penalties, lo, hi)
    return {"penalties": [p.to_dict() for p in penalties], "totalPoints": total_penalty_points(penalties)}


@app.post("/api/penalties")
def api_create_penalty(
    payload: dict[str, Any] = Body(...),
    svc: Services = Depends(get_services),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    with svc.engine.lock:
        penalties = load_penalties(svc.store)
        penalty, errors = create_penalty(penalties, payload, svc.clock.now())
        if errors:
            raise HTTPException(status_code=400, detail="; ".join(errors))
        save_penalties(svc.store, penalties)
        user = add_user_penalty_points(svc.store, penalty.points)
    return {"ok": True, "penalty": penalty.to_dict(), "user": user.to_dict()}


@app.delete("/api/penalties/{penalty_id}")
def api_delete_penalty(penalty_id: str, svc: Services = Depends(get_services), username: str = Depends(get_current_user)) -> dict[str, Any]:
    with svc.engine.lock:
        penalties = load_penalties(svc.store)
        if not delete_penalty(penalties, penalty_id):
            raise HTTPException(status_code=404, detail=f"Penalty not found: {penalty_id}")
        save_penalties(svc.store, penalties)
    return {"ok": True, "penalty_id": penalty_id}


@app.get("/api/stats")
def api_stats(svc: Services = Depends(get_services), username: str = Depends(get_current_user)) -> dict[str, Any]:
    overview = compute_overview(
        load_habits(svc.store),
        load_tasks(svc.store),
        load_goals(svc.store),
        load_penalties(svc.store),
        svc.clock.today(),
    )
    overview["level"] = svc.engine.get_level_progress().to_dict()
    return overview


@app.get("/api/profile")
def api_profile(svc: Services = Depends(get_services), username: str = Depends(get_current_user)) -> dict[str, Any]:
    return svc.profile.to_dict()
