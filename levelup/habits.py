"""Habit CRUD, validation, and completion toggling for LevelUp.

Completion is the only place habits touch XP. The engine is passed in
explicitly; toggling is idempotent per day and reverses exactly what the
completion awarded, including a streak bonus.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import Any

from levelup.errors import RecordNotFoundError
from levelup.leveling import HABIT_XP, STREAK_BONUS, is_streak_milestone
from levelup.models import CompletionResult, Habit
from levelup.notifications import parse_reminder_time
from levelup.storage import HABITS_KEY, KeyValueStore, load_json_list, save_json

logger = logging.getLogger(__name__)


# ── Validation ────────────────────────────────────────────────


VALID_FREQUENCIES = {"daily", "weekly"}


def validate_habit(habit: dict[str, Any]) -> list[str]:
    """Validate habit fields and return list of errors (empty if valid)."""
    errors = []
    name = habit.get("name")
    if not isinstance(name, str) or not name.strip():
        errors.append("Missing required field: name")
    if "frequency" in habit and str(habit["frequency"]).lower() not in VALID_FREQUENCIES:
        errors.append(f"Invalid frequency: {habit['frequency']}")
    if "penaltyPointsOnFailure" in habit:
        p = habit["penaltyPointsOnFailure"]
        if isinstance(p, bool) or not isinstance(p, int) or p < 0:
            errors.append("penaltyPointsOnFailure must be a non-negative integer")
    if habit.get("reminderTime"):
        try:
            parse_reminder_time(habit["reminderTime"])
        except ValueError as e:
            errors.append(str(e))
    return errors


# ── CRUD ──────────────────────────────────────────────────────


def load_habits(store: KeyValueStore) -> list[Habit]:
    return [Habit.from_dict(d) for d in load_json_list(store, HABITS_KEY)]


def save_habits(store: KeyValueStore, habits: list[Habit]) -> None:
    save_json(store, HABITS_KEY, [h.to_dict() for h in habits])


def find_habit(habits: list[Habit], habit_id: str) -> Habit | None:
    for h in habits:
        if h.id == habit_id:
            return h
    return None


def create_habit(habits: list[Habit], habit_data: dict[str, Any]) -> tuple[Habit, list[str]]:
    """Create and add a new habit with a fresh streak. Returns (habit, errors)."""
    errors = validate_habit(habit_data)
    if errors:
        return Habit(), errors

    habit_id = str(habit_data.get("id") or uuid.uuid4().hex[:12])
    if find_habit(habits, habit_id):
        return Habit(), [f"Habit ID already exists: {habit_id}"]

    habit = Habit.from_dict({**habit_data, "id": habit_id})
    habit.streak = 0
    habit.last_completed = None
    habit.previous_completed = None
    habit.streak_bonus_awarded = False
    habits.append(habit)
    return habit, []


def update_habit(habits: list[Habit], habit_id: str, updates: dict[str, Any]) -> tuple[Habit | None, list[str]]:
    """Update descriptive fields of a habit. Streak and completion are not editable here."""
    habit = find_habit(habits, habit_id)
    if not habit:
        return None, [f"Habit not found: {habit_id}"]

    editable = {k: v for k, v in updates.items() if k in {"name", "description", "frequency", "penaltyPointsOnFailure", "reminderTime"}}
    habit_dict = habit.to_dict()
    habit_dict.update(editable)
    errors = validate_habit(habit_dict)
    if errors:
        return None, errors

    updated = Habit.from_dict(habit_dict)
    for i, h in enumerate(habits):
        if h.id == habit_id:
            habits[i] = updated
            break
    return updated, []


def delete_habit(habits: list[Habit], habit_id: str) -> bool:
    for i, h in enumerate(habits):
        if h.id == habit_id:
            habits.pop(i)
            return True
    return False


# ── Completion ────────────────────────────────────────────────


def is_completed_today(habit: Habit, today: date) -> bool:
    return habit.last_completed == today


def set_habit_completion(
    habits: list[Habit],
    habit_id: str,
    completed: bool,
    engine,
    today: date,
    notifier=None,
) -> CompletionResult:
    """Mark a habit done/undone for *today*, awarding or revoking XP once.

    No-op if the habit is already in the requested state. Raises
    RecordNotFoundError for unknown ids. The habit is only mutated after the
    XP change succeeded.
    """
    habit = find_habit(habits, habit_id)
    if habit is None:
        raise RecordNotFoundError("habit", habit_id)

    result = CompletionResult(item_id=habit_id, completed=completed)
    if is_completed_today(habit, today) == completed:
        return result

    # habit XP and any streak bonus move in a single award
    if completed:
        new_streak = habit.streak + 1
        bonus = is_streak_milestone(new_streak)
        points = HABIT_XP + (STREAK_BONUS if bonus else 0)
        award = engine.award_xp(points, f"habit:{habit.id}")
        result.leveled_up = award.leveled_up
        result.xp_delta = points

        habit.previous_completed = habit.last_completed
        habit.last_completed = today
        habit.streak = new_streak
        habit.streak_bonus_awarded = bonus
        result.streak_bonus = bonus

        if bonus:
            logger.info("Habit %s hit a %d-day streak", habit.id, new_streak)
            _notify_streak(notifier, habit)
    else:
        points = -HABIT_XP - (STREAK_BONUS if habit.streak_bonus_awarded else 0)
        engine.award_xp(points, f"habit:{habit.id}")
        result.xp_delta = points

        habit.streak = max(0, habit.streak - 1)
        habit.last_completed = habit.previous_completed
        habit.previous_completed = None
        habit.streak_bonus_awarded = False

    result.changed = True
    return result


def toggle_habit(
    store: KeyValueStore,
    habit_id: str,
    completed: bool,
    engine,
    today: date | None = None,
    notifier=None,
) -> tuple[Habit, CompletionResult]:
    """Load, toggle, and save a habit as one step.

    The XP change is rolled back if the habit cannot be saved, so a retry
    awards it once.
    """
    with engine.transaction():
        habits = load_habits(store)
        result = set_habit_completion(habits, habit_id, completed, engine, today or engine.clock.today())
        if result.changed:
            save_habits(store, habits)
    habit = find_habit(habits, habit_id)
    if result.streak_bonus:
        _notify_streak(notifier, habit)
    return habit, result


def _notify_streak(notifier, habit: Habit) -> None:
    if notifier is None:
        return
    try:
        notifier.streak_milestone(habit)
    except Exception:
        logger.warning("Streak notification failed", exc_info=True)
