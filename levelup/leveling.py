"""Point values, level math, and calendar windows for LevelUp.

Levels grow on a square-root curve: reaching level L takes
``(L - 1)**2 * 100`` total XP, so each level needs 200 XP more than the
previous one.
"""

from __future__ import annotations

import math
from datetime import date, timedelta

from levelup.errors import InvalidInputError


HABIT_XP = 10
TASK_XP = 15
WEEKLY_GOAL_BONUS = 50
STREAK_BONUS = 5

STREAK_MILESTONE_DAYS = 7
XP_PER_LEVEL_UNIT = 100


def level_for_xp(total_xp: int) -> int:
    """Level reached with *total_xp*: floor(sqrt(total_xp / 100)) + 1."""
    if total_xp <= 0:
        return 1
    # isqrt of the floored quotient equals floor(sqrt(x / 100)) exactly
    return math.isqrt(total_xp // XP_PER_LEVEL_UNIT) + 1


def level_floor_xp(level: int) -> int:
    """Total XP at which *level* starts."""
    _check_level(level)
    return (level - 1) ** 2 * XP_PER_LEVEL_UNIT


def level_ceiling_xp(level: int) -> int:
    """Total XP at which the level after *level* starts."""
    _check_level(level)
    return level**2 * XP_PER_LEVEL_UNIT


def _check_level(level: int) -> None:
    if isinstance(level, bool) or not isinstance(level, int) or level < 1:
        raise InvalidInputError(f"Level must be an integer >= 1, got {level!r}", {"level": level})


def week_start(day: date) -> date:
    """Monday of the Monday-Sunday week containing *day*."""
    return day - timedelta(days=day.weekday())


def is_streak_milestone(streak: int) -> bool:
    return streak > 0 and streak % STREAK_MILESTONE_DAYS == 0


def weekly_target_xp(habit_count: int, task_count: int) -> int:
    """XP needed to finish every committed habit daily and every task once."""
    if habit_count < 0 or task_count < 0:
        raise InvalidInputError(
            "Item counts must be non-negative",
            {"habits": habit_count, "tasks": task_count},
        )
    return habit_count * HABIT_XP * 7 + task_count * TASK_XP
