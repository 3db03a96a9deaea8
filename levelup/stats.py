"""Overview statistics across habits, tasks, goals, and penalties."""

from __future__ import annotations

from datetime import date
from typing import Any

from levelup.habits import is_completed_today
from levelup.models import Goal, Habit, Penalty, Task
from levelup.penalties import total_penalty_points


def compute_overview(
    habits: list[Habit],
    tasks: list[Task],
    goals: list[Goal],
    penalties: list[Penalty],
    today: date,
) -> dict[str, Any]:
    best = max(habits, key=lambda h: h.streak, default=None)
    return {
        "habits": {
            "total": len(habits),
            "completed": sum(1 for h in habits if is_completed_today(h, today)),
        },
        "tasks": {"total": len(tasks), "completed": sum(1 for t in tasks if t.completed)},
        "goals": {"total": len(goals), "completed": sum(1 for g in goals if g.completed)},
        "penaltyPoints": total_penalty_points(penalties),
        "bestStreak": {"habitId": best.id, "name": best.name, "streak": best.streak} if best and best.streak else None,
    }
