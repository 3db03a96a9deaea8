"""Reminders and immediate notifications for LevelUp.

Habit reminders are persisted as daily ``HH:MM`` entries in the key-value
store; whatever runs the app calls ``fire_due_reminders`` periodically.
Immediate notifications (level up, streak milestone, weekly goal) go
straight to the configured hooks. Nothing here raises into XP code paths:
callers wrap notifier calls and log failures.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, time
from pathlib import Path
from typing import Any

from levelup.errors import InvalidInputError
from levelup.hooks import run_hooks
from levelup.models import Habit, Reminder, WeeklyCommitment
from levelup.storage import REMINDERS_KEY, KeyValueStore, load_json_list, save_json

logger = logging.getLogger(__name__)

_HHMM = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")

WEEKDAYS = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")
HABIT_REMINDER = "habit_reminder"
WEEKLY_SETUP = "weekly_setup"


def parse_reminder_time(value: str) -> time:
    """Parse 'HH:MM' (24h). Raises InvalidInputError otherwise."""
    m = _HHMM.match((value or "").strip())
    if not m:
        raise InvalidInputError(f"Reminder time must be HH:MM, got {value!r}", {"time": value})
    return time(int(m.group(1)), int(m.group(2)))


def _is_habit_reminder(reminder: Reminder, habit_id: str) -> bool:
    return reminder.kind == HABIT_REMINDER and reminder.habit_id == habit_id


class Notifier:
    def __init__(
        self,
        store: KeyValueStore,
        clock,
        root: Path | None = None,
        enabled: bool = True,
        default_time: str = "09:00",
    ) -> None:
        self.store = store
        self.clock = clock
        self.root = root
        self.enabled = enabled
        self.default_time = default_time

    # ── Reminder book ─────────────────────────────────────────

    def scheduled_reminders(self) -> list[Reminder]:
        return [Reminder.from_dict(d) for d in load_json_list(self.store, REMINDERS_KEY)]

    def _save(self, reminders: list[Reminder]) -> None:
        save_json(self.store, REMINDERS_KEY, [r.to_dict() for r in reminders])

    def schedule_habit_reminder(self, habit: Habit, at: str | None = None) -> Reminder:
        """Schedule a daily reminder for *habit*, replacing any existing one."""
        at = at or habit.reminder_time or self.default_time
        parse_reminder_time(at)
        reminders = [r for r in self.scheduled_reminders() if not _is_habit_reminder(r, habit.id)]
        reminder = Reminder(habit_id=habit.id, habit_name=habit.name, time=at)
        reminders.append(reminder)
        self._save(reminders)
        logger.info("Scheduled reminder for habit %s (%s) at %s", habit.id, habit.name, at)
        return reminder

    def schedule_weekly_setup(self, day: str, at: str) -> Reminder:
        """Schedule the weekly 'plan your week' reminder, replacing any existing one."""
        day = day.lower()[:3]
        if day not in WEEKDAYS:
            raise InvalidInputError(f"Unknown weekday {day!r}", {"day": day})
        parse_reminder_time(at)
        reminders = [r for r in self.scheduled_reminders() if r.kind != WEEKLY_SETUP]
        reminder = Reminder(kind=WEEKLY_SETUP, habit_name="Weekly setup", time=at, day=day)
        reminders.append(reminder)
        self._save(reminders)
        logger.info("Scheduled weekly setup reminder on %s at %s", day, at)
        return reminder

    def cancel_habit_reminders(self, habit_id: str) -> int:
        """Cancel all reminders for *habit_id*. Returns how many were removed."""
        reminders = self.scheduled_reminders()
        kept = [r for r in reminders if not _is_habit_reminder(r, habit_id)]
        removed = len(reminders) - len(kept)
        if removed:
            self._save(kept)
        logger.info("Cancelled %d reminders for habit %s", removed, habit_id)
        return removed

    def cancel_all(self) -> int:
        removed = len(self.scheduled_reminders())
        self.store.remove(REMINDERS_KEY)
        logger.info("All reminders cancelled (%d)", removed)
        return removed

    def due_reminders(self, now: datetime | None = None) -> list[Reminder]:
        """Reminders whose time has passed today and that have not fired today.

        Weekly reminders are only due on their weekday.
        """
        now = now or self.clock.now()
        today = now.date()
        due = []
        for r in self.scheduled_reminders():
            try:
                at = parse_reminder_time(r.time)
            except InvalidInputError:
                logger.warning("Skipping reminder with bad time %r", r.time)
                continue
            if r.day and r.day != WEEKDAYS[today.weekday()]:
                continue
            if r.last_fired != today and now.time() >= at:
                due.append(r)
        return due

    def fire_due_reminders(self, now: datetime | None = None) -> list[Reminder]:
        """Dispatch due reminders through hooks and mark them fired for today."""
        now = now or self.clock.now()
        due = self.due_reminders(now)
        if not due:
            return []
        fired = {(r.kind, r.habit_id) for r in due}
        for r in due:
            if r.kind == WEEKLY_SETUP:
                self.weekly_setup()
                continue
            self._dispatch("on_habit_reminder", {
                "type": "habit_reminder",
                "habitId": r.habit_id,
                "habitName": r.habit_name,
                "time": r.time,
            })
        reminders = self.scheduled_reminders()
        for r in reminders:
            if (r.kind, r.habit_id) in fired:
                r.last_fired = now.date()
        self._save(reminders)
        return due

    # ── Immediate notifications ───────────────────────────────

    def level_up(self, level: int) -> None:
        self._dispatch("on_level_up", {"type": "level_up", "level": level})

    def streak_milestone(self, habit: Habit) -> None:
        self._dispatch("on_streak_milestone", {
            "type": "streak_celebration",
            "habitId": habit.id,
            "habitName": habit.name,
            "streak": habit.streak,
        })

    def weekly_goal_completed(self, commitment: WeeklyCommitment) -> None:
        self._dispatch("on_weekly_goal_complete", {
            "type": "weekly_goal_complete",
            "weekStartDate": commitment.week_start_date.isoformat(),
            "targetXP": commitment.target_xp,
        })

    def weekly_setup(self) -> None:
        self._dispatch("on_weekly_setup", {"type": "weekly_setup_reminder"})

    def _dispatch(self, hook_point: str, context: dict[str, Any]) -> list[dict[str, Any]]:
        if not self.enabled:
            logger.debug("Notifications disabled, dropping %s", hook_point)
            return []
        return run_hooks(hook_point, context, self.root)
