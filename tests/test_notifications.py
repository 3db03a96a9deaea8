"""Tests for levelup/notifications.py: reminder book and dispatch."""

import json
from datetime import date, datetime, time

import pytest
import yaml

from levelup.errors import InvalidInputError
from levelup.models import Habit, WeeklyCommitment
from levelup.notifications import Notifier, parse_reminder_time
from levelup.storage import REMINDERS_KEY


@pytest.fixture
def notifier(services):
    return services.notifier


def test_parse_reminder_time():
    assert parse_reminder_time("07:05") == time(7, 5)
    assert parse_reminder_time(" 23:59 ") == time(23, 59)
    for bad in ("24:00", "7:05", "noon", ""):
        with pytest.raises(InvalidInputError):
            parse_reminder_time(bad)


def test_schedule_uses_habit_then_default_time(notifier):
    r1 = notifier.schedule_habit_reminder(Habit(id="h1", name="Read", reminder_time="07:30"))
    r2 = notifier.schedule_habit_reminder(Habit(id="h2", name="Run"))
    assert r1.time == "07:30"
    assert r2.time == "09:00"
    assert len(notifier.scheduled_reminders()) == 2


def test_schedule_replaces_existing(notifier, store):
    habit = Habit(id="h1", name="Read")
    notifier.schedule_habit_reminder(habit, "07:00")
    notifier.schedule_habit_reminder(habit, "21:00")
    reminders = notifier.scheduled_reminders()
    assert [(r.habit_id, r.time) for r in reminders] == [("h1", "21:00")]
    assert json.loads(store.data[REMINDERS_KEY])[0]["habitName"] == "Read"


def test_schedule_rejects_bad_time(notifier):
    with pytest.raises(InvalidInputError):
        notifier.schedule_habit_reminder(Habit(id="h1", name="Read"), "7pm")
    assert notifier.scheduled_reminders() == []


def test_cancel_reminders(notifier):
    notifier.schedule_habit_reminder(Habit(id="h1", name="Read"))
    notifier.schedule_habit_reminder(Habit(id="h2", name="Run"))
    assert notifier.cancel_habit_reminders("h1") == 1
    assert notifier.cancel_habit_reminders("h1") == 0
    assert notifier.cancel_all() == 1
    assert notifier.scheduled_reminders() == []


def test_due_reminders(notifier):
    notifier.schedule_habit_reminder(Habit(id="h1", name="Read"), "08:00")
    notifier.schedule_habit_reminder(Habit(id="h2", name="Run"), "18:00")
    due = notifier.due_reminders(datetime(2026, 2, 11, 12, 0))
    assert [r.habit_id for r in due] == ["h1"]


def test_fire_due_reminders_once_per_day(notifier, workspace):
    (workspace / "hooks.yaml").write_text(
        yaml.dump({"on_habit_reminder": ["cat >> reminders.log"]}), encoding="utf-8"
    )
    notifier.schedule_habit_reminder(Habit(id="h1", name="Read"), "08:00")

    fired = notifier.fire_due_reminders(datetime(2026, 2, 11, 8, 0))
    assert [r.habit_id for r in fired] == ["h1"]
    assert notifier.scheduled_reminders()[0].last_fired == date(2026, 2, 11)
    assert notifier.fire_due_reminders(datetime(2026, 2, 11, 20, 0)) == []

    log = (workspace / "reminders.log").read_text(encoding="utf-8")
    assert json.loads(log)["habitName"] == "Read"

    assert len(notifier.fire_due_reminders(datetime(2026, 2, 12, 8, 1))) == 1


def test_level_up_runs_hook(notifier, workspace):
    (workspace / "hooks.yaml").write_text(
        yaml.dump({"on_level_up": ["cat > level.json"]}), encoding="utf-8"
    )
    notifier.level_up(3)
    assert json.loads((workspace / "level.json").read_text(encoding="utf-8")) == {"type": "level_up", "level": 3}


def test_weekly_goal_context(workspace, store, clock):
    (workspace / "hooks.yaml").write_text(
        yaml.dump({"on_weekly_goal_complete": ["cat > weekly.json"]}), encoding="utf-8"
    )
    notifier = Notifier(store, clock, root=workspace)
    notifier.weekly_goal_completed(WeeklyCommitment(week_start_date=date(2026, 2, 9), target_xp=70))
    context = json.loads((workspace / "weekly.json").read_text(encoding="utf-8"))
    assert context == {"type": "weekly_goal_complete", "weekStartDate": "2026-02-09", "targetXP": 70}


def test_disabled_notifier_runs_nothing(workspace, store, clock):
    (workspace / "hooks.yaml").write_text(
        yaml.dump({"on_level_up": ["touch fired"]}), encoding="utf-8"
    )
    notifier = Notifier(store, clock, root=workspace, enabled=False)
    notifier.level_up(2)
    assert not (workspace / "fired").exists()


def test_weekly_setup_reminder_fires_on_its_day(notifier, workspace):
    (workspace / "hooks.yaml").write_text(
        yaml.dump({"on_weekly_setup": ["cat > setup.json"]}), encoding="utf-8"
    )
    reminder = notifier.schedule_weekly_setup("Sunday", "20:00")
    assert reminder.day == "sun"
    notifier.schedule_habit_reminder(Habit(id="h1", name="Read"), "08:00")

    # Wednesday evening: only the habit reminder
    due = notifier.due_reminders(datetime(2026, 2, 11, 21, 0))
    assert [r.kind for r in due] == ["habit_reminder"]

    fired = notifier.fire_due_reminders(datetime(2026, 2, 15, 20, 5))
    assert sorted(r.kind for r in fired) == ["habit_reminder", "weekly_setup"]
    assert json.loads((workspace / "setup.json").read_text(encoding="utf-8"))["type"] == "weekly_setup_reminder"


def test_weekly_setup_reschedule_and_cancel(notifier):
    notifier.schedule_weekly_setup("sun", "20:00")
    notifier.schedule_weekly_setup("sat", "10:00")
    notifier.schedule_habit_reminder(Habit(id="h1", name="Read"))
    kinds = sorted((r.kind, r.day) for r in notifier.scheduled_reminders())
    assert kinds == [("habit_reminder", None), ("weekly_setup", "sat")]
    # cancelling habit reminders leaves the weekly one alone
    assert notifier.cancel_habit_reminders("") == 0
    with pytest.raises(InvalidInputError):
        notifier.schedule_weekly_setup("someday", "20:00")
