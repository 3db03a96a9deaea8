"""Tests for levelup/weekly.py: commitments, targets, weekly bonus."""

import json
from datetime import date, datetime

import pytest

from conftest import FailingStore, FixedClock, RecordingNotifier
from levelup.errors import InvalidInputError, StorageError
from levelup.models import Habit, ItemRef, Task
from levelup.progress import ProgressStore
from levelup.storage import COMMITMENT_KEY, PROGRESS_KEY, MemoryStore
from levelup.weekly import WeeklyCommitmentTracker, to_item_ref
from levelup.xp import XPEngine


HABITS = [Habit(id="h1", name="Read"), Habit(id="h2", name="Run")]
TASKS = [Task(id="t1", name="Taxes")]


def _tracker(store, clock=None, notifier=None):
    engine = XPEngine(ProgressStore(store, clock or FixedClock()))
    return WeeklyCommitmentTracker(engine, notifier=notifier)


def test_to_item_ref_variants():
    assert to_item_ref(Habit(id="h1", name="Read")) == ItemRef("h1", "Read")
    assert to_item_ref({"id": "t1", "name": "Taxes"}) == ItemRef("t1", "Taxes")
    assert to_item_ref(ItemRef("x", "X")) == ItemRef("x", "X")


def test_to_item_ref_rejects_bad_items():
    with pytest.raises(InvalidInputError):
        to_item_ref("h1")
    with pytest.raises(InvalidInputError):
        to_item_ref({"name": "no id"})


def test_first_read_creates_empty_commitment(tracker, store):
    c = tracker.get_current_commitment()
    assert c.week_start_date == date(2026, 2, 9)
    assert c.target_xp == 0
    assert c.habits == [] and c.tasks == []
    assert c.completed is False
    assert COMMITMENT_KEY in store.data


def test_set_commitment_computes_target(tracker, store):
    c = tracker.set_commitment(HABITS, TASKS)
    assert c.target_xp == 155
    assert [h.id for h in c.habits] == ["h1", "h2"]
    assert c.tasks == [ItemRef("t1", "Taxes")]
    stored = json.loads(store.data[COMMITMENT_KEY])
    assert stored["targetXP"] == 155
    assert stored["weekStartDate"] == "2026-02-09"
    assert stored["completed"] is False


def test_set_commitment_replaces_previous(tracker, engine):
    tracker.set_commitment(HABITS, TASKS)
    engine.award_xp(155)
    assert tracker.check_completion() is True
    c = tracker.set_commitment(HABITS[:1], [])
    assert c.target_xp == 70
    assert c.completed is False


def test_set_commitment_on_sunday_uses_monday(store):
    clock = FixedClock(datetime(2026, 2, 15, 21, 0))
    tracker = _tracker(store, clock)
    assert tracker.set_commitment(HABITS, []).week_start_date == date(2026, 2, 9)


def test_check_completion_awards_bonus_once(tracker, engine):
    tracker.set_commitment(HABITS, TASKS)
    engine.award_xp(155)

    assert tracker.check_completion() is True
    state = engine.get_progress()
    assert state.total_xp == 205
    assert state.weekly_xp == 205
    assert tracker.get_current_commitment().completed is True

    assert tracker.check_completion() is False
    assert engine.get_progress().total_xp == 205


def test_check_completion_below_target(tracker, engine):
    tracker.set_commitment(HABITS, TASKS)
    engine.award_xp(154)
    assert tracker.check_completion() is False
    assert engine.get_progress().total_xp == 154


def test_empty_commitment_never_completes(tracker, engine):
    engine.award_xp(1000)
    assert tracker.check_completion() is False
    assert tracker.get_current_commitment().completed is False


def test_stale_commitment_replaced_next_week(tracker, clock):
    tracker.set_commitment(HABITS, TASKS)
    clock.advance(days=5)  # Monday
    c = tracker.get_current_commitment()
    assert c.week_start_date == date(2026, 2, 16)
    assert c.target_xp == 0
    assert c.habits == []


def test_last_weeks_xp_does_not_complete_new_commitment(tracker, engine, clock):
    engine.award_xp(300)
    clock.advance(days=7)
    tracker.set_commitment(HABITS, TASKS)
    assert tracker.check_completion() is False
    engine.award_xp(155)
    assert tracker.check_completion() is True


def test_completion_notifies():
    notifier = RecordingNotifier()
    store = MemoryStore()
    tracker = _tracker(store, notifier=notifier)
    tracker.set_commitment(HABITS[:1], [])
    tracker.engine.award_xp(70)
    assert tracker.check_completion() is True
    assert notifier.events == [("weekly_goal_completed", 70)]


def test_weekly_status(tracker, engine):
    tracker.set_commitment(HABITS, TASKS)
    engine.award_xp(62)
    status = tracker.get_weekly_status()
    assert status["weeklyXP"] == 62
    assert status["targetXP"] == 155
    assert status["remainingXP"] == 93
    assert status["progressPercentage"] == 40.0
    assert status["bonusXP"] == 50
    assert status["commitment"]["targetXP"] == 155


def test_weekly_status_without_target(tracker):
    status = tracker.get_weekly_status()
    assert status["targetXP"] == 0
    assert status["progressPercentage"] == 0.0


def test_malformed_commitment_replaced(store, clock):
    store.set(COMMITMENT_KEY, "[[[")
    tracker = _tracker(store, clock)
    c = tracker.get_current_commitment()
    assert c.target_xp == 0
    assert json.loads(store.data[COMMITMENT_KEY])["weekStartDate"] == "2026-02-09"


def test_unreadable_commitment_shows_empty_without_writing():
    store = FailingStore(fail_get=True)
    tracker = _tracker(store)
    c = tracker.get_current_commitment()
    assert c.target_xp == 0
    assert store.data == {}


def test_check_completion_raises_on_read_failure():
    store = FailingStore()
    tracker = _tracker(store)
    tracker.set_commitment(HABITS, TASKS)
    store.fail_get = True
    with pytest.raises(StorageError):
        tracker.check_completion()


def test_failed_bonus_award_can_be_retried():
    store = FailingStore()
    tracker = _tracker(store)
    tracker.set_commitment([], TASKS)
    tracker.engine.award_xp(15)
    store.fail_keys = {PROGRESS_KEY}

    with pytest.raises(StorageError):
        tracker.check_completion()
    assert tracker.get_current_commitment().completed is False

    store.fail_keys = set()
    assert tracker.check_completion() is True
    assert tracker.engine.get_progress().total_xp == 65


def test_bonus_rolled_back_when_flag_cannot_be_saved():
    store = FailingStore()
    tracker = _tracker(store)
    tracker.set_commitment([], TASKS)
    tracker.engine.award_xp(15)
    store.fail_keys = {COMMITMENT_KEY}

    with pytest.raises(StorageError):
        tracker.check_completion()
    assert tracker.engine.get_progress().total_xp == 15
    assert tracker.get_current_commitment().completed is False

    store.fail_keys = set()
    assert tracker.check_completion() is True
    assert tracker.engine.get_progress().total_xp == 65
    assert tracker.check_completion() is False
