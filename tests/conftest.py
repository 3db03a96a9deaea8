"""Shared test fixtures for LevelUp tests."""

from __future__ import annotations

import os
from datetime import date, datetime, timedelta
from pathlib import Path

import pytest
import yaml

from levelup.errors import StorageError
from levelup.services import build_services
from levelup.storage import MemoryStore

# Wednesday; the week starts Monday 2026-02-09
START = datetime(2026, 2, 11, 9, 0)


class FixedClock:
    """Clock frozen at a given instant, moved forward by hand."""

    def __init__(self, current: datetime = START) -> None:
        self.current = current

    def now(self) -> datetime:
        return self.current

    def today(self) -> date:
        return self.current.date()

    def advance(self, days: int = 0, hours: int = 0, minutes: int = 0) -> None:
        self.current += timedelta(days=days, hours=hours, minutes=minutes)


class FailingStore(MemoryStore):
    """MemoryStore whose reads and/or writes can be switched to fail.

    ``fail_keys`` limits write failures to the named keys.
    """

    def __init__(self, initial=None, fail_get: bool = False, fail_set: bool = False, fail_keys=()) -> None:
        super().__init__(initial)
        self.fail_get = fail_get
        self.fail_set = fail_set
        self.fail_keys = set(fail_keys)

    def get(self, key):
        if self.fail_get:
            raise StorageError(f"Cannot read {key!r}: disk on fire", key, "get")
        return super().get(key)

    def set(self, key, value):
        if self.fail_set or key in self.fail_keys:
            raise StorageError(f"Cannot write {key!r}: disk full", key, "set")
        super().set(key, value)


class RecordingNotifier:
    """Collects immediate notifications instead of running hooks."""

    def __init__(self) -> None:
        self.events: list[tuple] = []

    def level_up(self, level):
        self.events.append(("level_up", level))

    def streak_milestone(self, habit):
        self.events.append(("streak_milestone", habit.id, habit.streak))

    def weekly_goal_completed(self, commitment):
        self.events.append(("weekly_goal_completed", commitment.target_xp))


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Create a temporary workspace with a profile."""
    root = tmp_path / "workspace"
    (root / "store").mkdir(parents=True)

    profile = {
        "timezone": "UTC",
        "default_reminder_time": "09:00",
        "notifications_enabled": True,
        "weekly_setup_reminder": {"day": "sun", "time": "20:00"},
    }
    (root / "profile.yaml").write_text(
        yaml.dump(profile, default_flow_style=False), encoding="utf-8"
    )

    os.environ["LEVELUP_ROOT"] = str(root)
    yield root
    if "LEVELUP_ROOT" in os.environ:
        del os.environ["LEVELUP_ROOT"]


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def services(workspace, clock, store):
    return build_services(workspace, clock=clock, store=store)


@pytest.fixture
def engine(services):
    return services.engine


@pytest.fixture
def tracker(services):
    return services.tracker
