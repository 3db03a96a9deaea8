"""Typed dataclasses for the LevelUp data model.

All persisted models use from_dict/to_dict for JSON serialization.
camelCase in JSON is mapped to snake_case in Python.
Unknown keys are ignored; missing keys use defaults.
Dates are ``datetime.date`` in memory and ISO strings on disk.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any


def _parse_date(value: Any) -> date | None:
    if value in (None, ""):
        return None
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _format_date(value: date | None) -> str | None:
    return value.isoformat() if value else None


def _int_field(d: dict[str, Any], key: str, default: int = 0) -> int:
    """Stored counter as an int; floats, strings and bools are malformed."""
    value = d.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer, got {value!r}")
    return value


# ── XP progress ───────────────────────────────────────────────


@dataclass
class ProgressState:
    total_xp: int = 0
    daily_xp: int = 0
    weekly_xp: int = 0
    level: int = 1
    last_update_date: date = field(default_factory=date.today)
    week_start_date: date = field(default_factory=date.today)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> ProgressState:
        """Parse stored progress. Raises ValueError/TypeError on bad data."""
        if not isinstance(d, dict):
            raise TypeError(f"expected object, got {type(d).__name__}")
        # lastUpdated is the key older installs wrote
        last = _parse_date(d.get("lastUpdateDate", d.get("lastUpdated")))
        week = _parse_date(d.get("weekStartDate"))
        if last is None or week is None:
            raise ValueError("missing lastUpdateDate/weekStartDate")
        return cls(
            total_xp=_int_field(d, "totalXP"),
            daily_xp=_int_field(d, "dailyXP"),
            weekly_xp=_int_field(d, "weeklyXP"),
            level=_int_field(d, "level", 1),
            last_update_date=last,
            week_start_date=week,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalXP": self.total_xp,
            "dailyXP": self.daily_xp,
            "weeklyXP": self.weekly_xp,
            "level": self.level,
            "lastUpdateDate": self.last_update_date.isoformat(),
            "weekStartDate": self.week_start_date.isoformat(),
        }


@dataclass
class AwardResult:
    """Outcome of a single award/revoke."""

    state: ProgressState
    leveled_up: bool = False
    points_added: int = 0
    source: str = "unknown"

    def to_dict(self) -> dict[str, Any]:
        d = self.state.to_dict()
        d.update({"leveledUp": self.leveled_up, "pointsAdded": self.points_added, "source": self.source})
        return d


@dataclass
class LevelProgress:
    current_level: int
    progress_xp: int
    needed_xp: int
    progress_percentage: float
    total_xp: int
    daily_xp: int
    weekly_xp: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "currentLevel": self.current_level,
            "progressXP": self.progress_xp,
            "neededXP": self.needed_xp,
            "progressPercentage": round(self.progress_percentage, 2),
            "totalXP": self.total_xp,
            "dailyXP": self.daily_xp,
            "weeklyXP": self.weekly_xp,
        }


# ── Weekly commitment ─────────────────────────────────────────


@dataclass
class ItemRef:
    """Snapshot of a habit or task at commitment time."""

    id: str
    name: str

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> ItemRef:
        return cls(id=str(d.get("id", "")), name=str(d.get("name", d.get("naam", ""))))

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name}


@dataclass
class WeeklyCommitment:
    week_start_date: date = field(default_factory=date.today)
    target_xp: int = 0
    habits: list[ItemRef] = field(default_factory=list)
    tasks: list[ItemRef] = field(default_factory=list)
    completed: bool = False

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> WeeklyCommitment:
        """Parse a stored commitment. Raises ValueError/TypeError on bad data."""
        if not isinstance(d, dict):
            raise TypeError(f"expected object, got {type(d).__name__}")
        week = _parse_date(d.get("weekStartDate"))
        if week is None:
            raise ValueError("missing weekStartDate")
        return cls(
            week_start_date=week,
            target_xp=_int_field(d, "targetXP"),
            habits=[ItemRef.from_dict(h) for h in (d.get("habits") or []) if isinstance(h, dict)],
            tasks=[ItemRef.from_dict(t) for t in (d.get("tasks") or []) if isinstance(t, dict)],
            completed=bool(d.get("completed", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "weekStartDate": self.week_start_date.isoformat(),
            "targetXP": self.target_xp,
            "habits": [h.to_dict() for h in self.habits],
            "tasks": [t.to_dict() for t in self.tasks],
            "completed": self.completed,
        }


# ── Records ───────────────────────────────────────────────────


@dataclass
class Habit:
    id: str = ""
    name: str = ""
    description: str = ""
    frequency: str = "daily"  # daily, weekly
    streak: int = 0
    last_completed: date | None = None
    # restored when today's completion is undone
    previous_completed: date | None = None
    streak_bonus_awarded: bool = False
    penalty_points_on_failure: int = 0
    reminder_time: str | None = None  # HH:MM

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Habit:
        return cls(
            id=str(d.get("id", "")),
            name=str(d.get("name", d.get("naam", ""))),
            description=str(d.get("description", d.get("beschrijving", "")) or ""),
            frequency=str(d.get("frequency", "daily")).lower(),
            streak=int(d.get("streak", 0) or 0),
            last_completed=_parse_date(d.get("lastCompleted", d.get("laatst_voltooid"))),
            previous_completed=_parse_date(d.get("previousCompleted")),
            streak_bonus_awarded=bool(d.get("streakBonusAwarded", False)),
            penalty_points_on_failure=int(d.get("penaltyPointsOnFailure", d.get("strafpunten_bij_falen", 0)) or 0),
            reminder_time=d.get("reminderTime"),
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "frequency": self.frequency,
            "streak": self.streak,
            "lastCompleted": _format_date(self.last_completed),
        }
        if self.previous_completed:
            d["previousCompleted"] = self.previous_completed.isoformat()
        if self.streak_bonus_awarded:
            d["streakBonusAwarded"] = True
        if self.penalty_points_on_failure:
            d["penaltyPointsOnFailure"] = self.penalty_points_on_failure
        if self.reminder_time:
            d["reminderTime"] = self.reminder_time
        return d


@dataclass
class Task:
    id: str = ""
    name: str = ""
    description: str = ""
    deadline: date | None = None
    category: str = ""
    completed: bool = False
    completed_date: date | None = None

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Task:
        return cls(
            id=str(d.get("id", "")),
            name=str(d.get("name", d.get("naam", ""))),
            description=str(d.get("description", d.get("beschrijving", "")) or ""),
            deadline=_parse_date(d.get("deadline")),
            category=str(d.get("category", d.get("categorie", "")) or ""),
            completed=bool(d.get("completed", d.get("voltooid", False))),
            completed_date=_parse_date(d.get("completedDate", d.get("datum_voltooid"))),
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "deadline": _format_date(self.deadline),
            "completed": self.completed,
            "completedDate": _format_date(self.completed_date),
        }
        if self.category:
            d["category"] = self.category
        return d


@dataclass
class Goal:
    id: str = ""
    name: str = ""
    description: str = ""
    deadline: date | None = None
    progress: int = 0  # percent
    completed: bool = False
    completed_date: date | None = None
    deadline_locked: bool = True

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Goal:
        return cls(
            id=str(d.get("id", "")),
            name=str(d.get("name", d.get("naam", ""))),
            description=str(d.get("description", d.get("beschrijving", "")) or ""),
            deadline=_parse_date(d.get("deadline")),
            progress=int(d.get("progress", d.get("voortgang", 0)) or 0),
            completed=bool(d.get("completed", d.get("voltooid", False))),
            completed_date=_parse_date(d.get("completedDate", d.get("datum_voltooid"))),
            deadline_locked=bool(d.get("deadlineLocked", d.get("deadline_locked", True))),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "deadline": _format_date(self.deadline),
            "progress": self.progress,
            "completed": self.completed,
            "completedDate": _format_date(self.completed_date),
            "deadlineLocked": self.deadline_locked,
        }


@dataclass
class Penalty:
    id: str = ""
    description: str = ""
    points: int = 1
    penalty_date: date | None = None
    added_at: str = ""

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Penalty:
        return cls(
            id=str(d.get("id", "")),
            description=str(d.get("description", d.get("beschrijving", "")) or ""),
            points=int(d.get("points", d.get("punten", 0)) or 0),
            penalty_date=_parse_date(d.get("date", d.get("datum"))),
            added_at=str(d.get("addedAt", d.get("datum_toegevoegd", "")) or ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "description": self.description,
            "points": self.points,
            "date": _format_date(self.penalty_date),
            "addedAt": self.added_at,
        }


@dataclass
class User:
    id: str = "1"
    name: str = "Productive User"
    penalty_points: int = 0

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> User:
        if not d or not isinstance(d, dict):
            return cls()
        return cls(
            id=str(d.get("id", "1")),
            name=str(d.get("name", d.get("naam", "Productive User"))),
            penalty_points=int(d.get("penaltyPoints", d.get("strafpunten", 0)) or 0),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "penaltyPoints": self.penalty_points}


# ── Notifications ─────────────────────────────────────────────


@dataclass
class Reminder:
    habit_id: str = ""
    habit_name: str = ""
    time: str = "09:00"  # HH:MM, device-local
    kind: str = "habit_reminder"  # habit_reminder, weekly_setup
    day: str | None = None  # mon..sun for weekly reminders
    last_fired: date | None = None

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Reminder:
        return cls(
            habit_id=str(d.get("habitId", "")),
            habit_name=str(d.get("habitName", "")),
            time=str(d.get("time", "09:00")),
            kind=str(d.get("kind", "habit_reminder")),
            day=d.get("day") or None,
            last_fired=_parse_date(d.get("lastFired")),
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "habitId": self.habit_id,
            "habitName": self.habit_name,
            "time": self.time,
            "kind": self.kind,
            "lastFired": _format_date(self.last_fired),
        }
        if self.day:
            d["day"] = self.day
        return d


# ── Profile ───────────────────────────────────────────────────


@dataclass
class Profile:
    timezone: str | None = None
    default_reminder_time: str = "09:00"
    notifications_enabled: bool = True
    weekly_setup_day: str = "sun"
    weekly_setup_time: str = "20:00"

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Profile:
        if not d or not isinstance(d, dict):
            return cls()
        weekly = d.get("weekly_setup_reminder") or {}
        if not isinstance(weekly, dict):
            weekly = {}
        return cls(
            timezone=d.get("timezone") or None,
            default_reminder_time=str(d.get("default_reminder_time", "09:00")),
            notifications_enabled=bool(d.get("notifications_enabled", True)),
            weekly_setup_day=str(weekly.get("day", "sun")).lower(),
            weekly_setup_time=str(weekly.get("time", "20:00")),
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {}
        if self.timezone:
            d["timezone"] = self.timezone
        d["default_reminder_time"] = self.default_reminder_time
        d["notifications_enabled"] = self.notifications_enabled
        d["weekly_setup_reminder"] = {"day": self.weekly_setup_day, "time": self.weekly_setup_time}
        return d


# ── Completion toggles ────────────────────────────────────────


@dataclass
class CompletionResult:
    """What a habit/task completion toggle did to XP."""

    item_id: str
    completed: bool
    changed: bool = False
    xp_delta: int = 0
    leveled_up: bool = False
    streak_bonus: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.item_id,
            "completed": self.completed,
            "changed": self.changed,
            "xpDelta": self.xp_delta,
            "leveledUp": self.leveled_up,
            "streakBonus": self.streak_bonus,
        }
