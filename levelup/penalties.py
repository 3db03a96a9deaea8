"""Penalty points: a manual log of slips, kept apart from XP."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any

from levelup.errors import MalformedStateError
from levelup.models import Penalty, User
from levelup.storage import PENALTIES_KEY, USER_KEY, KeyValueStore, load_json, load_json_list, save_json

MIN_PENALTY_POINTS = 1
MAX_PENALTY_POINTS = 10


def validate_penalty(penalty: dict[str, Any]) -> list[str]:
    errors = []
    desc = penalty.get("description")
    if not isinstance(desc, str) or not desc.strip():
        errors.append("Missing required field: description")
    points = penalty.get("points")
    if isinstance(points, bool) or not isinstance(points, int) or not MIN_PENALTY_POINTS <= points <= MAX_PENALTY_POINTS:
        errors.append(f"points must be integer {MIN_PENALTY_POINTS}-{MAX_PENALTY_POINTS}")
    if penalty.get("date"):
        try:
            date.fromisoformat(str(penalty["date"]))
        except ValueError:
            errors.append(f"Invalid date: {penalty['date']}")
    return errors


def load_penalties(store: KeyValueStore) -> list[Penalty]:
    return [Penalty.from_dict(d) for d in load_json_list(store, PENALTIES_KEY)]


def save_penalties(store: KeyValueStore, penalties: list[Penalty]) -> None:
    save_json(store, PENALTIES_KEY, [p.to_dict() for p in penalties])


def create_penalty(
    penalties: list[Penalty], penalty_data: dict[str, Any], now: datetime
) -> tuple[Penalty, list[str]]:
    """Log a penalty dated today unless a date is given. Returns (penalty, errors)."""
    errors = validate_penalty(penalty_data)
    if errors:
        return Penalty(), errors
    penalty = Penalty.from_dict(penalty_data)
    penalty.id = str(penalty_data.get("id") or uuid.uuid4().hex[:12])
    penalty.penalty_date = penalty.penalty_date or now.date()
    penalty.added_at = now.isoformat(timespec="seconds")
    penalties.append(penalty)
    return penalty, []


def delete_penalty(penalties: list[Penalty], penalty_id: str) -> bool:
    for i, p in enumerate(penalties):
        if p.id == penalty_id:
            penalties.pop(i)
            return True
    return False


def total_penalty_points(penalties: list[Penalty]) -> int:
    return sum(p.points for p in penalties)


def penalties_between(penalties: list[Penalty], start: date, end: date) -> list[Penalty]:
    """Penalties dated within [start, end], inclusive."""
    return [p for p in penalties if p.penalty_date and start <= p.penalty_date <= end]


# ── User ──────────────────────────────────────────────────────


def load_user(store: KeyValueStore) -> User:
    try:
        data = load_json(store, USER_KEY)
    except MalformedStateError:
        data = None
    return User.from_dict(data if isinstance(data, dict) else {})


def add_user_penalty_points(store: KeyValueStore, points: int) -> User:
    user = load_user(store)
    user.penalty_points += points
    save_json(store, USER_KEY, user.to_dict())
    return user
