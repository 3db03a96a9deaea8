"""Workspace root, profile, clock, and path helpers for LevelUp."""

from __future__ import annotations

import logging
import os
from datetime import date, datetime
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from levelup.fileio import read_yaml, write_yaml_atomic
from levelup.models import Profile

logger = logging.getLogger(__name__)


def workspace_root() -> Path:
    """Get the workspace root directory (contains store/ and profile.yaml)."""
    return Path(
        os.environ.get("LEVELUP_ROOT", str(Path.home() / "levelup"))
    ).expanduser().resolve()


# ── Path helpers ──────────────────────────────────────────────


def store_dir(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "store"


def profile_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "profile.yaml"


def hooks_config_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "hooks.yaml"


# ── Profile ───────────────────────────────────────────────────


def load_profile(root: Path | None = None) -> Profile:
    """Load profile.yaml, falling back to defaults if missing or unreadable."""
    try:
        return Profile.from_dict(read_yaml(profile_path(root)))
    except (OSError, ValueError, yaml.YAMLError) as e:
        logger.warning("Ignoring unreadable profile: %s", e)
        return Profile()


def save_profile(profile: Profile, root: Path | None = None) -> None:
    write_yaml_atomic(profile_path(root), profile.to_dict())


def get_user_timezone(root: Path | None = None) -> ZoneInfo | None:
    """Timezone from profile.yaml, or None for the device-local clock."""
    name = load_profile(root).timezone
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r in profile, using device clock", name)
        return None


# ── Clock ─────────────────────────────────────────────────────


class SystemClock:
    """Wall clock, device-local unless the profile pins a timezone."""

    def __init__(self, tz: ZoneInfo | None = None) -> None:
        self.tz = tz

    @classmethod
    def for_workspace(cls, root: Path | None = None) -> SystemClock:
        return cls(get_user_timezone(root))

    def now(self) -> datetime:
        return datetime.now(self.tz)

    def today(self) -> date:
        return self.now().date()


def today_str(root: Path | None = None) -> str:
    """Get today's date string (YYYY-MM-DD) in the user's timezone."""
    return SystemClock.for_workspace(root).today().isoformat()
