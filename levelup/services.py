"""Wiring: build the store, clock, engine, tracker, and notifier for a workspace."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from pathlib import Path

from levelup.models import Profile
from levelup.notifications import Notifier
from levelup.progress import ProgressStore
from levelup.storage import FileStore, KeyValueStore
from levelup.weekly import WeeklyCommitmentTracker
from levelup.workspace import SystemClock, get_user_timezone, load_profile, store_dir, workspace_root
from levelup.xp import XPEngine


@dataclass
class Services:
    root: Path
    profile: Profile
    store: KeyValueStore
    clock: SystemClock
    progress: ProgressStore
    notifier: Notifier
    engine: XPEngine
    tracker: WeeklyCommitmentTracker


def build_services(
    root: Path | None = None,
    clock=None,
    store: KeyValueStore | None = None,
) -> Services:
    """Assemble the core for *root*. Engine and tracker share one lock."""
    if root is None:
        root = workspace_root()
    profile = load_profile(root)
    if clock is None:
        clock = SystemClock(get_user_timezone(root))
    if store is None:
        store = FileStore(store_dir(root))

    notifier = Notifier(
        store,
        clock,
        root=root,
        enabled=profile.notifications_enabled,
        default_time=profile.default_reminder_time,
    )
    progress = ProgressStore(store, clock)
    engine = XPEngine(progress, notifier=notifier, lock=threading.RLock())
    tracker = WeeklyCommitmentTracker(engine, notifier=notifier)
    return Services(
        root=root,
        profile=profile,
        store=store,
        clock=clock,
        progress=progress,
        notifier=notifier,
        engine=engine,
        tracker=tracker,
    )
