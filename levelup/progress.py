"""Persistence for XP progress and the weekly commitment.

The store owns two keys. Missing state is created lazily with defaults;
malformed state is logged and replaced the same way. Read failures are
recoverable for display reads (``strict=False``) and re-raised for
read-modify-write callers, so a failed read can never be followed by a
write of fabricated defaults over real data.
"""

from __future__ import annotations

import logging

from levelup.errors import MalformedStateError, StorageError
from levelup.leveling import week_start
from levelup.models import ProgressState, WeeklyCommitment
from levelup.storage import COMMITMENT_KEY, PROGRESS_KEY, KeyValueStore, load_json, save_json

logger = logging.getLogger(__name__)


class ProgressStore:
    def __init__(self, store: KeyValueStore, clock) -> None:
        self.store = store
        self.clock = clock

    # ── Defaults ──────────────────────────────────────────────

    def default_progress(self) -> ProgressState:
        today = self.clock.today()
        return ProgressState(last_update_date=today, week_start_date=week_start(today))

    def empty_commitment(self) -> WeeklyCommitment:
        return WeeklyCommitment(week_start_date=week_start(self.clock.today()))

    # ── Progress ──────────────────────────────────────────────

    def load_progress(self, strict: bool = False) -> ProgressState:
        """Load progress, creating and persisting defaults if absent."""
        try:
            data = load_json(self.store, PROGRESS_KEY)
            state = ProgressState.from_dict(data) if data is not None else None
        except StorageError:
            if strict:
                raise
            logger.warning("Progress unreadable, showing defaults", exc_info=True)
            return self.default_progress()
        except (MalformedStateError, ValueError, TypeError) as e:
            logger.warning("Replacing malformed progress state: %s", e)
            state = None

        if state is None:
            state = self.default_progress()
            try:
                self.save_progress(state)
            except StorageError:
                if strict:
                    raise
                logger.warning("Could not persist initial progress", exc_info=True)
        return state

    def save_progress(self, state: ProgressState) -> None:
        save_json(self.store, PROGRESS_KEY, state.to_dict())

    def clear_progress(self) -> None:
        self.store.remove(PROGRESS_KEY)

    # ── Weekly commitment ─────────────────────────────────────

    def load_commitment(self) -> WeeklyCommitment | None:
        """Load the stored commitment as-is (any week), or None.

        Raises StorageError if the store cannot be read.
        """
        try:
            data = load_json(self.store, COMMITMENT_KEY)
            return WeeklyCommitment.from_dict(data) if data is not None else None
        except (MalformedStateError, ValueError, TypeError) as e:
            logger.warning("Discarding malformed weekly commitment: %s", e)
            return None

    def save_commitment(self, commitment: WeeklyCommitment) -> None:
        save_json(self.store, COMMITMENT_KEY, commitment.to_dict())
