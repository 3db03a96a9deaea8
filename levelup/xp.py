"""XP engine: awards, revokes, level derivation, and day/week rollover.

Every change to XP goes through ``XPEngine.award_xp``. Callers decide when
to award; the engine only guarantees the arithmetic:

- counters roll over on device-local calendar boundaries (day, Monday week)
  before the points are applied;
- ``level`` is always ``level_for_xp(total_xp)``;
- ``award_xp(+n)`` followed by ``award_xp(-n)`` in the same day and week
  restores every counter exactly.

Each award is a read-modify-write held under ``self.lock`` so two quick
calls cannot both read the same state and lose one update. Callers that
pair an award with another write wrap both in ``transaction()``.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import replace
from datetime import date

from levelup.errors import InvalidInputError, StorageError
from levelup.leveling import level_ceiling_xp, level_floor_xp, level_for_xp, week_start
from levelup.models import AwardResult, LevelProgress, ProgressState
from levelup.progress import ProgressStore

logger = logging.getLogger(__name__)


class XPEngine:
    def __init__(
        self,
        progress: ProgressStore,
        notifier=None,
        lock: threading.RLock | None = None,
    ) -> None:
        self.progress = progress
        self.clock = progress.clock
        self.notifier = notifier
        self.lock = lock if lock is not None else threading.RLock()

    def get_progress(self) -> ProgressState:
        """Current stored progress, initialized on first use."""
        with self.lock:
            return self.progress.load_progress()

    def award_xp(self, points: int, source: str = "unknown") -> AwardResult:
        """Add *points* (negative to revoke) and persist.

        Raises InvalidInputError for non-integer points or a revoke larger
        than the total, StorageError if the state cannot be read or written.
        """
        if isinstance(points, bool) or not isinstance(points, int):
            raise InvalidInputError(f"Points must be an integer, got {points!r}", {"points": points})

        with self.lock:
            state = self.progress.load_progress(strict=True)
            previous_level = level_for_xp(state.total_xp)
            if state.total_xp + points < 0:
                raise InvalidInputError(
                    f"Cannot revoke {-points} XP from a total of {state.total_xp}",
                    {"points": points, "total_xp": state.total_xp, "source": source},
                )

            self._roll_over(state, self.clock.today())
            state.total_xp += points
            state.daily_xp += points
            state.weekly_xp += points
            state.level = level_for_xp(state.total_xp)
            leveled_up = state.level > previous_level

            self.progress.save_progress(state)

        logger.info(
            "%+d XP from %s (total=%d daily=%d weekly=%d level=%d)",
            points, source, state.total_xp, state.daily_xp, state.weekly_xp, state.level,
        )
        if leveled_up:
            logger.info("Level up: %d -> %d", previous_level, state.level)
            self._notify_level_up(state.level)

        return AwardResult(state=state, leveled_up=leveled_up, points_added=points, source=source)

    @contextmanager
    def transaction(self):
        """Hold the lock and put progress back as it was if the block hits a StorageError.

        Use around an award plus the write that records it, so a failed
        second write does not leave the XP counted.
        """
        with self.lock:
            before = self.progress.load_progress(strict=True)
            try:
                yield before
            except StorageError:
                try:
                    self.progress.save_progress(before)
                except StorageError:
                    logger.error("Could not roll back XP progress", exc_info=True)
                else:
                    logger.warning("Rolled XP progress back to total=%d", before.total_xp)
                raise

    def get_level_progress(self) -> LevelProgress:
        """Display view of the current level and the XP inside it."""
        with self.lock:
            state = self.current_window(self.progress.load_progress())

        level = level_for_xp(state.total_xp)
        floor_xp = level_floor_xp(level)
        needed_xp = level_ceiling_xp(level) - floor_xp
        progress_xp = state.total_xp - floor_xp
        return LevelProgress(
            current_level=level,
            progress_xp=progress_xp,
            needed_xp=needed_xp,
            progress_percentage=min(100.0, progress_xp / needed_xp * 100),
            total_xp=state.total_xp,
            daily_xp=state.daily_xp,
            weekly_xp=state.weekly_xp,
        )

    def reset_xp(self) -> ProgressState:
        """Wipe all progress back to defaults. Irreversible."""
        with self.lock:
            self.progress.clear_progress()
            state = self.progress.load_progress(strict=True)
        logger.warning("XP progress reset")
        return state

    # ── Rollover ──────────────────────────────────────────────

    def current_window(self, state: ProgressState) -> ProgressState:
        """Copy of *state* with stale daily/weekly counters zeroed (not persisted)."""
        view = replace(state)
        self._roll_over(view, self.clock.today())
        return view

    @staticmethod
    def _roll_over(state: ProgressState, today: date) -> None:
        if state.last_update_date != today:
            logger.debug("Daily XP rollover %s -> %s", state.last_update_date, today)
            state.daily_xp = 0
            state.last_update_date = today
        current_week = week_start(today)
        if state.week_start_date != current_week:
            logger.debug("Weekly XP rollover %s -> %s", state.week_start_date, current_week)
            state.weekly_xp = 0
            state.week_start_date = current_week

    def _notify_level_up(self, level: int) -> None:
        if self.notifier is None:
            return
        try:
            self.notifier.level_up(level)
        except Exception:
            logger.warning("Level-up notification failed", exc_info=True)
