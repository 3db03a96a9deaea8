"""Weekly commitment tracking.

A commitment snapshots the habits and tasks the user picked for the running
Monday-Sunday week and derives an XP target from them. It never carries
over: the first read in a new week replaces it with an empty one. Reaching
the target awards a one-time bonus, guarded solely by ``completed``.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from levelup.errors import InvalidInputError, StorageError
from levelup.leveling import WEEKLY_GOAL_BONUS, week_start, weekly_target_xp
from levelup.models import ItemRef, WeeklyCommitment
from levelup.xp import XPEngine

logger = logging.getLogger(__name__)


def to_item_ref(item: Any) -> ItemRef:
    """Snapshot a habit/task (model, dict, or ItemRef) as {id, name}."""
    if isinstance(item, ItemRef):
        ref = ItemRef(item.id, item.name)
    elif isinstance(item, dict):
        ref = ItemRef.from_dict(item)
    elif hasattr(item, "id") and hasattr(item, "name"):
        ref = ItemRef(id=str(item.id), name=str(item.name))
    else:
        raise InvalidInputError(f"Cannot commit to {item!r}: expected an item with id and name")
    if not ref.id:
        raise InvalidInputError("Committed items need an id", {"item": repr(item)})
    return ref


class WeeklyCommitmentTracker:
    def __init__(self, engine: XPEngine, notifier=None) -> None:
        self.engine = engine
        self.progress = engine.progress
        self.clock = engine.clock
        self.notifier = notifier

    @property
    def lock(self):
        return self.engine.lock

    def get_current_commitment(self, strict: bool = False) -> WeeklyCommitment:
        """This week's commitment, replacing a stale or missing one with an empty one."""
        current_week = week_start(self.clock.today())
        with self.lock:
            try:
                stored = self.progress.load_commitment()
            except StorageError:
                if strict:
                    raise
                logger.warning("Weekly commitment unreadable, showing an empty one", exc_info=True)
                return self.progress.empty_commitment()

            if stored is not None and stored.week_start_date == current_week:
                return stored

            if stored is not None:
                logger.info("Weekly commitment for %s expired, starting %s", stored.week_start_date, current_week)
            fresh = self.progress.empty_commitment()
            try:
                self.progress.save_commitment(fresh)
            except StorageError:
                if strict:
                    raise
                logger.warning("Could not persist the new weekly commitment", exc_info=True)
            return fresh

    def set_commitment(self, habits: Iterable[Any], tasks: Iterable[Any]) -> WeeklyCommitment:
        """Replace this week's commitment with the given habits and tasks."""
        habit_refs = [to_item_ref(h) for h in habits]
        task_refs = [to_item_ref(t) for t in tasks]
        commitment = WeeklyCommitment(
            week_start_date=week_start(self.clock.today()),
            target_xp=weekly_target_xp(len(habit_refs), len(task_refs)),
            habits=habit_refs,
            tasks=task_refs,
            completed=False,
        )
        with self.lock:
            self.progress.save_commitment(commitment)
        logger.info(
            "Weekly commitment set: %d habits, %d tasks, target %d XP",
            len(habit_refs), len(task_refs), commitment.target_xp,
        )
        return commitment

    def check_completion(self) -> bool:
        """Mark the commitment done and award the bonus once weekly XP reaches the target.

        Returns True only on the call that completes it.
        """
        with self.engine.transaction() as stored:
            commitment = self.get_current_commitment(strict=True)
            if commitment.completed or commitment.target_xp <= 0:
                return False
            state = self.engine.current_window(stored)
            if state.weekly_xp < commitment.target_xp:
                return False

            # bonus first; the transaction takes it back if the flag cannot be saved
            self.engine.award_xp(WEEKLY_GOAL_BONUS, "weekly_goal_completion")
            commitment.completed = True
            self.progress.save_commitment(commitment)

        logger.info("Weekly goal completed (%d/%d XP)", state.weekly_xp, commitment.target_xp)
        self._notify(commitment)
        return True

    def get_weekly_status(self) -> dict[str, Any]:
        """Commitment plus this week's XP against its target."""
        commitment = self.get_current_commitment()
        with self.lock:
            state = self.engine.current_window(self.progress.load_progress())
        target = commitment.target_xp
        pct = max(0.0, min(100.0, state.weekly_xp / target * 100)) if target > 0 else 0.0
        return {
            "commitment": commitment.to_dict(),
            "weeklyXP": state.weekly_xp,
            "targetXP": target,
            "remainingXP": max(0, target - state.weekly_xp),
            "progressPercentage": round(pct, 2),
            "bonusXP": WEEKLY_GOAL_BONUS,
        }

    def _notify(self, commitment: WeeklyCommitment) -> None:
        if self.notifier is None:
            return
        try:
            self.notifier.weekly_goal_completed(commitment)
        except Exception:
            logger.warning("Weekly goal notification failed", exc_info=True)
