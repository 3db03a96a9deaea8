"""Tests for levelup/leveling.py: level curve, weeks, targets."""

from datetime import date

import pytest

from levelup.errors import InvalidInputError
from levelup.leveling import (
    is_streak_milestone,
    level_ceiling_xp,
    level_floor_xp,
    level_for_xp,
    week_start,
    weekly_target_xp,
)


@pytest.mark.parametrize(
    "total, level",
    [(0, 1), (10, 1), (99, 1), (100, 2), (250, 2), (399, 2), (400, 3), (899, 3), (900, 4), (10_000, 11)],
)
def test_level_for_xp(total, level):
    assert level_for_xp(total) == level


def test_level_for_negative_xp_is_one():
    assert level_for_xp(-50) == 1


def test_level_bounds():
    assert level_floor_xp(1) == 0
    assert level_ceiling_xp(1) == 100
    assert level_floor_xp(2) == 100
    assert level_ceiling_xp(2) == 400
    assert level_floor_xp(3) == 400
    assert level_ceiling_xp(3) == 900


def test_level_bounds_bracket_total():
    for total in (0, 1, 99, 100, 401, 2500, 12345):
        level = level_for_xp(total)
        assert level_floor_xp(level) <= total < level_ceiling_xp(level)


def test_level_bounds_reject_bad_level():
    with pytest.raises(InvalidInputError):
        level_floor_xp(0)
    with pytest.raises(InvalidInputError):
        level_ceiling_xp(True)


def test_week_start_monday():
    # Sunday belongs to the week that started six days earlier
    assert week_start(date(2026, 2, 15)) == date(2026, 2, 9)
    assert week_start(date(2026, 2, 9)) == date(2026, 2, 9)
    assert week_start(date(2026, 2, 11)) == date(2026, 2, 9)
    assert week_start(date(2026, 2, 16)) == date(2026, 2, 16)


def test_streak_milestones():
    assert is_streak_milestone(7)
    assert is_streak_milestone(14)
    assert not is_streak_milestone(0)
    assert not is_streak_milestone(6)
    assert not is_streak_milestone(8)


def test_weekly_target_xp():
    assert weekly_target_xp(2, 1) == 155
    assert weekly_target_xp(1, 0) == 70
    assert weekly_target_xp(0, 3) == 45
    assert weekly_target_xp(0, 0) == 0


def test_weekly_target_rejects_negative_counts():
    with pytest.raises(InvalidInputError):
        weekly_target_xp(-1, 0)
