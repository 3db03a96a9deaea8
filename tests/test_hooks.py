"""Tests for levelup/hooks.py: hook system."""

import json

import yaml

from levelup.hooks import load_hooks_config, run_hooks


def _write_hooks(workspace, config):
    (workspace / "hooks.yaml").write_text(yaml.dump(config), encoding="utf-8")


def test_run_hooks_no_config(workspace):
    """No hooks.yaml -> no hooks run."""
    results = run_hooks("on_level_up", {"level": 2}, workspace)
    assert results == []


def test_run_hooks_with_echo(workspace):
    """Hook receives the context as JSON on stdin."""
    _write_hooks(workspace, {"on_level_up": ["cat"]})

    results = run_hooks("on_level_up", {"type": "level_up", "level": 2}, workspace)
    assert len(results) == 1
    assert results[0]["exit_code"] == 0
    output = json.loads(results[0]["stdout"])
    assert output["level"] == 2


def test_run_hooks_invalid_hook_point(workspace):
    _write_hooks(workspace, {"post_finalize": ["cat"]})
    assert run_hooks("post_finalize", {}, workspace) == []


def test_run_hooks_nonzero_exit(workspace):
    _write_hooks(workspace, {"on_weekly_setup": ["exit 3"]})
    results = run_hooks("on_weekly_setup", {}, workspace)
    assert results[0]["exit_code"] == 3


def test_run_hooks_timeout(workspace):
    """Test hook timeout protection."""
    _write_hooks(workspace, {"on_habit_reminder": [{"command": "sleep 10", "timeout": 1}]})

    results = run_hooks("on_habit_reminder", {"habitId": "h1"}, workspace)
    assert len(results) == 1
    assert results[0]["exit_code"] == -1
    assert "timed out" in results[0].get("error", "").lower()


def test_run_hooks_skips_empty_entries(workspace):
    _write_hooks(workspace, {"on_level_up": [{"command": ""}, 42, "true"]})
    results = run_hooks("on_level_up", {}, workspace)
    assert [r["command"] for r in results] == ["true"]


def test_load_hooks_config_malformed(workspace):
    (workspace / "hooks.yaml").write_text("on_level_up: [unclosed", encoding="utf-8")
    assert load_hooks_config(workspace) == {}
