"""Notification hooks for LevelUp.

Hooks run shell commands when something worth telling the user happens.
Configured via hooks.yaml in the workspace root, e.g.::

    on_level_up:
      - notify-send "Level up!"
    on_habit_reminder:
      - command: ./remind.sh
        timeout: 5

Hook points:
- on_habit_reminder
- on_level_up
- on_streak_milestone
- on_weekly_goal_complete
- on_weekly_setup
"""

from __future__ import annotations

import json
import logging
import subprocess
from pathlib import Path
from typing import Any

import yaml

from levelup.fileio import read_yaml
from levelup.workspace import hooks_config_path, workspace_root

logger = logging.getLogger(__name__)


VALID_HOOK_POINTS = {
    "on_habit_reminder",
    "on_level_up",
    "on_streak_milestone",
    "on_weekly_goal_complete",
    "on_weekly_setup",
}

DEFAULT_TIMEOUT = 30


def load_hooks_config(root: Path | None = None) -> dict[str, Any]:
    """Load hooks configuration from hooks.yaml."""
    if root is None:
        root = workspace_root()
    path = hooks_config_path(root)
    if not path.exists():
        return {}
    try:
        return read_yaml(path)
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Ignoring unreadable hooks config %s: %s", path, e)
        return {}


def run_hooks(
    hook_point: str,
    context: dict[str, Any],
    root: Path | None = None,
) -> list[dict[str, Any]]:
    """Run all hooks registered for a given hook point.

    Context is passed as JSON via stdin to each hook subprocess.
    Returns list of results with stdout/stderr and exit codes.
    """
    if hook_point not in VALID_HOOK_POINTS:
        logger.warning("Unknown hook point %r", hook_point)
        return []

    if root is None:
        root = workspace_root()

    config = load_hooks_config(root)
    hooks = config.get(hook_point, [])

    if not hooks or not isinstance(hooks, list):
        return []

    results = []
    context_json = json.dumps(context, ensure_ascii=False)

    for hook in hooks:
        if isinstance(hook, str):
            command = hook
            timeout = DEFAULT_TIMEOUT
        elif isinstance(hook, dict):
            command = hook.get("command", "")
            timeout = hook.get("timeout", DEFAULT_TIMEOUT)
        else:
            continue

        if not command:
            continue

        result: dict[str, Any] = {"command": command, "hook_point": hook_point}
        try:
            proc = subprocess.run(
                command,
                shell=True,
                input=context_json,
                capture_output=True,
                text=True,
                timeout=timeout,
                cwd=str(root),
            )
            result["exit_code"] = proc.returncode
            result["stdout"] = proc.stdout[:4096]  # Cap output
            result["stderr"] = proc.stderr[:4096]
            if proc.returncode != 0:
                logger.warning("Hook %r exited with %d", command, proc.returncode)
        except subprocess.TimeoutExpired:
            result["exit_code"] = -1
            result["error"] = f"Hook timed out after {timeout}s"
            logger.warning("Hook %r timed out after %ss", command, timeout)
        except OSError as e:
            result["exit_code"] = -1
            result["error"] = str(e)
            logger.warning("Hook %r failed: %s", command, e)

        results.append(result)

    return results
