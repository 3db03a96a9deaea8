"""Key-value storage backends for LevelUp.

All persisted state goes through a tiny string-keyed store with
``get``/``set``/``remove``. Values are JSON strings; ``load_json`` and
``save_json`` do the (de)serialization on top of any backend.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Protocol

from levelup.errors import MalformedStateError, StorageError
from levelup.fileio import read_text, write_text_atomic

logger = logging.getLogger(__name__)


# Keys owned by the XP core
PROGRESS_KEY = "xp_data"
COMMITMENT_KEY = "weekly_goals"

# Keys owned by the record collaborators
HABITS_KEY = "habits"
TASKS_KEY = "tasks"
GOALS_KEY = "goals"
PENALTIES_KEY = "penalties"
USER_KEY = "user"
REMINDERS_KEY = "reminders"


class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryStore:
    """In-process store, used by tests and throwaway sessions."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def remove(self, key: str) -> None:
        self.data.pop(key, None)


_SAFE_KEY = re.compile(r"[^A-Za-z0-9_.-]")


class FileStore:
    """One file per key under a directory, written atomically."""

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        name = _SAFE_KEY.sub("_", key.lstrip("@")) or "_"
        return self.directory / f"{name}.json"

    def get(self, key: str) -> str | None:
        path = self.path_for(key)
        try:
            if not path.exists():
                return None
            return read_text(path)
        except OSError as e:
            raise StorageError(f"Cannot read {key!r}: {e}", key, "get") from e

    def set(self, key: str, value: str) -> None:
        try:
            write_text_atomic(self.path_for(key), value)
        except OSError as e:
            raise StorageError(f"Cannot write {key!r}: {e}", key, "set") from e

    def remove(self, key: str) -> None:
        try:
            self.path_for(key).unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot remove {key!r}: {e}", key, "remove") from e


# ── JSON helpers ──────────────────────────────────────────────


def load_json(store: KeyValueStore, key: str) -> Any:
    """Read and decode *key*. Returns None if absent.

    Raises StorageError if the store fails and MalformedStateError if the
    stored text is not JSON.
    """
    raw = store.get(key)
    if raw is None or not raw.strip():
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise MalformedStateError(key, str(e)) from e


def save_json(store: KeyValueStore, key: str, data: Any) -> None:
    store.set(key, json.dumps(data, ensure_ascii=False))


def load_json_list(store: KeyValueStore, key: str) -> list[dict[str, Any]]:
    """Load a JSON list of records, treating anything unreadable as empty."""
    try:
        data = load_json(store, key)
    except MalformedStateError as e:
        logger.warning("Discarding %s", e.message)
        return []
    if not isinstance(data, list):
        return []
    return [d for d in data if isinstance(d, dict)]
