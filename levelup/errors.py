"""Exception hierarchy for LevelUp.

Every error carries a human-readable message plus a ``details`` dict that
ends up in log records and API error payloads.

- ``StorageError``: the key-value store failed a get/set/remove.
- ``MalformedStateError``: stored JSON could not be decoded into a model.
  The progress store recovers from it locally; callers never see it.
- ``InvalidInputError``: a caller broke an operation's contract.
- ``RecordNotFoundError``: a habit/task/goal id does not exist.
"""

from __future__ import annotations

from typing import Any


class LevelUpError(Exception):
    """Base class for all LevelUp errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {"error": type(self).__name__, "message": self.message, "details": self.details}


class StorageError(LevelUpError):
    """A key-value store operation failed."""

    def __init__(self, message: str, key: str, operation: str) -> None:
        super().__init__(message, {"key": key, "operation": operation})
        self.key = key
        self.operation = operation


class MalformedStateError(LevelUpError):
    """Stored state exists but cannot be parsed."""

    def __init__(self, key: str, reason: str) -> None:
        super().__init__(f"Malformed state under {key!r}: {reason}", {"key": key})
        self.key = key


class InvalidInputError(LevelUpError, ValueError):
    """An argument violates the operation's contract."""


class RecordNotFoundError(LevelUpError, KeyError):
    """No record with the given id."""

    def __init__(self, kind: str, record_id: str) -> None:
        super().__init__(f"{kind.capitalize()} not found: {record_id}", {"kind": kind, "id": record_id})
        self.kind = kind
        self.record_id = record_id

    def __str__(self) -> str:
        return self.message
