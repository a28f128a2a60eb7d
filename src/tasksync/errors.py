# src/tasksync/errors.py

from __future__ import annotations


class TaskSyncError(Exception):
    """Base class for tasksync errors."""


class ValidationError(TaskSyncError):
    """
    Rejected input for a single field.

    Raised before a mutation touches the store, so the store is left unchanged.
    """

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class PersistenceWarning(TaskSyncError):
    """
    Snapshot write/read failed.

    Never escapes TaskStore: it is logged and counted, the in-memory view stays valid.
    """
