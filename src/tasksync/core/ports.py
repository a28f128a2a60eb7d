# src/tasksync/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the sync core.

Sync/batch helpers depend on Protocols instead of the concrete TaskStore,
and the store depends on a SnapshotMirror Protocol instead of a file format.
"""

from collections.abc import Callable, Mapping
from contextlib import AbstractContextManager
from typing import Any, Protocol

from ..tasks.task_models import Outcome, TaskRecord

Clock = Callable[[], int]
# Returns "now" as epoch milliseconds.


class SnapshotMirror(Protocol):
    """Durable copy of the full record set (write-through after every mutation)."""

    def save(self, tasks: list[TaskRecord], versions: Mapping[str, int]) -> None: ...

    def load(self, *, now: int, default_user_id: str) -> tuple[list[TaskRecord], dict[str, int]]: ...


class TaskRepo(Protocol):
    @property
    def lock(self) -> AbstractContextManager[Any]: ...

    def create_task(self, fields: Mapping[str, Any]) -> TaskRecord: ...
    def get_task(self, task_id: str) -> TaskRecord | None: ...
    def list_tasks(self, user_id: str, modified_since: int | None = None) -> list[TaskRecord]: ...

    def update_task(
            self,
            task_id: str,
            fields: Mapping[str, Any] | None,
            expected_version: int | None = None,
    ) -> Outcome: ...

    def delete_task(self, task_id: str, expected_version: int | None = None) -> Outcome: ...
    def now(self) -> int: ...
