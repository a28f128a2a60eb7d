# src/tasksync/tasks/task_sync.py

"""
Delta sync: what changed for a user since a cursor, and the next cursor.

Deletes leave no tombstone, so they never show up in a delta pull. Clients
that need to learn about remote deletions must periodically pull the full
list (modified_since=None) and drop local records the server no longer has.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..core.ports import TaskRepo
from .task_models import TaskRecord, TaskStats


@dataclass(frozen=True, slots=True)
class SyncResponse:
    tasks: list[TaskRecord]
    last_sync: int
    server_time: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "tasks": [t.to_dict() for t in self.tasks],
            "lastSync": self.last_sync,
            "serverTime": self.server_time,
        }


def list_since(repo: TaskRepo, user_id: str, modified_since: int | None) -> list[TaskRecord]:
    return repo.list_tasks(user_id, modified_since)


def watermark(repo: TaskRepo, user_id: str) -> int:
    """Latest updatedAt across the user's current records, 0 if none."""
    tasks = repo.list_tasks(user_id)
    if not tasks:
        return 0
    return max(t.updated_at for t in tasks)


def build_sync_response(
    repo: TaskRepo,
    user_id: str,
    modified_since: int | None = None,
    *,
    now: int | None = None,
) -> SyncResponse:
    """
    Tasks + watermark computed under one lock hold, so the cursor matches the list.
    """
    with repo.lock:
        tasks = list_since(repo, user_id, modified_since)
        last_sync = watermark(repo, user_id)
        server_time = now if now is not None else repo.now()
    return SyncResponse(tasks=tasks, last_sync=last_sync, server_time=server_time)


def get_stats(repo: TaskRepo, user_id: str) -> TaskStats:
    with repo.lock:
        tasks = repo.list_tasks(user_id)
        last_sync = watermark(repo, user_id)
    completed = sum(1 for t in tasks if t.completed)
    return TaskStats(
        total=len(tasks),
        completed=completed,
        pending=len(tasks) - completed,
        last_sync=last_sync,
    )
