# src/tasksync/tasks/task_store.py

from __future__ import annotations

import dataclasses
import logging
import threading
import time
from collections.abc import Mapping
from typing import Any

from ..core.ports import Clock, SnapshotMirror
from .snapshot import NullMirror
from .task_fields import coerce_record, parse_expected_version, validate_update_fields
from .task_models import DEFAULT_USER_ID, Outcome, OutcomeStatus, TaskRecord

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return time.time_ns() // 1_000_000


class TaskStore:
    """
    In-memory task store with optimistic concurrency.

    Versioning:
    - a new id starts at version 1, every successful mutation adds exactly 1
    - the highest version issued per id is remembered across delete, so a
      recreated id continues from there instead of reusing old numbers

    Conflicts (update/delete):
    - missing id                               -> NOT_FOUND
    - expected_version None/0/""/False         -> no check (forced overwrite)
    - any other expected_version != stored     -> CONFLICT + current stored record
      (junk, bools, fractions and negatives never match, see parse_expected_version)

    Persistence:
    - every successful mutation is written through the mirror before returning
    - mirror failures are logged and counted, never raised

    Thread-safety:
    - one RLock per instance; every public method holds it
    """

    def __init__(
        self,
        *,
        mirror: SnapshotMirror | None = None,
        clock: Clock | None = None,
        default_user_id: str = DEFAULT_USER_ID,
    ) -> None:
        self._mirror: SnapshotMirror = mirror if mirror is not None else NullMirror()
        self._clock: Clock = clock if clock is not None else now_ms
        self._default_user_id = default_user_id

        self._tasks: dict[str, TaskRecord] = {}
        self._version_floor: dict[str, int] = {}
        self._last_stamp = 0
        self._lock = threading.RLock()

        self.persist_failures = 0

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    @property
    def default_user_id(self) -> str:
        return self._default_user_id

    # ---- low-level helpers ----

    def now(self) -> int:
        """Strictly increasing store timestamp (epoch ms)."""
        with self._lock:
            ts = int(self._clock())
            if ts <= self._last_stamp:
                ts = self._last_stamp + 1
            self._last_stamp = ts
            return ts

    def _next_version(self, task_id: str) -> int:
        return self._version_floor.get(task_id, 0) + 1

    def _put(self, task: TaskRecord) -> None:
        self._tasks[task.id] = task
        self._version_floor[task.id] = max(self._version_floor.get(task.id, 0), task.version)

    def _persist(self) -> None:
        try:
            self._mirror.save(list(self._tasks.values()), dict(self._version_floor))
        except Exception:
            self.persist_failures += 1
            logger.warning(
                "PersistenceWarning: snapshot write failed (failures=%d); in-memory state kept",
                self.persist_failures,
                exc_info=True,
            )

    # ---- lifecycle ----

    def load_snapshot(self) -> int:
        """
        Replace the in-memory state with the mirror's snapshot.

        Returns the number of records loaded.
        """
        with self._lock:
            tasks, versions = self._mirror.load(now=self.now(), default_user_id=self._default_user_id)

            self._tasks.clear()
            self._version_floor = dict(versions)
            for task in tasks:
                self._put(task)
                self._last_stamp = max(self._last_stamp, task.updated_at)

            logger.info(
                "TaskStore loaded total=%d tracked_ids=%d", len(self._tasks), len(self._version_floor)
            )
            return len(self._tasks)

    # ---- public API ----

    def count_tasks(self) -> int:
        with self._lock:
            return len(self._tasks)

    def all_tasks(self) -> list[TaskRecord]:
        """All records in insertion order (snapshot order)."""
        with self._lock:
            return list(self._tasks.values())

    def create_task(self, fields: Mapping[str, Any]) -> TaskRecord:
        """
        Create (or overwrite, if the supplied id exists) a record.

        Never fails: missing fields get defaults, createdAt may be supplied by the client.
        """
        with self._lock:
            stamp = self.now()
            task = coerce_record(fields, now=stamp, default_user_id=self._default_user_id)
            task = dataclasses.replace(task, version=self._next_version(task.id))

            if task.id in self._tasks:
                logger.warning(
                    "Create overwrote existing task id=%s (last-writer-wins) version=%d",
                    task.id,
                    task.version,
                )

            self._put(task)
            logger.debug(
                "Task created id=%s user=%s version=%d", task.id, task.user_id, task.version
            )
            self._persist()
            return task

    def get_task(self, task_id: str) -> TaskRecord | None:
        with self._lock:
            return self._tasks.get(task_id)

    def list_tasks(self, user_id: str, modified_since: int | None = None) -> list[TaskRecord]:
        """
        Records owned by user_id, newest first (ties keep insertion order).

        modified_since: keep only updatedAt > modified_since (None/0 = no filter).
        """
        with self._lock:
            tasks = [t for t in self._tasks.values() if t.user_id == user_id]

        if modified_since:
            tasks = [t for t in tasks if t.updated_at > modified_since]

        return sorted(tasks, key=lambda t: t.updated_at, reverse=True)

    def _check(self, task_id: str, expected_version: Any) -> Outcome | None:
        current = self._tasks.get(task_id)
        if current is None:
            return Outcome(OutcomeStatus.NOT_FOUND, message="Task not found")

        expected_version = parse_expected_version(expected_version)
        if expected_version is not None and expected_version != current.version:
            logger.info(
                "Version conflict id=%s expected=%s current=%d",
                task_id,
                expected_version,
                current.version,
            )
            return Outcome(OutcomeStatus.CONFLICT, server_task=current, message="Version conflict")

        return None

    def update_task(
        self,
        task_id: str,
        fields: Mapping[str, Any] | None,
        expected_version: Any = None,
    ) -> Outcome:
        """
        Apply allow-listed field changes.

        Raises ValidationError (store unchanged) if a supplied field is invalid;
        NOT_FOUND/CONFLICT are returned as outcomes.
        """
        with self._lock:
            rejected = self._check(task_id, expected_version)
            if rejected is not None:
                return rejected

            changes = validate_update_fields(fields)
            current = self._tasks[task_id]
            updated = dataclasses.replace(
                current,
                **changes,
                updated_at=self.now(),
                version=self._next_version(task_id),
            )

            self._put(updated)
            logger.debug(
                "Task updated id=%s version=%d fields=%s",
                task_id,
                updated.version,
                sorted(changes),
            )
            self._persist()
            return Outcome(OutcomeStatus.OK, task=updated)

    def delete_task(self, task_id: str, expected_version: Any = None) -> Outcome:
        with self._lock:
            rejected = self._check(task_id, expected_version)
            if rejected is not None:
                return rejected

            del self._tasks[task_id]
            logger.debug("Task deleted id=%s", task_id)
            self._persist()
            return Outcome(OutcomeStatus.OK)
