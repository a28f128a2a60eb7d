# src/tasksync/tasks/snapshot.py

"""
Durability mirror: the whole record set as one JSON document.

Layout (format 1):
    {
        "format": 1,
        "tasks": [ {<task wire dict>}, ... ],      # insertion order
        "versions": { "<task id>": <highest version issued>, ... }
    }

A bare JSON list of task dicts (legacy layout) is also accepted on load.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from ..errors import PersistenceWarning
from .task_fields import coerce_positive_int, coerce_record
from .task_models import TaskRecord

logger = logging.getLogger(__name__)

SNAPSHOT_FORMAT = 1


class NullMirror:
    """Mirror used when persistence is disabled."""

    def save(self, tasks: list[TaskRecord], versions: Mapping[str, int]) -> None:
        return

    def load(self, *, now: int, default_user_id: str) -> tuple[list[TaskRecord], dict[str, int]]:
        return [], {}


class JsonSnapshotMirror:
    """
    Single-file JSON snapshot.

    Writes go to a sibling .tmp file and are swapped in with os.replace, so a crash
    mid-write leaves the previous snapshot intact.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def save(self, tasks: list[TaskRecord], versions: Mapping[str, int]) -> None:
        doc = {
            "format": SNAPSHOT_FORMAT,
            "tasks": [t.to_dict() for t in tasks],
            "versions": dict(versions),
        }
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(doc, ensure_ascii=False, indent=2), "utf-8")
            os.replace(tmp, self._path)
        except (OSError, TypeError, ValueError) as e:
            with contextlib.suppress(OSError):
                tmp.unlink()
            raise PersistenceWarning(f"failed to write snapshot {self._path}: {e}") from e
        logger.debug("Snapshot saved tasks=%d path=%s", len(tasks), self._path)

    def load(self, *, now: int, default_user_id: str) -> tuple[list[TaskRecord], dict[str, int]]:
        """
        Read and normalize the snapshot.

        Missing file -> empty. Corrupt file -> renamed to <name>.corrupt-<now>, empty;
        if it cannot be moved aside, PersistenceWarning is raised so the next save
        does not overwrite it.
        Entries are normalized with the create defaults; persisted version/updatedAt
        are kept when they are valid positive integers.
        """
        if not self._path.exists():
            logger.info("No snapshot at %s, starting empty", self._path)
            return [], {}

        try:
            data = json.loads(self._path.read_text("utf-8"))
        except (OSError, ValueError):
            logger.exception("Failed to read snapshot %s", self._path)
            self._set_aside(now)
            return [], {}

        raw_versions: Any = {}
        if isinstance(data, list):
            raw_tasks: Any = data
        elif isinstance(data, dict):
            raw_tasks = data.get("tasks") or []
            raw_versions = data.get("versions") or {}
        else:
            logger.warning("Snapshot %s has unexpected top-level type %s", self._path, type(data).__name__)
            self._set_aside(now)
            return [], {}

        if not isinstance(raw_tasks, list):
            logger.warning("Snapshot %s: 'tasks' is not a list, ignoring", self._path)
            raw_tasks = []

        tasks: list[TaskRecord] = []
        for i, entry in enumerate(raw_tasks):
            if not isinstance(entry, dict):
                logger.warning("Snapshot %s: skipping entry #%d (not an object)", self._path, i)
                continue
            tasks.append(
                coerce_record(
                    entry,
                    now=now,
                    default_user_id=default_user_id,
                    version=coerce_positive_int(entry.get("version")) or 1,
                    updated_at=coerce_positive_int(entry.get("updatedAt", entry.get("updated_at"))),
                )
            )

        versions: dict[str, int] = {}
        if isinstance(raw_versions, dict):
            for task_id, v in raw_versions.items():
                val = coerce_positive_int(v)
                if val is not None:
                    versions[str(task_id)] = val

        logger.info("Snapshot loaded tasks=%d path=%s", len(tasks), self._path)
        return tasks, versions

    def _set_aside(self, now: int) -> Path:
        target = self._path.with_name(f"{self._path.name}.corrupt-{now}")
        try:
            os.replace(self._path, target)
        except OSError as e:
            raise PersistenceWarning(f"cannot move unreadable snapshot {self._path} aside: {e}") from e
        logger.warning("Unreadable snapshot moved to %s, starting empty", target)
        return target
