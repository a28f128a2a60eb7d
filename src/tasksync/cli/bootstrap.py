# src/tasksync/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- builds the snapshot mirror and the TaskStore,
- reloads the last snapshot into the store.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.ports import Clock, SnapshotMirror
from ..core.state import AppState
from ..tasks.snapshot import JsonSnapshotMirror, NullMirror
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    if settings.snapshot_enabled:
        settings.snapshot_path.parent.mkdir(parents=True, exist_ok=True)


def build_mirror(settings) -> SnapshotMirror:
    if not settings.snapshot_enabled:
        logger.info("Snapshot persistence disabled; store is memory-only.")
        return NullMirror()
    return JsonSnapshotMirror(settings.snapshot_path)


def create_initial_state(*, settings=None, clock: Clock | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    mirror = build_mirror(settings)
    store = TaskStore(mirror=mirror, clock=clock, default_user_id=settings.default_user_id)
    store.load_snapshot()

    return AppState(
        settings=settings,
        store=store,
        mirror=mirror,
        user_id=settings.default_user_id,
    )
