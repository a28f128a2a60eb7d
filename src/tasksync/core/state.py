# src/tasksync/core/state.py

from __future__ import annotations

from dataclasses import dataclass

from ..tasks.task_store import TaskStore
from .ports import SnapshotMirror


@dataclass
class AppState:
    # Settings are kept on the state so commands can read them without globals.
    settings: object

    store: TaskStore
    mirror: SnapshotMirror

    # User the console acts as (/user switches it).
    user_id: str
