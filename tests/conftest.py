# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from tasksync.tasks.task_store import TaskStore

from .fakes import FakeClock, RecordingMirror


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with bootstrap and commands.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the environment and .env files.
    """
    return SimpleNamespace(
        app_name="tasksync-test",
        log_level="DEBUG",
        default_user_id="user1",
        data_dir=tmp_path / "data",
        snapshot_enabled=True,
        snapshot_path=tmp_path / "data" / "tasks.json",
        console_enabled=False,
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def mirror() -> RecordingMirror:
    return RecordingMirror()


@pytest.fixture()
def store(clock: FakeClock, mirror: RecordingMirror) -> TaskStore:
    return TaskStore(mirror=mirror, clock=clock)
