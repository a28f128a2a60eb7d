# tests/test_conflicts.py

from __future__ import annotations

import pytest

from tasksync.tasks.task_models import OutcomeStatus
from tasksync.tasks.task_store import TaskStore


def test_update_with_matching_version_then_stale_version(store: TaskStore) -> None:
    a = store.create_task({"title": "A"})

    first = store.update_task(a.id, {"title": "A1"}, expected_version=1)
    assert first.status == OutcomeStatus.OK
    assert first.task is not None and first.task.version == 2

    stale = store.update_task(a.id, {"title": "A-stale"}, expected_version=1)
    assert stale.status == OutcomeStatus.CONFLICT
    assert stale.task is None
    assert stale.server_task is not None
    assert stale.server_task.version == 2
    assert stale.server_task.title == "A1"
    # the attempted change was not applied
    assert store.get_task(a.id) == first.task


def test_delete_with_stale_version_conflicts_and_keeps_record(store: TaskStore) -> None:
    a = store.create_task({"title": "A"})
    store.update_task(a.id, {"completed": True})

    outcome = store.delete_task(a.id, expected_version=1)
    assert outcome.status == OutcomeStatus.CONFLICT
    assert outcome.server_task is not None
    assert outcome.server_task.version == 2
    assert store.get_task(a.id) is not None


def test_delete_with_matching_version(store: TaskStore) -> None:
    a = store.create_task({"title": "A"})
    assert store.delete_task(a.id, expected_version=1).status == OutcomeStatus.OK
    assert store.get_task(a.id) is None


@pytest.mark.parametrize("expected", [None, 0])
def test_missing_or_zero_version_forces_overwrite(store: TaskStore, expected) -> None:
    a = store.create_task({"title": "A"})
    for _ in range(3):
        store.update_task(a.id, {"completed": True})

    outcome = store.update_task(a.id, {"title": "forced"}, expected_version=expected)
    assert outcome.status == OutcomeStatus.OK
    assert outcome.task is not None
    assert outcome.task.version == 5
    assert store.delete_task(a.id, expected_version=expected).status == OutcomeStatus.OK


def test_not_found_for_update_and_delete(store: TaskStore) -> None:
    upd = store.update_task("missing", {"title": "x"}, expected_version=3)
    assert upd.status == OutcomeStatus.NOT_FOUND
    assert upd.server_task is None

    dele = store.delete_task("missing")
    assert dele.status == OutcomeStatus.NOT_FOUND
    assert dele.server_task is None


def test_not_found_wins_over_validation(store: TaskStore) -> None:
    outcome = store.update_task("missing", {"priority": "bogus"})
    assert outcome.status == OutcomeStatus.NOT_FOUND


def test_conflict_outcome_wire_shape(store: TaskStore) -> None:
    a = store.create_task({"title": "A"})
    store.update_task(a.id, {"completed": True})

    d = store.update_task(a.id, {"completed": False}, expected_version=1).to_dict()
    assert d["success"] is False
    assert d["error"] == "CONFLICT"
    assert d["conflict"] is True
    assert d["serverTask"]["version"] == 2
    assert d["serverTask"]["completed"] is True
    assert "task" not in d
