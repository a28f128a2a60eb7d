# tests/test_task_store.py

from __future__ import annotations

import threading

import pytest

from tasksync.errors import ValidationError
from tasksync.tasks.task_models import OutcomeStatus, Priority
from tasksync.tasks.task_store import TaskStore

from .fakes import FailingMirror, FakeClock


def test_create_fills_defaults(store: TaskStore, clock: FakeClock) -> None:
    task = store.create_task({"title": "Buy milk"})

    assert task.id
    assert task.title == "Buy milk"
    assert task.description == ""
    assert task.completed is False
    assert task.priority == Priority.MEDIUM
    assert task.user_id == "user1"
    assert task.version == 1
    assert task.created_at == clock.now_ms
    assert task.updated_at >= task.created_at
    assert store.get_task(task.id) == task


def test_create_keeps_client_id_and_created_at(store: TaskStore, clock: FakeClock) -> None:
    task = store.create_task(
        {"id": "t-1", "title": "x", "userId": "alice", "createdAt": 1_600_000_000_000, "priority": "high"}
    )
    assert task.id == "t-1"
    assert task.user_id == "alice"
    assert task.created_at == 1_600_000_000_000
    assert task.updated_at == clock.now_ms
    assert task.priority == Priority.HIGH


def test_create_ignores_client_updated_at_and_version(store: TaskStore, clock: FakeClock) -> None:
    task = store.create_task({"title": "x", "updatedAt": 5, "version": 42})
    assert task.updated_at == clock.now_ms
    assert task.version == 1


def test_get_missing_returns_none(store: TaskStore) -> None:
    assert store.get_task("nope") is None


def test_update_bumps_version_and_timestamp(store: TaskStore) -> None:
    task = store.create_task({"title": "a"})

    outcome = store.update_task(task.id, {"completed": True})
    assert outcome.status == OutcomeStatus.OK
    assert outcome.task is not None
    assert outcome.task.version == 2
    assert outcome.task.completed is True
    # Same clock value: the store still issues a strictly later stamp.
    assert outcome.task.updated_at > task.updated_at

    again = store.update_task(task.id, {"title": "b"})
    assert again.task is not None
    assert again.task.version == 3
    assert again.task.updated_at > outcome.task.updated_at


def test_update_preserves_immutable_fields_and_drops_unknown_keys(store: TaskStore) -> None:
    task = store.create_task({"id": "t-1", "title": "a", "userId": "alice", "createdAt": 1000})

    outcome = store.update_task(
        "t-1",
        {
            "id": "other",
            "userId": "mallory",
            "createdAt": 1,
            "version": 99,
            "updatedAt": 1,
            "evil": "yes",
            "description": "details",
        },
    )

    updated = outcome.task
    assert updated is not None
    assert updated.id == "t-1"
    assert updated.user_id == "alice"
    assert updated.created_at == 1000
    assert updated.version == 2
    assert updated.description == "details"
    assert not hasattr(updated, "evil")
    assert store.get_task("other") is None
    assert task.version == 1


def test_update_none_means_not_supplied(store: TaskStore) -> None:
    task = store.create_task({"title": "keep me", "description": "d"})
    outcome = store.update_task(task.id, {"title": None, "description": None, "completed": True})
    assert outcome.task is not None
    assert outcome.task.title == "keep me"
    assert outcome.task.description == "d"


@pytest.mark.parametrize(
    "fields",
    [
        {"title": ""},
        {"title": "   "},
        {"completed": "yes"},
        {"priority": "urgent"},
        {"description": 5},
    ],
)
def test_update_rejects_invalid_values(store: TaskStore, fields: dict) -> None:
    task = store.create_task({"title": "a"})
    with pytest.raises(ValidationError):
        store.update_task(task.id, fields)
    assert store.get_task(task.id) == task


def test_update_normalizes_priority_case(store: TaskStore) -> None:
    task = store.create_task({"title": "a"})
    outcome = store.update_task(task.id, {"priority": "HIGH"})
    assert outcome.task is not None
    assert outcome.task.priority == Priority.HIGH


def test_list_filters_by_user_and_sorts_newest_first(store: TaskStore, clock: FakeClock) -> None:
    a = store.create_task({"title": "a", "userId": "u1"})
    clock.advance()
    b = store.create_task({"title": "b", "userId": "u1"})
    clock.advance()
    store.create_task({"title": "c", "userId": "u2"})

    assert [t.id for t in store.list_tasks("u1")] == [b.id, a.id]
    assert [t.title for t in store.list_tasks("u2")] == ["c"]
    assert store.list_tasks("nobody") == []

    clock.advance()
    store.update_task(a.id, {"completed": True})
    assert [t.id for t in store.list_tasks("u1")] == [a.id, b.id]


def test_list_modified_since(store: TaskStore, clock: FakeClock) -> None:
    a = store.create_task({"title": "a"})
    clock.advance()
    b = store.create_task({"title": "b"})

    assert [t.id for t in store.list_tasks("user1", a.updated_at)] == [b.id]
    assert store.list_tasks("user1", b.updated_at) == []
    # 0/None disables the filter
    assert len(store.list_tasks("user1", 0)) == 2
    assert len(store.list_tasks("user1", None)) == 2


def test_delete_removes_record(store: TaskStore) -> None:
    task = store.create_task({"title": "a"})
    outcome = store.delete_task(task.id)
    assert outcome.status == OutcomeStatus.OK
    assert outcome.task is None
    assert store.get_task(task.id) is None
    assert store.list_tasks("user1") == []
    assert store.count_tasks() == 0


def test_create_with_existing_id_overwrites_and_keeps_versions_increasing(store: TaskStore) -> None:
    first = store.create_task({"id": "dup", "title": "first"})
    second = store.create_task({"id": "dup", "title": "second"})

    assert store.count_tasks() == 1
    assert store.get_task("dup") == second
    assert second.title == "second"
    assert second.version == first.version + 1


def test_recreated_id_never_reuses_versions(store: TaskStore) -> None:
    store.create_task({"id": "x", "title": "a"})
    store.update_task("x", {"completed": True})
    store.delete_task("x")

    again = store.create_task({"id": "x", "title": "b"})
    assert again.version == 3


def test_mirror_written_after_every_successful_mutation(store: TaskStore, mirror) -> None:
    task = store.create_task({"title": "a"})
    store.update_task(task.id, {"completed": True})
    store.update_task(task.id, {"completed": False}, expected_version=1)  # conflict
    store.delete_task("missing")  # not found
    store.delete_task(task.id)

    assert len(mirror.saves) == 3
    tasks_after_update, versions = mirror.saves[1]
    assert tasks_after_update[0].version == 2
    assert versions == {task.id: 2}
    assert mirror.saves[2][0] == []
    # high-water mark survives the delete
    assert mirror.saves[2][1] == {task.id: 2}


def test_persistence_failure_is_not_fatal(clock: FakeClock, caplog) -> None:
    failing = FailingMirror()
    store = TaskStore(mirror=failing, clock=clock)

    with caplog.at_level("WARNING", logger="tasksync.tasks.task_store"):
        task = store.create_task({"title": "a"})
        outcome = store.update_task(task.id, {"completed": True})

    assert outcome.status == OutcomeStatus.OK
    assert store.get_task(task.id) == outcome.task
    assert failing.attempts == 2
    assert store.persist_failures == 2
    assert "PersistenceWarning" in caplog.text


def test_now_is_strictly_increasing_even_if_clock_goes_back(clock: FakeClock) -> None:
    store = TaskStore(clock=clock)
    t1 = store.now()
    clock.advance(-5000)
    t2 = store.now()
    assert t2 > t1


def test_default_user_id_is_configurable(clock: FakeClock) -> None:
    store = TaskStore(clock=clock, default_user_id="anon")
    assert store.create_task({"title": "a"}).user_id == "anon"


def test_concurrent_updates_are_serialized(store: TaskStore) -> None:
    task = store.create_task({"title": "shared"})
    n_threads, per_thread = 8, 25
    start = threading.Barrier(n_threads)
    outcomes: list[OutcomeStatus] = []

    def worker(i: int) -> None:
        start.wait()
        for j in range(per_thread):
            outcome = store.update_task(task.id, {"title": f"t{i}-{j}", "completed": j % 2 == 0})
            outcomes.append(outcome.status)

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(n_threads)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    total = n_threads * per_thread
    assert outcomes == [OutcomeStatus.OK] * total
    final = store.get_task(task.id)
    assert final is not None
    assert final.version == 1 + total


def test_concurrent_compare_and_set_loses_no_increment(store: TaskStore) -> None:
    task = store.create_task({"title": "0"})
    n_threads, per_thread = 6, 10

    def worker() -> None:
        done = 0
        while done < per_thread:
            current = store.get_task(task.id)
            assert current is not None
            outcome = store.update_task(
                task.id, {"title": str(int(current.title) + 1)}, expected_version=current.version
            )
            if outcome.status == OutcomeStatus.OK:
                done += 1
            else:
                assert outcome.status == OutcomeStatus.CONFLICT

    threads = [threading.Thread(target=worker) for _ in range(n_threads)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    final = store.get_task(task.id)
    assert final is not None
    assert final.title == str(n_threads * per_thread)
    assert final.version == 1 + n_threads * per_thread
