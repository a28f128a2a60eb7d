# src/tasksync/tasks/task_batch.py

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace
from typing import Any

from ..core.ports import TaskRepo
from ..errors import ValidationError
from .task_fields import parse_expected_version, validate_title
from .task_models import BatchOperation, OperationType, Outcome, OutcomeStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BatchResult:
    results: list[Outcome]
    server_time: int

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.ok)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "results": [r.to_dict() for r in self.results],
            "serverTime": self.server_time,
        }


def parse_operation(raw: Any) -> BatchOperation:
    """
    Tolerant reader for one wire item: {type, id?, data?, version?|expectedVersion?}.

    Anything unrecognizable becomes an UNKNOWN operation instead of an error,
    so one bad item cannot sink the whole batch.
    """
    if not isinstance(raw, Mapping):
        return BatchOperation(type=OperationType.UNKNOWN, raw_type=None)

    raw_type = raw.get("type")
    task_id = raw.get("id")
    data = raw.get("data")
    version = raw.get("expectedVersion", raw.get("version"))

    return BatchOperation(
        type=OperationType.from_raw(raw_type),
        id=str(task_id) if task_id is not None else None,
        data=dict(data) if isinstance(data, Mapping) else {},
        expected_version=parse_expected_version(version),
        raw_type=str(raw_type) if raw_type is not None else None,
    )


def parse_operations(raw_ops: Iterable[Any] | None) -> list[BatchOperation]:
    return [parse_operation(r) for r in (raw_ops or [])]


def _apply_one(repo: TaskRepo, op: BatchOperation) -> Outcome:
    if op.type == OperationType.CREATE:
        data = dict(op.data)
        # A top-level id on a create means "use this id".
        if op.id is not None and not data.get("id"):
            data["id"] = op.id
        try:
            data["title"] = validate_title(data.get("title"))
        except ValidationError as e:
            return Outcome(OutcomeStatus.INVALID, message=f"Invalid {e.field}: {e.message}")
        return Outcome(OutcomeStatus.CREATED, task=repo.create_task(data))

    if op.type == OperationType.UPDATE:
        if not op.id:
            return Outcome(OutcomeStatus.NOT_FOUND, message="Missing task id")
        try:
            return repo.update_task(op.id, op.data, op.expected_version)
        except ValidationError as e:
            return Outcome(OutcomeStatus.INVALID, message=f"Invalid {e.field}: {e.message}")

    if op.type == OperationType.DELETE:
        if not op.id:
            return Outcome(OutcomeStatus.NOT_FOUND, message="Missing task id")
        return repo.delete_task(op.id, op.expected_version)

    return Outcome(OutcomeStatus.UNKNOWN_OPERATION, message=f"Unknown operation type: {op.raw_type!r}")


def apply_batch(repo: TaskRepo, operations: Iterable[BatchOperation]) -> list[Outcome]:
    """
    Apply operations strictly in order, one independent Outcome per operation.

    - later operations see earlier ones (no snapshot isolation)
    - a failed operation neither aborts nor rolls back the others
    - the store lock is held for the whole batch, so other callers never interleave

    No cross-operation atomicity: callers needing all-or-nothing must inspect
    the outcomes and compensate.
    """
    results: list[Outcome] = []
    with repo.lock:
        for op in operations:
            outcome = _apply_one(repo, op)
            results.append(replace(outcome, operation=op))

    failed = sum(1 for r in results if not r.ok)
    logger.info("Batch applied ops=%d failed=%d", len(results), failed)
    return results


def apply_raw_batch(repo: TaskRepo, raw_ops: Iterable[Any] | None) -> BatchResult:
    """Parse a wire batch, apply it and stamp the server time."""
    results = apply_batch(repo, parse_operations(raw_ops))
    return BatchResult(results=results, server_time=repo.now())
