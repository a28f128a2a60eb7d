# src/tasksync/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

DEFAULT_USER_ID = "user1"


class Priority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def from_raw(cls, raw: Any) -> Priority:
        """Tolerant parse used when loading persisted records."""
        if not raw:
            return cls.MEDIUM
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return cls.MEDIUM


class OutcomeStatus(StrEnum):
    OK = "ok"
    CREATED = "created"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    UNKNOWN_OPERATION = "unknown_operation"
    INVALID = "invalid"


# Wire error codes (kept compatible with existing clients).
_ERROR_CODES = {
    OutcomeStatus.NOT_FOUND: "NOT_FOUND",
    OutcomeStatus.CONFLICT: "CONFLICT",
    OutcomeStatus.UNKNOWN_OPERATION: "UNKNOWN_OP",
    OutcomeStatus.INVALID: "INVALID",
}


class OperationType(StrEnum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def from_raw(cls, raw: Any) -> OperationType:
        s = str(raw or "").strip().upper()
        if s in (cls.CREATE, cls.UPDATE, cls.DELETE):
            return cls(s)
        return cls.UNKNOWN


@dataclass(frozen=True, slots=True)
class TaskRecord:
    id: str
    title: str
    description: str
    completed: bool
    priority: Priority
    user_id: str
    created_at: int  # epoch ms
    updated_at: int  # epoch ms, store-assigned
    version: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "completed": self.completed,
            "priority": self.priority.value,
            "userId": self.user_id,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "version": self.version,
        }


@dataclass(frozen=True, slots=True)
class BatchOperation:
    """
    One item of a sync batch.

    raw_type keeps the client's original spelling so UNKNOWN results can echo it back.
    """

    type: OperationType
    id: str | None = None
    data: dict[str, Any] = field(default_factory=dict)
    expected_version: int | None = None
    raw_type: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"type": self.raw_type if self.raw_type is not None else self.type.value}
        if self.id is not None:
            out["id"] = self.id
        if self.data:
            out["data"] = dict(self.data)
        if self.expected_version is not None:
            out["version"] = self.expected_version
        return out


@dataclass(frozen=True, slots=True)
class Outcome:
    """
    Result of one mutation attempt.

    - task: the stored record after a successful create/update
    - server_task: the current stored record on CONFLICT (never the attempted change)
    """

    status: OutcomeStatus
    task: TaskRecord | None = None
    server_task: TaskRecord | None = None
    message: str | None = None
    operation: BatchOperation | None = None

    @property
    def ok(self) -> bool:
        return self.status in (OutcomeStatus.OK, OutcomeStatus.CREATED)

    @property
    def error_code(self) -> str | None:
        return _ERROR_CODES.get(self.status)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"success": self.ok}
        if self.operation is not None:
            out["operation"] = self.operation.to_dict()
        if self.task is not None:
            out["task"] = self.task.to_dict()
        if not self.ok:
            out["error"] = self.error_code
        if self.status == OutcomeStatus.CONFLICT:
            out["conflict"] = True
            if self.server_task is not None:
                out["serverTask"] = self.server_task.to_dict()
        if self.message:
            out["message"] = self.message
        return out


@dataclass(frozen=True, slots=True)
class TaskStats:
    total: int
    completed: int
    pending: int
    last_sync: int

    def to_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "completed": self.completed,
            "pending": self.pending,
            "lastSync": self.last_sync,
        }
