# src/tasksync/tasks/task_api.py

"""
Helpers for the transport shell.

The store trusts its callers; this module is where wire payloads are checked
and trimmed before reaching it, and where outcomes are mapped to HTTP codes.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from ..core.ports import TaskRepo
from .task_fields import MUTABLE_FIELDS, parse_expected_version, validate_title
from .task_models import Outcome, OutcomeStatus, TaskRecord

logger = logging.getLogger(__name__)

_HTTP_STATUS = {
    OutcomeStatus.OK: 200,
    OutcomeStatus.CREATED: 201,
    OutcomeStatus.NOT_FOUND: 404,
    OutcomeStatus.CONFLICT: 409,
    OutcomeStatus.INVALID: 400,
    OutcomeStatus.UNKNOWN_OPERATION: 400,
}


def http_status(outcome: Outcome) -> int:
    return _HTTP_STATUS.get(outcome.status, 500)


def create_task(repo: TaskRepo, payload: Mapping[str, Any]) -> TaskRecord:
    """
    Validate and create a task from a wire payload.

    Raises ValidationError if title is missing/blank.
    """
    title = validate_title(payload.get("title"))

    description = payload.get("description")
    fields: dict[str, Any] = {
        "id": payload.get("id"),
        "title": title,
        "description": description.strip() if isinstance(description, str) else "",
        "completed": payload.get("completed"),
        "priority": payload.get("priority"),
        "userId": payload.get("userId"),
        "createdAt": payload.get("createdAt"),
    }
    task = repo.create_task(fields)
    logger.info("Task created via api id=%s user=%s", task.id, task.user_id)
    return task


def update_task(repo: TaskRepo, task_id: str, payload: Mapping[str, Any]) -> Outcome:
    """
    Update from a wire payload: mutable fields plus an optional "version".

    Raises ValidationError for invalid field values.
    """
    fields = {k: payload.get(k) for k in MUTABLE_FIELDS}
    return repo.update_task(task_id, fields, parse_expected_version(payload.get("version")))


def delete_task(repo: TaskRepo, task_id: str, version: Any = None) -> Outcome:
    """version may be the raw query-string value; absent/0 disables the check, junk conflicts."""
    return repo.delete_task(task_id, parse_expected_version(version))
