# src/tasksync/tasks/task_fields.py

"""
Field rules for the store and everything that feeds it.

Two flavors:
- coerce_*: tolerant, used for create and snapshot reload (missing/legacy values -> defaults)
- validate_update_fields: strict allow-list used by update (bad values -> ValidationError)
- validate_title / parse_expected_version: strict readers for create titles and
  caller-supplied versions
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping
from typing import Any

from ..errors import ValidationError
from .task_models import Priority, TaskRecord

logger = logging.getLogger(__name__)

# The only fields a caller may change after creation.
MUTABLE_FIELDS = ("title", "description", "completed", "priority")

_TRUE_STRINGS = {"1", "true", "yes", "y", "on"}


def _pick(raw: Mapping[str, Any], *names: str) -> Any:
    for n in names:
        v = raw.get(n)
        if v is not None:
            return v
    return None


def coerce_bool(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str):
        return raw.strip().lower() in _TRUE_STRINGS
    if isinstance(raw, (int, float)):
        return raw != 0
    return False


def coerce_positive_int(raw: Any) -> int | None:
    """Return a positive int or None (bools, junk strings and <= 0 are rejected)."""
    if raw is None or isinstance(raw, bool):
        return None
    try:
        val = int(raw)
    except (TypeError, ValueError):
        return None
    return val if val > 0 else None


# Never equal to a stored version (versions start at 1).
UNMATCHABLE_VERSION = -1


def parse_expected_version(raw: Any) -> int | None:
    """
    Read a caller-supplied expected version.

    - None, 0, "", "0", False -> None (no version check, forced overwrite)
    - an integer, or an integer-valued float/string -> that integer
    - anything else (bools, fractions, junk, <= 0) -> UNMATCHABLE_VERSION,
      so the store answers CONFLICT instead of overwriting
    """
    if raw is None or raw is False:
        return None
    if isinstance(raw, str):
        raw = raw.strip()
        if raw in ("", "0"):
            return None
        try:
            val = int(raw)
        except ValueError:
            return UNMATCHABLE_VERSION
    elif isinstance(raw, bool):
        return UNMATCHABLE_VERSION
    elif isinstance(raw, int):
        val = raw
    elif isinstance(raw, float):
        if raw == 0:
            return None
        if not raw.is_integer():
            return UNMATCHABLE_VERSION
        val = int(raw)
    else:
        return UNMATCHABLE_VERSION

    if val == 0:
        return None
    return val if val > 0 else UNMATCHABLE_VERSION


def validate_title(raw: Any) -> str:
    """Trimmed title; raises ValidationError when missing/blank."""
    if not isinstance(raw, str) or not raw.strip():
        raise ValidationError("title", "is required")
    return raw.strip()


def new_task_id() -> str:
    return str(uuid.uuid4())


def coerce_record(
    raw: Mapping[str, Any],
    *,
    now: int,
    default_user_id: str,
    version: int = 1,
    updated_at: int | None = None,
) -> TaskRecord:
    """
    Build a TaskRecord from a partial mapping, filling defaults.

    Accepts both wire (camelCase) and snake_case keys.
    """
    task_id = _pick(raw, "id")
    title = _pick(raw, "title")
    description = _pick(raw, "description")
    user_id = _pick(raw, "userId", "user_id")
    created_at = coerce_positive_int(_pick(raw, "createdAt", "created_at"))

    return TaskRecord(
        id=str(task_id) if task_id else new_task_id(),
        title=str(title) if title is not None else "",
        description=str(description) if description is not None else "",
        completed=coerce_bool(_pick(raw, "completed")),
        priority=Priority.from_raw(_pick(raw, "priority")),
        user_id=str(user_id) if user_id else default_user_id,
        created_at=created_at if created_at is not None else now,
        updated_at=updated_at if updated_at is not None else now,
        version=version,
    )


def validate_update_fields(fields: Mapping[str, Any] | None) -> dict[str, Any]:
    """
    Filter a caller-supplied mapping down to the mutable allow-list.

    None values mean "not supplied". Unknown keys are dropped.
    Raises ValidationError for the first invalid value.
    """
    if not fields:
        return {}

    clean: dict[str, Any] = {}
    for key, value in fields.items():
        if key not in MUTABLE_FIELDS:
            logger.debug("Ignoring non-mutable field in update: %s", key)
            continue
        if value is None:
            continue

        if key == "title":
            if not isinstance(value, str) or not value.strip():
                raise ValidationError("title", "must be a non-empty string")
            clean["title"] = value.strip()
        elif key == "description":
            if not isinstance(value, str):
                raise ValidationError("description", "must be a string")
            clean["description"] = value
        elif key == "completed":
            if not isinstance(value, bool):
                raise ValidationError("completed", "must be a boolean")
            clean["completed"] = value
        elif key == "priority":
            try:
                clean["priority"] = Priority(str(value).strip().lower())
            except ValueError:
                allowed = ", ".join(p.value for p in Priority)
                raise ValidationError("priority", f"must be one of: {allowed}") from None

    return clean
