# taskhub/utils/state.py
"""Derived status fields for tasks and projects.

Both functions take the stored values (``None`` when creating), the fields
the caller is writing, and the current time, and return the complete set of
fields to write. They never touch the database, so routers apply the result
with ``setattr`` and the rules can be tested on plain dicts.
"""
from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from taskhub.models.enums import ProjectStatus, TaskStatus

DEFAULT_IN_PROGRESS = 25


def _get(current: Optional[Any], field: str, default=None):
    if current is None:
        return default
    if isinstance(current, Mapping):
        return current.get(field, default)
    return getattr(current, field, default)


def derive_task_state(
    current: Optional[Any],
    changes: Mapping[str, Any],
    now: datetime,
) -> Dict[str, Any]:
    """Apply the status -> progress/completed_at rules to a task write.

    Rules only fire when ``status`` is written and differs from the stored
    value (a create always counts as a status write):

    * Done: ``completed_at`` is stamped and progress forced to 100.
    * Todo: ``completed_at`` cleared; progress drops to 0 unless the caller
      sent a progress below 100 in the same write.
    * In Progress: ``completed_at`` cleared; progress defaults to 25 when the
      caller sent none and the task is still at 0.
    """
    result = dict(changes)
    if "status" not in changes:
        return result

    creating = current is None
    status = changes["status"]
    if not creating and status == _get(current, "status"):
        return result

    explicit = "progress" in changes and changes["progress"] is not None
    progress = changes["progress"] if explicit else _get(current, "progress", 0) or 0

    if status == TaskStatus.DONE:
        result["completed_at"] = now
        result["progress"] = 100
    elif status == TaskStatus.TODO:
        result["completed_at"] = None
        if not explicit or progress == 100:
            result["progress"] = 0
    elif status == TaskStatus.IN_PROGRESS:
        result["completed_at"] = None
        if not explicit and progress == 0:
            result["progress"] = DEFAULT_IN_PROGRESS

    return result


def derive_project_state(
    current: Optional[Any],
    changes: Mapping[str, Any],
    now: datetime,
) -> Dict[str, Any]:
    """Keep progress and archived_at consistent with a project's status flags"""
    result = dict(changes)

    status = changes.get("status") or _get(current, "status", ProjectStatus.PLANNING)
    progress = changes.get("progress")
    if progress is None:
        progress = _get(current, "progress", 0) or 0

    if status == ProjectStatus.COMPLETED and progress < 100:
        result["progress"] = 100
    elif status == ProjectStatus.PLANNING and progress > 0:
        result["progress"] = 0

    is_archived = changes.get("is_archived")
    if is_archived is None:
        is_archived = bool(_get(current, "is_archived", False))
    archived_at = _get(current, "archived_at")

    if is_archived and archived_at is None:
        result["archived_at"] = now
    elif not is_archived and archived_at is not None:
        result["archived_at"] = None

    return result
