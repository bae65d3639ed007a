"""Task progress/status rules.

Progress and status are derived from the checklist: ``progress`` is the
half-up rounded percentage of completed items (0 for an empty checklist)
and ``status`` follows from it (0 -> Pending, 100 -> Completed, anything
else -> In Progress). ``apply_checklist`` is the single place where those
fields are computed; every mutation path goes through it.

The one exception is a direct status change to Completed, which marks
every checklist item done and forces progress to 100. Any other direct
status change must agree with the current progress.

Nothing here touches the database. Callers load and persist the task and
resolve assignee ids into users.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from taskboard.core.errors import AuthorizationError, ValidationError
from taskboard.models.task import Task, TaskPriority, TaskStatus
from taskboard.models.user import User

EDITABLE_FIELDS = ("title", "description", "priority", "due_date", "checklist", "attachments")


def _item_value(item: Any, key: str, default: Any = None) -> Any:
    if isinstance(item, dict):
        return item.get(key, default)
    return getattr(item, key, default)


def normalize_checklist(items: Optional[Iterable[Any]]) -> list[dict[str, Any]]:
    if items is None:
        return []
    if isinstance(items, (str, bytes, dict)):
        raise ValidationError("Checklist must be a list of items")
    result: list[dict[str, Any]] = []
    for item in items:
        text = _item_value(item, "text")
        if text is None:
            raise ValidationError("Checklist items need a text")
        result.append({"text": str(text), "completed": bool(_item_value(item, "completed", False))})
    return result


def compute_progress(checklist: Optional[Iterable[Any]]) -> int:
    items = list(checklist or [])
    total = len(items)
    if total == 0:
        return 0
    completed = sum(1 for item in items if _item_value(item, "completed", False))
    # round(100 * completed / total), half-up, in integer arithmetic
    return (200 * completed + total) // (2 * total)


def derive_status(progress: int) -> str:
    if progress >= 100:
        return TaskStatus.COMPLETED.value
    if progress > 0:
        return TaskStatus.IN_PROGRESS.value
    return TaskStatus.PENDING.value


def apply_checklist(task: Task, checklist: Optional[Iterable[Any]]) -> Task:
    items = normalize_checklist(checklist)
    task.checklist = items
    task.progress = compute_progress(items)
    task.status = derive_status(task.progress)
    return task


def completed_count(task: Task) -> int:
    return sum(1 for item in task.checklist or [] if _item_value(item, "completed", False))


def validate_assignee_ids(value: Any) -> list[int]:
    """Return the ids as a list, rejecting anything that is not a set of user ids."""
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        raise ValidationError("assigned_to must be an array of user IDs")

    ids: list[int] = []
    seen: set[int] = set()
    for raw in value:
        if isinstance(raw, bool) or not isinstance(raw, int) or raw <= 0:
            raise ValidationError("assigned_to must be an array of user IDs")
        if raw in seen:
            raise ValidationError("assigned_to must not contain duplicate user IDs")
        seen.add(raw)
        ids.append(raw)
    return ids


def _validate_status(value: Any) -> str:
    try:
        return TaskStatus(value).value
    except ValueError:
        raise ValidationError(f"Invalid status: {value}")


def normalize_due_date(value: Any) -> Optional[datetime]:
    """Store due dates as UTC; naive values are taken to be UTC already."""
    if value is None:
        return None
    if not isinstance(value, datetime):
        raise ValidationError(f"Invalid due date: {value}")
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _validate_priority(value: Any) -> str:
    try:
        return TaskPriority(value).value
    except ValueError:
        raise ValidationError(f"Invalid priority: {value}")


def is_assignee(task: Task, user: User) -> bool:
    return any(assignee.id == user.id for assignee in task.assignees or [])


def can_track_progress(task: Task, user: User) -> bool:
    return user.is_admin or is_assignee(task, user)


def ensure_can_view(task: Task, user: User) -> None:
    if not can_track_progress(task, user):
        raise AuthorizationError("Not authorized to access this task")


def ensure_can_delete(actor: User) -> None:
    if not actor.is_admin:
        raise AuthorizationError("Access denied, admin only")


def build_task(creator: User, fields: dict[str, Any], assignees: Optional[list[User]] = None) -> Task:
    title = str(fields.get("title") or "").strip()
    if not title:
        raise ValidationError("Task title is required")

    task = Task(
        title=title,
        description=fields.get("description"),
        priority=_validate_priority(fields.get("priority") or TaskPriority.MEDIUM.value),
        due_date=normalize_due_date(fields.get("due_date")),
        created_by=creator.id,
        attachments=list(fields.get("attachments") or []),
    )
    task.assignees = list(assignees or [])
    return apply_checklist(task, fields.get("checklist"))


def update_fields(task: Task, patch: dict[str, Any]) -> Task:
    """Overwrite the editable fields present in ``patch``.

    ``None`` and empty strings leave the current value in place; lists are
    applied as given, so an empty checklist clears it.
    """
    for key in EDITABLE_FIELDS:
        if key not in patch:
            continue
        value = patch[key]
        if value is None or (isinstance(value, str) and not value.strip()):
            continue
        if key == "checklist":
            apply_checklist(task, value)
        elif key == "priority":
            task.priority = _validate_priority(value)
        elif key == "due_date":
            task.due_date = normalize_due_date(value)
        elif key == "attachments":
            task.attachments = list(value)
        else:
            setattr(task, key, value)
    return task


def set_status(task: Task, new_status: Any, actor: User) -> Task:
    if not can_track_progress(task, actor):
        raise AuthorizationError("Not authorized")
    if not new_status:
        return task

    status = _validate_status(new_status)
    if status == TaskStatus.COMPLETED.value:
        task.checklist = [
            {"text": item["text"], "completed": True} for item in normalize_checklist(task.checklist)
        ]
        task.progress = 100
    elif status != derive_status(task.progress or 0):
        raise ValidationError(
            f"Status {status} does not match task progress ({task.progress or 0}%)"
        )
    task.status = status
    return task


def replace_checklist(task: Task, checklist: Any, actor: User) -> Task:
    if not can_track_progress(task, actor):
        raise AuthorizationError("Not authorized to update checklist")
    return apply_checklist(task, checklist)
