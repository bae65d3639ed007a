from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from sqlalchemy import func
from sqlalchemy.orm import Query, Session, load_only

from taskboard.models.assignment import Assignment
from taskboard.models.task import Task, TaskPriority, TaskStatus
from taskboard.models.user import User

RECENT_TASKS_LIMIT = 15
STATUS_ORDER = [status.value for status in TaskStatus]
PRIORITY_ORDER = [priority.value for priority in TaskPriority]


def _distribution_key(status: str) -> str:
    # "In Progress" -> "InProgress"
    return "".join(status.split())


def scoped_task_query(db: Session, user: Optional[User], *entities: Any) -> Query:
    query = db.query(*(entities or (Task,))).select_from(Task)
    if user is not None:
        query = query.join(Assignment, Assignment.task_id == Task.id).filter(Assignment.user_id == user.id)
    return query


def count_by_status(db: Session, user: Optional[User] = None) -> dict[str, int]:
    rows = scoped_task_query(db, user, Task.status, func.count(Task.id)).group_by(Task.status).all()
    counts = {status: 0 for status in STATUS_ORDER}
    for status, count in rows:
        counts[status] = counts.get(status, 0) + int(count or 0)
    return counts


def count_by_priority(db: Session, user: Optional[User] = None) -> dict[str, int]:
    rows = scoped_task_query(db, user, Task.priority, func.count(Task.id)).group_by(Task.priority).all()
    raw = {priority: int(count or 0) for priority, count in rows}
    return {priority: raw.get(priority, 0) for priority in PRIORITY_ORDER}


def count_overdue(db: Session, user: Optional[User] = None, now: Optional[datetime] = None) -> int:
    reference = now or datetime.now(timezone.utc)
    count_value = (
        scoped_task_query(db, user, func.count(Task.id))
        .filter(
            Task.status != TaskStatus.COMPLETED.value,
            Task.due_date.isnot(None),
            Task.due_date < reference,
        )
        .scalar()
    )
    return int(count_value or 0)


def recent_tasks(db: Session, user: Optional[User] = None, limit: int = RECENT_TASKS_LIMIT) -> list[Task]:
    return (
        scoped_task_query(db, user)
        .options(
            load_only(
                Task.id,
                Task.title,
                Task.status,
                Task.priority,
                Task.due_date,
                Task.created_at,
            )
        )
        .order_by(Task.created_at.desc(), Task.id.desc())
        .limit(limit)
        .all()
    )


def _recent_task_payload(task: Task) -> dict[str, Any]:
    return {
        "id": task.id,
        "title": task.title,
        "status": task.status,
        "priority": task.priority,
        "due_date": task.due_date,
        "created_at": task.created_at,
    }


def build_dashboard(db: Session, user: Optional[User] = None, now: Optional[datetime] = None) -> dict[str, Any]:
    """Statistics, charts and recent tasks, over all tasks or one user's assignments.

    Status counts come from a single grouped query, so the distribution
    buckets always add up to ``All``.
    """
    status_counts = count_by_status(db, user)
    total = sum(status_counts.values())

    task_distribution = {_distribution_key(status): status_counts[status] for status in STATUS_ORDER}
    task_distribution["All"] = total

    return {
        "statistics": {
            "total_tasks": total,
            "pending_tasks": status_counts[TaskStatus.PENDING.value],
            "in_progress_tasks": status_counts[TaskStatus.IN_PROGRESS.value],
            "completed_tasks": status_counts[TaskStatus.COMPLETED.value],
            "overdue_tasks": count_overdue(db, user, now),
        },
        "charts": {
            "task_distribution": task_distribution,
            "task_priority_levels": count_by_priority(db, user),
        },
        "recent_tasks": [_recent_task_payload(task) for task in recent_tasks(db, user)],
    }


def system_dashboard(db: Session, now: Optional[datetime] = None) -> dict[str, Any]:
    return build_dashboard(db, None, now)


def user_dashboard(db: Session, user: User, now: Optional[datetime] = None) -> dict[str, Any]:
    return build_dashboard(db, user, now)


def status_summary(db: Session, user: Optional[User] = None) -> dict[str, int]:
    counts = count_by_status(db, user)
    return {
        "all": sum(counts.values()),
        "pending_tasks": counts[TaskStatus.PENDING.value],
        "in_progress_tasks": counts[TaskStatus.IN_PROGRESS.value],
        "completed_tasks": counts[TaskStatus.COMPLETED.value],
    }


def user_task_counts(db: Session, users: Iterable[User]) -> dict[int, dict[str, int]]:
    user_ids = [user.id for user in users]
    counts = {
        user_id: {"task_count": 0, "pending_tasks": 0, "in_progress_tasks": 0, "completed_tasks": 0}
        for user_id in user_ids
    }
    if not user_ids:
        return counts

    rows = (
        db.query(Assignment.user_id, Task.status, func.count(Task.id))
        .join(Task, Task.id == Assignment.task_id)
        .filter(Assignment.user_id.in_(user_ids))
        .group_by(Assignment.user_id, Task.status)
        .all()
    )
    status_keys = {
        TaskStatus.PENDING.value: "pending_tasks",
        TaskStatus.IN_PROGRESS.value: "in_progress_tasks",
        TaskStatus.COMPLETED.value: "completed_tasks",
    }
    for user_id, status, count in rows:
        entry = counts[user_id]
        entry["task_count"] += int(count or 0)
        key = status_keys.get(status)
        if key:
            entry[key] += int(count or 0)
    return counts
