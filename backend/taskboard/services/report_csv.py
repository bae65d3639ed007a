from __future__ import annotations

import csv
import io
from datetime import date, datetime
from typing import Any, Iterable


TASK_REPORT_COLUMNS = [
    ("id", "Task ID"),
    ("title", "Title"),
    ("description", "Description"),
    ("priority", "Priority"),
    ("status", "Status"),
    ("due_date", "Due Date"),
    ("assigned_to", "Assigned To"),
]

USER_REPORT_COLUMNS = [
    ("name", "User Name"),
    ("email", "Email"),
    ("task_count", "Total Assigned Tasks"),
    ("pending_tasks", "Pending Tasks"),
    ("in_progress_tasks", "In Progress Tasks"),
    ("completed_tasks", "Completed Tasks"),
]


def _safe_text(value: Any) -> str:
    return str(value or "").strip()


def format_due_date(value: date | datetime | None) -> str:
    if not value:
        return "N/A"
    return value.strftime("%Y-%m-%d")


def format_assignees(assignees: Iterable[Any]) -> str:
    labels = [f"{_safe_text(user.name)} ({_safe_text(user.email)})" for user in assignees or []]
    return ", ".join(labels) if labels else "Unassigned"


def task_report_rows(tasks: Iterable[Any]) -> list[dict[str, Any]]:
    return [
        {
            "id": task.id,
            "title": _safe_text(task.title),
            "description": _safe_text(task.description),
            "priority": _safe_text(task.priority),
            "status": _safe_text(task.status),
            "due_date": format_due_date(task.due_date),
            "assigned_to": format_assignees(task.assignees),
        }
        for task in tasks
    ]


def user_report_rows(users: Iterable[Any], counts: dict[int, dict[str, int]]) -> list[dict[str, Any]]:
    rows: list[dict[str, Any]] = []
    for user in users:
        user_counts = counts.get(user.id, {})
        rows.append(
            {
                "name": _safe_text(user.name),
                "email": _safe_text(user.email),
                "task_count": user_counts.get("task_count", 0),
                "pending_tasks": user_counts.get("pending_tasks", 0),
                "in_progress_tasks": user_counts.get("in_progress_tasks", 0),
                "completed_tasks": user_counts.get("completed_tasks", 0),
            }
        )
    return rows


def build_csv(columns: list[tuple[str, str]], rows: Iterable[dict[str, Any]]) -> bytes:
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow([header for _, header in columns])
    for row in rows:
        writer.writerow([row.get(key, "") for key, _ in columns])
    # BOM so spreadsheet tools pick up UTF-8
    return output.getvalue().encode("utf-8-sig")


def build_tasks_csv(tasks: Iterable[Any]) -> bytes:
    return build_csv(TASK_REPORT_COLUMNS, task_report_rows(tasks))


def build_users_csv(users: Iterable[Any], counts: dict[int, dict[str, int]]) -> bytes:
    return build_csv(USER_REPORT_COLUMNS, user_report_rows(users, counts))
