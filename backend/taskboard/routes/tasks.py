import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from taskboard.core.auth import get_current_admin, get_current_user
from taskboard.core.errors import NotFoundError
from taskboard.database.deps import commit_or_raise, get_db
from taskboard.models.task import Task, TaskStatus
from taskboard.models.user import User
from taskboard.schemas.dashboard import DashboardOut
from taskboard.schemas.task import (
    AssigneeOut,
    TaskChecklistUpdate,
    TaskCreate,
    TaskListOut,
    TaskMessageOut,
    TaskOut,
    TaskStatusUpdate,
    TaskUpdate,
)
from taskboard.services import dashboard, task_lifecycle

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/tasks",
    tags=["tasks"]
)


def build_task_out(task: Task) -> TaskOut:
    return TaskOut(
        id=task.id,
        title=task.title,
        description=task.description,
        priority=task.priority,
        status=task.status,
        due_date=task.due_date,
        progress=task.progress or 0,
        checklist=task_lifecycle.normalize_checklist(task.checklist),
        completed_todo_count=task_lifecycle.completed_count(task),
        attachments=list(task.attachments or []),
        created_by=task.created_by,
        assigned_to=[
            AssigneeOut(
                id=user.id,
                name=user.name,
                email=user.email,
                profile_image_url=user.profile_image_url,
            )
            for user in task.assignees
        ],
        created_at=task.created_at,
        updated_at=task.updated_at,
    )


def _dump(payload, **kwargs) -> dict:
    if hasattr(payload, "model_dump"):
        return payload.model_dump(**kwargs)
    return payload.dict(**kwargs)


def get_task_or_404(db: Session, task_id: int) -> Task:
    db_task = db.query(Task).filter(Task.id == task_id).first()
    if not db_task:
        raise NotFoundError("Task not found")
    return db_task


def resolve_assignees(db: Session, raw_ids) -> list[User]:
    user_ids = task_lifecycle.validate_assignee_ids(raw_ids)
    if not user_ids:
        return []
    users = db.query(User).filter(User.id.in_(user_ids)).all()
    by_id = {user.id: user for user in users}
    missing = [user_id for user_id in user_ids if user_id not in by_id]
    if missing:
        raise NotFoundError(f"User not found: {', '.join(str(user_id) for user_id in missing)}")
    return [by_id[user_id] for user_id in user_ids]


def _save(db: Session, db_task: Task) -> Task:
    commit_or_raise(db)
    db.refresh(db_task)
    return db_task


@router.get("/dashboard-data", response_model=DashboardOut)
def get_dashboard_data(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin)
):
    return dashboard.system_dashboard(db)


@router.get("/user-dashboard-data", response_model=DashboardOut)
def get_user_dashboard_data(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return dashboard.user_dashboard(db, current_user)


@router.get("/", response_model=TaskListOut)
def read_tasks(
    status: Optional[TaskStatus] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    scope = None if current_user.is_admin else current_user
    query = dashboard.scoped_task_query(db, scope)
    if status:
        query = query.filter(Task.status == TaskStatus(status).value)
    rows = query.order_by(Task.created_at.desc(), Task.id.desc()).all()
    return TaskListOut(
        tasks=[build_task_out(task) for task in rows],
        status_summary=dashboard.status_summary(db, scope),
    )


@router.get("/{task_id}", response_model=TaskOut)
def read_task(
    task_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    db_task = get_task_or_404(db, task_id)
    task_lifecycle.ensure_can_view(db_task, current_user)
    return build_task_out(db_task)


@router.post("/", response_model=TaskMessageOut, status_code=201)
def create_task(
    task: TaskCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin)
):
    data = _dump(task)
    assignees = resolve_assignees(db, data.pop("assigned_to", None))
    db_task = task_lifecycle.build_task(current_user, data, assignees)
    db.add(db_task)
    _save(db, db_task)
    logger.info("Task %s created by user %s", db_task.id, current_user.id)
    return TaskMessageOut(message="Task created successfully", task=build_task_out(db_task))


@router.put("/{task_id}", response_model=TaskMessageOut)
def update_task(
    task_id: int,
    task: TaskUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin)
):
    db_task = get_task_or_404(db, task_id)
    data = _dump(task, exclude_unset=True)

    assignee_in_payload = data.get("assigned_to") is not None
    assignees = resolve_assignees(db, data.pop("assigned_to", None)) if assignee_in_payload else None

    task_lifecycle.update_fields(db_task, data)
    if assignees is not None:
        db_task.assignees = assignees
    _save(db, db_task)
    return TaskMessageOut(message="Task updated successfully", task=build_task_out(db_task))


@router.delete("/{task_id}")
def delete_task(
    task_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin)
):
    task_lifecycle.ensure_can_delete(current_user)
    db_task = get_task_or_404(db, task_id)
    db.delete(db_task)
    commit_or_raise(db)
    logger.info("Task %s deleted by user %s", task_id, current_user.id)
    return {"message": "Task deleted successfully"}


@router.put("/{task_id}/status", response_model=TaskMessageOut)
def update_task_status(
    task_id: int,
    payload: TaskStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    db_task = get_task_or_404(db, task_id)
    task_lifecycle.set_status(db_task, payload.status, current_user)
    _save(db, db_task)
    return TaskMessageOut(message="Task status successfully updated", task=build_task_out(db_task))


@router.put("/{task_id}/todo", response_model=TaskMessageOut)
def update_task_checklist(
    task_id: int,
    payload: TaskChecklistUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    db_task = get_task_or_404(db, task_id)
    checklist = _dump(payload)["checklist"]
    task_lifecycle.replace_checklist(db_task, checklist, current_user)
    _save(db, db_task)
    return TaskMessageOut(message="Task checklist updated", task=build_task_out(db_task))
