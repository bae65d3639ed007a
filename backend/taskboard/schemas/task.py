from pydantic import BaseModel, Field
from typing import Any, Optional
from datetime import datetime

from taskboard.models.task import TaskPriority


class ChecklistItem(BaseModel):
    text: str
    completed: bool = False


class TaskBase(BaseModel):
    title: str
    description: Optional[str] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: Optional[datetime] = None
    attachments: list[str] = Field(default_factory=list)


class TaskCreate(TaskBase):
    assigned_to: Any = Field(default_factory=list)
    checklist: list[ChecklistItem] = Field(default_factory=list)


class TaskUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[datetime] = None
    attachments: Optional[list[str]] = None
    checklist: Optional[list[ChecklistItem]] = None
    assigned_to: Any = None


class TaskStatusUpdate(BaseModel):
    status: Optional[str] = None


class TaskChecklistUpdate(BaseModel):
    checklist: list[ChecklistItem]


class AssigneeOut(BaseModel):
    id: int
    name: str
    email: str
    profile_image_url: Optional[str] = None

    class Config:
        from_attributes = True


class TaskOut(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    priority: str
    status: str
    due_date: Optional[datetime] = None
    progress: int
    checklist: list[ChecklistItem] = Field(default_factory=list)
    completed_todo_count: int = 0
    attachments: list[str] = Field(default_factory=list)
    created_by: Optional[int] = None
    assigned_to: list[AssigneeOut] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TaskMessageOut(BaseModel):
    message: str
    task: TaskOut


class StatusSummaryOut(BaseModel):
    all: int
    pending_tasks: int
    in_progress_tasks: int
    completed_tasks: int


class TaskListOut(BaseModel):
    tasks: list[TaskOut]
    status_summary: StatusSummaryOut
