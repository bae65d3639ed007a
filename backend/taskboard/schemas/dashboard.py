from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class DashboardStatistics(BaseModel):
    total_tasks: int
    pending_tasks: int
    in_progress_tasks: int
    completed_tasks: int
    overdue_tasks: int


class DashboardCharts(BaseModel):
    task_distribution: dict[str, int]
    task_priority_levels: dict[str, int]


class RecentTaskOut(BaseModel):
    id: int
    title: str
    status: str
    priority: str
    due_date: Optional[datetime] = None
    created_at: Optional[datetime] = None


class DashboardOut(BaseModel):
    statistics: DashboardStatistics
    charts: DashboardCharts
    recent_tasks: list[RecentTaskOut]
