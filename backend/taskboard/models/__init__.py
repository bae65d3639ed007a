from taskboard.models.assignment import Assignment  # noqa: F401
from taskboard.models.task import Task, TaskPriority, TaskStatus  # noqa: F401
from taskboard.models.user import User, UserRole  # noqa: F401
