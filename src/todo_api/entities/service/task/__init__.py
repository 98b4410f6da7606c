"""Entity package: Task."""

from .entity import Task, TaskUpdate
from .repository import TaskRepository
from .table import TaskTable

__all__ = ["Task", "TaskRepository", "TaskTable", "TaskUpdate"]
