"""Entities module with hybrid entity-centric structure.

Each entity has its own package containing:
- entity.py: Domain model
- table.py: Database persistence model
- repository.py: Data access layer
"""

from .core.identity import Identity, IdentityRepository, IdentityTable
from .service.task import Task, TaskRepository, TaskTable, TaskUpdate

__all__ = [
    "Identity",
    "IdentityTable",
    "IdentityRepository",
    "Task",
    "TaskTable",
    "TaskRepository",
    "TaskUpdate",
]
