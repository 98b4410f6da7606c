"""Task repository.

Every query is scoped by ``{id, owner_id}`` so a task owned by someone else
is indistinguishable from a missing one.
"""

from typing import Any

from sqlalchemy import delete, update
from sqlmodel import Session, col, select

from src.todo_api.entities.core._base import utc_now
from src.todo_api.entities.service.task.entity import Task
from src.todo_api.entities.service.task.table import TaskTable


class TaskRepository:
    """Data-access layer for tasks."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def list_for_owner(self, owner_id: str) -> list[Task]:
        """All tasks of ``owner_id``, newest first."""
        statement = (
            select(TaskTable)
            .where(TaskTable.owner_id == owner_id)
            .order_by(col(TaskTable.created_at).desc())
        )
        rows = self._session.exec(statement).all()
        return [Task.model_validate(row, from_attributes=True) for row in rows]

    def get_owned(self, task_id: str, owner_id: str) -> Task | None:
        statement = select(TaskTable).where(
            TaskTable.id == task_id, TaskTable.owner_id == owner_id
        )
        row = self._session.exec(statement).first()
        if row is None:
            return None
        return Task.model_validate(row, from_attributes=True)

    def create(self, task: Task) -> Task:
        row = TaskTable(**task.model_dump())
        self._session.add(row)
        self._session.flush()
        return Task.model_validate(row, from_attributes=True)

    def update_owned(
        self, task_id: str, owner_id: str, changes: dict[str, Any]
    ) -> Task | None:
        """Apply ``changes`` in one conditional UPDATE; ``None`` if nothing matched."""
        statement = (
            update(TaskTable)
            .where(col(TaskTable.id) == task_id, col(TaskTable.owner_id) == owner_id)
            .values(**changes, updated_at=utc_now())
            .execution_options(synchronize_session="evaluate")
        )
        result = self._session.exec(statement)  # type: ignore[call-overload]
        if result.rowcount == 0:
            return None
        return self.get_owned(task_id, owner_id)

    def delete_owned(self, task_id: str, owner_id: str) -> bool:
        """Delete in one conditional DELETE; ``False`` if nothing matched."""
        statement = (
            delete(TaskTable)
            .where(col(TaskTable.id) == task_id, col(TaskTable.owner_id) == owner_id)
            .execution_options(synchronize_session="evaluate")
        )
        result = self._session.exec(statement)  # type: ignore[call-overload]
        return result.rowcount > 0
