"""Ownership-scoped task operations."""

from loguru import logger
from sqlmodel import Session

from src.todo_api.core.errors import InvalidInput, NotFound
from src.todo_api.entities.service.task.entity import Task, TaskUpdate
from src.todo_api.entities.service.task.repository import TaskRepository

TASK_NOT_FOUND = "Todo not found"


def _clean_title(title: str | None) -> str:
    cleaned = (title or "").strip()
    if not cleaned:
        raise InvalidInput("Title is required")
    return cleaned


class TaskService:
    """CRUD over tasks, always scoped to the calling identity.

    A task owned by another identity is reported exactly like a missing one.
    """

    def __init__(self, db_session: Session):
        self._db_session = db_session
        self._task_repo = TaskRepository(db_session)

    def list(self, identity_id: str) -> list[Task]:
        return self._task_repo.list_for_owner(identity_id)

    def create(self, identity_id: str, title: str | None) -> Task:
        task = Task(owner_id=identity_id, title=_clean_title(title))
        created = self._task_repo.create(task)
        self._db_session.commit()
        logger.debug("Created task {} for identity {}", created.id, identity_id)
        return created

    def update(self, identity_id: str, task_id: str, update: TaskUpdate) -> Task:
        """Apply the provided fields of ``update`` to an owned task.

        Omitted fields are left unchanged. An empty payload still has to hit
        an owned task, otherwise it is ``NotFound``.
        """
        changes = update.changes()
        if "title" in changes:
            changes["title"] = _clean_title(changes["title"])

        if not changes:
            task = self._task_repo.get_owned(task_id, identity_id)
        else:
            task = self._task_repo.update_owned(task_id, identity_id, changes)
            self._db_session.commit()

        if task is None:
            raise NotFound(TASK_NOT_FOUND)
        return task

    def delete(self, identity_id: str, task_id: str) -> None:
        if not self._task_repo.delete_owned(task_id, identity_id):
            raise NotFound(TASK_NOT_FOUND)
        self._db_session.commit()
        logger.debug("Deleted task {} for identity {}", task_id, identity_id)
