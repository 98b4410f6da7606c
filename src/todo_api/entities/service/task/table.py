"""Task database table model."""

from sqlmodel import Field

from src.todo_api.entities.core._base import EntityTable


class TaskTable(EntityTable, table=True):
    """Database persistence model for tasks."""

    __tablename__ = "tasks"

    owner_id: str = Field(foreign_key="identities.id", index=True)
    title: str
    completed: bool = False
