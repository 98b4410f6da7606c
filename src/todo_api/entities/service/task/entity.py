"""Entity: Task."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.todo_api.entities.core._base import Entity


class Task(Entity):
    """A single to-do item owned by exactly one identity.

    Serialized with camelCase aliases (``ownerId``, ``createdAt``) to match
    the HTTP contract.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    owner_id: str = Field(description="Identity that owns the task")
    title: str = Field(description="Title")
    completed: bool = Field(default=False, description="Completion flag")

    def __eq__(self, other: Any) -> bool:
        """Compare tasks by business attributes, ignoring timestamps."""
        if not isinstance(other, Task):
            return False

        return (
            self.id == other.id
            and self.owner_id == other.owner_id
            and self.title == other.title
            and self.completed == other.completed
        )

    def __hash__(self) -> int:
        return hash((self.id, self.owner_id, self.title, self.completed))


class TaskUpdate(BaseModel):
    """Partial update of a task. ``None`` means "leave unchanged"."""

    title: str | None = None
    completed: bool | None = None

    def changes(self) -> dict[str, Any]:
        """Return only the fields that carry a new value."""
        return {
            name: value
            for name, value in self.model_dump().items()
            if value is not None
        }
