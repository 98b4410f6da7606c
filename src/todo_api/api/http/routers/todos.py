"""Task API router. Every route acts on the caller's own tasks only."""

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from src.todo_api.api.http.deps import get_current_identity_id, get_task_service
from src.todo_api.core.services import TaskService
from src.todo_api.entities.service.task import Task, TaskUpdate

router = APIRouter(tags=["todos"])


class TaskCreate(BaseModel):
    title: str | None = None


@router.get("", response_model=list[Task])
def list_tasks(
    identity_id: str = Depends(get_current_identity_id),
    tasks: TaskService = Depends(get_task_service),
) -> list[Task]:
    """List the caller's tasks, newest first."""
    return tasks.list(identity_id)


@router.post("", response_model=Task, status_code=status.HTTP_201_CREATED)
def create_task(
    body: TaskCreate,
    identity_id: str = Depends(get_current_identity_id),
    tasks: TaskService = Depends(get_task_service),
) -> Task:
    return tasks.create(identity_id, body.title)


@router.put("/{task_id}", response_model=Task)
def update_task(
    task_id: str,
    body: TaskUpdate,
    identity_id: str = Depends(get_current_identity_id),
    tasks: TaskService = Depends(get_task_service),
) -> Task:
    """Update title and/or completion. Omitted fields are left unchanged."""
    return tasks.update(identity_id, task_id, body)


@router.delete("/{task_id}")
def delete_task(
    task_id: str,
    identity_id: str = Depends(get_current_identity_id),
    tasks: TaskService = Depends(get_task_service),
) -> dict[str, str]:
    tasks.delete(identity_id, task_id)
    return {"msg": "Deleted"}
