"""Task board routes."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends

from focusflow.auth.session import current_user
from focusflow.core.errors import NotFoundError
from focusflow.storage.base import Storage
from focusflow.storage.models import Task, User
from focusflow.web.dependencies import get_synced_storage
from focusflow.web.schemas import MessageResponse, TaskCreateRequest, TaskResponse, TaskUpdateRequest

router = APIRouter(prefix="/tasks", tags=["tasks"])


async def _get_owned(storage: Storage, user: User, task_id: str) -> Task:
    task = await storage.get_task(task_id)
    if task is None or task.user_id != user.id:
        raise NotFoundError("Task not found")
    return task


@router.post("", response_model=TaskResponse)
async def create_task(
    body: TaskCreateRequest,
    user: User = Depends(current_user),
    storage: Storage = Depends(get_synced_storage),
) -> TaskResponse:
    task = await storage.create_task(Task(id=str(uuid.uuid4()), user_id=user.id, **body.model_dump()))
    return TaskResponse.model_validate(task)


@router.get("", response_model=list[TaskResponse])
async def list_tasks(
    user: User = Depends(current_user),
    storage: Storage = Depends(get_synced_storage),
) -> list[TaskResponse]:
    """All tasks, newest first."""
    return [TaskResponse.model_validate(t) for t in await storage.get_tasks_by_user(user.id)]


@router.patch("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: str,
    body: TaskUpdateRequest,
    user: User = Depends(current_user),
    storage: Storage = Depends(get_synced_storage),
) -> TaskResponse:
    """Edit a task or move it between columns."""
    await _get_owned(storage, user, task_id)
    task = await storage.update_task(task_id, **body.model_dump(exclude_unset=True))
    if task is None:
        raise NotFoundError("Task not found")
    return TaskResponse.model_validate(task)


@router.delete("/{task_id}", response_model=MessageResponse)
async def delete_task(
    task_id: str,
    user: User = Depends(current_user),
    storage: Storage = Depends(get_synced_storage),
) -> MessageResponse:
    await _get_owned(storage, user, task_id)
    if not await storage.delete_task(task_id):
        raise NotFoundError("Task not found")
    return MessageResponse(message="Task deleted")
