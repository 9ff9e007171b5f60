"""Task API endpoints."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from volunteerhub.api.deps import get_task_service
from volunteerhub.db.session import get_db_session
from volunteerhub.models import CompletedTask, Task
from volunteerhub.schemas import (
    CompletedTaskResponse,
    MessageResponse,
    TaskCompleteRequest,
    TaskCompleteResponse,
    TaskCreate,
    TaskResponse,
    TaskUpdate,
)
from volunteerhub.services.completion import CompletionArchiveService
from volunteerhub.services.tasks import TaskService

router = APIRouter()


@router.get("", response_model=list[TaskResponse])
async def list_tasks(
    service: TaskService = Depends(get_task_service),
) -> list[Task]:
    """List every task."""
    return list(await service.list_tasks())


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    task_data: TaskCreate,
    service: TaskService = Depends(get_task_service),
) -> Task:
    """Create a task and broadcast it to every connected client."""
    return await service.create_task(task_data)


@router.get("/completed", response_model=list[TaskResponse])
async def list_completed_tasks(
    service: TaskService = Depends(get_task_service),
) -> list[Task]:
    """List tasks whose completed flag is set."""
    return list(await service.list_completed())


@router.get("/completed/{user_id}", response_model=list[CompletedTaskResponse])
async def list_user_completions(
    user_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> list[CompletedTask]:
    """The user's 20 most recent archive entries."""
    return list(await CompletionArchiveService(db).list_for_user(user_id))


@router.patch("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: str,
    updates: TaskUpdate,
    service: TaskService = Depends(get_task_service),
) -> Task:
    """Merge supplied fields into a task."""
    return await service.update_task(task_id, updates)


@router.delete("/{task_id}", response_model=MessageResponse)
async def delete_task(
    task_id: str,
    service: TaskService = Depends(get_task_service),
) -> MessageResponse:
    """Delete a task. Deleting an absent task succeeds."""
    await service.delete_task(task_id)
    return MessageResponse(message="Task deleted")


@router.patch("/{task_id}/complete", response_model=TaskCompleteResponse)
async def complete_task(
    task_id: str,
    request: TaskCompleteRequest,
    service: TaskService = Depends(get_task_service),
) -> TaskCompleteResponse:
    """Archive the completion, mark the task completed and notify its creator."""
    entry, task_updated = await service.complete_task(task_id, request)
    return TaskCompleteResponse(
        completed_task=CompletedTaskResponse.model_validate(entry),
        task_updated=task_updated,
    )
