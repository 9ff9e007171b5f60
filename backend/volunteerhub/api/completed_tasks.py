"""Completion archive endpoints."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from volunteerhub.db.session import get_db_session
from volunteerhub.models import CompletedTask
from volunteerhub.schemas import CompletedTaskCreate, CompletedTaskResponse
from volunteerhub.services.completion import CompletionArchiveService

router = APIRouter()


@router.post("", response_model=CompletedTaskResponse, status_code=status.HTTP_201_CREATED)
async def record_completion(
    data: CompletedTaskCreate,
    db: AsyncSession = Depends(get_db_session),
) -> CompletedTask:
    """Append an archive entry."""
    return await CompletionArchiveService(db).record(data)


@router.get("", response_model=list[CompletedTaskResponse])
async def list_completions(
    db: AsyncSession = Depends(get_db_session),
) -> list[CompletedTask]:
    """All archive entries, newest first."""
    return list(await CompletionArchiveService(db).list_all())
