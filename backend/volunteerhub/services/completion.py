"""Completion archive service."""

from datetime import datetime, timezone
from typing import Sequence

import structlog
from sqlalchemy import select

from volunteerhub.exceptions import ValidationError
from volunteerhub.models import CompletedTask, Task
from volunteerhub.schemas import CompletedTaskCreate
from volunteerhub.services.base import DBService

logger = structlog.get_logger()

RECENT_COMPLETIONS_LIMIT = 20


class CompletionArchiveService(DBService):
    """Append-only ledger of completed tasks.

    Entries are value copies of the task at completion time and are never
    updated or deleted by the normal flow.
    """

    def snapshot(
        self,
        task: Task,
        user_id: str,
        feedback: str | None,
        points_reward: int | None = None,
        completed_at: datetime | None = None,
    ) -> CompletedTask:
        """Stage an archive entry copied from ``task`` without committing."""
        entry = CompletedTask(
            user_id=user_id,
            task_id=task.id,
            title=task.title,
            description=task.description,
            location=dict(task.location) if task.location else None,
            location_label=task.location_label,
            time=task.time,
            signed_up=task.signed_up,
            feedback=feedback or "",
            points_reward=points_reward or task.points_reward or 1,
            estimated_hours=task.estimated_hours,
            completed_at=completed_at or datetime.now(timezone.utc),
        )
        self.db.add(entry)
        return entry

    async def record(self, data: CompletedTaskCreate) -> CompletedTask:
        """Append an entry supplied by a client."""
        missing = [
            name
            for name, value in (
                ("userId", data.user_id),
                ("taskId", data.task_id),
                ("title", data.title),
                ("description", data.description),
                ("time", data.time),
            )
            if not value
        ]
        if missing:
            raise ValidationError(
                f"Missing required fields: {', '.join(missing)}",
                fields=missing,
            )

        entry = CompletedTask(
            user_id=data.user_id,
            task_id=data.task_id,
            title=data.title,
            description=data.description,
            location=data.location.model_dump() if data.location else None,
            location_label=data.location_label,
            time=data.time,
            signed_up=data.signed_up,
            feedback=data.feedback,
            points_reward=data.points_reward,
            estimated_hours=data.estimated_hours,
            completed_at=data.completed_at or datetime.now(timezone.utc),
        )
        self.db.add(entry)
        await self._commit("record_completion")
        await self.db.refresh(entry)

        logger.info(
            "completion_recorded",
            completed_task_id=entry.id,
            task_id=entry.task_id,
            user_id=entry.user_id,
        )
        return entry

    async def list_all(self) -> Sequence[CompletedTask]:
        result = await self.db.execute(
            select(CompletedTask).order_by(CompletedTask.completed_at.desc())
        )
        return result.scalars().all()

    async def list_for_user(
        self,
        user_id: str,
        limit: int = RECENT_COMPLETIONS_LIMIT,
    ) -> Sequence[CompletedTask]:
        """The user's most recent completions, newest first."""
        result = await self.db.execute(
            select(CompletedTask)
            .where(CompletedTask.user_id == user_id)
            .order_by(CompletedTask.completed_at.desc())
            .limit(limit)
        )
        return result.scalars().all()
