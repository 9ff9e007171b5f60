"""Task lifecycle service: creation, sign-up toggles and completion."""

from datetime import datetime, timezone
from typing import Sequence

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from volunteerhub.config import Settings, get_settings
from volunteerhub.exceptions import ConflictError, NotFoundError, ValidationError
from volunteerhub.models import CompletedTask, Notification, Task
from volunteerhub.schemas import TaskCompleteRequest, TaskCreate, TaskUpdate
from volunteerhub.services.base import DBService
from volunteerhub.services.completion import CompletionArchiveService
from volunteerhub.services.notification import NotificationService
from volunteerhub.services.publisher import NotificationPublisher

logger = structlog.get_logger()

DESCRIPTION_PREVIEW_LENGTH = 100

# Columns that may not be set to null through a partial update
_NON_NULLABLE_FIELDS = {
    "title",
    "description",
    "time",
    "location_label",
    "signed_up",
    "completed",
    "points_reward",
    "estimated_hours",
}


def format_new_task_message(
    title: str,
    description: str,
    points_reward: int,
    estimated_hours: int,
) -> str:
    """Body of the broadcast sent when a task is posted."""
    preview = description[:DESCRIPTION_PREVIEW_LENGTH]
    ellipsis = "..." if len(description) > DESCRIPTION_PREVIEW_LENGTH else ""
    unit = "point" if points_reward == 1 else "points"
    return f"{title} - {preview}{ellipsis} ({points_reward} {unit}, {estimated_hours}h)"


def format_completion_message(feedback: str | None, points: int) -> str:
    """Body of the notification sent to a task's creator on completion."""
    return f"Feedback: {feedback or 'No feedback provided'} | Points earned: {points}"


class TaskService(DBService):
    """Service implementing the task state transitions and their side effects."""

    def __init__(
        self,
        db: AsyncSession,
        publisher: NotificationPublisher | None = None,
        settings: Settings | None = None,
    ):
        super().__init__(db)
        self.settings = settings or get_settings()
        self.notifications = NotificationService(db, publisher)
        self.archive = CompletionArchiveService(db)

    # =========================================================================
    # Queries
    # =========================================================================

    async def list_tasks(self) -> Sequence[Task]:
        """All tasks, unfiltered and unpaginated."""
        result = await self.db.execute(select(Task).order_by(Task.created_at.asc()))
        return result.scalars().all()

    async def list_completed(self) -> Sequence[Task]:
        result = await self.db.execute(
            select(Task)
            .where(Task.completed.is_(True))
            .order_by(Task.completed_at.desc())
        )
        return result.scalars().all()

    async def get_task(self, task_id: str) -> Task:
        task = await self.db.get(Task, task_id)
        if task is None:
            raise NotFoundError("Task", task_id)
        return task

    # =========================================================================
    # CRUD
    # =========================================================================

    async def create_task(self, data: TaskCreate) -> Task:
        """
        Create a task and broadcast a ``new_task`` notification.

        Raises:
            ValidationError: title, description or time is missing.
        """
        missing = [
            name
            for name, value in (
                ("title", data.title),
                ("description", data.description),
                ("time", data.time),
            )
            if not value or not value.strip()
        ]
        if missing:
            raise ValidationError(
                f"Missing required fields: {', '.join(missing)}",
                fields=missing,
            )

        task = Task(
            title=data.title,
            description=data.description,
            time=data.time,
            location=data.location.model_dump() if data.location else None,
            location_label=data.location_label,
            signed_up=data.signed_up,
            completed=False,
            points_reward=data.points_reward,
            estimated_hours=data.estimated_hours,
            created_by=data.created_by or data.user_id or "unknown",
        )
        self.db.add(task)
        await self.db.flush()

        organization_info = None
        if data.organization_name or data.organization_image:
            organization_info = {
                "name": data.organization_name,
                "image": data.organization_image,
            }

        notification = self.notifications.add(
            user_id=self.settings.broadcast_recipient,
            title="New Task Available!",
            message=format_new_task_message(
                task.title,
                task.description,
                task.points_reward,
                task.estimated_hours,
            ),
            notification_type="new_task",
            task_id=task.id,
            organization_info=organization_info,
            task_info={
                "title": task.title,
                "location": task.location_label or None,
                "time": task.time,
            },
        )
        await self._commit("create_task")
        await self.db.refresh(task)

        logger.info(
            "Task created",
            task_id=task.id,
            created_by=task.created_by,
        )

        await self.notifications.publish(notification)
        return task

    async def update_task(self, task_id: str, updates: TaskUpdate) -> Task:
        """Merge the supplied fields into an existing task."""
        task = await self.get_task(task_id)

        update_data = updates.model_dump(exclude_unset=True)
        rejected = [f for f in _NON_NULLABLE_FIELDS if f in update_data and update_data[f] is None]
        if rejected:
            raise ValidationError(
                f"Fields cannot be null: {', '.join(sorted(rejected))}",
                fields=sorted(rejected),
            )

        for field, value in update_data.items():
            setattr(task, field, value)

        if update_data.get("completed") and task.completed_at is None:
            task.completed_at = datetime.now(timezone.utc)

        await self._commit("update_task")
        await self.db.refresh(task)

        logger.info("Task updated", task_id=task_id, fields=sorted(update_data))
        return task

    async def delete_task(self, task_id: str) -> bool:
        """
        Delete a task if it exists.

        Archive entries and notifications referencing it are kept.

        Returns:
            True if a task was removed, False if it was already absent.
        """
        task = await self.db.get(Task, task_id)
        if task is None:
            logger.info("Task already absent", task_id=task_id)
            return False

        await self.db.delete(task)
        await self._commit("delete_task")

        logger.info("Task deleted", task_id=task_id)
        return True

    # =========================================================================
    # Completion transition
    # =========================================================================

    async def complete_task(
        self,
        task_id: str,
        request: TaskCompleteRequest,
    ) -> tuple[CompletedTask, bool]:
        """
        Complete a task on behalf of a user.

        Writes the archive entry, marks the task completed and, when the
        creator is someone else, stages a ``task_completed`` notification for
        them. All three writes commit together; the notification is pushed on
        the fan-out channel after the commit.

        Returns:
            The archive entry and whether the task row was updated.

        Raises:
            NotFoundError: The task does not exist.
            ConflictError: ``strict_completion`` is on and the task was
                already completed.
        """
        task = await self.get_task(task_id)
        now = datetime.now(timezone.utc)
        points = request.points_reward or task.points_reward or 1

        entry = self.archive.snapshot(
            task,
            user_id=request.user_id,
            feedback=request.feedback,
            points_reward=points,
            completed_at=now,
        )

        task_updated = await self._mark_completed(task, request.user_id, now)

        notification: Notification | None = None
        if task.created_by and task.created_by != request.user_id:
            notification = self.notifications.add(
                user_id=task.created_by,
                title=f"Task Completed: {task.title}",
                message=format_completion_message(request.feedback, points),
                notification_type="task_completed",
                task_id=task.id,
                task_info={
                    "title": task.title,
                    "location": task.location_label or None,
                    "time": task.time,
                },
                completed_by={
                    "id": request.user_id,
                    "name": request.user_name or "Unknown User",
                    "image": request.user_image,
                },
            )

        await self._commit("complete_task")
        await self.db.refresh(entry)

        logger.info(
            "Task completed",
            task_id=task_id,
            user_id=request.user_id,
            completed_task_id=entry.id,
            notified=task.created_by if notification else None,
        )

        if notification is not None:
            await self.notifications.publish(notification)

        return entry, task_updated

    async def _mark_completed(self, task: Task, user_id: str, now: datetime) -> bool:
        if not self.settings.strict_completion:
            task.completed = True
            task.completed_at = now
            task.completed_by = user_id
            return True

        # Conditional update: only one concurrent completion can win
        result = await self.db.execute(
            update(Task)
            .where(Task.id == task.id, Task.completed.is_(False))
            .values(completed=True, completed_at=now, completed_by=user_id)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            await self.db.rollback()
            logger.warning("Task already completed", task_id=task.id, user_id=user_id)
            raise ConflictError("Task already completed")

        task.completed = True
        task.completed_at = now
        task.completed_by = user_id
        return True
