"""Shared FastAPI dependencies."""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from volunteerhub.db.session import get_db_session
from volunteerhub.services.notification import NotificationService
from volunteerhub.services.publisher import NotificationPublisher
from volunteerhub.services.tasks import TaskService


def get_publisher(request: Request) -> NotificationPublisher:
    """The fan-out publisher installed on the application."""
    return request.app.state.publisher


Publisher = Annotated[NotificationPublisher, Depends(get_publisher)]


def get_task_service(
    publisher: Publisher,
    db: AsyncSession = Depends(get_db_session),
) -> TaskService:
    return TaskService(db, publisher)


def get_notification_service(
    publisher: Publisher,
    db: AsyncSession = Depends(get_db_session),
) -> NotificationService:
    return NotificationService(db, publisher)
