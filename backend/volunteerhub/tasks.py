"""Celery background tasks."""

import asyncio

import structlog

from volunteerhub.config import get_settings
from volunteerhub.worker import celery_app

logger = structlog.get_logger()


async def purge_expired(days: int) -> int:
    """Delete notifications older than ``days`` using a fresh session."""
    from volunteerhub.db.session import async_session_factory
    from volunteerhub.services.notification import NotificationService

    async with async_session_factory() as db:
        return await NotificationService(db).purge_older_than(days)


@celery_app.task(bind=True, name="volunteerhub.tasks.purge_expired_notifications")
def purge_expired_notifications(self, days: int | None = None) -> dict:
    """
    Retention sweep for the notification inbox.

    Scheduled daily by Celery beat (see ``worker.py``). Notifications older
    than ``notification_retention_days`` are removed regardless of status.
    """
    retention_days = days or get_settings().notification_retention_days

    try:
        removed = asyncio.run(purge_expired(retention_days))
        logger.info(
            "notification_retention_sweep_finished",
            retention_days=retention_days,
            removed=removed,
        )
        return {
            "status": "success",
            "removed": removed,
        }
    except Exception as e:
        logger.error(
            "notification_retention_sweep_failed",
            retention_days=retention_days,
            error=str(e),
        )
        return {
            "status": "error",
            "error": str(e),
        }
