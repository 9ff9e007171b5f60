"""Notification service for the persisted inbox and the fan-out channel."""

from datetime import datetime, timedelta, timezone
from typing import Sequence

import structlog
from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from volunteerhub.config import get_settings
from volunteerhub.exceptions import ChannelPublishError, NotFoundError, ValidationError
from volunteerhub.models import Notification
from volunteerhub.schemas import NotificationCreate, NotificationResponse
from volunteerhub.services.base import DBService
from volunteerhub.services.publisher import (
    NEW_NOTIFICATION_EVENT,
    NotificationPublisher,
    NullPublisher,
)

logger = structlog.get_logger()


class NotificationService(DBService):
    """Service for creating, listing and expiring notifications.

    The database row is the source of truth. Pushing on the fan-out channel
    is a latency optimization and never fails the caller.
    """

    def __init__(
        self,
        db: AsyncSession,
        publisher: NotificationPublisher | None = None,
    ):
        super().__init__(db)
        self.publisher = publisher or NullPublisher()
        self.broadcast_recipient = get_settings().broadcast_recipient

    # =========================================================================
    # Creation
    # =========================================================================

    def add(
        self,
        user_id: str,
        title: str,
        message: str,
        notification_type: str = "general",
        task_id: str | None = None,
        organization_info: dict | None = None,
        task_info: dict | None = None,
        completed_by: dict | None = None,
    ) -> Notification:
        """
        Stage a notification in the current transaction without committing.

        Used by multi-step transitions that commit once at the end.
        """
        notification = Notification(
            user_id=user_id,
            title=title,
            message=message,
            type=notification_type,
            status="unread",
            task_id=task_id,
            organization_info=organization_info,
            task_info=task_info,
            completed_by=completed_by,
        )
        self.db.add(notification)
        return notification

    async def create(self, data: NotificationCreate) -> Notification:
        """Persist a notification and publish it to its recipient."""
        missing = [
            name
            for name, value in (
                ("userId", data.user_id),
                ("title", data.title),
                ("message", data.message),
            )
            if not value
        ]
        if missing:
            raise ValidationError(
                f"Missing required fields: {', '.join(missing)}",
                fields=missing,
            )

        notification = Notification(
            user_id=data.user_id,
            title=data.title,
            message=data.message,
            type=data.type,
            status=data.status,
            task_id=data.task_id,
            organization_info=data.organization_info.model_dump() if data.organization_info else None,
            task_info=data.task_info.model_dump() if data.task_info else None,
            completed_by=data.completed_by.model_dump() if data.completed_by else None,
        )
        self.db.add(notification)
        await self._commit("create_notification")
        await self.db.refresh(notification)

        logger.info(
            "notification_created",
            notification_id=notification.id,
            user_id=notification.user_id,
            notification_type=notification.type,
        )

        await self.publish(notification)
        return notification

    async def publish(self, notification: Notification) -> bool:
        """
        Push a persisted notification on the fan-out channel.

        Returns:
            True if the publisher accepted the event, False if it failed.
        """
        payload = NotificationResponse.model_validate(notification).to_wire()
        try:
            delivered = await self.publisher.publish(
                notification.user_id,
                NEW_NOTIFICATION_EVENT,
                payload,
            )
        except ChannelPublishError as e:
            logger.warning(
                "notification_publish_failed",
                notification_id=notification.id,
                topic=e.topic,
                error=e.message,
            )
            return False
        except Exception as e:
            logger.warning(
                "notification_publish_failed",
                notification_id=notification.id,
                error=str(e),
            )
            return False

        logger.debug(
            "notification_published",
            notification_id=notification.id,
            recipient=notification.user_id,
            delivered=delivered,
        )
        return True

    # =========================================================================
    # Queries
    # =========================================================================

    async def list_for_user(self, user_id: str) -> Sequence[Notification]:
        """Notifications addressed to ``user_id`` or broadcast, newest first."""
        result = await self.db.execute(
            select(Notification)
            .where(
                or_(
                    Notification.user_id == user_id,
                    Notification.user_id == self.broadcast_recipient,
                )
            )
            .order_by(Notification.created_at.desc())
        )
        return result.scalars().all()

    async def get(self, notification_id: str) -> Notification:
        notification = await self.db.get(Notification, notification_id)
        if notification is None:
            raise NotFoundError("Notification", notification_id)
        return notification

    # =========================================================================
    # Status and deletion
    # =========================================================================

    async def update_status(self, notification_id: str, status: str) -> Notification:
        """Set the read status. The transition is one-way: unread -> read."""
        notification = await self.get(notification_id)

        if notification.status == "read" and status == "unread":
            raise ValidationError(
                "A read notification cannot be marked unread",
                fields=["status"],
            )

        if notification.status != status:
            notification.status = status
            await self._commit("update_notification")
            await self.db.refresh(notification)
            logger.info(
                "notification_status_changed",
                notification_id=notification_id,
                status=status,
            )

        return notification

    async def mark_read(self, notification_id: str) -> Notification:
        return await self.update_status(notification_id, "read")

    async def delete(self, notification_id: str) -> None:
        notification = await self.get(notification_id)
        await self.db.delete(notification)
        await self._commit("delete_notification")
        logger.info("notification_deleted", notification_id=notification_id)

    async def purge_older_than(self, days: int, now: datetime | None = None) -> int:
        """
        Delete notifications created more than ``days`` days ago.

        Returns:
            Number of notifications removed.
        """
        cutoff = (now or datetime.now(timezone.utc)) - timedelta(days=days)
        result = await self.db.execute(
            delete(Notification).where(Notification.created_at < cutoff)
        )
        await self._commit("purge_notifications")

        removed = result.rowcount or 0
        logger.info(
            "expired_notifications_purged",
            cutoff=cutoff.isoformat(),
            removed=removed,
        )
        return removed
