"""Notification inbox model."""

from sqlalchemy import JSON, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from volunteerhub.db.base import BaseModel

Payload = JSON().with_variant(JSONB, "postgresql")

NOTIFICATION_TYPES = (
    "new_task",
    "task_reminder",
    "task_completed",
    "task_assigned",
    "general",
)
NOTIFICATION_STATUSES = ("unread", "read")


class Notification(BaseModel):
    """
    Inbox entry for a user, an organization, or everyone.

    ``user_id`` is either the recipient's identity or the broadcast sentinel
    ``"all"``. Task and user details are copied in at creation time.
    """

    __tablename__ = "notifications"

    user_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
        comment="Recipient id or the broadcast sentinel 'all'",
    )
    title: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
    )
    message: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    type: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default="general",
        index=True,
    )
    status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default="unread",
    )

    task_id: Mapped[str | None] = mapped_column(
        String(36),
        nullable=True,
    )
    organization_info: Mapped[dict | None] = mapped_column(
        Payload,
        nullable=True,
        comment="{name, image}",
    )
    task_info: Mapped[dict | None] = mapped_column(
        Payload,
        nullable=True,
        comment="{title, location, time}",
    )
    completed_by: Mapped[dict | None] = mapped_column(
        Payload,
        nullable=True,
        comment="{id, name, image}",
    )
