"""Task and completion archive models."""

from datetime import datetime

from sqlalchemy import JSON, Boolean, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from volunteerhub.db.base import BaseModel, UTCDateTime, utcnow

# GeoJSON point: {"type": "Point", "coordinates": [longitude, latitude]}
GeoPoint = JSON().with_variant(JSONB, "postgresql")


class Task(BaseModel):
    """
    A postable unit of volunteer work.

    Tasks are created by organizations, toggled by volunteers signing up, and
    flipped to completed once a signed-up volunteer finishes them. The
    ``completed`` and ``signed_up`` flags are independent.
    """

    __tablename__ = "tasks"

    title: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
    )
    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    location: Mapped[dict | None] = mapped_column(
        GeoPoint,
        nullable=True,
        comment="GeoJSON point, coordinates ordered [longitude, latitude]",
    )
    location_label: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
        default="",
    )
    time: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        comment="Scheduled start as an ISO-8601 timestamp string",
    )

    signed_up: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )
    completed: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        index=True,
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime(),
        nullable=True,
    )
    completed_by: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )

    points_reward: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
    )
    estimated_hours: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
    )

    # Organization identity (external identity provider id)
    created_by: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        default="unknown",
        index=True,
    )


class CompletedTask(BaseModel):
    """
    Append-only archive entry written once per completion event.

    Holds a value copy of the task as it was when completed, so history
    survives deletion of the live task.
    """

    __tablename__ = "completed_tasks"

    user_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
    )
    task_id: Mapped[str] = mapped_column(
        String(36),
        nullable=False,
        index=True,
        comment="Value reference to the task, not a foreign key",
    )

    # Snapshot
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    location: Mapped[dict | None] = mapped_column(GeoPoint, nullable=True)
    location_label: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    time: Mapped[str] = mapped_column(String(64), nullable=False)
    signed_up: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    points_reward: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    estimated_hours: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    feedback: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="",
    )
    completed_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        default=utcnow,
        index=True,
    )
