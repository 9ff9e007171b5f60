"""Database models."""

from volunteerhub.db.base import Base
from volunteerhub.models.notification import (
    NOTIFICATION_STATUSES,
    NOTIFICATION_TYPES,
    Notification,
)
from volunteerhub.models.task import CompletedTask, Task

__all__ = [
    "Base",
    "CompletedTask",
    "NOTIFICATION_STATUSES",
    "NOTIFICATION_TYPES",
    "Notification",
    "Task",
]
