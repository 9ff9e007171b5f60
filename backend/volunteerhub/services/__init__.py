"""Business logic services."""

from volunteerhub.services.completion import CompletionArchiveService
from volunteerhub.services.notification import NotificationService
from volunteerhub.services.publisher import NotificationPublisher, NullPublisher
from volunteerhub.services.tasks import TaskService

__all__ = [
    "CompletionArchiveService",
    "NotificationPublisher",
    "NotificationService",
    "NullPublisher",
    "TaskService",
]
