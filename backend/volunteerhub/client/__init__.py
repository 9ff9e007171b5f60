"""Client library: API access, realtime channel, task and notification state."""

from volunteerhub.client.api import APIError, VolunteerHubClient
from volunteerhub.client.notifications import (
    FeedState,
    NotificationFeed,
    merge_notifications,
    organization_feed,
    user_feed,
)
from volunteerhub.client.realtime import WebSocketChannel
from volunteerhub.client.reminders import ReminderScheduler
from volunteerhub.client.state import EntityStore, SyncStatus
from volunteerhub.client.storage import InMemoryStore, JsonFileStore
from volunteerhub.client.tasks import TaskHook

__all__ = [
    "APIError",
    "EntityStore",
    "FeedState",
    "InMemoryStore",
    "JsonFileStore",
    "NotificationFeed",
    "ReminderScheduler",
    "SyncStatus",
    "TaskHook",
    "VolunteerHubClient",
    "WebSocketChannel",
    "merge_notifications",
    "organization_feed",
    "user_feed",
]
