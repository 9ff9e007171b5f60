"""Notification feed: persisted inbox merged with realtime pushes.

The server's list is the source of truth; pushes only make new entries show
up sooner. Fetches merge by id so refreshing repeatedly never duplicates or
reorders entries.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterable, Literal

import structlog
from pydantic import ValidationError

from volunteerhub.client.api import APIError, VolunteerHubClient
from volunteerhub.client.config import get_client_settings
from volunteerhub.client.realtime import NEW_NOTIFICATION_EVENT, RealtimeChannel
from volunteerhub.client.state import EntityStore, SyncStatus
from volunteerhub.schemas import NotificationResponse

logger = structlog.get_logger()

Audience = Literal["user", "organization"]


class FeedState(str, Enum):
    LOADING = "loading"
    READY = "ready"
    CLOSED = "closed"


def is_visible_to(
    notification: NotificationResponse,
    recipient_id: str,
    broadcast: str,
) -> bool:
    return notification.user_id in (recipient_id, broadcast)


def _created_key(notification: NotificationResponse) -> datetime:
    created = notification.created_at
    if created.tzinfo is None:
        return created.replace(tzinfo=timezone.utc)
    return created


def merge_notifications(
    held: Iterable[NotificationResponse],
    fetched: Iterable[NotificationResponse],
) -> list[NotificationResponse]:
    """Merge a fresh fetch into the held list.

    Held entries go in first, fetched ones overwrite by id, and the result
    is sorted newest first.
    """
    by_id: dict[str, NotificationResponse] = {}
    for notification in held:
        by_id[notification.id] = notification
    for notification in fetched:
        by_id[notification.id] = notification
    return sorted(by_id.values(), key=_created_key, reverse=True)


class NotificationFeed:
    """One notification screen's state: ``loading -> ready -> closed``.

    Args:
        api: REST client.
        channel: Fan-out channel to subscribe on.
        recipient_id: The user or organization viewing the feed.
        audience: Which room to join on the channel.
        types: Notification types shown; None shows every type.
        broadcast: Recipient id addressing every user; defaults to the
            client settings.
    """

    def __init__(
        self,
        api: VolunteerHubClient,
        channel: RealtimeChannel,
        recipient_id: str,
        audience: Audience = "user",
        types: set[str] | None = None,
        broadcast: str | None = None,
    ):
        self.api = api
        self.channel = channel
        self.recipient_id = recipient_id
        self.audience = audience
        self.types = types
        self.broadcast = broadcast or get_client_settings().broadcast_recipient
        self.state = FeedState.LOADING
        self.store: EntityStore[NotificationResponse] = EntityStore()

    @property
    def notifications(self) -> list[NotificationResponse]:
        return self.store.items()

    @property
    def unread_count(self) -> int:
        return sum(1 for n in self.store.items() if n.status == "unread")

    def status(self, notification_id: str) -> SyncStatus | None:
        return self.store.status(notification_id)

    def accepts(self, notification: NotificationResponse) -> bool:
        if not is_visible_to(notification, self.recipient_id, self.broadcast):
            return False
        return self.types is None or notification.type in self.types

    async def start(self) -> None:
        """Subscribe to the recipient's topic, then fetch and merge."""
        self.channel.on(NEW_NOTIFICATION_EVENT, self.handle_event)
        await self.channel.emit(f"join-{self.audience}", self.recipient_id)
        self.state = FeedState.READY
        await self.refresh()
        logger.info(
            "notification_feed_ready",
            recipient_id=self.recipient_id,
            count=len(self.store),
        )

    async def refresh(self) -> bool:
        """Fetch the persisted inbox and merge it into the held list."""
        try:
            fetched = await self.api.list_notifications(self.recipient_id)
        except APIError as e:
            logger.error(
                "notification_fetch_failed",
                recipient_id=self.recipient_id,
                error=e.message,
            )
            return False

        if self.state is FeedState.CLOSED:
            return False

        merged = merge_notifications(
            self.store.items(),
            (n for n in fetched if self.accepts(n)),
        )
        self.store.reset(merged)
        return True

    async def handle_event(self, payload: Any) -> None:
        """Prepend a pushed notification addressed to this recipient."""
        if self.state is FeedState.CLOSED:
            return
        try:
            notification = NotificationResponse.model_validate(payload)
        except ValidationError as e:
            logger.warning("notification_event_malformed", error=str(e))
            return
        if not self.accepts(notification):
            return

        others = [n for n in self.store.items() if n.id != notification.id]
        self.store.reset([notification, *others])
        logger.debug("notification_received", notification_id=notification.id)

    async def open(self, notification_id: str) -> bool:
        """
        Open a notification, marking it read if it is unread.

        The status flips immediately and is reverted if the server call
        fails.

        Returns:
            False if the notification is unknown or marking it read failed.
        """
        notification = self.store.get(notification_id)
        if notification is None:
            return False
        if notification.status == "read":
            return True

        self.store.begin(notification_id, {"status": "read"})
        try:
            updated = await self.api.mark_notification_read(notification_id)
        except APIError as e:
            logger.error(
                "notification_mark_read_failed",
                notification_id=notification_id,
                error=e.message,
            )
            if self.state is not FeedState.CLOSED:
                self.store.fail(notification_id, e.message)
            return False

        if self.state is not FeedState.CLOSED:
            self.store.confirm(notification_id, updated)
        return True

    async def close(self) -> None:
        """Unsubscribe from the channel; later events are ignored."""
        if self.state is FeedState.CLOSED:
            return
        self.state = FeedState.CLOSED
        self.channel.off(NEW_NOTIFICATION_EVENT, self.handle_event)
        await self.channel.emit(f"leave-{self.audience}", self.recipient_id)
        logger.info("notification_feed_closed", recipient_id=self.recipient_id)


def user_feed(
    api: VolunteerHubClient, channel: RealtimeChannel, user_id: str
) -> NotificationFeed:
    """Volunteer's feed: newly posted tasks."""
    return NotificationFeed(api, channel, user_id, audience="user", types={"new_task"})


def organization_feed(
    api: VolunteerHubClient, channel: RealtimeChannel, organization_id: str
) -> NotificationFeed:
    """Organization's feed: completions of its tasks."""
    return NotificationFeed(
        api, channel, organization_id, audience="organization", types={"task_completed"}
    )
