"""Fan-out publisher capability handed to request handlers."""

from typing import Protocol

import structlog

logger = structlog.get_logger()

NEW_NOTIFICATION_EVENT = "new-notification"


class NotificationPublisher(Protocol):
    """Pushes an event to every connection subscribed to a recipient.

    ``recipient`` is a user or organization id, or the broadcast sentinel
    ``"all"``. Implementations raise ``ChannelPublishError`` when delivery
    fails; callers treat that as non-fatal.
    """

    async def publish(self, recipient: str, event: str, data: dict) -> int:
        """Deliver ``data`` and return the number of connections reached."""
        ...


class NullPublisher:
    """Publisher for processes without live connections (workers, scripts)."""

    async def publish(self, recipient: str, event: str, data: dict) -> int:
        logger.debug("publish_skipped", recipient=recipient, event=event)
        return 0
