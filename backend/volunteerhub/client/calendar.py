"""Calendar integration: add a signed-up task to the device calendar."""

from datetime import datetime, timedelta, timezone
from typing import Protocol

import structlog

from volunteerhub.schemas import TaskResponse

logger = structlog.get_logger()

EVENT_DURATION = timedelta(hours=1)
EVENT_TIME_ZONE = "GMT"


def parse_task_time(value: str) -> datetime:
    """Parse a task's ISO-8601 time. Naive values are taken as UTC.

    Raises ValueError on malformed input.
    """
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class CalendarProvider(Protocol):
    """Device calendar capability."""

    async def request_permissions(self) -> bool: ...

    async def default_calendar_id(self) -> str | None: ...

    async def create_event(
        self,
        calendar_id: str,
        *,
        title: str,
        start: datetime,
        end: datetime,
        time_zone: str,
        location: str | None,
        notes: str | None,
    ) -> str: ...


async def add_task_to_calendar(calendar: CalendarProvider, task: TaskResponse) -> str | None:
    """
    Create a one-hour event for ``task`` in the default calendar.

    Returns:
        The event id, or None when permission is denied or there is no
        default calendar.
    """
    if not await calendar.request_permissions():
        logger.warning("calendar_permission_denied", task_id=task.id)
        return None

    calendar_id = await calendar.default_calendar_id()
    if calendar_id is None:
        logger.warning("calendar_default_missing", task_id=task.id)
        return None

    start = parse_task_time(task.time)
    event_id = await calendar.create_event(
        calendar_id,
        title=task.title,
        start=start,
        end=start + EVENT_DURATION,
        time_zone=EVENT_TIME_ZONE,
        location=task.location_label or None,
        notes=task.description,
    )
    logger.info("calendar_event_created", task_id=task.id, event_id=event_id)
    return event_id
