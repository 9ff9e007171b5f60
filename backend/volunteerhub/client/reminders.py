"""Local reminder scheduling for signed-up tasks.

Each task gets up to three OS-level reminders, 60, 30 and 5 minutes before
it starts. Reminder handles are persisted so that un-signing from a task can
cancel them later, possibly from a different session.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Protocol

import structlog

from volunteerhub.client.calendar import parse_task_time
from volunteerhub.client.storage import KeyValueStore
from volunteerhub.schemas import TaskResponse

logger = structlog.get_logger()

REMINDER_OFFSETS = (60, 30, 5)
SIMULATOR_HANDLE = "simulator-id"
HANDLE_KEY_PREFIX = "notification_"
REMINDER_TYPE = "task-reminder"
REMINDER_TITLE = "📅 Task Starting Soon!"


class LocalNotifier(Protocol):
    """OS notification capability."""

    async def request_permissions(self) -> bool: ...

    async def schedule(self, *, title: str, body: str, data: dict, fire_at: datetime) -> str:
        """Schedule a notification and return its handle."""
        ...

    async def cancel(self, handle: str) -> None: ...

    async def scheduled(self) -> list[dict]: ...


@dataclass
class ScheduledReminder:
    key: str
    offset_minutes: int
    fire_at: datetime
    handle: str


def reminder_key(task_id: str, offset_minutes: int) -> str:
    return f"{task_id}_{offset_minutes}min"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ReminderScheduler:
    """Schedules and cancels task reminders.

    Without a device (``is_device`` false or no notifier) nothing is sent to
    the OS: calls are logged and the ``"simulator-id"`` handle is stored in
    place of a real one, so return values and storage writes are the same
    either way.
    """

    def __init__(
        self,
        store: KeyValueStore,
        notifier: LocalNotifier | None = None,
        is_device: bool = True,
        now: Callable[[], datetime] = _utcnow,
        offsets: tuple[int, ...] = REMINDER_OFFSETS,
    ):
        self.store = store
        self.notifier = notifier
        self.simulated = notifier is None or not is_device
        self.now = now
        self.offsets = offsets

    async def request_permissions(self) -> bool:
        if self.simulated:
            logger.info("reminder_permissions_simulated")
            return True
        granted = await self.notifier.request_permissions()
        if not granted:
            logger.warning("reminder_permissions_denied")
        return granted

    async def schedule_reminder(
        self,
        task_id: str,
        title: str,
        description: str,
        time: str,
        offset_minutes: int = 30,
    ) -> ScheduledReminder | None:
        """
        Schedule one reminder ``offset_minutes`` before ``time``.

        Returns:
            The scheduled reminder, or None when the fire time has passed.
        """
        fire_at = parse_task_time(time) - timedelta(minutes=offset_minutes)
        key = reminder_key(task_id, offset_minutes)

        if fire_at <= self.now():
            logger.debug("reminder_in_past", key=key, fire_at=fire_at.isoformat())
            return None

        if self.simulated:
            logger.info("reminder_simulated", key=key, fire_at=fire_at.isoformat())
            handle = SIMULATOR_HANDLE
        else:
            handle = await self.notifier.schedule(
                title=REMINDER_TITLE,
                body=f'"{title}" starts in {offset_minutes} minutes',
                data={
                    "taskId": task_id,
                    "title": title,
                    "description": description,
                    "time": time,
                    "type": REMINDER_TYPE,
                },
                fire_at=fire_at,
            )
            logger.info("reminder_scheduled", key=key, fire_at=fire_at.isoformat())

        await self.store.set(HANDLE_KEY_PREFIX + key, handle)
        return ScheduledReminder(
            key=key,
            offset_minutes=offset_minutes,
            fire_at=fire_at,
            handle=handle,
        )

    async def schedule_reminders(
        self,
        task_id: str,
        title: str,
        description: str,
        time: str,
    ) -> list[ScheduledReminder]:
        """Schedule every offset; offsets already in the past are skipped.

        A failure on one offset is logged and does not stop the others.
        """
        scheduled: list[ScheduledReminder] = []
        for minutes in self.offsets:
            try:
                reminder = await self.schedule_reminder(task_id, title, description, time, minutes)
            except Exception as e:
                logger.error(
                    "reminder_schedule_failed",
                    key=reminder_key(task_id, minutes),
                    error=str(e),
                )
                continue
            if reminder is not None:
                scheduled.append(reminder)

        logger.info("reminders_scheduled", task_id=task_id, count=len(scheduled))
        return scheduled

    async def schedule_for_task(self, task: TaskResponse) -> list[ScheduledReminder]:
        return await self.schedule_reminders(task.id, task.title, task.description, task.time)

    async def cancel_reminders(self, task_id: str) -> int:
        """
        Cancel every stored reminder for ``task_id``.

        Matches keys ``{task_id}_*`` (and a bare ``{task_id}`` key) only, so
        ``task-1`` never cancels reminders belonging to ``task-10``.

        Returns:
            Number of handles removed.
        """
        exact = HANDLE_KEY_PREFIX + task_id
        prefix = exact + "_"
        keys = [k for k in await self.store.keys() if k == exact or k.startswith(prefix)]

        for key in keys:
            handle = await self.store.get(key)
            if handle is None:
                continue
            if self.simulated or handle == SIMULATOR_HANDLE:
                logger.info("reminder_cancel_simulated", key=key)
            else:
                await self.notifier.cancel(handle)
            await self.store.remove(key)

        logger.info("reminders_cancelled", task_id=task_id, count=len(keys))
        return len(keys)

    async def scheduled(self) -> list[dict]:
        """Reminders the OS currently holds; always empty when simulated."""
        if self.simulated:
            return []
        return await self.notifier.scheduled()
