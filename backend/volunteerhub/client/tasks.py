"""Client task state: fetch, sign up, complete."""

import asyncio
from typing import Awaitable

import structlog

from volunteerhub.client.api import APIError, VolunteerHubClient
from volunteerhub.client.calendar import CalendarProvider, add_task_to_calendar
from volunteerhub.client.reminders import ReminderScheduler
from volunteerhub.client.state import EntityStore, SyncStatus
from volunteerhub.schemas import CompletedTaskCreate, TaskResponse, TaskUpdate

logger = structlog.get_logger()


class TaskHook:
    """State container for one user's view of the task list.

    ``sign_up`` is optimistic: the flag flips immediately and is reverted if
    the server rejects it. ``complete`` only touches local state once both
    remote writes succeed. Calendar and reminder side effects start once the
    server accepts a sign-up change, run in the background and never fail
    the caller.

    After ``close()`` results of requests still in flight are no longer
    applied.
    """

    def __init__(
        self,
        api: VolunteerHubClient,
        user_id: str,
        calendar: CalendarProvider | None = None,
        reminders: ReminderScheduler | None = None,
    ):
        self.api = api
        self.user_id = user_id
        self.calendar = calendar
        self.reminders = reminders
        self.store: EntityStore[TaskResponse] = EntityStore()
        self.loading = False
        self.active = True
        self._background: set[asyncio.Task] = set()

    @property
    def tasks(self) -> list[TaskResponse]:
        return self.store.items()

    @property
    def visible_tasks(self) -> list[TaskResponse]:
        """Tasks still open for sign-up."""
        return [task for task in self.store.items() if not task.completed]

    def status(self, task_id: str) -> SyncStatus | None:
        return self.store.status(task_id)

    async def load(self) -> list[TaskResponse]:
        """Fetch every task. On failure the current list is left as is."""
        self.loading = True
        try:
            tasks = await self.api.list_tasks()
        except APIError as e:
            logger.error("tasks_load_failed", user_id=self.user_id, error=e.message)
            return self.tasks
        finally:
            self.loading = False

        if self.active:
            self.store.reset(tasks)
            logger.info("tasks_loaded", user_id=self.user_id, count=len(tasks))
        return tasks

    async def sign_up(self, task_id: str) -> bool:
        """
        Toggle the user's sign-up for a task.

        Returns:
            The new ``signedUp`` value, or False when the server call failed.
        """
        task = self.store.get(task_id)
        if task is None:
            logger.warning("sign_up_unknown_task", task_id=task_id)
            return False

        signed_up = not task.signed_up
        self.store.begin(task_id, {"signed_up": signed_up})

        try:
            updated = await self.api.update_task(task_id, TaskUpdate(signed_up=signed_up))
        except APIError as e:
            logger.error("sign_up_failed", task_id=task_id, signed_up=signed_up, error=e.message)
            if self.active:
                self.store.fail(task_id, e.message)
            return False

        if self.active:
            self.store.confirm(task_id, updated)
        logger.info("sign_up_changed", task_id=task_id, signed_up=signed_up)

        # Device side effects follow the server's answer, never the optimistic flip
        if signed_up:
            if self.calendar is not None:
                self._spawn("calendar_add", add_task_to_calendar(self.calendar, updated))
            if self.reminders is not None:
                self._spawn("reminders_schedule", self.reminders.schedule_for_task(updated))
        elif self.reminders is not None:
            self._spawn("reminders_cancel", self.reminders.cancel_reminders(task_id))
        return signed_up

    async def complete(self, task_id: str, feedback: str = "") -> bool:
        """
        Archive the completion and mark the task completed.

        The archive write and the task update are sequential, not atomic.
        Local state changes only after both succeed.
        """
        task = self.store.get(task_id)
        if task is None:
            logger.warning("complete_unknown_task", task_id=task_id)
            return False

        entry = CompletedTaskCreate(
            user_id=self.user_id,
            task_id=task.id,
            title=task.title,
            description=task.description,
            time=task.time,
            location=task.location,
            location_label=task.location_label,
            signed_up=task.signed_up,
            feedback=feedback,
            points_reward=task.points_reward,
            estimated_hours=task.estimated_hours,
        )

        try:
            await self.api.record_completion(entry)
            updated = await self.api.update_task(task_id, TaskUpdate(completed=True))
        except APIError as e:
            logger.error("complete_failed", task_id=task_id, error=e.message)
            return False

        if self.active:
            self.store.confirm(task_id, updated)
        logger.info("task_completed", task_id=task_id, user_id=self.user_id)
        return True

    async def close(self) -> None:
        """Stop applying results to state."""
        self.active = False

    async def drain(self) -> None:
        """Wait for background side effects started so far."""
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)

    def _spawn(self, name: str, coro: Awaitable) -> None:
        task = asyncio.ensure_future(self._side_effect(name, coro))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _side_effect(self, name: str, coro: Awaitable) -> None:
        try:
            await coro
        except Exception as e:
            logger.error("side_effect_failed", side_effect=name, error=str(e))
