"""Tests for reminder scheduling and calendar integration."""

from datetime import datetime, timedelta, timezone

import pytest

from volunteerhub.client.calendar import add_task_to_calendar, parse_task_time
from volunteerhub.client.reminders import (
    REMINDER_TYPE,
    SIMULATOR_HANDLE,
    ReminderScheduler,
    reminder_key,
)
from volunteerhub.client.storage import InMemoryStore, JsonFileStore
from volunteerhub.schemas import TaskResponse

from .fakes import FakeCalendar, FakeNotifier

NOW = datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc)


def _scheduler(store=None, notifier=None, is_device=True):
    return ReminderScheduler(
        store if store is not None else InMemoryStore(),
        notifier=notifier,
        is_device=is_device,
        now=lambda: NOW,
    )


class TestParseTaskTime:
    def test_z_suffix(self):
        assert parse_task_time("2026-05-01T14:00:00.000Z") == datetime(2026, 5, 1, 14, tzinfo=timezone.utc)

    def test_naive_is_utc(self):
        assert parse_task_time("2026-05-01T14:00:00").tzinfo == timezone.utc

    def test_malformed(self):
        with pytest.raises(ValueError):
            parse_task_time("3:30 PM")


class TestSchedule:
    @pytest.mark.asyncio
    async def test_three_reminders_for_future_task(self):
        notifier = FakeNotifier()
        store = InMemoryStore()
        scheduler = _scheduler(store, notifier)

        scheduled = await scheduler.schedule_reminders("task-1", "Walk dog", "30 min", "2026-05-01T14:00:00Z")

        assert [r.offset_minutes for r in scheduled] == [60, 30, 5]
        assert [r.fire_at for r in scheduled] == [
            datetime(2026, 5, 1, 13, 0, tzinfo=timezone.utc),
            datetime(2026, 5, 1, 13, 30, tzinfo=timezone.utc),
            datetime(2026, 5, 1, 13, 55, tzinfo=timezone.utc),
        ]
        assert store.data == {
            "notification_task-1_60min": "os-1",
            "notification_task-1_30min": "os-2",
            "notification_task-1_5min": "os-3",
        }
        first = notifier.scheduled_calls[0]
        assert first["data"] == {
            "taskId": "task-1",
            "title": "Walk dog",
            "description": "30 min",
            "time": "2026-05-01T14:00:00Z",
            "type": REMINDER_TYPE,
        }
        assert "Walk dog" in first["body"]

    @pytest.mark.asyncio
    async def test_past_offsets_skipped(self):
        scheduler = _scheduler(notifier=FakeNotifier())

        scheduled = await scheduler.schedule_reminders("task-1", "t", "d", "2026-05-01T12:40:00Z")

        assert [r.offset_minutes for r in scheduled] == [30, 5]

    @pytest.mark.asyncio
    async def test_task_in_past_schedules_nothing(self):
        store = InMemoryStore()
        scheduler = _scheduler(store, FakeNotifier())

        assert await scheduler.schedule_reminders("task-1", "t", "d", "2026-04-30T12:00:00Z") == []
        assert store.data == {}

    @pytest.mark.asyncio
    async def test_simulated_without_device(self):
        notifier = FakeNotifier()
        store = InMemoryStore()
        scheduler = _scheduler(store, notifier, is_device=False)

        scheduled = await scheduler.schedule_reminders("task-1", "t", "d", "2026-05-01T14:00:00Z")

        assert len(scheduled) == 3
        assert notifier.scheduled_calls == []
        assert set(store.data.values()) == {SIMULATOR_HANDLE}
        assert await scheduler.request_permissions() is True
        assert await scheduler.scheduled() == []

    @pytest.mark.asyncio
    async def test_one_failing_offset_does_not_stop_others(self):
        scheduler = _scheduler(notifier=FakeNotifier(fail_for_offset=30))

        scheduled = await scheduler.schedule_reminders("task-1", "t", "d", "2026-05-01T14:00:00Z")

        assert [r.offset_minutes for r in scheduled] == [60, 5]

    @pytest.mark.asyncio
    async def test_single_reminder_defaults_to_thirty_minutes(self):
        reminder = await _scheduler().schedule_reminder("task-1", "t", "d", "2026-05-01T14:00:00Z")

        assert reminder.key == reminder_key("task-1", 30) == "task-1_30min"
        assert reminder.fire_at == datetime(2026, 5, 1, 13, 30, tzinfo=timezone.utc)


class TestCancel:
    @pytest.mark.asyncio
    async def test_cancels_only_matching_task(self):
        notifier = FakeNotifier()
        store = InMemoryStore()
        scheduler = _scheduler(store, notifier)
        await scheduler.schedule_reminders("task-1", "t", "d", "2026-05-01T14:00:00Z")
        await scheduler.schedule_reminders("task-10", "t", "d", "2026-05-01T14:00:00Z")

        removed = await scheduler.cancel_reminders("task-1")

        assert removed == 3
        assert sorted(notifier.cancelled) == ["os-1", "os-2", "os-3"]
        assert sorted(store.data) == [
            "notification_task-10_30min",
            "notification_task-10_5min",
            "notification_task-10_60min",
        ]

    @pytest.mark.asyncio
    async def test_simulated_handles_removed_without_os_call(self):
        notifier = FakeNotifier()
        store = InMemoryStore({"notification_task-1_60min": SIMULATOR_HANDLE})
        scheduler = _scheduler(store, notifier)

        assert await scheduler.cancel_reminders("task-1") == 1
        assert notifier.cancelled == []
        assert store.data == {}

    @pytest.mark.asyncio
    async def test_nothing_to_cancel(self):
        assert await _scheduler().cancel_reminders("task-1") == 0


class TestJsonFileStore:
    @pytest.mark.asyncio
    async def test_handles_survive_reload(self, tmp_path):
        path = tmp_path / "storage.json"
        scheduler = _scheduler(JsonFileStore(path), is_device=False)
        await scheduler.schedule_reminders("task-1", "t", "d", "2026-05-01T14:00:00Z")

        reloaded = _scheduler(JsonFileStore(path), is_device=False)

        assert await reloaded.cancel_reminders("task-1") == 3
        assert JsonFileStore(path).data == {}


class TestCalendar:
    def _task(self, **overrides):
        data = {
            "id": "task-1",
            "title": "Walk dog",
            "description": "30 min",
            "time": "2026-05-01T14:00:00Z",
            "locationLabel": "Dolores Park",
        }
        data.update(overrides)
        return TaskResponse.model_validate(data)

    @pytest.mark.asyncio
    async def test_one_hour_event(self):
        calendar = FakeCalendar()

        event_id = await add_task_to_calendar(calendar, self._task())

        assert event_id == "event-1"
        event = calendar.events[0]
        assert event["calendar_id"] == "default"
        assert event["title"] == "Walk dog"
        assert event["end"] - event["start"] == timedelta(hours=1)
        assert event["time_zone"] == "GMT"
        assert event["location"] == "Dolores Park"
        assert event["notes"] == "30 min"

    @pytest.mark.asyncio
    async def test_permission_denied(self):
        calendar = FakeCalendar(granted=False)

        assert await add_task_to_calendar(calendar, self._task()) is None
        assert calendar.events == []

    @pytest.mark.asyncio
    async def test_no_default_calendar(self):
        assert await add_task_to_calendar(FakeCalendar(calendar_id=None), self._task()) is None
