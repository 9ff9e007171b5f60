"""Service-layer tests: completion transaction, strict mode, retention."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from volunteerhub.config import Settings
from volunteerhub.exceptions import ConflictError, NotFoundError, PersistenceError
from volunteerhub.models import CompletedTask, Notification, Task
from volunteerhub.schemas import NotificationResponse, TaskCompleteRequest, TaskCreate
from volunteerhub.services import NotificationService, TaskService
from volunteerhub.services.tasks import format_completion_message, format_new_task_message

from .fakes import FakePublisher


async def _count(db, model) -> int:
    return (await db.execute(select(func.count()).select_from(model))).scalar_one()


async def _make_task(service: TaskService, **overrides) -> Task:
    data = {
        "title": "Walk dog",
        "description": "30 min",
        "time": "2099-06-01T15:00:00Z",
        "created_by": "org-1",
    }
    data.update(overrides)
    return await service.create_task(TaskCreate(**data))


class TestMessages:
    def test_long_description_truncated(self):
        message = format_new_task_message("Cleanup", "x" * 150, 1, 3)
        assert message == f"Cleanup - {'x' * 100}... (1 point, 3h)"

    def test_short_description_kept(self):
        assert format_new_task_message("Cleanup", "Beach", 4, 2) == "Cleanup - Beach (4 points, 2h)"

    def test_completion_message(self):
        assert format_completion_message("", 3) == "Feedback: No feedback provided | Points earned: 3"
        assert format_completion_message("Great", 1) == "Feedback: Great | Points earned: 1"


class TestCompletion:
    @pytest.mark.asyncio
    async def test_all_writes_commit_together(self, db):
        service = TaskService(db, FakePublisher())
        task = await _make_task(service)

        entry, updated = await service.complete_task(task.id, TaskCompleteRequest(user_id="vol-1"))

        assert updated is True
        assert entry.task_id == task.id
        assert await _count(db, CompletedTask) == 1
        assert await _count(db, Notification) == 2

    @pytest.mark.asyncio
    async def test_failed_commit_leaves_nothing_behind(self, db):
        publisher = FakePublisher()
        service = TaskService(db, publisher)
        task = await _make_task(service)
        published_before = len(publisher.published)

        real_commit = db.commit
        db.commit = AsyncMock(side_effect=OperationalError("COMMIT", {}, Exception("disk full")))
        with pytest.raises(PersistenceError):
            await service.complete_task(task.id, TaskCompleteRequest(user_id="vol-1"))
        db.commit = real_commit

        assert await _count(db, CompletedTask) == 0
        assert (await db.get(Task, task.id)).completed is False
        assert len(publisher.published) == published_before

    @pytest.mark.asyncio
    async def test_unknown_task(self, db):
        service = TaskService(db, FakePublisher())
        with pytest.raises(NotFoundError):
            await service.complete_task("missing", TaskCompleteRequest(user_id="vol-1"))

    @pytest.mark.asyncio
    async def test_strict_mode_rejects_second_completion(self, db):
        service = TaskService(db, FakePublisher(), Settings(strict_completion=True))
        task = await _make_task(service)

        await service.complete_task(task.id, TaskCompleteRequest(user_id="vol-1"))
        with pytest.raises(ConflictError):
            await service.complete_task(task.id, TaskCompleteRequest(user_id="vol-2"))

        assert await _count(db, CompletedTask) == 1
        assert (await db.get(Task, task.id)).completed_by == "vol-1"

    @pytest.mark.asyncio
    async def test_delete_reports_whether_removed(self, db):
        service = TaskService(db, FakePublisher())
        task = await _make_task(service)

        assert await service.delete_task(task.id) is True
        assert await service.delete_task(task.id) is False


class TestNotificationService:
    @pytest.mark.asyncio
    async def test_publish_swallows_unexpected_errors(self, db):
        publisher = AsyncMock()
        publisher.publish.side_effect = RuntimeError("boom")
        service = NotificationService(db, publisher)
        notification = service.add(user_id="u1", title="t", message="m")
        await db.commit()

        assert await service.publish(notification) is False

    @pytest.mark.asyncio
    async def test_published_payload_is_camel_case(self, db):
        publisher = FakePublisher()
        service = NotificationService(db, publisher)
        notification = service.add(
            user_id="u1",
            title="t",
            message="m",
            notification_type="task_completed",
            task_id="task-1",
            completed_by={"id": "vol-1", "name": "Sam", "image": None},
        )
        await db.commit()

        assert await service.publish(notification) is True
        data = publisher.published[0].data
        NotificationResponse.model_validate(data)
        assert data["userId"] == "u1"
        assert data["taskId"] == "task-1"
        assert data["completedBy"]["name"] == "Sam"

    @pytest.mark.asyncio
    async def test_purge_removes_only_expired(self, db):
        now = datetime(2026, 5, 1, tzinfo=timezone.utc)
        db.add_all(
            [
                Notification(id="old", user_id="u1", title="t", message="m", created_at=now - timedelta(days=31)),
                Notification(id="read-old", user_id="all", title="t", message="m", status="read", created_at=now - timedelta(days=45)),
                Notification(id="recent", user_id="u1", title="t", message="m", created_at=now - timedelta(days=29)),
            ]
        )
        await db.commit()

        removed = await NotificationService(db).purge_older_than(30, now=now)

        assert removed == 2
        remaining = (await db.execute(select(Notification.id))).scalars().all()
        assert remaining == ["recent"]
