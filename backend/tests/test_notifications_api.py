"""Tests for the /api/notifications endpoints and the inbox query."""

from datetime import datetime, timedelta, timezone

import pytest

from volunteerhub.models import Notification


async def _seed(session_factory, *notifications):
    async with session_factory() as session:
        session.add_all(notifications)
        await session.commit()


def _notification(id, user_id, minutes_ago=0, **kwargs):
    return Notification(
        id=id,
        user_id=user_id,
        title=kwargs.pop("title", f"Title {id}"),
        message=kwargs.pop("message", f"Message {id}"),
        type=kwargs.pop("type", "general"),
        status=kwargs.pop("status", "unread"),
        created_at=datetime.now(timezone.utc) - timedelta(minutes=minutes_ago),
        **kwargs,
    )


class TestInbox:
    @pytest.mark.asyncio
    async def test_user_sees_own_and_broadcast(self, client, session_factory):
        await _seed(
            session_factory,
            _notification("n1", "u1", minutes_ago=5),
            _notification("n2", "all", minutes_ago=1),
        )

        u1 = (await client.get("/api/notifications/u1")).json()
        u2 = (await client.get("/api/notifications/u2")).json()

        assert u1["success"] is True
        assert [n["id"] for n in u1["data"]] == ["n2", "n1"]
        assert [n["id"] for n in u2["data"]] == ["n2"]

    @pytest.mark.asyncio
    async def test_newest_first(self, client, session_factory):
        await _seed(
            session_factory,
            _notification("old", "u1", minutes_ago=60),
            _notification("new", "u1", minutes_ago=1),
            _notification("mid", "u1", minutes_ago=30),
        )

        data = (await client.get("/api/notifications/u1")).json()["data"]

        assert [n["id"] for n in data] == ["new", "mid", "old"]

    @pytest.mark.asyncio
    async def test_empty_inbox(self, client):
        response = await client.get("/api/notifications/nobody")
        assert response.json() == {"success": True, "data": []}


class TestCreateNotification:
    @pytest.mark.asyncio
    async def test_create_persists_and_publishes(self, client, publisher):
        response = await client.post(
            "/api/notifications",
            json={
                "userId": "u1",
                "title": "Reminder",
                "message": "Bring gloves",
                "type": "task_reminder",
                "taskInfo": {"title": "Beach cleanup", "location": "Pier 7", "time": "2099-01-01T09:00:00Z"},
            },
        )

        assert response.status_code == 201
        created = response.json()
        assert created["status"] == "unread"
        assert created["taskInfo"]["location"] == "Pier 7"

        assert len(publisher.published) == 1
        assert publisher.published[0].recipient == "u1"
        assert publisher.published[0].data["id"] == created["id"]

    @pytest.mark.asyncio
    async def test_missing_fields_rejected(self, client, publisher):
        response = await client.post("/api/notifications", json={"userId": "u1", "title": "No body"})

        assert response.status_code == 400
        assert "message" in response.json()["message"]
        assert publisher.published == []

    @pytest.mark.asyncio
    async def test_unknown_type_rejected(self, client):
        response = await client.post(
            "/api/notifications",
            json={"userId": "u1", "title": "t", "message": "m", "type": "spam"},
        )
        assert response.status_code == 400


class TestStatus:
    @pytest.mark.asyncio
    async def test_mark_read(self, client, session_factory):
        await _seed(session_factory, _notification("n1", "u1"))

        response = await client.patch("/api/notifications/n1", json={"status": "read"})

        assert response.status_code == 200
        assert response.json()["status"] == "read"
        data = (await client.get("/api/notifications/u1")).json()["data"]
        assert data[0]["status"] == "read"

    @pytest.mark.asyncio
    async def test_mark_read_is_idempotent(self, client, session_factory):
        await _seed(session_factory, _notification("n1", "u1", status="read"))

        response = await client.patch("/api/notifications/n1", json={"status": "read"})

        assert response.status_code == 200
        assert response.json()["status"] == "read"

    @pytest.mark.asyncio
    async def test_read_cannot_return_to_unread(self, client, session_factory):
        await _seed(session_factory, _notification("n1", "u1", status="read"))

        response = await client.patch("/api/notifications/n1", json={"status": "unread"})

        assert response.status_code == 400
        data = (await client.get("/api/notifications/u1")).json()["data"]
        assert data[0]["status"] == "read"

    @pytest.mark.asyncio
    async def test_invalid_status_rejected(self, client, session_factory):
        await _seed(session_factory, _notification("n1", "u1"))

        response = await client.patch("/api/notifications/n1", json={"status": "archived"})

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_notification(self, client):
        response = await client.patch("/api/notifications/missing", json={"status": "read"})

        assert response.status_code == 404
        assert response.json()["message"] == "Notification not found"


class TestDelete:
    @pytest.mark.asyncio
    async def test_delete(self, client, session_factory):
        await _seed(session_factory, _notification("n1", "u1"))

        response = await client.delete("/api/notifications/n1")

        assert response.status_code == 200
        assert response.json() == {"message": "Notification deleted"}
        assert (await client.get("/api/notifications/u1")).json()["data"] == []

    @pytest.mark.asyncio
    async def test_delete_unknown(self, client):
        response = await client.delete("/api/notifications/missing")
        assert response.status_code == 404
