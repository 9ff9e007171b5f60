"""Tests for the WebSocket fan-out channel."""

import json
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from volunteerhub.api.websocket import ChannelMessage, ConnectionManager, room_name, websocket_endpoint
from volunteerhub.exceptions import ChannelPublishError
from volunteerhub.main import create_app

from .fakes import FakeSocket


async def _connected(manager, **kwargs):
    socket = FakeSocket(**kwargs)
    await manager.connect(socket)
    return socket


class TestRooms:
    @pytest.mark.asyncio
    async def test_join_and_leave(self):
        manager = ConnectionManager("all")
        socket = await _connected(manager)

        await manager.handle(socket, ChannelMessage(event="join-user", data="u1"))
        await manager.handle(socket, ChannelMessage(event="join-organization", data="org-1"))

        assert socket.accepted
        assert manager.rooms == {"user_u1": {socket}, "org_org-1": {socket}}

        await manager.handle(socket, ChannelMessage(event="leave-user", data="u1"))
        assert "user_u1" not in manager.rooms

    @pytest.mark.asyncio
    async def test_disconnect_clears_membership(self):
        manager = ConnectionManager("all")
        socket = await _connected(manager)
        await manager.handle(socket, ChannelMessage(event="join-user", data="u1"))

        manager.disconnect(socket)

        assert manager.rooms == {}
        assert manager.connections == set()

    @pytest.mark.asyncio
    async def test_ping(self):
        manager = ConnectionManager("all")
        socket = await _connected(manager)

        await manager.handle(socket, ChannelMessage(event="ping"))

        assert socket.sent == [{"event": "pong", "data": None}]

    def test_room_name(self):
        assert room_name("user", "42") == "user_42"


class TestPublish:
    @pytest.mark.asyncio
    async def test_targets_user_and_org_rooms(self):
        manager = ConnectionManager("all")
        volunteer = await _connected(manager)
        org = await _connected(manager)
        bystander = await _connected(manager)
        await manager.handle(volunteer, ChannelMessage(event="join-user", data="u1"))
        await manager.handle(org, ChannelMessage(event="join-organization", data="org-1"))

        assert await manager.publish("u1", "new-notification", {"id": "n1"}) == 1
        assert await manager.publish("org-1", "new-notification", {"id": "n2"}) == 1

        assert volunteer.sent == [{"event": "new-notification", "data": {"id": "n1"}}]
        assert org.sent == [{"event": "new-notification", "data": {"id": "n2"}}]
        assert bystander.sent == []

    @pytest.mark.asyncio
    async def test_broadcast_reaches_everyone(self):
        manager = ConnectionManager("all")
        sockets = [await _connected(manager) for _ in range(3)]

        delivered = await manager.publish("all", "new-notification", {"id": "n1"})

        assert delivered == 3
        assert all(len(s.sent) == 1 for s in sockets)

    @pytest.mark.asyncio
    async def test_no_subscribers_is_not_an_error(self):
        manager = ConnectionManager("all")
        assert await manager.publish("nobody", "new-notification", {}) == 0

    @pytest.mark.asyncio
    async def test_broken_socket_dropped_and_reported(self):
        manager = ConnectionManager("all")
        healthy = await _connected(manager)
        broken = await _connected(manager, broken=True)

        with pytest.raises(ChannelPublishError) as exc_info:
            await manager.publish("all", "new-notification", {"id": "n1"})

        assert exc_info.value.topic == "all"
        assert len(healthy.sent) == 1
        assert manager.connections == {healthy}
        assert broken not in manager.connections


class TestEndpoint:
    def test_ping_over_socket(self):
        app = create_app()
        with TestClient(app).websocket_connect("/ws") as ws:
            ws.send_json({"event": "ping"})
            assert ws.receive_json() == {"event": "pong", "data": None}

    def test_join_registers_room(self):
        app = create_app()
        with TestClient(app).websocket_connect("/ws") as ws:
            ws.send_json({"event": "join-user", "data": "u1"})
            ws.send_json({"event": "ping"})
            ws.receive_json()
            assert "user_u1" in app.state.connections.rooms

    @pytest.mark.asyncio
    async def test_unexpected_receive_error_unregisters_socket(self):
        manager = ConnectionManager("all")
        socket = FakeSocket(
            incoming=[json.dumps({"event": "join-user", "data": "u1"})],
            receive_error=RuntimeError("transport reset"),
            app=SimpleNamespace(state=SimpleNamespace(connections=manager)),
        )

        with pytest.raises(RuntimeError):
            await websocket_endpoint(socket)

        assert manager.connections == set()
        assert manager.rooms == {}

    @pytest.mark.asyncio
    async def test_client_disconnect_unregisters_socket(self):
        manager = ConnectionManager("all")
        socket = FakeSocket(
            incoming=[json.dumps({"event": "join-organization", "data": "org-1"})],
            app=SimpleNamespace(state=SimpleNamespace(connections=manager)),
        )

        await websocket_endpoint(socket)

        assert manager.connections == set()
        assert manager.rooms == {}
