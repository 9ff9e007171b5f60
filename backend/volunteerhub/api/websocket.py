"""WebSocket fan-out channel for real-time notifications."""

import json
from typing import Any, Dict, Set

import structlog
from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import BaseModel

from volunteerhub.config import get_settings
from volunteerhub.exceptions import ChannelPublishError

router = APIRouter(tags=["websocket"])
logger = structlog.get_logger()

# Client event -> room prefix
JOIN_EVENTS = {"join-user": "user", "join-organization": "org"}
LEAVE_EVENTS = {"leave-user": "user", "leave-organization": "org"}


def room_name(kind: str, recipient_id: str) -> str:
    return f"{kind}_{recipient_id}"


class ChannelMessage(BaseModel):
    """Frame exchanged on the socket in both directions."""
    event: str
    data: Any = None


class ConnectionManager:
    """Tracks open sockets and the recipient rooms each one has joined.

    Implements ``NotificationPublisher``: a notification addressed to a
    recipient reaches every socket in that recipient's user or organization
    room, and a broadcast reaches every open socket.
    """

    def __init__(self, broadcast_recipient: str | None = None):
        self.broadcast_recipient = broadcast_recipient or get_settings().broadcast_recipient
        # Every accepted socket
        self.connections: Set[WebSocket] = set()
        # Map of room name -> set of websocket connections
        self.rooms: Dict[str, Set[WebSocket]] = {}

    async def connect(self, websocket: WebSocket) -> None:
        """Accept and register a websocket connection."""
        await websocket.accept()
        self.connections.add(websocket)

    def disconnect(self, websocket: WebSocket) -> None:
        """Unregister a websocket connection from every room."""
        self.connections.discard(websocket)
        for name in list(self.rooms):
            self.leave(websocket, name)

    def join(self, websocket: WebSocket, room: str) -> None:
        if room not in self.rooms:
            self.rooms[room] = set()
        self.rooms[room].add(websocket)

    def leave(self, websocket: WebSocket, room: str) -> None:
        if room in self.rooms:
            self.rooms[room].discard(websocket)
            if not self.rooms[room]:
                del self.rooms[room]

    def subscribers(self, recipient: str) -> Set[WebSocket]:
        """Sockets that should receive an event addressed to ``recipient``."""
        if recipient == self.broadcast_recipient:
            return set(self.connections)
        targets: Set[WebSocket] = set()
        for kind in ("user", "org"):
            targets |= self.rooms.get(room_name(kind, recipient), set())
        return targets

    async def publish(self, recipient: str, event: str, data: dict) -> int:
        """Send ``event`` to every subscriber of ``recipient``.

        Every subscriber is attempted; sockets that fail are dropped and the
        failure is reported once at the end.
        """
        delivered = 0
        failed: list[WebSocket] = []
        for connection in self.subscribers(recipient):
            try:
                await connection.send_json({"event": event, "data": data})
                delivered += 1
            except Exception:
                failed.append(connection)

        for connection in failed:
            self.disconnect(connection)

        if failed:
            raise ChannelPublishError(
                recipient,
                f"{len(failed)} of {len(failed) + delivered} connections failed",
            )
        return delivered

    async def handle(self, websocket: WebSocket, message: ChannelMessage) -> None:
        """Apply a client frame: room membership changes and ping."""
        if message.event in JOIN_EVENTS and message.data:
            room = room_name(JOIN_EVENTS[message.event], str(message.data))
            self.join(websocket, room)
            logger.info("channel_joined", room=room)
        elif message.event in LEAVE_EVENTS and message.data:
            room = room_name(LEAVE_EVENTS[message.event], str(message.data))
            self.leave(websocket, room)
            logger.info("channel_left", room=room)
        elif message.event == "ping":
            await websocket.send_json({"event": "pong", "data": None})
        else:
            logger.debug("channel_event_ignored", event=message.event)


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """
    Fan-out channel endpoint.

    Clients send ``{"event": "join-user" | "join-organization", "data": id}``
    to subscribe and the matching ``leave-*`` event to unsubscribe. The server
    emits ``new-notification`` frames carrying the notification payload.
    """
    manager: ConnectionManager = websocket.app.state.connections
    await manager.connect(websocket)

    try:
        while True:
            data = await websocket.receive_text()
            try:
                message = ChannelMessage.model_validate(json.loads(data))
            except ValueError:
                logger.debug("channel_frame_malformed")
                continue
            await manager.handle(websocket, message)

    except WebSocketDisconnect:
        logger.debug("channel_disconnected")
    finally:
        manager.disconnect(websocket)
