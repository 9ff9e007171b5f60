"""Client side of the fan-out channel."""

import asyncio
import inspect
import json
from collections import defaultdict
from typing import Any, Awaitable, Callable, Protocol

import structlog
from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed

from volunteerhub.client.config import get_client_settings

logger = structlog.get_logger()

NEW_NOTIFICATION_EVENT = "new-notification"

EventHandler = Callable[[Any], Awaitable[None] | None]


class RealtimeChannel(Protocol):
    """Event emitter over the fan-out channel."""

    async def emit(self, event: str, data: Any = None) -> None: ...

    def on(self, event: str, handler: EventHandler) -> None: ...

    def off(self, event: str, handler: EventHandler | None = None) -> None: ...


class EventDispatcher:
    """Handler registry shared by channel implementations."""

    def __init__(self) -> None:
        self.handlers: dict[str, list[EventHandler]] = defaultdict(list)

    def on(self, event: str, handler: EventHandler) -> None:
        self.handlers[event].append(handler)

    def off(self, event: str, handler: EventHandler | None = None) -> None:
        if handler is None:
            self.handlers.pop(event, None)
        elif handler in self.handlers.get(event, []):
            self.handlers[event].remove(handler)

    async def dispatch(self, event: str, data: Any) -> None:
        for handler in list(self.handlers.get(event, [])):
            try:
                result = handler(data)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error("realtime_handler_failed", event=event, error=str(e))


class WebSocketChannel(EventDispatcher):
    """Channel over the server's ``/ws`` endpoint.

    Frames are JSON objects ``{"event": ..., "data": ...}``. Delivery is
    at-most-once: events sent while disconnected are lost.
    """

    def __init__(self, url: str | None = None):
        super().__init__()
        self.url = url or get_client_settings().realtime_url
        self._connection: ClientConnection | None = None
        self._reader: asyncio.Task | None = None

    @property
    def connected(self) -> bool:
        return self._connection is not None

    async def connect(self) -> None:
        if self._connection is not None:
            return
        self._connection = await connect(self.url)
        self._reader = asyncio.create_task(self._read_loop())
        logger.info("realtime_connected", url=self.url)

    async def close(self) -> None:
        if self._reader is not None:
            self._reader.cancel()
            self._reader = None
        if self._connection is not None:
            await self._connection.close()
            self._connection = None
        logger.info("realtime_disconnected", url=self.url)

    async def emit(self, event: str, data: Any = None) -> None:
        if self._connection is None:
            logger.warning("realtime_emit_while_disconnected", event=event)
            return
        await self._connection.send(json.dumps({"event": event, "data": data}))

    async def _read_loop(self) -> None:
        assert self._connection is not None
        try:
            async for raw in self._connection:
                try:
                    frame = json.loads(raw)
                except ValueError:
                    logger.debug("realtime_frame_malformed")
                    continue
                if isinstance(frame, dict) and "event" in frame:
                    await self.dispatch(frame["event"], frame.get("data"))
        except ConnectionClosed as e:
            logger.info("realtime_connection_closed", code=e.rcvd.code if e.rcvd else None)
            self._connection = None
