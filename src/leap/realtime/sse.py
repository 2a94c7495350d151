"""Server-Sent Events — the one-way push transport.

Learn: Each dashboard tab opens GET /api/v1/realtime/stream?surveyId=...
and keeps it open. The handler builds an unregistered Connection scoped to
the surveyId (or unscoped) and hands stream() to StreamingResponse. When
the response starts iterating, stream():
1. Registers the Connection
2. Queues a "connected" frame carrying the connection id and scope
3. Streams frames from the connection's queue until the client leaves
4. Unregisters in its finally block (client close = cancel)

Frames use the standard text/event-stream layout:

  event: response
  data: {"surveyId": "...", "count": 12, ...}

A comment frame (": keepalive") goes out when nothing else has been sent
for a heartbeat interval, so idle proxies don't cut the stream.
"""

import asyncio
import json
from typing import AsyncIterator, Optional

import structlog

from leap.realtime.broadcaster import EventBroadcaster
from leap.realtime.connection import Connection, TransportClosedError
from leap.realtime.events import DomainEvent, EventKind
from leap.realtime.registry import SubscriptionRegistry

logger = structlog.get_logger()

KEEPALIVE_FRAME = ": keepalive\n\n"


def encode_frame(event: DomainEvent) -> str:
    """Serialize an event as one text/event-stream frame."""
    data = json.dumps(event.payload, default=str)
    return f"event: {event.name}\ndata: {data}\n\n"


class ServerPushTransport:
    """Queue-backed transport. send() never blocks; the stream drains it."""

    def __init__(self):
        self._queue: asyncio.Queue[Optional[str]] = asyncio.Queue()
        self._closed = False

    async def send(self, event: DomainEvent) -> None:
        if self._closed:
            raise TransportClosedError("push stream already closed")
        self._queue.put_nowait(encode_frame(event))

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(None)  # wakes the stream so it can finish

    async def frames(self, heartbeat_seconds: float) -> AsyncIterator[str]:
        while True:
            try:
                frame = await asyncio.wait_for(
                    self._queue.get(), timeout=heartbeat_seconds
                )
            except asyncio.TimeoutError:
                yield KEEPALIVE_FRAME
                continue
            if frame is None:
                return
            yield frame


class ServerPushChannel:
    """Registry + broadcaster for push-stream connections."""

    def __init__(
        self,
        registry: Optional[SubscriptionRegistry] = None,
        heartbeat_seconds: float = 15.0,
    ):
        self.registry = registry or SubscriptionRegistry(name="sse")
        self.broadcaster = EventBroadcaster(self.registry)
        self.heartbeat_seconds = heartbeat_seconds

    def connect(self, survey_id: Optional[str] = None) -> Connection:
        """A new push connection for `survey_id`, not yet registered."""
        return Connection(transport=ServerPushTransport(), scope=survey_id)

    async def stream(self, connection: Connection) -> AsyncIterator[str]:
        """Register `connection`, then yield its frames until it closes or the
        client leaves.

        Registration happens on the first iteration, inside the try/finally
        that unregisters, so a response that never starts streaming leaves
        no entry behind.
        """
        try:
            self.registry.register(connection)
            await connection.transport.send(
                DomainEvent(
                    EventKind.CONNECTED,
                    {"clientId": connection.id, "surveyId": connection.scope},
                )
            )
            logger.info(
                "leap.sse.connected",
                connection_id=connection.id,
                survey_id=connection.scope,
            )
            async for frame in connection.transport.frames(self.heartbeat_seconds):
                yield frame
        finally:
            self.registry.unregister(connection.id)
            logger.info("leap.sse.disconnected", connection_id=connection.id)

    async def deliver(self, event: DomainEvent) -> int:
        return await self.broadcaster.publish(event)

    async def shutdown(self) -> None:
        """Close every open stream and empty the registry."""
        for connection in self.registry:
            await connection.transport.close()
            self.registry.unregister(connection.id)
