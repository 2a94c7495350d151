"""Postgres NOTIFY listener — relays database triggers to dashboards.

Learn: Responses can be written by something other than this API (bulk
imports, another service). The `campaigns` trigger installed by the
initial migration fires pg_notify whenever a campaign's response_count
moves. This listener holds one asyncpg connection that LISTENs on that
channel and hands each payload to RealtimeHub.relay().

Enabled with LEAP_NOTIFY_SOURCE=postgres. In that mode the submit
endpoint stops notifying inline, so each write is announced once.

A payload that isn't a JSON object is logged and dropped — no partial
broadcast is attempted.
"""

import asyncio
import json
from typing import Optional

import asyncpg
import structlog

from leap.realtime.hub import RealtimeHub

logger = structlog.get_logger()


def asyncpg_dsn(database_url: str) -> str:
    """Convert a SQLAlchemy URL to a plain asyncpg DSN."""
    return database_url.replace("postgresql+asyncpg://", "postgresql://")


class NotifyListener:
    def __init__(self, hub: RealtimeHub, database_url: str, channel: str):
        self.hub = hub
        self.dsn = asyncpg_dsn(database_url)
        self.channel = channel
        self._conn: Optional[asyncpg.Connection] = None
        self._pending: set[asyncio.Task] = set()
        self.relayed = 0
        self.rejected = 0

    async def start(self) -> None:
        self._conn = await asyncpg.connect(self.dsn)
        await self._conn.add_listener(self.channel, self._on_notification)
        logger.info("leap.listener.started", channel=self.channel)

    async def stop(self) -> None:
        if self._conn is not None:
            await self._conn.remove_listener(self.channel, self._on_notification)
            await self._conn.close()
            self._conn = None
        for task in list(self._pending):
            task.cancel()
        logger.info(
            "leap.listener.stopped",
            channel=self.channel,
            relayed=self.relayed,
            rejected=self.rejected,
        )

    def _on_notification(self, conn, pid, channel, payload):
        """Synchronous asyncpg callback — schedule the async relay."""
        task = asyncio.create_task(self.handle(channel, payload))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def handle(self, channel: str, payload: str) -> bool:
        """Relay one notification. Returns False if it was dropped."""
        try:
            data = json.loads(payload)
        except (json.JSONDecodeError, TypeError):
            data = None
        if not isinstance(data, dict):
            self.rejected += 1
            logger.warning(
                "leap.listener.malformed_payload", channel=channel, payload=payload
            )
            return False

        try:
            await self.hub.relay(channel, data)
        except Exception:
            self.rejected += 1
            logger.exception("leap.listener.relay_failed", channel=channel)
            return False
        self.relayed += 1
        return True
