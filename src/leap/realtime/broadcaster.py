"""Event broadcaster — fan one event out to matching connections.

Learn: publish() is a loop over the registry with a filter. The rules:
1. Default filter: no event scope → everyone; scoped event → connections
   whose scope is unset ("receive everything") or equal to it.
2. A failed write to one connection is logged and skipped — the loop
   keeps going. It does NOT unregister the connection; that only happens
   when the transport's own disconnect callback fires.
3. Connections that closed after the snapshot was taken are skipped.

Writes are awaited one after another, so two publishes reach the same
connection in the order they were made.
"""

from typing import Callable, Optional

import structlog

from leap.realtime.connection import Connection
from leap.realtime.events import DomainEvent
from leap.realtime.registry import SubscriptionRegistry

logger = structlog.get_logger()

Predicate = Callable[[Connection], bool]


def scope_filter(event: DomainEvent) -> Predicate:
    """Default predicate for an event."""
    if event.scope is None:
        return lambda connection: True
    return lambda connection: (
        connection.scope is None or connection.scope == event.scope
    )


def in_room(room: str) -> Predicate:
    return lambda connection: room in connection.rooms


class EventBroadcaster:
    def __init__(self, registry: SubscriptionRegistry):
        self.registry = registry

    async def publish(
        self,
        event: DomainEvent,
        predicate: Optional[Predicate] = None,
    ) -> int:
        """Write `event` to every matching connection.

        Returns the number of successful writes.
        """
        matches = predicate or scope_filter(event)
        targets: list[Connection] = []
        self.registry.for_each(
            lambda connection: targets.append(connection)
            if matches(connection)
            else None
        )

        delivered = 0
        for connection in targets:
            if not connection.is_open:
                continue
            try:
                await connection.transport.send(event)
            except Exception as e:
                logger.warning(
                    "leap.realtime.write_failed",
                    registry=self.registry.name,
                    connection_id=connection.id,
                    event_name=event.name,
                    error=str(e),
                )
                continue
            delivered += 1

        logger.debug(
            "leap.realtime.published",
            registry=self.registry.name,
            event_name=event.name,
            scope=event.scope,
            matched=len(targets),
            delivered=delivered,
        )
        return delivered
