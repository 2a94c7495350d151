"""Subscription registry — the set of live connections.

Learn: The registry is a plain dict keyed by connection id. Dicts keep
insertion order, so iteration visits connections in the order they
registered, and removal is a key pop — O(1) and trivially idempotent.

There is no lock. All mutation happens inside one event-loop turn, and a
broadcast iterates a snapshot, so a disconnect that lands mid-broadcast
can't break the iteration. Each transport builds its own registry
instance (no module-level singleton), which is also what tests do.
"""

from typing import Callable, Iterator, Optional

import structlog

from leap.realtime.connection import Connection, ConnectionState

logger = structlog.get_logger()


class SubscriptionRegistry:
    """Live connections, keyed by id, in insertion order."""

    def __init__(self, name: str = "default"):
        self.name = name
        self._entries: dict[str, Connection] = {}

    def register(self, connection: Connection, scope: Optional[str] = None) -> str:
        """Add a connection and mark it OPEN. Returns its handle (the id).

        A CLOSED connection can't come back — InvalidTransitionError is
        raised instead of resurrecting it.
        """
        if scope is not None:
            connection.scope = scope
        if connection.state is not ConnectionState.OPEN:
            connection.transition(ConnectionState.OPEN)
        self._entries[connection.id] = connection
        logger.debug(
            "leap.realtime.registered",
            registry=self.name,
            connection_id=connection.id,
            scope=connection.scope,
            live=len(self._entries),
        )
        return connection.id

    def unregister(self, handle: str) -> None:
        """Remove a connection. Unknown handles are a silent no-op."""
        connection = self._entries.pop(handle, None)
        if connection is None:
            return
        if connection.state is not ConnectionState.CLOSED:
            connection.transition(ConnectionState.CLOSED)
        logger.debug(
            "leap.realtime.unregistered",
            registry=self.name,
            connection_id=handle,
            live=len(self._entries),
        )

    def get(self, handle: str) -> Optional[Connection]:
        return self._entries.get(handle)

    def for_each(self, visitor: Callable[[Connection], None]) -> None:
        """Call visitor(entry) for every registered connection.

        Iterates a snapshot: entries added or removed by the visitor (or by
        interleaved callbacks) may or may not be visited.
        """
        for connection in list(self._entries.values()):
            visitor(connection)

    def __iter__(self) -> Iterator[Connection]:
        return iter(list(self._entries.values()))

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, handle: object) -> bool:
        return handle in self._entries
