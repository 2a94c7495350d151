"""Connections and their lifecycle state machine.

Learn: Every live transport session is a Connection. Its state only moves
forward along VALID_TRANSITIONS:

  CONNECTING → AUTHENTICATING → OPEN → CLOSED   (Socket.IO)
  CONNECTING → OPEN → CLOSED                    (push stream, no auth step)

CLOSED is terminal — a reconnecting client gets a brand-new Connection,
with no memory of events it missed.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Protocol

from leap.realtime.events import DomainEvent


class ConnectionState(str, Enum):
    CONNECTING = "connecting"
    AUTHENTICATING = "authenticating"
    OPEN = "open"
    CLOSED = "closed"


VALID_TRANSITIONS: dict[ConnectionState, set[ConnectionState]] = {
    ConnectionState.CONNECTING: {
        ConnectionState.AUTHENTICATING,
        ConnectionState.OPEN,  # one-way transport skips auth
        ConnectionState.CLOSED,  # dropped mid-handshake
    },
    ConnectionState.AUTHENTICATING: {ConnectionState.OPEN, ConnectionState.CLOSED},
    ConnectionState.OPEN: {ConnectionState.CLOSED},
    ConnectionState.CLOSED: set(),  # terminal state
}


class InvalidTransitionError(Exception):
    """Raised when a connection state transition is not allowed."""
    pass


class TransportClosedError(Exception):
    """Raised by a transport that is written to after it was closed."""
    pass


class Transport(Protocol):
    """The wire side of a connection. Owned by exactly one Connection."""

    async def send(self, event: DomainEvent) -> None: ...

    async def close(self) -> None: ...


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_connection_id() -> str:
    return uuid.uuid4().hex


@dataclass(eq=False)
class Connection:
    transport: Transport
    id: str = field(default_factory=new_connection_id)
    scope: Optional[str] = None
    rooms: set[str] = field(default_factory=set)
    state: ConnectionState = ConnectionState.CONNECTING
    connected_at: datetime = field(default_factory=utcnow)

    def transition(self, new_state: ConnectionState) -> None:
        if new_state not in VALID_TRANSITIONS[self.state]:
            raise InvalidTransitionError(
                f"Connection {self.id}: cannot move from "
                f"'{self.state.value}' to '{new_state.value}'"
            )
        self.state = new_state

    @property
    def is_open(self) -> bool:
        return self.state is ConnectionState.OPEN

    def join(self, room: str) -> None:
        self.rooms.add(room)

    def leave(self, room: str) -> None:
        self.rooms.discard(room)
