"""Connection state machine tests.

Learn: CLOSED is terminal. Push connections go CONNECTING → OPEN,
Socket.IO connections go through AUTHENTICATING first.
"""

import pytest

from leap.realtime.connection import (
    VALID_TRANSITIONS,
    Connection,
    ConnectionState,
    InvalidTransitionError,
)


class NullTransport:
    async def send(self, event):
        pass

    async def close(self):
        pass


def test_new_connection_starts_connecting():
    conn = Connection(transport=NullTransport())
    assert conn.state is ConnectionState.CONNECTING
    assert not conn.is_open
    assert len(conn.id) == 32


def test_authenticated_path():
    conn = Connection(transport=NullTransport())
    conn.transition(ConnectionState.AUTHENTICATING)
    conn.transition(ConnectionState.OPEN)
    assert conn.is_open
    conn.transition(ConnectionState.CLOSED)
    assert conn.state is ConnectionState.CLOSED


def test_one_way_transport_skips_auth():
    conn = Connection(transport=NullTransport())
    conn.transition(ConnectionState.OPEN)
    assert conn.is_open


@pytest.mark.parametrize("target", list(ConnectionState))
def test_closed_is_terminal(target):
    conn = Connection(transport=NullTransport())
    conn.transition(ConnectionState.CLOSED)
    with pytest.raises(InvalidTransitionError):
        conn.transition(target)


def test_open_cannot_go_back_to_authenticating():
    conn = Connection(transport=NullTransport())
    conn.transition(ConnectionState.OPEN)
    with pytest.raises(InvalidTransitionError, match="'open' to 'authenticating'"):
        conn.transition(ConnectionState.AUTHENTICATING)


def test_every_state_has_transition_entry():
    assert set(VALID_TRANSITIONS) == set(ConnectionState)


def test_rooms_join_and_leave():
    conn = Connection(transport=NullTransport())
    conn.join("company:acme")
    conn.join("company:acme")
    assert conn.rooms == {"company:acme"}
    conn.leave("company:acme")
    conn.leave("company:acme")
    assert conn.rooms == set()
