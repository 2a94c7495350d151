"""Event broadcaster tests.

Learn: These pin down the delivery rules every transport relies on:
1. Scope filtering (unscoped connections get everything)
2. One failing connection doesn't stop the rest
3. Per-connection FIFO order across publishes
4. Closed connections are never written to
"""

import pytest

from leap.realtime.broadcaster import EventBroadcaster, in_room, scope_filter
from leap.realtime.connection import Connection
from leap.realtime.events import DomainEvent, EventKind
from leap.realtime.registry import SubscriptionRegistry


class RecordingTransport:
    def __init__(self, fail=False):
        self.sent = []
        self.fail = fail

    async def send(self, event):
        if self.fail:
            raise ConnectionResetError("peer went away")
        self.sent.append(event)

    async def close(self):
        pass


@pytest.fixture
def registry():
    return SubscriptionRegistry("test")


@pytest.fixture
def broadcaster(registry):
    return EventBroadcaster(registry)


def _register(registry, scope=None, fail=False):
    conn = Connection(transport=RecordingTransport(fail=fail))
    registry.register(conn, scope=scope)
    return conn


def _event(scope=None, n=1):
    return DomainEvent(EventKind.RESPONSE, {"n": n}, scope=scope)


# ═══════════════════════════════════════════════════════════
# Filtering
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_scoped_event_reaches_matching_and_unscoped(registry, broadcaster):
    a = _register(registry, scope="s1")
    b = _register(registry, scope="s2")
    c = _register(registry)

    delivered = await broadcaster.publish(_event(scope="s1"))

    assert delivered == 2
    assert len(a.transport.sent) == 1
    assert b.transport.sent == []
    assert len(c.transport.sent) == 1


@pytest.mark.asyncio
async def test_unscoped_event_reaches_everyone(registry, broadcaster):
    conns = [_register(registry, scope=s) for s in ("s1", "s2", None)]
    assert await broadcaster.publish(_event()) == 3
    assert all(len(c.transport.sent) == 1 for c in conns)


@pytest.mark.asyncio
async def test_explicit_predicate_overrides_scope(registry, broadcaster):
    a = _register(registry, scope="acme")
    a.join("company:acme")
    b = _register(registry, scope="globex")

    delivered = await broadcaster.publish(_event(), predicate=in_room("company:acme"))

    assert delivered == 1
    assert b.transport.sent == []


@pytest.mark.asyncio
async def test_empty_registry_is_a_noop(broadcaster):
    assert await broadcaster.publish(_event()) == 0


def test_scope_filter_rules():
    conn = Connection(transport=RecordingTransport(), scope="s1")
    assert scope_filter(_event())(conn)
    assert scope_filter(_event(scope="s1"))(conn)
    assert not scope_filter(_event(scope="s2"))(conn)


# ═══════════════════════════════════════════════════════════
# Failure isolation
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_failed_write_does_not_stop_broadcast(registry, broadcaster):
    a = _register(registry)
    broken = _register(registry, fail=True)
    c = _register(registry)

    delivered = await broadcaster.publish(_event())

    assert delivered == 2
    assert len(a.transport.sent) == 1
    assert len(c.transport.sent) == 1
    # a failed write is not a disconnect
    assert broken.id in registry
    assert broken.is_open


@pytest.mark.asyncio
async def test_closed_connections_are_skipped(registry, broadcaster):
    a = _register(registry)
    b = _register(registry)
    registry.unregister(b.id)

    await broadcaster.publish(_event())

    assert len(a.transport.sent) == 1
    assert b.transport.sent == []


@pytest.mark.asyncio
async def test_connection_closed_mid_broadcast_is_skipped(registry, broadcaster):
    closes = {}

    class ClosingTransport(RecordingTransport):
        async def send(self, event):
            await super().send(event)
            registry.unregister(closes["id"])

    first = Connection(transport=ClosingTransport())
    registry.register(first)
    victim = _register(registry)
    closes["id"] = victim.id

    delivered = await broadcaster.publish(_event())

    assert delivered == 1
    assert len(first.transport.sent) == 1
    assert victim.transport.sent == []


# ═══════════════════════════════════════════════════════════
# Ordering
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_per_connection_fifo(registry, broadcaster):
    conn = _register(registry)
    for n in range(5):
        await broadcaster.publish(_event(n=n))
    assert [e.payload["n"] for e in conn.transport.sent] == [0, 1, 2, 3, 4]
