"""Domain event tests — closed kinds plus the passthrough escape hatch."""

from datetime import datetime, timezone

import pytest

from leap.realtime.events import DomainEvent, EventKind, response_payload


def test_known_names_map_to_kinds():
    assert DomainEvent.from_name("response:created", {}).kind is EventKind.RESPONSE_CREATED
    assert DomainEvent.from_name("response", {}).kind is EventKind.RESPONSE
    assert DomainEvent.from_name("connected", {}).kind is EventKind.CONNECTED


def test_unknown_name_is_passed_through_verbatim():
    event = DomainEvent.from_name("campaign:closed", {"surveyId": "s1"}, scope="s1")
    assert event.kind is EventKind.PASSTHROUGH
    assert event.name == "campaign:closed"
    assert event.scope == "s1"


def test_passthrough_requires_wire_name():
    with pytest.raises(ValueError):
        DomainEvent(EventKind.PASSTHROUGH, {})


def test_with_scope_keeps_everything_else():
    event = DomainEvent.from_name("custom", {"a": 1})
    scoped = event.with_scope("s9")
    assert scoped.scope == "s9"
    assert scoped.name == "custom"
    assert scoped.payload == {"a": 1}
    assert event.scope is None


def test_response_payload_is_camel_case():
    ts = datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc)
    payload = response_payload("acme-1", "acme", "leadership", 12, ts)
    assert payload == {
        "surveyId": "acme-1",
        "companyId": "acme",
        "module": "leadership",
        "count": 12,
        "timestamp": "2026-10-19T09:30:00+00:00",
    }
