"""Domain events pushed to dashboards.

Learn: Event names are a closed set (EventKind) instead of free-form
strings. The one path that forwards arbitrary names — external triggers
relayed from Postgres NOTIFY — uses the PASSTHROUGH kind, which carries
its wire name verbatim so new trigger events work without a code change.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class EventKind(str, Enum):
    CONNECTED = "connected"
    RESPONSE_CREATED = "response:created"  # Socket.IO convention
    RESPONSE = "response"  # push-stream convention
    PASSTHROUGH = "passthrough"


_KNOWN_NAMES = {
    kind.value: kind for kind in EventKind if kind is not EventKind.PASSTHROUGH
}


@dataclass(frozen=True)
class DomainEvent:
    """An ephemeral event: lives for one broadcast pass, never persisted.

    `scope` is the survey or company id used by the default broadcast
    filter. `wire_name` is only set for PASSTHROUGH events.
    """

    kind: EventKind
    payload: dict[str, Any] = field(default_factory=dict)
    scope: Optional[str] = None
    wire_name: Optional[str] = None

    def __post_init__(self):
        if self.kind is EventKind.PASSTHROUGH and not self.wire_name:
            raise ValueError("passthrough events need a wire name")

    @property
    def name(self) -> str:
        """Event name as written on the wire."""
        if self.kind is EventKind.PASSTHROUGH:
            return self.wire_name
        return self.kind.value

    @classmethod
    def from_name(
        cls,
        name: str,
        payload: dict[str, Any],
        scope: Optional[str] = None,
    ) -> "DomainEvent":
        """Map a wire name to a known kind, or wrap it as a passthrough."""
        kind = _KNOWN_NAMES.get(name)
        if kind is None:
            return cls(EventKind.PASSTHROUGH, payload, scope, wire_name=name)
        return cls(kind, payload, scope)

    def with_scope(self, scope: Optional[str]) -> "DomainEvent":
        return DomainEvent(self.kind, self.payload, scope, self.wire_name)


def response_payload(
    survey_id: str,
    company_id: Optional[str],
    module_id: str,
    count: int,
    timestamp: datetime,
) -> dict[str, Any]:
    """Wire payload for a submitted response batch (camelCase for dashboards)."""
    return {
        "surveyId": survey_id,
        "companyId": company_id,
        "module": module_id,
        "count": count,
        "timestamp": timestamp.isoformat(),
    }
