"""Realtime hub — the single entry point for "something happened" calls.

Learn: Producers never touch transports directly. They call one of:
- notify(): a response batch was durably written (submit endpoint)
- relay(): an external trigger arrived (Postgres NOTIFY listener)

The hub turns the call into a DomainEvent per transport convention:
- push stream: `response`, scoped to the survey id
- Socket.IO:   `response:created`, to company and survey rooms

Notification is best-effort and happens after the write commits. If the
write fails, no one calls the hub.
"""

from datetime import datetime
from typing import Any, Optional

import structlog

from leap.realtime.events import DomainEvent, EventKind, response_payload
from leap.realtime.socketio import SocketGateway
from leap.realtime.sse import ServerPushChannel

logger = structlog.get_logger()


def _as_id(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


class RealtimeHub:
    def __init__(
        self,
        push: ServerPushChannel,
        sockets: Optional[SocketGateway] = None,
    ):
        self.push = push
        self.sockets = sockets

    async def notify(
        self,
        survey_id: str,
        company_id: Optional[str],
        module_id: str,
        count: int,
        timestamp: datetime,
    ) -> None:
        """Announce a submitted response batch to every interested dashboard.

        Without a company id the Socket.IO side is skipped — sockets are
        tenant-scoped and there is no room to address.
        """
        payload = response_payload(survey_id, company_id, module_id, count, timestamp)
        pushed = await self.push.deliver(
            DomainEvent(EventKind.RESPONSE, payload, scope=survey_id)
        )
        emitted = 0
        if self.sockets is not None and company_id:
            emitted = await self.sockets.emit_to_company(
                DomainEvent(EventKind.RESPONSE_CREATED, payload),
                company_id,
                survey_id,
            )
        logger.info(
            "leap.realtime.notified",
            survey_id=survey_id,
            company_id=company_id,
            module=module_id,
            count=count,
            pushed=pushed,
            emitted=emitted,
        )

    async def relay(self, channel: str, data: dict[str, Any]) -> None:
        """Forward an external trigger under its own event name.

        The name comes from data["event"], falling back to the channel.
        Push streams see `response:created` under their own `response`
        name. Company-addressed triggers go to the company (and survey)
        rooms; the rest go to every socket.
        """
        name = data.get("event") or channel
        company_id = _as_id(data.get("companyId"))
        survey_id = _as_id(data.get("surveyId"))

        pushed = DomainEvent.from_name(name, data, scope=survey_id)
        if pushed.kind is EventKind.RESPONSE_CREATED:
            pushed = DomainEvent(EventKind.RESPONSE, data, scope=survey_id)
        await self.push.deliver(pushed)

        if self.sockets is None:
            return
        event = DomainEvent.from_name(name, data)
        if company_id:
            await self.sockets.emit_to_company(event, company_id, survey_id)
        else:
            await self.sockets.broadcast(event)

    def connection_counts(self) -> dict[str, int]:
        return {
            "sse": len(self.push.registry),
            "socketio": len(self.sockets.registry) if self.sockets else 0,
        }

    async def shutdown(self) -> None:
        """Close every transport. In-flight broadcasts are not flushed."""
        counts = self.connection_counts()
        await self.push.shutdown()
        if self.sockets is not None:
            await self.sockets.shutdown()
        logger.info("leap.realtime.shutdown", closed=counts)
