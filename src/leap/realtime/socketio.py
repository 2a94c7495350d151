"""Socket.IO gateway — the bidirectional, authenticated transport.

Learn: Dashboards connect with `io(url, {auth: {token}})` (or `?token=`).
The connect handler walks the connection through its state machine:

  CONNECTING → AUTHENTICATING → OPEN   on a valid token with company_id
  CONNECTING → AUTHENTICATING → CLOSED on anything else (refused)

A refused client never reaches the registry. An accepted one is scoped
to its company and joins the room `company:<id>`. It can then add or drop
survey sub-rooms (`company:<id>:survey:<sid>`) with `join:survey` and
`leave:survey` — room membership lives on the Connection, so those
messages never create a second registry entry.

Rooms are matched by our own broadcaster rather than python-socketio's
room manager, so both transports share one delivery and failure policy.
"""

from typing import Any, Callable, Iterable, Optional
from urllib.parse import parse_qs

import socketio
import structlog
from socketio.exceptions import ConnectionRefusedError as HandshakeRefusedError

from leap.auth.jwt import TokenError, company_from_token
from leap.realtime.broadcaster import EventBroadcaster, in_room
from leap.realtime.connection import Connection, ConnectionState
from leap.realtime.events import DomainEvent, EventKind
from leap.realtime.registry import SubscriptionRegistry

logger = structlog.get_logger()


def company_room(company_id: str) -> str:
    return f"company:{company_id}"


def survey_room(company_id: str, survey_id: str) -> str:
    return f"company:{company_id}:survey:{survey_id}"


def extract_token(environ: dict[str, Any], auth: Any | None) -> Optional[str]:
    """Pull the JWT from the handshake `auth` payload or the query string.

    Handles python-socketio environ shapes across ASGI/WSGI servers.
    """
    if isinstance(auth, dict):
        auth_token = auth.get("token")
        if isinstance(auth_token, str) and auth_token:
            return auth_token

    scope: Any = environ
    if isinstance(environ, dict) and isinstance(environ.get("asgi.scope"), dict):
        scope = environ["asgi.scope"]

    query_string: str | bytes = ""
    if isinstance(scope, dict):
        query_string = scope.get("query_string") or scope.get("QUERY_STRING") or ""
    if isinstance(query_string, (bytes, bytearray)):
        query_string = query_string.decode(errors="ignore")

    token = parse_qs(str(query_string)).get("token", [None])[0]
    if isinstance(token, str) and token:
        return token
    return None


def _survey_id(data: Any) -> Optional[str]:
    """join/leave messages carry a bare id or {"surveyId": id}."""
    if isinstance(data, dict):
        data = data.get("surveyId")
    if data is None or data == "":
        return None
    return str(data)


def _requested_surveys(auth: Any | None) -> Iterable[str]:
    if not isinstance(auth, dict):
        return ()
    requested = auth.get("surveyIds") or []
    if isinstance(requested, (str, int)):
        requested = [requested]
    return [str(s) for s in requested if s not in (None, "")]


class SocketIOTransport:
    """Writes events to one Socket.IO client, addressed by sid."""

    def __init__(self, sio: socketio.AsyncServer, sid: str):
        self.sio = sio
        self.sid = sid

    async def send(self, event: DomainEvent) -> None:
        await self.sio.emit(event.name, event.payload, to=self.sid)

    async def close(self) -> None:
        await self.sio.disconnect(self.sid)


class SocketGateway:
    """Binds a python-socketio server to a registry and broadcaster."""

    def __init__(
        self,
        sio: socketio.AsyncServer,
        registry: Optional[SubscriptionRegistry] = None,
        authenticate: Callable[[str], str] = company_from_token,
    ):
        self.sio = sio
        self.registry = registry or SubscriptionRegistry(name="socketio")
        self.broadcaster = EventBroadcaster(self.registry)
        self.authenticate = authenticate

        sio.on("connect", self.on_connect)
        sio.on("disconnect", self.on_disconnect)
        sio.on("join:survey", self.on_join_survey)
        sio.on("leave:survey", self.on_leave_survey)

    # ─── Client → server ────────────────────────────────────

    async def on_connect(self, sid: str, environ: dict, auth: Any = None):
        connection = Connection(transport=SocketIOTransport(self.sio, sid), id=sid)
        connection.transition(ConnectionState.AUTHENTICATING)

        token = extract_token(environ, auth)
        if not token:
            self._refuse(connection, "Auth token required")
        try:
            company_id = self.authenticate(token)
        except TokenError as e:
            self._refuse(connection, str(e))

        self.registry.register(connection, scope=company_id)
        connection.join(company_room(company_id))
        for survey_id in _requested_surveys(auth):
            connection.join(survey_room(company_id, survey_id))

        logger.info(
            "leap.socketio.connected",
            connection_id=sid,
            company_id=company_id,
            rooms=sorted(connection.rooms),
        )
        await connection.transport.send(
            DomainEvent(EventKind.CONNECTED, {"companyId": company_id})
        )

    async def on_disconnect(self, sid: str, reason: Any = None):
        self.registry.unregister(sid)
        logger.info("leap.socketio.disconnected", connection_id=sid, reason=str(reason))

    async def on_join_survey(self, sid: str, data: Any = None):
        connection = self.registry.get(sid)
        survey_id = _survey_id(data)
        if connection is None or survey_id is None:
            return
        connection.join(survey_room(connection.scope, survey_id))

    async def on_leave_survey(self, sid: str, data: Any = None):
        connection = self.registry.get(sid)
        survey_id = _survey_id(data)
        if connection is None or survey_id is None:
            return
        connection.leave(survey_room(connection.scope, survey_id))

    def _refuse(self, connection: Connection, reason: str):
        connection.transition(ConnectionState.CLOSED)
        logger.info(
            "leap.socketio.refused", connection_id=connection.id, reason=reason
        )
        raise HandshakeRefusedError(reason)

    # ─── Server → client ────────────────────────────────────

    async def emit_to_room(self, room: str, event: DomainEvent) -> int:
        return await self.broadcaster.publish(event, predicate=in_room(room))

    async def emit_to_company(
        self,
        event: DomainEvent,
        company_id: str,
        survey_id: Optional[str] = None,
    ) -> int:
        """Emit to the company room, then to the survey sub-room.

        A client in both rooms receives the event twice.
        """
        delivered = await self.emit_to_room(company_room(company_id), event)
        if survey_id:
            delivered += await self.emit_to_room(
                survey_room(company_id, survey_id), event
            )
        return delivered

    async def broadcast(self, event: DomainEvent) -> int:
        return await self.broadcaster.publish(event, predicate=lambda c: True)

    async def shutdown(self) -> None:
        for connection in self.registry:
            try:
                await connection.transport.close()
            except Exception as e:
                logger.warning(
                    "leap.socketio.close_failed",
                    connection_id=connection.id,
                    error=str(e),
                )
            self.registry.unregister(connection.id)
