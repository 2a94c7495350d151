"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Lifespan manages startup/shutdown (Redis, the NOTIFY listener,
open realtime connections, the database engine).

Each app owns its realtime state: create_app() builds one Socket.IO
server, one push channel and one hub, and parks them on app.state.
`application` wraps the FastAPI app in socketio.ASGIApp so both share a
port; uvicorn should serve leap.main:application.
"""

from contextlib import asynccontextmanager

import socketio
import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from leap import __version__
from leap.api import api_router
from leap.config import settings
from leap.realtime.hub import RealtimeHub
from leap.realtime.socketio import SocketGateway
from leap.realtime.sse import ServerPushChannel

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` runs
    at shutdown.
    """
    logger.info(
        "leap.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
        notify_source=settings.notify_source,
    )

    from leap.db.redis import close_redis, init_redis
    try:
        await init_redis()
        logger.info("leap.redis_connected", url=settings.redis_url)
    except Exception as e:
        logger.warning("leap.redis_unavailable", error=str(e))
        # Redis only backs rate limiting; the app works without it

    listener = None
    if settings.notify_source == "postgres":
        from leap.realtime.listener import NotifyListener
        listener = NotifyListener(
            app.state.hub, settings.database_url, settings.notify_channel
        )
        try:
            await listener.start()
        except Exception as e:
            logger.warning("leap.listener_unavailable", error=str(e))
            listener = None

    yield

    logger.info("leap.shutdown")

    if listener is not None:
        await listener.stop()

    await app.state.hub.shutdown()
    await close_redis()

    from leap.db.engine import engine
    await engine.dispose()


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="LEAP Survey Platform",
        description="Survey campaigns, analytics and live dashboard updates",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Realtime ──────────────────────────────────────────────
    sio = socketio.AsyncServer(
        async_mode="asgi",
        cors_allowed_origins=settings.socketio_cors_origins,
    )
    app.state.sio = sio
    app.state.hub = RealtimeHub(
        push=ServerPushChannel(heartbeat_seconds=settings.sse_heartbeat_seconds),
        sockets=SocketGateway(sio),
    )

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: RequestId → Security → RateLimit → CORS → handler

    from leap.middleware.rate_limit import RateLimitMiddleware
    from leap.middleware.request_id import RequestIdMiddleware
    from leap.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        default_rpm=settings.rate_limit_rpm,
        submit_rpm=settings.rate_limit_submit_rpm,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)

    return app


# Default app instance; `application` adds the Socket.IO endpoint in front
app = create_app()
application = socketio.ASGIApp(
    app.state.sio, other_asgi_app=app, socketio_path=settings.socketio_path
)
