"""Test fixtures — a fresh app and a throwaway database per test.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Env vars are set before `leap` is imported, so Settings picks up the
   test environment (no Postgres, no Redis, a fixed JWT secret).
2. Each test gets its own SQLite file (aiosqlite) with the schema created
   from Base.metadata; the app's get_db is overridden to use it.
3. Each test gets its own create_app(), so realtime registries never
   leak connections between tests.

Redis is not running, so the rate limiter passes everything through.
"""

import os

os.environ.setdefault("LEAP_ENVIRONMENT", "test")
os.environ.setdefault("LEAP_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LEAP_JWT_SECRET", "test-secret-not-for-production-use")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from leap.db.engine import get_db
from leap.db.models import Base
from leap.main import create_app


class FakeSocketServer:
    """Stands in for socketio.AsyncServer: records handlers, emits, disconnects."""

    def __init__(self):
        self.handlers = {}
        self.emitted = []
        self.disconnected = []

    def on(self, event, handler=None, namespace=None):
        self.handlers[event] = handler

    async def emit(self, event, data=None, to=None, **kwargs):
        self.emitted.append((event, data, to))

    async def disconnect(self, sid, **kwargs):
        self.disconnected.append(sid)


@pytest_asyncio.fixture()
async def db_engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'leap.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest_asyncio.fixture()
async def db_session(db_engine):
    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest.fixture
def app(db_engine):
    """A fresh application whose get_db yields sessions on the test database."""
    application = create_app()
    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with factory() as session:
            yield session

    application.dependency_overrides[get_db] = override_get_db
    return application


@pytest.fixture
def hub(app):
    return app.state.hub


@pytest_asyncio.fixture()
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def fake_sio():
    return FakeSocketServer()


@pytest_asyncio.fixture()
async def campaign(client):
    """A campaign for Acme Corp covering all three modules."""
    resp = await client.post(
        "/api/v1/campaigns",
        json={
            "company_name": "Acme Corp",
            "target_audience": "managers",
            "modules": ["ai-readiness", "leadership", "employee-experience"],
            "primary_module": "leadership",
            "participant_count": 4,
        },
    )
    assert resp.status_code == 201
    return resp.json()


@pytest_asyncio.fixture()
async def open_push():
    """Start push streams the way StreamingResponse would.

    `await open_push(channel, survey_id)` returns (connection, stream) with
    the "connected" frame already consumed. Streams are closed afterwards.
    """
    streams = []

    async def _open(channel, survey_id=None):
        connection = channel.connect(survey_id)
        stream = channel.stream(connection)
        await stream.__anext__()
        streams.append(stream)
        return connection, stream

    yield _open

    for stream in streams:
        await stream.aclose()
