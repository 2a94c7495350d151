"""Async SQLAlchemy engine and session factory.

Learn: SQLAlchemy 2.0 async mode — create_async_engine for connection pooling,
AsyncSession for per-request database access, dependency injection via FastAPI.
Production runs on asyncpg; SQLite (aiosqlite) URLs skip the pool sizing
arguments, which SQLite's pool classes don't accept.
"""

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from leap.config import settings


def _engine_options(url: str) -> dict:
    options = {"echo": settings.debug}
    if not url.startswith("sqlite"):
        # Connection pool: min 5, max 20 connections.
        options.update(pool_size=5, max_overflow=15)
    return options


engine = create_async_engine(
    settings.database_url, **_engine_options(settings.database_url)
)

# Session factory — each request gets its own session.
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncSession:
    """FastAPI dependency — yields a session per request, auto-closes."""
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()
