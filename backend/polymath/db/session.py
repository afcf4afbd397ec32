"""Database session management."""

import json
import logging
from collections.abc import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from polymath.config import Settings

logger = logging.getLogger(__name__)


def json_serializer(value) -> str:
    """JSON column encoder; non-ASCII text is stored as-is, not \\u-escaped."""
    return json.dumps(value, ensure_ascii=False)


def build_engine(settings: Settings) -> AsyncEngine | None:
    """Create the async engine, or None when no database is configured."""
    if settings.database_url is None:
        logger.warning("No database configured; reads will return empty results and writes will fail")
        return None

    connect_args = {"ssl": "require"} if settings.database_requires_ssl else {}
    return create_async_engine(
        settings.database_url,
        echo=settings.debug,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
        connect_args=connect_args,
        json_serializer=json_serializer,
    )


def build_session_factory(engine: AsyncEngine | None) -> async_sessionmaker[AsyncSession] | None:
    """Session factory bound to the engine."""
    if engine is None:
        return None
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def get_db(request: Request) -> AsyncGenerator[AsyncSession | None, None]:
    """
    FastAPI dependency for database sessions.

    Yields None when the database was never configured; the persistence
    functions treat that as "degrade reads, refuse writes".
    """
    session_factory = request.app.state.session_factory
    if session_factory is None:
        yield None
        return

    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
