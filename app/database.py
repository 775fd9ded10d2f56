"""Database configuration and session management."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from app.config.settings import settings

# Import models so they are attached to Base.metadata before table creation
from app.models import Base  # noqa: F401 - ensures metadata is registered

logger = logging.getLogger(__name__)


def _create_engine(url: str | None = None) -> AsyncEngine:
    """Create an async engine with environment-appropriate pooling."""

    engine_options: dict[str, Any] = {
        "echo": settings.debug,
        "future": True,
        "pool_pre_ping": True,
    }

    if settings.database.serverless or settings.debug:
        # Disable pooling when working with serverless databases (or in debug).
        engine_options["poolclass"] = NullPool

    return create_async_engine(url or settings.database.url, **engine_options)


def create_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Build a session factory with the options every caller expects."""

    return async_sessionmaker(
        bind,
        expire_on_commit=False,
        class_=AsyncSession,
    )


engine: AsyncEngine = _create_engine()

SessionFactory = create_session_factory(engine)


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """Async context manager that yields a configured SQLAlchemy session."""

    async with SessionFactory() as session:
        yield session


async def get_session() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency-compatible generator yielding a configured session."""

    async with session_scope() as session:
        yield session


async def init_models(bind: AsyncEngine | None = None) -> None:
    """Create database tables if they do not exist."""

    target = bind or engine
    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("Ensured database tables for %s.", target.url.render_as_string())


async def dispose_engine() -> None:
    """Dispose of the engine and release pooled connections."""

    await engine.dispose()
