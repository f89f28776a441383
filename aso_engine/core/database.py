"""Async SQLAlchemy database setup for the read-only configuration store."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from aso_engine.config import settings
from aso_engine.core.db_retry import is_transient_connection_error

logger = logging.getLogger(__name__)

_engine: AsyncEngine | None = None
_session_maker: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    """Get the shared async engine, creating it on first use."""
    global _engine
    if _engine is None:
        _engine = create_async_engine(
            settings.database_url,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            echo=settings.database_echo,
            pool_pre_ping=True,
            pool_recycle=300,  # Recycle connections every 5 min to avoid server-side timeouts
        )
    return _engine


def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """Get the shared session factory."""
    global _session_maker
    if _session_maker is None:
        _session_maker = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autocommit=False,
            autoflush=False,
        )
    return _session_maker


def _has_pending_state(session: AsyncSession) -> bool:
    return bool(session.new or session.dirty or session.deleted)


async def end_read_transaction(session: AsyncSession, *, context: str) -> None:
    """Roll back an open read transaction, ignoring an already-dropped connection."""
    if not session.in_transaction():
        return
    try:
        await session.rollback()
    except Exception as exc:
        if is_transient_connection_error(exc):
            logger.debug(
                "Ignoring transient rollback failure for read-only transaction",
                extra={"context": context},
            )
            return
        raise


@asynccontextmanager
async def get_session_context() -> AsyncGenerator[AsyncSession, None]:
    """Get a short-lived read session.

    The engine never writes configuration, so a session that accumulated ORM
    changes is treated as a programming error.
    """
    async with get_session_maker()() as session:
        yield session
        if _has_pending_state(session):
            raise RuntimeError("Read-only session has pending ORM changes")
        await end_read_transaction(session, context="session_context")


async def close_db() -> None:
    """Close database connections."""
    global _engine, _session_maker
    if _engine is None:
        return

    logger.info("Closing database connections")
    await _engine.dispose()
    _engine = None
    _session_maker = None
