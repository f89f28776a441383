"""Database kernel utilities for short-lived read operations."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from time import monotonic
from typing import TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from aso_engine.core.database import get_session_context
from aso_engine.core.db_retry import is_transient_connection_error

logger = logging.getLogger(__name__)

_ResultT = TypeVar("_ResultT")


class DbKernelError(RuntimeError):
    """Base error for DB kernel operations."""


class TransientDbError(DbKernelError):
    """Transient DB failure (dropped or refused connection)."""


class PermanentDbError(DbKernelError):
    """Non-transient DB failure."""


def _translate_error(exc: Exception) -> DbKernelError:
    if is_transient_connection_error(exc):
        return TransientDbError(str(exc))
    return PermanentDbError(str(exc))


async def db_read(
    fn: Callable[[AsyncSession], Awaitable[_ResultT]],
    *,
    operation_name: str,
) -> _ResultT:
    """Execute a read operation in a short-lived session.

    Reads are not retried: callers fall back to built-in defaults instead.
    """
    started = monotonic()
    try:
        async with get_session_context() as session:
            result = await fn(session)
        logger.debug(
            "DB read operation completed",
            extra={
                "operation": operation_name,
                "duration_ms": round((monotonic() - started) * 1000, 2),
            },
        )
        return result
    except Exception as exc:
        translated = _translate_error(exc)
        logger.warning(
            "DB read operation failed",
            extra={
                "operation": operation_name,
                "duration_ms": round((monotonic() - started) * 1000, 2),
                "failure_class": type(translated).__name__,
            },
        )
        raise translated from exc
