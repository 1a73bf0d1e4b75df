"""
Database configuration.
Implements connection pooling, async sessions and the transaction primitive
used by every booking operation.
"""

import logging
from typing import AsyncGenerator, Awaitable, Callable, Optional, TypeVar

from sqlalchemy import text
from sqlalchemy.exc import OperationalError, PendingRollbackError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlmodel import SQLModel

from .config import settings
from .exceptions import ConflictError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _engine_kwargs() -> dict:
    """Pool and driver options for the configured backend."""
    if not settings.database.is_postgres:
        return {"echo": settings.database.echo, "future": True}

    return {
        "echo": settings.database.echo,
        "future": True,
        "pool_pre_ping": False,
        "pool_size": settings.database.pool_size,
        "max_overflow": settings.database.max_overflow,
        "pool_timeout": settings.database.pool_timeout,
        "pool_recycle": settings.database.pool_recycle,
        "connect_args": {
            "server_settings": {
                "application_name": settings.api.app_name,
                # Row-lock waits on booking rows end as a retryable conflict
                "lock_timeout": f"{settings.database.transaction_timeout * 1000}",
            },
            "command_timeout": 60,
            "timeout": 30,
        },
    }


# Create async engine
engine = create_async_engine(settings.database.url, **_engine_kwargs())

# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,  # Prevent additional queries after commit
    autoflush=False,  # Manual flush for better control
    autocommit=False,
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency for getting async database sessions.
    Implements proper session lifecycle management.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            # Only commit if session is in a valid state
            if session.in_transaction():
                try:
                    await session.commit()
                except PendingRollbackError:
                    await session.rollback()
                    raise
        except Exception:
            await session.rollback()
            raise


async def run_transaction(
    db: AsyncSession,
    fn: Callable[[AsyncSession], Awaitable[T]],
    *,
    operation_name: Optional[str] = None,
) -> T:
    """
    Run `fn(db)` as one all-or-nothing unit of work.

    Commits when `fn` returns, rolls back when it raises. Every read `fn`
    performs happens inside the transaction, so slot state must be re-read
    through `fn` rather than passed in from an earlier read.

    Lock waits and statement timeouts from the store are reported as a
    retryable ConflictError("store_timeout").

    Args:
        db: Database session
        fn: Coroutine function receiving the session
        operation_name: Name used in log lines

    Returns:
        Whatever `fn` returned
    """
    operation = operation_name or getattr(fn, "__name__", "transaction")
    try:
        result = await fn(db)
        await db.commit()
        logger.debug(f"Transaction committed for {operation}")
        return result
    except (OperationalError, PoolTimeoutError) as exc:
        await _safe_rollback(db, operation)
        logger.warning(f"Store timeout during {operation}: {exc}")
        raise ConflictError("store_timeout", retryable=True) from exc
    except Exception:
        await _safe_rollback(db, operation)
        raise


async def _safe_rollback(db: AsyncSession, operation: str) -> None:
    try:
        await db.rollback()
        logger.debug(f"Transaction rolled back for {operation}")
    except Exception as rollback_exc:
        logger.error(f"Failed to rollback transaction for {operation}: {rollback_exc}")


async def check_database() -> bool:
    """Run a trivial query; used by the health endpoint."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.warning(f"Database health check failed: {e}")
        return False


async def init_db() -> None:
    """
    Initialize database tables.
    Should be called on application startup.
    """
    # Import models so their tables are registered on the metadata
    import db.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def close_db() -> None:
    """
    Close database connections.
    Should be called on application shutdown.
    """
    await engine.dispose()
