# storefront/db/session_async.py
"""Async SQLAlchemy session utilities."""

from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import TypeVar

from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from storefront.core.config import settings
from storefront.core.logging import get_logger
from storefront.services.exceptions import PersistenceError, ServiceError

T = TypeVar("T")

logger = get_logger("storefront.db")

_AFTER_COMMIT_KEY = "after_commit"

_engine_kwargs: dict = {"pool_pre_ping": True}
if settings.is_sqlite:
    # Conexiones por operación: evita compartir el hilo de aiosqlite entre event loops.
    _engine_kwargs["poolclass"] = NullPool

async_engine: AsyncEngine = create_async_engine(settings.ASYNC_DATABASE_URL, **_engine_kwargs)

if settings.is_sqlite:
    # aiosqlite defers BEGIN on its own, which breaks SAVEPOINT handling.
    @event.listens_for(async_engine.sync_engine, "connect")
    def _sqlite_disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    # IMMEDIATE toma el lock de escritura al inicio: los escritores esperan
    # (busy timeout) en vez de fallar con "database is locked" al hacer commit.
    @event.listens_for(async_engine.sync_engine, "begin")
    def _sqlite_emit_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


AsyncSessionLocal = async_sessionmaker(
    bind=async_engine,
    expire_on_commit=False,
    autoflush=False,
)


async def get_async_db() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency that yields an AsyncSession."""
    async with AsyncSessionLocal() as session:
        yield session


def after_commit(session: AsyncSession, callback: Callable[[], None]) -> None:
    """Defer ``callback`` until the enclosing ``transactional()`` block commits.

    Pending callbacks are dropped when the transaction rolls back.
    """
    session.info.setdefault(_AFTER_COMMIT_KEY, []).append(callback)


async def rollback(session: AsyncSession) -> None:
    """Rollback active transaction if needed."""
    session.info.pop(_AFTER_COMMIT_KEY, None)
    if session.in_transaction():
        await session.rollback()


@asynccontextmanager
async def transactional(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """Run the enclosed block as one unit of work.

    Commits on success, then runs the callbacks registered with
    ``after_commit``. Any failure rolls the whole transaction back; storage
    errors are re-raised as ``PersistenceError`` so callers can retry.
    """
    try:
        yield session
        await session.commit()
    except ServiceError:
        await rollback(session)
        raise
    except SQLAlchemyError as exc:
        await rollback(session)
        logger.error("Transaction aborted by storage error", exc_info=True)
        raise PersistenceError("Storage failure, the operation was not applied and can be retried") from exc
    except BaseException:
        await rollback(session)
        raise

    for callback in session.info.pop(_AFTER_COMMIT_KEY, []):
        callback()


async def run_in_transaction(
    operation: Callable[[AsyncSession], Awaitable[T]],
) -> T:
    """Execute an async operation within a managed transaction on a fresh session."""
    async with AsyncSessionLocal() as session:
        async with transactional(session):
            return await operation(session)
