"""Database Session Manager — async connection pool with automatic rollback and health checks.

Invariants:
    - Every session auto-rolls-back on exception (no partial commits leak)
    - Connection pool uses pool_pre_ping for stale connection detection
    - Transactions aborted by the server (deadlock, serialization failure,
      lock or statement timeout) surface as ConcurrencyError; every other
      SQLAlchemy exception surfaces as DatabaseError (core/errors.py)
    - Time bounds are enforced by the database, never by cancelling the
      client mid-transaction

Design Decisions:
    - Constructed by main.build_store and injected into the store; no module-level
      instance
    - expire_on_commit=False: prevents lazy-load issues in async context
    - SQLite URLs skip pool sizing: aiosqlite picks its own pool class
    - asyncpg gets lock_timeout/statement_timeout as server settings; sqlite
      gets its busy timeout
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from sqlalchemy.exc import OperationalError, DBAPIError, SQLAlchemyError
from sqlalchemy import text

from groupkeeper.core.errors import ConcurrencyError, DatabaseError

logger = logging.getLogger(__name__)

# serialization_failure, deadlock_detected, lock_not_available, query_canceled
ABORTED_TRANSACTION_STATES = frozenset({"40001", "40P01", "55P03", "57014"})


def connect_args_for(database_url: str, timeout_seconds: float | None) -> dict:
    """Driver arguments that make the server give up on a blocked statement."""
    if not timeout_seconds:
        return {}
    if database_url.startswith("sqlite"):
        return {"timeout": timeout_seconds}
    if database_url.startswith("postgresql+asyncpg"):
        millis = str(int(timeout_seconds * 1000))
        return {
            "server_settings": {
                "lock_timeout": millis,
                "statement_timeout": millis,
            },
        }
    return {}


def is_aborted_transaction(error: DBAPIError) -> bool:
    """True when the server rolled the transaction back and a retry is safe."""
    orig = error.orig
    state = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if state in ABORTED_TRANSACTION_STATES:
        return True
    return "database is locked" in str(orig)


class DatabaseSessionManager:
    """Manages async database sessions with pooling, rollback, and health checks."""

    def __init__(
        self,
        database_url: str,
        pool_size: int = 20,
        max_overflow: int = 10,
        timeout_seconds: float | None = None,
    ):
        pool_options = {}
        if not database_url.startswith("sqlite"):
            pool_options = {
                "pool_size": pool_size,
                "max_overflow": max_overflow,
                "pool_recycle": 3600,
            }
        self.engine = create_async_engine(
            database_url,
            pool_pre_ping=True,
            connect_args=connect_args_for(database_url, timeout_seconds),
            **pool_options,
        )
        self._session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Provide session with auto-rollback on exception."""
        session = self._session_factory()
        try:
            yield session
        except DBAPIError as e:
            await session.rollback()
            if is_aborted_transaction(e):
                logger.warning(f"DB transaction aborted: {e.orig}")
                raise ConcurrencyError(
                    "The database aborted the transaction; no changes were applied.",
                )
            if isinstance(e, OperationalError):
                logger.error(f"DB operational error: {e}")
                raise DatabaseError("Connection or operational error", "execute")
            logger.error(f"DB driver error: {e}")
            raise DatabaseError("Database driver error", "query")
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"SQLAlchemy error: {e}")
            raise DatabaseError("Database operation failed", "unknown")
        finally:
            await session.close()

    async def health_check(self) -> bool:
        """Check database connectivity (for readiness probes)."""
        try:
            async with self.session() as db:
                await db.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"DB health check failed: {e}")
            return False

    async def dispose(self) -> None:
        await self.engine.dispose()
