"""Database Session Manager - async engine and sessions for the found-object store.

Invariants:
    - One session per request: SqlObjectStore commits each conditional update itself,
      so the session only ever holds the statement in flight
    - A session that raises is rolled back before the error leaves the context
    - LostFoundError (a lost claim race, a missing object) passes through unchanged
    - SQLAlchemy failures surface as DatabaseError (503) naming the failed operation;
      driver messages are logged, never sent to the client

Design Decisions:
    - Singleton db_manager initialized in the FastAPI lifespan, disposed on shutdown
    - expire_on_commit=False: rows returned by a write stay readable after its commit
    - SQLite URLs skip pool sizing: aiosqlite engines use their own pool class
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.exc import (
    DBAPIError, IntegrityError, OperationalError, SQLAlchemyError,
)
from sqlalchemy.ext.asyncio import (
    AsyncSession, async_sessionmaker, create_async_engine,
)

from lostfound.core.errors import DatabaseError, LostFoundError

logger = logging.getLogger(__name__)

# Most specific first: IntegrityError and OperationalError subclass DBAPIError
_FAILURES: tuple[tuple[type[SQLAlchemyError], str, str], ...] = (
    (IntegrityError, "Integrity constraint violated", "commit"),
    (OperationalError, "Connection or operational error", "execute"),
    (DBAPIError, "Database driver error", "query"),
)


def _engine_options(
    database_url: str, pool_size: int, max_overflow: int,
) -> dict:
    if database_url.startswith("sqlite"):
        return {}
    return {
        "pool_size": pool_size,
        "max_overflow": max_overflow,
        "pool_pre_ping": True,
        "pool_recycle": 3600,
    }


def _as_database_error(exc: SQLAlchemyError) -> DatabaseError:
    for kind, message, operation in _FAILURES:
        if isinstance(exc, kind):
            return DatabaseError(message, operation)
    return DatabaseError("Database operation failed", "unknown")


class DatabaseSessionManager:
    """Owns the async engine behind every SqlObjectStore."""

    def __init__(
        self, database_url: str, pool_size: int = 20, max_overflow: int = 10,
    ):
        self.engine = create_async_engine(
            database_url,
            **_engine_options(database_url, pool_size, max_overflow),
        )
        self._session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        session = self._session_factory()
        try:
            yield session
        except LostFoundError:
            await session.rollback()
            raise
        except SQLAlchemyError as e:
            await session.rollback()
            error = _as_database_error(e)
            logger.error(
                f"{error.message}: {e}",
                extra={"error_code": error.code},
            )
            raise error from e
        finally:
            await session.close()

    async def health_check(self) -> bool:
        """SELECT 1 through a managed session (readiness probe)."""
        try:
            async with self.session() as db:
                await db.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"DB health check failed: {e}")
            return False

    async def dispose(self) -> None:
        await self.engine.dispose()


db_manager: DatabaseSessionManager | None = None


def init_db(database_url: str, **kwargs) -> DatabaseSessionManager:
    global db_manager
    db_manager = DatabaseSessionManager(database_url, **kwargs)
    return db_manager


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one managed session per request."""
    if not db_manager:
        raise RuntimeError("Database not initialized")
    async with db_manager.session() as session:
        yield session
