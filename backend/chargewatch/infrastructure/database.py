"""Database Session Manager — async connection pool, rollback, retry, and health checks.

Invariants:
    - Every session auto-rolls-back on exception (no partial commits leak)
    - Connection pool uses pool_pre_ping for stale connection detection
    - Transient failures (OperationalError, driver errors) retried with backoff,
      then surfaced as StorageError; IntegrityError is NEVER retried
    - All other SQLAlchemy exceptions mapped to StorageError (core/errors.py)

Design Decisions:
    - Singleton db_manager initialized on startup: FastAPI lifespan manages lifecycle
    - expire_on_commit=False: prevents lazy-load issues in async context
    - ±25% jitter on backoff: concurrent retries on the same row don't re-collide
"""

import asyncio
import logging
import random
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Awaitable, Callable, TypeVar

from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from sqlalchemy.exc import (
    IntegrityError, OperationalError, DBAPIError, SQLAlchemyError,
)
from sqlalchemy import text

from chargewatch.core.errors import ErrorContext, StorageError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DatabaseSessionManager:
    """Manages async database sessions with pooling, rollback, and health checks."""

    def __init__(
        self, database_url: str, pool_size: int = 20, max_overflow: int = 10,
    ):
        engine_kwargs: dict = {"pool_pre_ping": True}
        if not database_url.startswith("sqlite"):
            engine_kwargs.update(
                pool_size=pool_size, max_overflow=max_overflow, pool_recycle=3600,
            )
        self.engine = create_async_engine(database_url, **engine_kwargs)
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
        except IntegrityError as e:
            await session.rollback()
            logger.error(f"DB integrity error: {e}")
            raise StorageError("Integrity constraint violated", "commit")
        except OperationalError as e:
            await session.rollback()
            logger.error(f"DB operational error: {e}")
            raise StorageError("Connection or operational error", "execute")
        except DBAPIError as e:
            await session.rollback()
            logger.error(f"DB driver error: {e}")
            raise StorageError("Database driver error", "query")
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"SQLAlchemy error: {e}")
            raise StorageError("Database operation failed", "unknown")
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


def backoff_ms(attempt: int, base_delay_ms: int, max_delay_ms: int) -> int:
    """Exponential backoff with ±25% jitter."""
    delay = min(max_delay_ms, (2 ** attempt) * base_delay_ms)
    return int(delay * random.uniform(0.75, 1.25))  # nosec B311


async def run_with_storage_retry(
    db: AsyncSession,
    operation: Callable[[], Awaitable[T]],
    *,
    max_retries: int = 3,
    base_delay_ms: int = 50,
    max_delay_ms: int = 2_000,
    context: ErrorContext | None = None,
) -> T:
    """Run one transactional unit, retrying only transient storage failures.

    `operation` must be safe to re-run from scratch: it performs its reads,
    conditional writes and commit itself. Between attempts the session is
    rolled back, so a failed attempt leaves no partial effect behind.
    Domain errors (ChargeWatchError subclasses) and IntegrityError pass
    straight through.
    """
    ctx = context or ErrorContext()
    for attempt in range(max_retries + 1):
        try:
            return await operation()
        except IntegrityError:
            await db.rollback()
            raise
        except (OperationalError, DBAPIError) as e:
            await db.rollback()
            if attempt >= max_retries:
                logger.error(
                    f"Storage failure after {max_retries} retries: {e}",
                    extra={**ctx.log_extra(), "attempt": attempt + 1},
                )
                raise StorageError(
                    "transient failure persisted after retries",
                    ctx.operation or "transaction",
                    context=ctx,
                )
            delay = backoff_ms(attempt, base_delay_ms, max_delay_ms)
            logger.warning(
                f"Transient storage error, retry after {delay}ms: {e}",
                extra={**ctx.log_extra(), "attempt": attempt + 1},
            )
            await asyncio.sleep(delay / 1000)
    raise StorageError("retry loop exhausted", ctx.operation or "transaction", ctx)


# Singleton (initialized on startup)
db_manager: DatabaseSessionManager | None = None


def init_db(database_url: str, **kwargs):
    global db_manager
    db_manager = DatabaseSessionManager(database_url, **kwargs)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for database sessions."""
    if not db_manager:
        raise RuntimeError("Database not initialized")
    async with db_manager.session() as session:
        yield session
