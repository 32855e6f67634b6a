"""Async Session Factory — provides async DB sessions for direct usage outside FastAPI.

Invariants:
    - Meant for scripts, migrations, and test fixtures
    - SQLite connections wait up to SQLITE_BUSY_TIMEOUT_S for a competing
      writer instead of failing immediately

Design Decisions:
    - Separate from infrastructure/database.py: a convenience for non-FastAPI contexts
"""

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

SQLITE_BUSY_TIMEOUT_S = 5


def create_session_factory(
    database_url: str,
) -> async_sessionmaker[AsyncSession]:
    """Create an async session factory for the given database URL."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["timeout"] = SQLITE_BUSY_TIMEOUT_S
    engine = create_async_engine(
        database_url, echo=False, connect_args=connect_args,
    )
    return async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False,
    )
