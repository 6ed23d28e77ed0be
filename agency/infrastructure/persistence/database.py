"""SQLAlchemy engine and sessions for the Postgres backend.

Nothing here runs for the memory backend. The engine is built on the first
session request rather than at import so that settings are read after tests
(or the CLI scripts) have set the environment. Tables come from
``python -m scripts.init_db``.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from agency.core.config import get_settings
from agency.domain.exceptions import StoreUnavailableError

logger = logging.getLogger(__name__)

DEFAULT_POOL_SIZE = 10
DEFAULT_MAX_OVERFLOW = 20
DEFAULT_COMMAND_TIMEOUT = 60

engine: Any = None
AsyncSessionLocal: async_sessionmaker[AsyncSession] | None = None


class Base(DeclarativeBase):
    pass


def _ensure_engine() -> None:
    global engine, AsyncSessionLocal
    if AsyncSessionLocal is not None:
        return
    settings = get_settings()
    if settings.database_backend != "postgres":
        return
    connect_args: dict[str, Any] = {}
    if settings.database_url.startswith("postgresql+asyncpg"):
        connect_args["command_timeout"] = settings.db_command_timeout or DEFAULT_COMMAND_TIMEOUT
    engine = create_async_engine(
        settings.database_url,
        echo=settings.database_echo,
        pool_pre_ping=True,
        pool_size=settings.db_pool_size or DEFAULT_POOL_SIZE,
        max_overflow=settings.db_max_overflow if settings.db_max_overflow is not None else DEFAULT_MAX_OVERFLOW,
        pool_recycle=3600,
        connect_args=connect_args,
    )
    # Entities are detached copies; nothing is lazily reloaded after commit.
    AsyncSessionLocal = async_sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)
    logger.info("SQL engine created (pool_size=%s)", settings.db_pool_size or DEFAULT_POOL_SIZE)


def get_engine() -> Any:
    """The engine, or None on the memory backend."""
    _ensure_engine()
    return engine


async def dispose_engine() -> None:
    global engine, AsyncSessionLocal
    if engine is not None:
        await engine.dispose()
    engine = None
    AsyncSessionLocal = None


@asynccontextmanager
async def transactional_session() -> AsyncIterator[AsyncSession]:
    """One request, one transaction: commit on clean exit, roll back otherwise.

    A connection lost while committing surfaces as StoreUnavailableError so the
    caller's retry policy treats it like any other transient store failure.
    """
    _ensure_engine()
    if AsyncSessionLocal is None:
        raise StoreUnavailableError(
            "SQL database is not configured: set DATABASE_BACKEND=postgres and DATABASE_URL"
        )
    async with AsyncSessionLocal() as session:
        try:
            async with session.begin():
                yield session
        except OperationalError as e:
            logger.warning("Transaction aborted by the database: %s", e.orig)
            raise StoreUnavailableError() from e
