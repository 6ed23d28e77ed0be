"""Shared plumbing for SQLAlchemy repositories: session holder and error translation."""

import functools
from collections.abc import Awaitable, Callable
from typing import Any, ParamSpec, TypeVar

from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from agency.domain.exceptions import StoreUnavailableError
from agency.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

P = ParamSpec("P")
R = TypeVar("R")


def translate_store_errors(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
    """Re-raise connection-level database failures as StoreUnavailableError.

    Integrity and programming errors pass through unchanged.
    """

    @functools.wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        try:
            return await func(*args, **kwargs)
        except OperationalError as e:
            logger.warning("Store operation %s failed: %s", func.__qualname__, e.orig)
            raise StoreUnavailableError() from e
        except DBAPIError as e:
            if e.connection_invalidated:
                logger.warning("Store connection lost in %s", func.__qualname__)
                raise StoreUnavailableError() from e
            raise

    return wrapper


class SqlRepository:
    """Base for repositories bound to one AsyncSession (one request transaction)."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def _scalar_one_or_none(self, stmt: Any) -> Any:
        """Execute stmt refreshing identity-map rows with the latest committed state."""
        result = await self.db.execute(stmt.execution_options(populate_existing=True))
        return result.scalar_one_or_none()

    async def _scalars(self, stmt: Any) -> list[Any]:
        result = await self.db.execute(stmt.execution_options(populate_existing=True))
        return list(result.scalars().all())
