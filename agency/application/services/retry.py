"""Bounded retry for optimistic writes.

Used where a read-modify-write can lose a compare-and-swap race (progress
recompute, workflow status writes, sequence assignment status writes) or hit a
transient store outage. The operation is re-run from its read step on every
attempt.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from agency.domain.exceptions import StoreUnavailableError, TransientStoreError, VersionConflictError
from agency.shared.telemetry.logging import get_logger

T = TypeVar("T")

logger = get_logger(__name__)

RETRYABLE_ERRORS: tuple[type[Exception], ...] = (VersionConflictError, StoreUnavailableError)


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt count and base delay; delay doubles after each failed attempt."""

    attempts: int = 5
    backoff_seconds: float = 0.05

    def delay_for(self, attempt: int) -> float:
        return self.backoff_seconds * (2**attempt)


async def retry_on_conflict(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    *,
    name: str,
) -> T:
    """Run operation, retrying version conflicts and store outages.

    Args:
        operation: Zero-argument coroutine factory; called once per attempt.
        policy: Attempt limit and backoff.
        name: Operation name for logs and the final error.

    Returns:
        The operation's result.

    Raises:
        TransientStoreError: When every attempt failed with a retryable error.
        Any non-retryable exception from operation, unchanged.
    """
    for attempt in range(policy.attempts):
        try:
            return await operation()
        except RETRYABLE_ERRORS as exc:
            if attempt == policy.attempts - 1:
                logger.warning(
                    "%s failed after %d attempts: %s", name, policy.attempts, exc.error_code
                )
                raise TransientStoreError(name, policy.attempts) from exc
            delay = policy.delay_for(attempt)
            logger.warning(
                "%s attempt %d/%d hit %s; retrying in %.3fs",
                name,
                attempt + 1,
                policy.attempts,
                exc.error_code,
                delay,
            )
            await asyncio.sleep(delay)
    raise TransientStoreError(name, policy.attempts)
