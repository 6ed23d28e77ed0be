"""Bounded retry for compare-and-swap writes."""

from unittest.mock import AsyncMock

import pytest

from agency.application.services import RetryPolicy, retry_on_conflict
from agency.domain.exceptions import (
    NotFoundError,
    StoreUnavailableError,
    TransientStoreError,
    VersionConflictError,
)


def _conflict() -> VersionConflictError:
    return VersionConflictError("workflow", "wf-1", 3)


async def test_retries_conflict_then_succeeds(retry_policy) -> None:
    operation = AsyncMock(side_effect=[_conflict(), StoreUnavailableError(), "ok"])

    assert await retry_on_conflict(operation, retry_policy, name="write") == "ok"
    assert operation.await_count == 3


async def test_exhausted_attempts_raise_transient_error() -> None:
    operation = AsyncMock(side_effect=_conflict())
    policy = RetryPolicy(attempts=2, backoff_seconds=0.0)

    with pytest.raises(TransientStoreError) as exc:
        await retry_on_conflict(operation, policy, name="progress_recompute")

    assert operation.await_count == 2
    assert exc.value.details == {"operation": "progress_recompute", "attempts": 2}
    assert isinstance(exc.value.__cause__, VersionConflictError)


async def test_other_errors_propagate_immediately(retry_policy) -> None:
    operation = AsyncMock(side_effect=NotFoundError("workflow", "wf-1"))

    with pytest.raises(NotFoundError):
        await retry_on_conflict(operation, retry_policy, name="write")
    assert operation.await_count == 1


def test_backoff_doubles() -> None:
    policy = RetryPolicy(attempts=4, backoff_seconds=0.1)
    assert [policy.delay_for(i) for i in range(3)] == pytest.approx([0.1, 0.2, 0.4])
