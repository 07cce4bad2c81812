"""
Core Module - Concurrency helpers.

============================================================
RESPONSIBILITY
============================================================
Timeout and fan-out primitives for the single-threaded
asyncio runtime.

- with_timeout(): bounded await, raises OperationTimeoutError
- gather_settled(): tolerant join, one outcome per branch

============================================================
CANCELLATION
============================================================
with_timeout() is built on asyncio.wait_for, so the awaited
work is cancelled when the budget elapses. An in-flight
HTTP request or RPC read is aborted at its next suspension
point rather than left running in the background.

============================================================
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Generic, Optional, Sequence, TypeVar

from core.exceptions import OperationTimeoutError


logger = logging.getLogger(__name__)

T = TypeVar("T")


# ============================================================
# TIMEOUT
# ============================================================

async def with_timeout(
    awaitable: Awaitable[T],
    seconds: Optional[float],
    label: str = "operation",
) -> T:
    """
    Await with a time budget.

    Args:
        awaitable: Coroutine or future to await
        seconds: Budget, None for unbounded
        label: Name used in the error message

    Raises:
        OperationTimeoutError: If the budget elapses first
    """
    if seconds is None:
        return await awaitable

    try:
        return await asyncio.wait_for(awaitable, timeout=seconds)
    except asyncio.TimeoutError as e:
        raise OperationTimeoutError(
            message=f"{label} timed out after {seconds}s",
            timeout_seconds=seconds,
            source_name=label,
        ) from e


# ============================================================
# TOLERANT JOIN
# ============================================================

@dataclass
class SettledResult(Generic[T]):
    """Outcome of one branch of a tolerant join."""
    label: str
    value: Optional[T] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def gather_settled(
    branches: Sequence[tuple[str, Awaitable[T]]],
) -> list[SettledResult[T]]:
    """
    Run labelled awaitables concurrently and collect every outcome.

    A failing branch never cancels or fails its siblings. Results
    come back in input order.
    """
    if not branches:
        return []

    labels = [label for label, _ in branches]
    outcomes: list[Any] = await asyncio.gather(
        *(awaitable for _, awaitable in branches),
        return_exceptions=True,
    )

    results: list[SettledResult[T]] = []
    for label, outcome in zip(labels, outcomes):
        if isinstance(outcome, BaseException):
            results.append(SettledResult(label=label, error=outcome))
        else:
            results.append(SettledResult(label=label, value=outcome))
    return results


__all__ = [
    "with_timeout",
    "SettledResult",
    "gather_settled",
]
