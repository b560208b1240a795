"""Bound a single awaitable call by a deadline."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from guarded_rag.exceptions import DependencyTimeoutError
from guarded_rag.observability.logger import get_logger

logger = get_logger("timeout")

T = TypeVar("T")


async def with_timeout(
    fn: Callable[[], Awaitable[T]],
    timeout_s: float,
    message: str | None = None,
) -> T:
    """Await ``fn()`` for at most ``timeout_s`` seconds.

    On expiry the pending call is cancelled and DependencyTimeoutError is
    raised; it is classified as retryable.
    """
    try:
        return await asyncio.wait_for(fn(), timeout=timeout_s)
    except asyncio.TimeoutError as e:
        error = DependencyTimeoutError(timeout_s, message)
        logger.error("operation_timed_out", timeout_s=timeout_s, error=error.message)
        raise error from e
