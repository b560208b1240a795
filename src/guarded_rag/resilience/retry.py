"""Retry with exponential backoff and retryable-error classification."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TypeVar

import httpx
import openai

from guarded_rag.exceptions import RAGEngineError
from guarded_rag.observability.logger import get_logger

logger = get_logger("retry")

T = TypeVar("T")

RETRYABLE_MESSAGES = (
    "rate limit",
    "timeout",
    "timed out",
    "connection",
    "econnreset",
    "etimedout",
    "enotfound",
    "econnrefused",
    "503",
    "502",
    "429",
)
RETRYABLE_STATUS_CODES = frozenset({429, 502, 503})

# The SDK transport errors do not subclass the builtin timeout/connection errors.
TRANSIENT_ERRORS: tuple[type[BaseException], ...] = (
    asyncio.TimeoutError,
    TimeoutError,
    ConnectionError,
    openai.APIConnectionError,
    httpx.TransportError,
)


def is_retryable_error(error: BaseException) -> bool:
    """Classify transient failures (rate limits, timeouts, resets, 429/502/503)."""
    if isinstance(error, RAGEngineError):
        return error.retryable
    if isinstance(error, TRANSIENT_ERRORS):
        return True
    for attr in ("status_code", "code"):
        status = getattr(error, attr, None)
        if isinstance(status, int) and status in RETRYABLE_STATUS_CODES:
            return True
    message = str(error).lower()
    return any(msg in message for msg in RETRYABLE_MESSAGES)


@dataclass
class RetryOptions:
    max_retries: int = 3
    initial_delay: float = 1.0
    max_delay: float = 10.0
    backoff_multiplier: float = 2.0
    retryable: Callable[[BaseException], bool] = field(default=is_retryable_error)
    on_retry: Callable[[BaseException, int], None] | None = None


async def retry_with_backoff(
    fn: Callable[[], Awaitable[T]],
    options: RetryOptions | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Call ``fn`` until it succeeds, at most ``max_retries + 1`` times.

    Non-retryable errors and the error of the final attempt are re-raised
    unchanged.
    """
    opts = options or RetryOptions()
    delay = opts.initial_delay

    attempt = 0
    while True:
        try:
            return await fn()
        except Exception as e:
            if attempt >= opts.max_retries or not opts.retryable(e):
                logger.error(
                    "retry_giving_up",
                    error=str(e),
                    attempt=attempt + 1,
                    max_retries=opts.max_retries,
                )
                raise
            attempt += 1
            if opts.on_retry is not None:
                opts.on_retry(e, attempt)
            logger.debug("retrying_after_error", error=str(e), attempt=attempt, delay=delay)
            await sleep(delay)
            delay = min(delay * opts.backoff_multiplier, opts.max_delay)
