"""Tests for the per-call timeout."""

from __future__ import annotations

import asyncio

import pytest

from guarded_rag.exceptions import DependencyTimeoutError
from guarded_rag.resilience.retry import is_retryable_error
from guarded_rag.resilience.timeout import with_timeout


async def test_returns_value_within_deadline():
    async def fast():
        return 42

    assert await with_timeout(fast, 1.0) == 42


async def test_expiry_raises_retryable_timeout():
    async def slow():
        await asyncio.sleep(5)

    with pytest.raises(DependencyTimeoutError) as exc_info:
        await with_timeout(slow, 0.01, "llm call timed out")

    err = exc_info.value
    assert err.status_code == 504
    assert err.code == "TIMEOUT"
    assert err.timeout_s == 0.01
    assert err.message == "llm call timed out"
    assert is_retryable_error(err)


async def test_other_errors_propagate():
    async def broken():
        raise KeyError("x")

    with pytest.raises(KeyError):
        await with_timeout(broken, 1.0)
