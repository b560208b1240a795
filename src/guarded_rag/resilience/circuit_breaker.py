"""Three-state circuit breaker shared by every call to one dependency.

CLOSED  -> normal operation; consecutive failures are counted.
OPEN    -> calls fail fast with CircuitOpenError until ``reset_timeout``
           has passed since the last failure.
HALF_OPEN -> one trial call at a time; two consecutive successes close the
           breaker, any failure reopens it.

State transitions happen under an asyncio.Lock; the guarded call itself runs
outside the lock so slow dependencies do not serialize queries.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any, TypeVar

from guarded_rag.exceptions import CircuitOpenError
from guarded_rag.observability.logger import get_logger

logger = get_logger("circuit_breaker")

T = TypeVar("T")

HALF_OPEN_SUCCESSES_TO_CLOSE = 2


class CircuitState(str, Enum):
    CLOSED = "CLOSED"
    OPEN = "OPEN"
    HALF_OPEN = "HALF_OPEN"


class CircuitBreaker:
    def __init__(
        self,
        name: str,
        failure_threshold: int = 5,
        reset_timeout: float = 60.0,
        monitoring_period: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.name = name
        self.failure_threshold = failure_threshold
        self.reset_timeout = reset_timeout
        self.monitoring_period = monitoring_period
        self._clock = clock

        self._state = CircuitState.CLOSED
        self._consecutive_failures = 0
        self._last_failure_time: float | None = None
        self._half_open_successes = 0
        self._trial_in_flight = False
        self._window_start = clock()
        self._lock = asyncio.Lock()

    @property
    def state(self) -> CircuitState:
        return self._state

    @property
    def consecutive_failures(self) -> int:
        return self._consecutive_failures

    async def execute(self, fn: Callable[[], Awaitable[T]]) -> T:
        async with self._lock:
            trial = self._admit()

        try:
            result = await fn()
        except CircuitOpenError:
            # A nested breaker refused the call; that is not this dependency failing.
            raise
        except Exception:
            async with self._lock:
                self._on_failure()
            raise
        else:
            async with self._lock:
                self._on_success()
            return result
        finally:
            if trial:
                self._trial_in_flight = False

    def _admit(self) -> bool:
        """Decide whether a call may proceed. Returns True for a half-open trial."""
        now = self._clock()
        self._decay_window(now)

        if self._state is CircuitState.OPEN:
            since_failure = now - (self._last_failure_time or 0.0)
            if since_failure < self.reset_timeout:
                raise CircuitOpenError(self.name, since_failure, self.reset_timeout)
            logger.info("circuit_half_open", circuit_breaker=self.name)
            self._state = CircuitState.HALF_OPEN
            self._half_open_successes = 0

        if self._state is CircuitState.HALF_OPEN:
            if self._trial_in_flight:
                since_failure = now - (self._last_failure_time or 0.0)
                raise CircuitOpenError(self.name, since_failure, self.reset_timeout)
            self._trial_in_flight = True
            return True
        return False

    def _decay_window(self, now: float) -> None:
        if now - self._window_start <= self.monitoring_period:
            return
        self._window_start = now
        if (
            self._state is CircuitState.CLOSED
            and self._consecutive_failures < self.failure_threshold
        ):
            self._consecutive_failures = 0

    def _on_success(self) -> None:
        self._consecutive_failures = 0
        if self._state is CircuitState.HALF_OPEN:
            self._half_open_successes += 1
            if self._half_open_successes >= HALF_OPEN_SUCCESSES_TO_CLOSE:
                logger.info("circuit_closed", circuit_breaker=self.name)
                self._state = CircuitState.CLOSED
                self._half_open_successes = 0

    def _on_failure(self) -> None:
        self._consecutive_failures += 1
        self._last_failure_time = self._clock()

        if self._state is CircuitState.HALF_OPEN:
            logger.warning("circuit_reopened", circuit_breaker=self.name)
            self._state = CircuitState.OPEN
            self._half_open_successes = 0
        elif (
            self._state is CircuitState.CLOSED
            and self._consecutive_failures >= self.failure_threshold
        ):
            logger.warning(
                "circuit_opened",
                circuit_breaker=self.name,
                failures=self._consecutive_failures,
                failure_threshold=self.failure_threshold,
            )
            self._state = CircuitState.OPEN

    def stats(self) -> dict[str, Any]:
        return {
            "state": self._state.value,
            "consecutive_failures": self._consecutive_failures,
            "last_failure_time": self._last_failure_time,
            "half_open_successes": self._half_open_successes,
            "failure_threshold": self.failure_threshold,
            "reset_timeout": self.reset_timeout,
            "monitoring_period": self.monitoring_period,
        }
