"""Composition of circuit breaker -> retry -> timeout around one outbound call."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar

from guarded_rag.config.settings import Settings
from guarded_rag.exceptions import DependencyError, DependencyTimeoutError, RAGEngineError
from guarded_rag.observability.logger import get_logger
from guarded_rag.resilience.circuit_breaker import CircuitBreaker
from guarded_rag.resilience.retry import RetryOptions, retry_with_backoff
from guarded_rag.resilience.timeout import with_timeout

logger = get_logger("resilience")

T = TypeVar("T")


class BreakerRegistry:
    """One circuit breaker per dependency name for the life of the process."""

    def __init__(
        self,
        failure_threshold: int = 5,
        reset_timeout: float = 60.0,
        monitoring_period: float = 60.0,
    ) -> None:
        self._failure_threshold = failure_threshold
        self._reset_timeout = reset_timeout
        self._monitoring_period = monitoring_period
        self._breakers: dict[str, CircuitBreaker] = {}

    @classmethod
    def from_settings(cls, settings: Settings) -> BreakerRegistry:
        return cls(
            failure_threshold=settings.breaker_failure_threshold,
            reset_timeout=settings.breaker_reset_timeout,
            monitoring_period=settings.breaker_monitoring_period,
        )

    def get(self, name: str) -> CircuitBreaker:
        breaker = self._breakers.get(name)
        if breaker is None:
            breaker = CircuitBreaker(
                name,
                failure_threshold=self._failure_threshold,
                reset_timeout=self._reset_timeout,
                monitoring_period=self._monitoring_period,
            )
            self._breakers[name] = breaker
        return breaker

    def all(self) -> dict[str, CircuitBreaker]:
        return dict(self._breakers)


@dataclass
class ResiliencePolicy:
    """Guards calls to a single dependency.

    A failure that survives the retries is re-raised as ``error_type`` naming
    the dependency, unless it is already a terminal typed error (an open
    breaker, or a nested dependency that has already given up).

    ``timeout_s=None`` with zero retries gives a breaker-only policy, used
    for calls whose outbound work is already guarded by a nested policy.
    """

    name: str
    breaker: CircuitBreaker
    timeout_s: float | None
    retry: RetryOptions = field(default_factory=RetryOptions)
    error_type: type[DependencyError] = DependencyError

    async def call(self, fn: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        async def attempt() -> T:
            if self.timeout_s is None:
                return await fn(*args, **kwargs)
            return await with_timeout(
                lambda: fn(*args, **kwargs),
                self.timeout_s,
                f"{self.name} call timed out after {self.timeout_s}s",
            )

        try:
            return await self.breaker.execute(lambda: retry_with_backoff(attempt, self.retry))
        except RAGEngineError as e:
            if not e.retryable:
                raise
            raise self._wrap(e) from e
        except Exception as e:
            raise self._wrap(e) from e

    def _wrap(self, error: Exception) -> RAGEngineError:
        logger.error("dependency_failed", dependency=self.name, error=str(error))
        if isinstance(error, DependencyTimeoutError):
            return DependencyTimeoutError(
                error.timeout_s,
                f"{self.name} call timed out after {error.timeout_s}s",
                dependency=self.name,
                retryable=False,
            )
        return self.error_type(f"{self.name} call failed: {error}", dependency=self.name)


def retry_options_from_settings(settings: Settings) -> RetryOptions:
    return RetryOptions(
        max_retries=settings.retry_max_retries,
        initial_delay=settings.retry_initial_delay,
        max_delay=settings.retry_max_delay,
        backoff_multiplier=settings.retry_backoff_multiplier,
    )
