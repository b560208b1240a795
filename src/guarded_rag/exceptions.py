"""Custom exception hierarchy for the guarded RAG service.

Every error the caller can see carries a machine-readable ``code``, an HTTP
``status_code`` and optional ``details``. ``retryable`` tells the retry layer
whether another attempt may succeed.
"""

from __future__ import annotations

from typing import Any


class RAGEngineError(Exception):
    """Base exception for all guarded RAG errors."""

    code = "RAG_ERROR"
    status_code = 500
    retryable = False

    def __init__(
        self,
        message: str,
        *,
        details: dict[str, Any] | None = None,
        retryable: bool | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if retryable is not None:
            self.retryable = retryable

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}


class ConfigurationError(RAGEngineError):
    """Invalid or missing settings; fatal at startup."""

    code = "CONFIGURATION_ERROR"


class InputValidationError(RAGEngineError):
    """The question is not a usable string."""

    code = "VALIDATION_ERROR"
    status_code = 400


class SafetyRejectedError(RAGEngineError):
    """The question failed the safety gate. Terminal, never retried."""

    code = "SAFETY_REJECTED"
    status_code = 400


class DependencyError(RAGEngineError):
    """An external dependency failed after exhausting retries."""

    code = "DEPENDENCY_ERROR"
    status_code = 502

    def __init__(self, message: str, *, dependency: str, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.dependency = dependency
        self.details.setdefault("dependency", dependency)


class RetrieverError(DependencyError):
    """Error during retrieval."""

    code = "RETRIEVER_ERROR"

    def __init__(self, message: str, *, dependency: str = "retriever", **kwargs: Any) -> None:
        super().__init__(message, dependency=dependency, **kwargs)


class GenerationError(DependencyError):
    """Error during answer generation."""

    code = "GENERATION_ERROR"

    def __init__(self, message: str, *, dependency: str = "llm", **kwargs: Any) -> None:
        super().__init__(message, dependency=dependency, **kwargs)


class EmbeddingError(DependencyError):
    """Error generating embeddings."""

    code = "EMBEDDING_ERROR"

    def __init__(self, message: str, *, dependency: str = "embeddings", **kwargs: Any) -> None:
        super().__init__(message, dependency=dependency, **kwargs)


class ModerationError(DependencyError):
    """Moderation backend failure. The safety gate absorbs it and fails open."""

    code = "MODERATION_ERROR"

    def __init__(self, message: str, *, dependency: str = "moderation", **kwargs: Any) -> None:
        super().__init__(message, dependency=dependency, **kwargs)


class DependencyTimeoutError(RAGEngineError):
    """A single dependency call exceeded its time budget."""

    code = "TIMEOUT"
    status_code = 504
    retryable = True

    def __init__(
        self,
        timeout_s: float,
        message: str | None = None,
        *,
        dependency: str | None = None,
        retryable: bool | None = None,
    ) -> None:
        details: dict[str, Any] = {"timeout_s": timeout_s}
        if dependency:
            details["dependency"] = dependency
        super().__init__(
            message or f"Operation timed out after {timeout_s}s",
            details=details,
            retryable=retryable,
        )
        self.timeout_s = timeout_s
        self.dependency = dependency


class CircuitOpenError(RAGEngineError):
    """Fail-fast rejection while a dependency's breaker is open."""

    code = "CIRCUIT_OPEN"
    status_code = 503

    def __init__(self, name: str, since_failure_s: float, reset_timeout_s: float) -> None:
        super().__init__(
            f"Circuit breaker {name} is OPEN. Last failure: {since_failure_s:.1f}s ago "
            f"(reset timeout: {reset_timeout_s}s)",
            details={"dependency": name},
        )
        self.dependency = name


class CacheError(RAGEngineError):
    """Internal cache failure. Always absorbed by the safe cache helpers."""

    code = "CACHE_ERROR"
