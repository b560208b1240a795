"""Shared test fixtures."""

from __future__ import annotations

import tempfile
from pathlib import Path

import pytest

from guarded_rag.config.settings import Settings
from guarded_rag.models.domain import RetrievedChunk
from guarded_rag.resilience.circuit_breaker import CircuitBreaker
from guarded_rag.resilience.policy import ResiliencePolicy
from guarded_rag.resilience.retry import RetryOptions


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    """Test settings with temp paths and no .env lookups."""
    tmp = tempfile.mkdtemp()
    return Settings(
        _env_file=None,
        openai_api_key="test-key",
        google_api_key="test-key",
        chunk_db_path=str(Path(tmp) / "chunks.db"),
        faiss_index_path=str(Path(tmp) / "faiss_index"),
        retry_initial_delay=0.0,
        retry_max_delay=0.0,
        estimate_token_usage=False,
    )


@pytest.fixture
def make_policy():
    """Factory for resilience policies that never sleep between retries."""

    def _make(name: str = "dep", timeout_s: float = 5.0, max_retries: int = 2, **kwargs):
        breaker = kwargs.pop("breaker", None) or CircuitBreaker(name, failure_threshold=100)
        return ResiliencePolicy(
            name=name,
            breaker=breaker,
            timeout_s=timeout_s,
            retry=RetryOptions(max_retries=max_retries, initial_delay=0.0, max_delay=0.0),
            **kwargs,
        )

    return _make


@pytest.fixture
def sample_chunks():
    return [
        RetrievedChunk(
            id="returns#0",
            text="You can return items within 30 days of delivery for a full refund.",
            source_id="help-center/returns.md",
            start_char=1,
            end_char=68,
            similarity_score=0.9,
            metadata={"paragraph": 0},
        ),
        RetrievedChunk(
            id="returns#1",
            text="Refunds are issued to the original payment method within 5 business days.",
            source_id="help-center/returns.md",
            start_char=70,
            end_char=144,
            similarity_score=0.8,
            metadata={"paragraph": 1},
        ),
    ]
