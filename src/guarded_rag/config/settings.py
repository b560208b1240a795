"""Central configuration via Pydantic Settings. All values driven by env vars."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import ValidationError, model_validator
from pydantic_settings import BaseSettings

from guarded_rag.exceptions import ConfigurationError


class Settings(BaseSettings):
    # API Keys
    openai_api_key: str = ""
    google_api_key: str = ""

    # Embedding
    embedding_model: str = "text-embedding-3-small"
    embedding_dimensions: int = 1536
    embedding_batch_size: int = 100

    # LLM / Gemini
    gemini_model: str = "gemini-2.0-flash"
    gemini_temperature: float = 0.1
    gemini_max_tokens: int = 4096

    # Moderation
    moderation_model: str = "omni-moderation-latest"
    safety_enabled: bool = True

    # Retrieval
    retriever_type: Literal["similarity"] = "similarity"
    top_k: int = 5
    retrieval_score_threshold: float = 0.0

    # Cache
    cache_enabled: bool = False
    cache_ttl: int = 3600
    cache_embeddings: bool = False
    cache_retrieval: bool = False
    cache_llm: bool = False
    cache_sweep_interval: float = 60.0

    # Confidence scoring
    confidence_enabled: bool = True
    confidence_low_threshold: float = 0.4
    confidence_medium_threshold: float = 0.6
    confidence_high_threshold: float = 0.8
    confidence_include_factors: bool = True

    # Retry
    retry_max_retries: int = 3
    retry_initial_delay: float = 1.0
    retry_max_delay: float = 10.0
    retry_backoff_multiplier: float = 2.0

    # Circuit breaker
    breaker_failure_threshold: int = 5
    breaker_reset_timeout: float = 60.0
    breaker_monitoring_period: float = 60.0

    # Timeouts (seconds)
    generation_timeout: float = 30.0
    embedding_query_timeout: float = 30.0
    embedding_documents_timeout: float = 60.0
    moderation_timeout: float = 10.0
    retrieval_timeout: float = 30.0

    # Token accounting
    estimate_token_usage: bool = True
    token_encoding: str = "o200k_base"

    # Storage paths
    chunk_db_path: str = "data/chunks.db"
    faiss_index_path: str = "data/faiss_index"

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_json: bool = True

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    model_config = {"env_file": ".env", "env_prefix": "RAG_"}

    @model_validator(mode="after")
    def _check_consistency(self) -> Settings:
        if self.top_k <= 0:
            raise ValueError("TOP_K must be a positive number")
        if self.cache_enabled and self.cache_ttl <= 0:
            raise ValueError("CACHE_TTL must be a positive number")
        if self.retry_max_retries < 0:
            raise ValueError("RETRY_MAX_RETRIES must not be negative")
        if self.breaker_failure_threshold <= 0:
            raise ValueError("BREAKER_FAILURE_THRESHOLD must be a positive number")
        if self.confidence_enabled and not (
            self.confidence_low_threshold
            < self.confidence_medium_threshold
            < self.confidence_high_threshold
        ):
            raise ValueError(
                "Confidence thresholds must be ordered: "
                "LOW_THRESHOLD < MEDIUM_THRESHOLD < HIGH_THRESHOLD"
            )
        return self


def load_settings(**overrides: Any) -> Settings:
    """Build validated settings, reporting problems as ConfigurationError."""
    try:
        return Settings(**overrides)
    except ValidationError as e:
        issues = ", ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'settings'}: {err['msg']}"
            for err in e.errors()
        )
        raise ConfigurationError(f"Configuration validation failed: {issues}") from e
