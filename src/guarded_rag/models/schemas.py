"""Pydantic models for API request/response serialization."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class QueryRequest(BaseModel):
    question: str = Field(min_length=1)


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class ChunkResponse(_Frozen):
    id: str
    index: int
    text: str
    source_id: str
    start_char: int
    end_char: int
    similarity_score: float | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class ConfidenceFactorsResponse(_Frozen):
    retrieval: float = Field(ge=0.0, le=1.0)
    relevance: float = Field(ge=0.0, le=1.0)
    coverage: float = Field(ge=0.0, le=1.0)
    answer_quality: float = Field(ge=0.0, le=1.0)


class ConfidenceResponse(_Frozen):
    score: float = Field(ge=0.0, le=1.0)
    level: Literal["high", "medium", "low", "very_low"]
    factors: ConfidenceFactorsResponse | None = None
    explanation: str | None = None


class SafetySummary(_Frozen):
    safe: bool
    moderation_flagged: bool
    injection_detected: bool
    pii_detected: bool
    flagged_categories: list[str] = Field(default_factory=list)
    pii_types: list[str] = Field(default_factory=list)


class TokenUsageResponse(_Frozen):
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


class Timings(_Frozen):
    safety_check_ms: float | None = None
    retrieval_ms: float
    generation_ms: float | None = None
    confidence_ms: float | None = None
    total_ms: float


class CacheInfo(_Frozen):
    retrieval_hit: bool = False
    generation_hit: bool = False


class ResponseMetadata(_Frozen):
    trace_id: str
    search_method: str
    top_k: int
    document_count: int
    model: str
    token_usage: TokenUsageResponse | None = None
    timings: Timings
    cache: CacheInfo


class QueryResponse(_Frozen):
    question: str
    answer: str
    chunks: list[ChunkResponse]
    confidence: ConfidenceResponse | None = None
    safety: SafetySummary
    metadata: ResponseMetadata


class ErrorResponse(BaseModel):
    code: str
    message: str
    details: dict[str, Any] = Field(default_factory=dict)


class BreakerHealth(BaseModel):
    state: str
    consecutive_failures: int


class HealthResponse(BaseModel):
    status: str
    chunk_count: int
    index_size: int
    cache_entries: int | None = None
    breakers: dict[str, BreakerHealth] = Field(default_factory=dict)
