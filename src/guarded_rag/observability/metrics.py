"""Metric recording helpers for query traces."""

from __future__ import annotations

from guarded_rag.models.domain import TokenUsage
from guarded_rag.observability.logger import get_logger

logger = get_logger("metrics")


def log_retrieval_metrics(
    trace_id: str,
    similarity_scores: list[float],
    document_count: int,
    top_k: int,
    cache_hit: bool,
) -> None:
    logger.info(
        "retrieval_metrics",
        trace_id=trace_id,
        top_scores=[round(s, 4) for s in similarity_scores[:5]],
        document_count=document_count,
        top_k=top_k,
        cache_hit=cache_hit,
    )


def log_generation_metrics(
    trace_id: str,
    model: str,
    token_usage: TokenUsage | None,
    cache_hit: bool,
) -> None:
    logger.info(
        "generation_metrics",
        trace_id=trace_id,
        model=model,
        prompt_tokens=token_usage.prompt_tokens if token_usage else None,
        completion_tokens=token_usage.completion_tokens if token_usage else None,
        total_tokens=token_usage.total_tokens if token_usage else None,
        cache_hit=cache_hit,
    )


def log_query_metrics(
    trace_id: str,
    total_ms: float,
    confidence: float | None,
    level: str | None,
) -> None:
    logger.info(
        "query_metrics",
        trace_id=trace_id,
        total_ms=round(total_ms, 2),
        confidence=round(confidence, 4) if confidence is not None else None,
        level=level,
    )


def log_latency(trace_id: str, stage: str, duration_ms: float) -> None:
    logger.info(
        "latency",
        trace_id=trace_id,
        stage=stage,
        duration_ms=round(duration_ms, 2),
    )
