"""Assembly of the immutable QueryResponse parts from internal records."""

from __future__ import annotations

import math
import re
from collections.abc import Sequence
from typing import Any

from guarded_rag.models.domain import ConfidenceScore, RetrievedChunk, SafetyResult, TokenUsage
from guarded_rag.models.schemas import (
    ChunkResponse,
    ConfidenceFactorsResponse,
    ConfidenceResponse,
    SafetySummary,
    TokenUsageResponse,
)

SOURCE_KEYS = ("source_id", "sourceId", "source")
START_KEYS = ("start_char", "startChar", "startCharStr")
END_KEYS = ("end_char", "endChar", "endCharStr")

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def parse_offset(value: Any) -> int:
    """Offset as a non-negative int; anything missing or unparseable is 0."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, float):
        if not math.isfinite(value):
            return 0
        parsed = int(value)
    elif isinstance(value, str):
        match = _LEADING_INT.match(value)
        if not match:
            return 0
        parsed = int(match.group(1))
    else:
        return 0
    return max(parsed, 0)


def repair_offsets(start: Any, end: Any, text_length: int) -> tuple[int, int]:
    """Return offsets satisfying ``end > start >= 1``.

    Zero or missing offsets are reconstructed from the chunk text length.
    """
    start_char = parse_offset(start)
    end_char = parse_offset(end)
    length = max(text_length, 0)

    if start_char == 0 and end_char == 0:
        start_char = 1
        end_char = max(1, length)
    elif start_char == 0:
        start_char = 1
    elif end_char == 0:
        end_char = max(start_char + 1, start_char + length)

    if end_char <= start_char:
        end_char = start_char + max(1, length)
    return start_char, end_char


def _first_present(chunk: RetrievedChunk, attr_value: Any, keys: Sequence[str]) -> Any:
    if attr_value is not None:
        return attr_value
    for key in keys:
        if chunk.metadata.get(key) is not None:
            return chunk.metadata[key]
    return None


def build_chunk_response(chunk: RetrievedChunk, index: int) -> ChunkResponse:
    start_char, end_char = repair_offsets(
        _first_present(chunk, chunk.start_char, START_KEYS),
        _first_present(chunk, chunk.end_char, END_KEYS),
        len(chunk.text),
    )
    source_id = chunk.source_id or next(
        (str(chunk.metadata[k]) for k in SOURCE_KEYS if chunk.metadata.get(k)), "unknown"
    )
    metadata = {k: v for k, v in chunk.metadata.items() if k not in SOURCE_KEYS}
    return ChunkResponse(
        id=chunk.id or f"chunk-{index}",
        index=index,
        text=chunk.text,
        source_id=source_id,
        start_char=start_char,
        end_char=end_char,
        similarity_score=chunk.similarity_score,
        metadata=metadata,
    )


def build_chunk_responses(chunks: Sequence[RetrievedChunk]) -> list[ChunkResponse]:
    return [build_chunk_response(chunk, i) for i, chunk in enumerate(chunks)]


def build_safety_summary(result: SafetyResult) -> SafetySummary:
    return SafetySummary(
        safe=result.safe,
        moderation_flagged=result.moderation.flagged,
        injection_detected=result.injection_detected,
        pii_detected=result.pii.detected,
        flagged_categories=result.flagged_categories,
        pii_types=sorted(result.pii.types),
    )


def build_confidence_response(
    score: ConfidenceScore, include_factors: bool = True
) -> ConfidenceResponse:
    factors = None
    if include_factors:
        factors = ConfidenceFactorsResponse(
            retrieval=score.factors.retrieval,
            relevance=score.factors.relevance,
            coverage=score.factors.coverage,
            answer_quality=score.factors.answer_quality,
        )
    return ConfidenceResponse(
        score=score.overall,
        level=score.level,
        factors=factors,
        explanation=score.explanation,
    )


def build_token_usage(usage: TokenUsage | None) -> TokenUsageResponse | None:
    if usage is None:
        return None
    return TokenUsageResponse(
        prompt_tokens=usage.prompt_tokens,
        completion_tokens=usage.completion_tokens,
        total_tokens=usage.total_tokens,
    )
