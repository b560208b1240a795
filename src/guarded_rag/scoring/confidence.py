"""Answer confidence: CONF = 0.35*retrieval + 0.30*relevance + 0.15*coverage + 0.20*answer_quality."""

from __future__ import annotations

import re
from collections.abc import Sequence

from guarded_rag.config.settings import Settings
from guarded_rag.models.domain import (
    ConfidenceFactors,
    ConfidenceLevel,
    ConfidenceScore,
    RetrievedChunk,
)

W_RETRIEVAL = 0.35
W_RELEVANCE = 0.30
W_COVERAGE = 0.15
W_ANSWER_QUALITY = 0.20

DEFAULT_SIMILARITY = 0.5
SCORE_METADATA_KEYS = ("similarityScore", "score", "similarity", "relevanceScore", "relevance")

NO_INFO_PATTERNS = [
    re.compile(p, re.I)
    for p in (
        r"i couldn['’]t find",
        r"i don['’]t know",
        r"no relevant information",
        r"couldn['’]t find relevant",
    )
]

UNCERTAINTY_PHRASES = (
    "i couldn't find",
    "i don't know",
    "i'm not sure",
    "i cannot",
    "i can't",
    "unclear",
    "uncertain",
    "based on limited information",
    "may not be",
    "might not",
    "possibly",
    "perhaps",
)
UNCERTAINTY_WORDS = {
    w: re.compile(rf"\b{w}\b", re.I)
    for w in ("may", "might", "possibly", "perhaps", "maybe", "unclear", "uncertain")
}


def _clamp(x: float) -> float:
    return max(0.0, min(1.0, x))


def detect_uncertainty_markers(answer: str) -> list[str]:
    lower = answer.lower()
    found = [phrase for phrase in UNCERTAINTY_PHRASES if phrase in lower]
    found.extend(w for w, p in UNCERTAINTY_WORDS.items() if p.search(answer))
    return found


def answer_quality_score(answer: str) -> float:
    if not answer or not answer.strip():
        return 0.0
    if any(p.search(answer) for p in NO_INFO_PATTERNS):
        return 0.1

    penalty = min(len(detect_uncertainty_markers(answer)) * 0.15, 0.5)

    length = len(answer.strip())
    if length < 20:
        length_score = 0.3
    elif length < 50:
        length_score = 0.6
    elif length > 2000:
        length_score = 0.8
    else:
        length_score = 1.0

    return _clamp(length_score - penalty)


def extract_similarity_scores(chunks: Sequence[RetrievedChunk]) -> list[float]:
    """Similarity per chunk, falling back through known metadata keys, then 0.5."""
    scores: list[float] = []
    for chunk in chunks:
        value = chunk.similarity_score
        if value is None:
            value = next(
                (chunk.metadata[k] for k in SCORE_METADATA_KEYS if chunk.metadata.get(k) is not None),
                None,
            )
        scores.append(_as_score(value))
    return scores


def _as_score(value: object) -> float:
    if isinstance(value, bool):
        return DEFAULT_SIMILARITY
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return DEFAULT_SIMILARITY
    return DEFAULT_SIMILARITY


class ConfidenceScorer:
    def __init__(self, settings: Settings) -> None:
        self.low = settings.confidence_low_threshold
        self.medium = settings.confidence_medium_threshold
        self.high = settings.confidence_high_threshold

    def score(
        self,
        similarity_scores: Sequence[float],
        document_count: int,
        top_k: int,
        answer: str,
    ) -> ConfidenceScore:
        if document_count == 0 or not similarity_scores:
            return ConfidenceScore(
                overall=0.0,
                level="very_low",
                factors=ConfidenceFactors(
                    retrieval=0.0,
                    relevance=0.0,
                    coverage=0.0,
                    answer_quality=answer_quality_score(answer),
                ),
                explanation="No relevant documents were retrieved",
            )

        normalized = [_clamp(s) for s in similarity_scores]
        retrieval = sum(normalized) / len(normalized)
        relevance = max(normalized)
        coverage = min(1.0, document_count / top_k)
        quality = answer_quality_score(answer)

        overall = _clamp(
            W_RETRIEVAL * retrieval
            + W_RELEVANCE * relevance
            + W_COVERAGE * coverage
            + W_ANSWER_QUALITY * quality
        )

        return ConfidenceScore(
            overall=overall,
            level=self.level_for(overall),
            factors=ConfidenceFactors(
                retrieval=retrieval,
                relevance=relevance,
                coverage=coverage,
                answer_quality=quality,
            ),
            explanation=self._explain(retrieval, coverage, quality),
        )

    def level_for(self, overall: float) -> ConfidenceLevel:
        if overall >= self.high:
            return "high"
        if overall >= self.medium:
            return "medium"
        if overall >= self.low:
            return "low"
        return "very_low"

    @staticmethod
    def _explain(retrieval: float, coverage: float, quality: float) -> str:
        if retrieval >= 0.8:
            parts = ["highly relevant documents"]
        elif retrieval >= 0.6:
            parts = ["moderately relevant documents"]
        else:
            parts = ["limited document relevance"]
        if coverage < 0.8:
            parts.append("incomplete context coverage")
        if quality < 0.6:
            parts.append("answer contains uncertainty indicators")
        return ", ".join(parts)
