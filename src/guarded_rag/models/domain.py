"""Core domain objects used throughout the system."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

ConfidenceLevel = Literal["high", "medium", "low", "very_low"]


@dataclass
class RetrievedChunk:
    id: str
    text: str
    source_id: str | None = None
    start_char: int | str | None = None
    end_char: int | str | None = None
    similarity_score: float | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "source_id": self.source_id,
            "start_char": self.start_char,
            "end_char": self.end_char,
            "similarity_score": self.similarity_score,
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RetrievedChunk:
        return cls(
            id=data["id"],
            text=data["text"],
            source_id=data.get("source_id"),
            start_char=data.get("start_char"),
            end_char=data.get("end_char"),
            similarity_score=data.get("similarity_score"),
            metadata=dict(data.get("metadata") or {}),
        )


@dataclass
class ModerationResult:
    flagged: bool = False
    categories: dict[str, bool] = field(default_factory=dict)
    category_scores: dict[str, float] = field(default_factory=dict)


@dataclass
class PIIDetection:
    detected: bool = False
    types: dict[str, list[str]] = field(default_factory=dict)


@dataclass
class SafetyResult:
    safe: bool
    moderation: ModerationResult
    injection_detected: bool
    pii: PIIDetection
    sanitized_question: str | None = None

    @property
    def flagged_categories(self) -> list[str]:
        return [name for name, hit in self.moderation.categories.items() if hit]


@dataclass
class TokenUsage:
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


@dataclass
class GenerationOutput:
    """Raw reply of a generation backend."""

    text: str
    usage_metadata: Any = None


@dataclass
class GenerationResult:
    answer: str
    token_usage: TokenUsage | None = None
    cache_hit: bool = False


@dataclass
class ConfidenceFactors:
    retrieval: float
    relevance: float
    coverage: float
    answer_quality: float


@dataclass
class ConfidenceScore:
    overall: float
    level: ConfidenceLevel
    factors: ConfidenceFactors
    explanation: str | None = None
