"""Token accounting for generation backends.

Backends report usage in different shapes. Each strategy below looks at one
known shape and returns a TokenUsage or None; the extractor tries them in
priority order and stops at the first hit. When no strategy matches, token
counts are estimated client-side with tiktoken.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

import tiktoken

from guarded_rag.models.domain import TokenUsage
from guarded_rag.observability.logger import get_logger

logger = get_logger("token_usage")

UsageStrategy = Callable[[Any], "TokenUsage | None"]

_PROMPT_KEYS = ("prompt_tokens", "promptTokens", "prompt_token_count", "input_tokens")
_COMPLETION_KEYS = (
    "completion_tokens",
    "completionTokens",
    "candidates_token_count",
    "output_tokens",
)
_TOTAL_KEYS = ("total_tokens", "totalTokens", "total_token_count")


def _field(obj: Any, name: str) -> Any:
    if obj is None:
        return None
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def _first_int(obj: Any, keys: Sequence[str]) -> int | None:
    for key in keys:
        value = _field(obj, key)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return int(value)
    return None


def usage_from_counts(obj: Any) -> TokenUsage | None:
    """Normalize any snake/camel/Gemini-style count object."""
    if obj is None:
        return None
    prompt = _first_int(obj, _PROMPT_KEYS)
    completion = _first_int(obj, _COMPLETION_KEYS)
    total = _first_int(obj, _TOTAL_KEYS)
    if prompt is None and completion is None and total is None:
        return None
    prompt = prompt or 0
    completion = completion or 0
    return TokenUsage(
        prompt_tokens=prompt,
        completion_tokens=completion,
        total_tokens=total if total is not None else prompt + completion,
    )


def from_usage(metadata: Any) -> TokenUsage | None:
    return usage_from_counts(_field(metadata, "usage"))


def from_response_token_usage(metadata: Any) -> TokenUsage | None:
    return usage_from_counts(_field(_field(metadata, "response_metadata"), "token_usage"))


def from_usage_metadata(metadata: Any) -> TokenUsage | None:
    nested = _field(metadata, "usage_metadata")
    if nested is not None:
        return usage_from_counts(nested)
    # The backend may hand over the usage_metadata object itself.
    return usage_from_counts(metadata)


def from_llm_output(metadata: Any) -> TokenUsage | None:
    return usage_from_counts(_field(_field(metadata, "llm_output"), "token_usage"))


DEFAULT_STRATEGIES: tuple[UsageStrategy, ...] = (
    from_usage,
    from_response_token_usage,
    from_usage_metadata,
    from_llm_output,
)


class TiktokenEstimator:
    """Client-side token count for backends that report no usage."""

    def __init__(self, encoding_name: str = "o200k_base") -> None:
        self._encoding_name = encoding_name
        self._encoding: tiktoken.Encoding | None = None

    def count(self, text: str) -> int:
        if self._encoding is None:
            self._encoding = tiktoken.get_encoding(self._encoding_name)
        return len(self._encoding.encode(text))

    def estimate(self, prompt: str, completion: str) -> TokenUsage:
        prompt_tokens = self.count(prompt)
        completion_tokens = self.count(completion)
        return TokenUsage(
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=prompt_tokens + completion_tokens,
        )


class TokenUsageExtractor:
    def __init__(
        self,
        strategies: Sequence[UsageStrategy] = DEFAULT_STRATEGIES,
        estimator: TiktokenEstimator | None = None,
    ) -> None:
        self._strategies = tuple(strategies)
        self._estimator = estimator

    def extract(self, metadata: Any, prompt: str, completion: str) -> TokenUsage | None:
        if metadata is not None:
            for strategy in self._strategies:
                usage = strategy(metadata)
                if usage is not None:
                    return usage

        if self._estimator is None:
            return None
        try:
            usage = self._estimator.estimate(prompt, completion)
        except Exception as e:
            # Usage stays unset when the encoding cannot be loaded.
            logger.warning("token_estimation_failed", error=str(e))
            return None
        logger.debug("token_usage_estimated", total_tokens=usage.total_tokens)
        return usage
