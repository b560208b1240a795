"""OpenAI moderation backend."""

from __future__ import annotations

from typing import Any

from openai import AsyncOpenAI

from guarded_rag.exceptions import ModerationError
from guarded_rag.models.domain import ModerationResult
from guarded_rag.observability.logger import get_logger
from guarded_rag.resilience.retry import is_retryable_error

logger = get_logger("moderation")


class OpenAIModerator:
    def __init__(self, api_key: str, model: str = "omni-moderation-latest") -> None:
        self._client = AsyncOpenAI(api_key=api_key)
        self._model = model

    async def moderate(self, text: str) -> ModerationResult:
        try:
            response = await self._client.moderations.create(model=self._model, input=text)
        except Exception as e:
            raise ModerationError(
                f"Moderation request failed: {e}", retryable=is_retryable_error(e)
            ) from e

        result = response.results[0]
        return ModerationResult(
            flagged=bool(result.flagged),
            categories={k: bool(v) for k, v in _as_dict(result.categories).items()},
            category_scores={
                k: float(v) for k, v in _as_dict(result.category_scores).items() if v is not None
            },
        )


def _as_dict(value: Any) -> dict[str, Any]:
    if isinstance(value, dict):
        return value
    return value.model_dump(by_alias=True)
