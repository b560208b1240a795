"""Embedding adapter over the OpenAI embeddings endpoint.

Failures are converted to EmbeddingError carrying the cause's retryability;
retries and timeouts are applied by the caller's resilience policy.
"""

from __future__ import annotations

from openai import AsyncOpenAI

from guarded_rag.exceptions import EmbeddingError
from guarded_rag.observability.logger import get_logger
from guarded_rag.resilience.retry import is_retryable_error

logger = get_logger("embeddings")


class OpenAIEmbedder:
    def __init__(
        self,
        api_key: str,
        model: str = "text-embedding-3-small",
        batch_size: int = 100,
        dimensions: int = 1536,
    ) -> None:
        self._client = AsyncOpenAI(api_key=api_key)
        self._model = model
        self._batch_size = max(1, batch_size)
        self._dimensions = dimensions

    @property
    def dimensions(self) -> int:
        return self._dimensions

    async def _request(self, inputs: list[str]) -> list[list[float]]:
        response = await self._client.embeddings.create(
            input=inputs, model=self._model, dimensions=self._dimensions
        )
        vectors = [item.embedding for item in response.data]
        if len(vectors) != len(inputs):
            raise EmbeddingError(
                f"Expected {len(inputs)} embeddings, got {len(vectors)}", retryable=False
            )
        return vectors

    async def embed_texts(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        vectors: list[list[float]] = []
        batches = 0
        try:
            for start in range(0, len(texts), self._batch_size):
                vectors.extend(await self._request(texts[start : start + self._batch_size]))
                batches += 1
        except EmbeddingError:
            raise
        except Exception as e:
            raise EmbeddingError(
                f"Failed to embed {len(texts)} texts: {e}", retryable=is_retryable_error(e)
            ) from e
        logger.info("embedded_texts", count=len(texts), batches=batches, model=self._model)
        return vectors

    async def embed_query(self, query: str) -> list[float]:
        if not query.strip():
            raise EmbeddingError("Cannot embed an empty query", retryable=False)
        try:
            return (await self._request([query]))[0]
        except EmbeddingError:
            raise
        except Exception as e:
            raise EmbeddingError(
                f"Failed to embed query: {e}", retryable=is_retryable_error(e)
            ) from e
