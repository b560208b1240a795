"""Protocol for text embedders used by retrieval and index seeding."""

from __future__ import annotations

from typing import Protocol


class Embedder(Protocol):
    """Vectors come back in input order, each of length ``dimensions``.

    Implementations raise EmbeddingError with ``retryable`` set from the cause.
    """

    @property
    def dimensions(self) -> int: ...

    async def embed_query(self, query: str) -> list[float]: ...

    async def embed_texts(self, texts: list[str]) -> list[list[float]]: ...
