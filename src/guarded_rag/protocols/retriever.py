"""Protocol for retrieval providers."""

from __future__ import annotations

from typing import Protocol

from guarded_rag.models.domain import RetrievedChunk


class Retriever(Protocol):
    async def retrieve(self, query: str) -> list[RetrievedChunk]: ...
