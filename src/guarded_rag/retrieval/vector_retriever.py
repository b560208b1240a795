"""Similarity retriever over the FAISS index and the SQLite chunk store."""

from __future__ import annotations

import asyncio
from dataclasses import replace

import numpy as np

from guarded_rag.models.domain import RetrievedChunk
from guarded_rag.observability.logger import get_logger
from guarded_rag.protocols.embedder import Embedder
from guarded_rag.resilience.timeout import with_timeout
from guarded_rag.storage.sqlite_chunk_store import SQLiteChunkStore
from guarded_rag.vectorstore.faiss_store import FAISSVectorStore

logger = get_logger("vector_retriever")


class VectorRetriever:
    """Embeds the query, then looks it up in the index and the chunk store.

    The embedder brings its own resilience policy; ``lookup_timeout_s`` bounds
    only the local index search and chunk hydration that follow it.
    """

    def __init__(
        self,
        embedder: Embedder,
        vector_store: FAISSVectorStore,
        chunk_store: SQLiteChunkStore,
        top_k: int = 5,
        score_threshold: float = 0.0,
        lookup_timeout_s: float | None = None,
    ) -> None:
        self._embedder = embedder
        self._vector_store = vector_store
        self._chunk_store = chunk_store
        self._top_k = top_k
        self._score_threshold = score_threshold
        self._lookup_timeout_s = lookup_timeout_s

    async def retrieve(self, query: str) -> list[RetrievedChunk]:
        query_embedding = await self._embedder.embed_query(query)
        query_array = np.array(query_embedding, dtype=np.float32)

        if self._lookup_timeout_s is None:
            return await self._lookup(query_array)
        return await with_timeout(
            lambda: self._lookup(query_array),
            self._lookup_timeout_s,
            f"index lookup timed out after {self._lookup_timeout_s}s",
        )

    async def _lookup(self, query_array: np.ndarray) -> list[RetrievedChunk]:
        hits = await asyncio.to_thread(self._vector_store.search, query_array, self._top_k)
        hits = [(cid, score) for cid, score in hits if score >= self._score_threshold]
        if not hits:
            logger.info("retrieval_empty", top_k=self._top_k)
            return []

        chunks_map = await self._chunk_store.get_chunks_by_ids([cid for cid, _ in hits])

        results = []
        for chunk_id, score in hits:
            chunk = chunks_map.get(chunk_id)
            if chunk is not None:
                results.append(replace(chunk, similarity_score=score))

        logger.info("retrieval_results", hits=len(hits), returned=len(results))
        return results
