"""Caching and resilience wrapper around any Embedder."""

from __future__ import annotations

from dataclasses import replace

from guarded_rag.cache.utils import create_cache_key, hash_data, safe_get, safe_set
from guarded_rag.observability.logger import get_logger
from guarded_rag.protocols.cache import Cache
from guarded_rag.protocols.embedder import Embedder
from guarded_rag.resilience.policy import ResiliencePolicy

logger = get_logger("cached_embedder")


class CachedEmbedder:
    """Wraps an Embedder without touching it.

    Lookups go to the TTL cache first (when ``cache`` is given); misses call
    the delegate through the ``embeddings`` policy. Query embeddings use the
    policy's timeout, bulk document embeddings use ``documents_timeout_s``.
    """

    def __init__(
        self,
        delegate: Embedder,
        policy: ResiliencePolicy,
        cache: Cache | None = None,
        ttl: float | None = None,
        documents_timeout_s: float = 60.0,
    ) -> None:
        self._delegate = delegate
        self._query_policy = policy
        self._documents_policy = replace(policy, timeout_s=documents_timeout_s)
        self._cache = cache
        self._ttl = ttl

    @property
    def dimensions(self) -> int:
        return self._delegate.dimensions

    async def embed_texts(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []

        key = create_cache_key("embeddings", "documents", hash_data(list(texts)))
        cached = await safe_get(self._cache, key)
        # The key is order-insensitive; only reuse a hit when it lines up with this input.
        if cached is not None and cached.get("texts") == list(texts):
            logger.debug("embed_texts_cache_hit", count=len(texts))
            return cached["embeddings"]

        embeddings = await self._documents_policy.call(self._delegate.embed_texts, texts)
        await safe_set(self._cache, key, {"texts": list(texts), "embeddings": embeddings}, self._ttl)
        logger.debug("embed_texts_cache_miss", count=len(texts))
        return embeddings

    async def embed_query(self, query: str) -> list[float]:
        key = create_cache_key("embeddings", "query", hash_data(query))
        cached = await safe_get(self._cache, key)
        if cached is not None:
            logger.debug("embed_query_cache_hit", query_len=len(query))
            return cached

        embedding = await self._query_policy.call(self._delegate.embed_query, query)
        await safe_set(self._cache, key, embedding, self._ttl)
        logger.debug("embed_query_cache_miss", query_len=len(query))
        return embedding
