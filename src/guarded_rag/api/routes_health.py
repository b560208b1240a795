"""Health check endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from guarded_rag.api.dependencies import (
    get_breakers,
    get_cache,
    get_chunk_store,
    get_vector_store,
)
from guarded_rag.cache.ttl_cache import TTLCache
from guarded_rag.models.schemas import BreakerHealth, HealthResponse
from guarded_rag.resilience.circuit_breaker import CircuitState
from guarded_rag.resilience.policy import BreakerRegistry
from guarded_rag.storage.sqlite_chunk_store import SQLiteChunkStore
from guarded_rag.vectorstore.faiss_store import FAISSVectorStore

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health(
    chunk_store: SQLiteChunkStore = Depends(get_chunk_store),
    vector_store: FAISSVectorStore = Depends(get_vector_store),
    breakers: BreakerRegistry = Depends(get_breakers),
    cache: TTLCache | None = Depends(get_cache),
) -> HealthResponse:
    breaker_health = {
        name: BreakerHealth(state=b.state.value, consecutive_failures=b.consecutive_failures)
        for name, b in breakers.all().items()
    }
    degraded = any(b.state == CircuitState.OPEN for b in breakers.all().values())
    return HealthResponse(
        status="degraded" if degraded else "ok",
        chunk_count=await chunk_store.count_chunks(),
        index_size=vector_store.size,
        cache_entries=cache.size if cache is not None else None,
        breakers=breaker_health,
    )
