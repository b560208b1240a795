"""FastAPI dependency injection helpers."""

from __future__ import annotations

from fastapi import Request

from guarded_rag.cache.ttl_cache import TTLCache
from guarded_rag.pipeline.query_pipeline import QueryPipeline
from guarded_rag.resilience.policy import BreakerRegistry
from guarded_rag.storage.sqlite_chunk_store import SQLiteChunkStore
from guarded_rag.vectorstore.faiss_store import FAISSVectorStore


def get_query_pipeline(request: Request) -> QueryPipeline:
    return request.app.state.query_pipeline


def get_chunk_store(request: Request) -> SQLiteChunkStore:
    return request.app.state.chunk_store


def get_vector_store(request: Request) -> FAISSVectorStore:
    return request.app.state.vector_store


def get_breakers(request: Request) -> BreakerRegistry:
    return request.app.state.breakers


def get_cache(request: Request) -> TTLCache | None:
    return getattr(request.app.state, "cache", None)
