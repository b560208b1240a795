"""FastAPI application factory with lifespan management."""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI

from guarded_rag.api.errors import register_error_handlers
from guarded_rag.api.middleware import RequestTimingMiddleware
from guarded_rag.api.routes_health import router as health_router
from guarded_rag.api.routes_query import router as query_router
from guarded_rag.cache.ttl_cache import TTLCache
from guarded_rag.config.settings import Settings, load_settings
from guarded_rag.embeddings.cached_embedder import CachedEmbedder
from guarded_rag.embeddings.openai_embedder import OpenAIEmbedder
from guarded_rag.exceptions import EmbeddingError, GenerationError, ModerationError, RetrieverError
from guarded_rag.generation.answer_generator import AnswerGenerator
from guarded_rag.generation.gemini_provider import GeminiProvider
from guarded_rag.generation.token_usage import TiktokenEstimator, TokenUsageExtractor
from guarded_rag.observability.logger import get_logger, setup_logging
from guarded_rag.pipeline.query_pipeline import QueryPipeline
from guarded_rag.resilience.policy import (
    BreakerRegistry,
    ResiliencePolicy,
    retry_options_from_settings,
)
from guarded_rag.resilience.retry import RetryOptions
from guarded_rag.retrieval.vector_retriever import VectorRetriever
from guarded_rag.safety.gate import SafetyGate
from guarded_rag.safety.moderation import OpenAIModerator
from guarded_rag.scoring.confidence import ConfidenceScorer
from guarded_rag.storage.sqlite_chunk_store import SQLiteChunkStore
from guarded_rag.vectorstore.faiss_store import FAISSVectorStore

logger = get_logger("app")


def build_policies(settings: Settings, breakers: BreakerRegistry) -> dict[str, ResiliencePolicy]:
    """One resilience policy per guarded dependency, sharing the registry's breakers."""
    retry = retry_options_from_settings(settings)
    return {
        "embeddings": ResiliencePolicy(
            name="embeddings",
            breaker=breakers.get("embeddings"),
            timeout_s=settings.embedding_query_timeout,
            retry=retry,
            error_type=EmbeddingError,
        ),
        "llm": ResiliencePolicy(
            name="llm",
            breaker=breakers.get("llm"),
            timeout_s=settings.generation_timeout,
            retry=retry,
            error_type=GenerationError,
        ),
        "moderation": ResiliencePolicy(
            name="moderation",
            breaker=breakers.get("moderation"),
            timeout_s=settings.moderation_timeout,
            retry=retry,
            error_type=ModerationError,
        ),
        # The query embedding inside retrieval has its own timeout and retries
        # under "embeddings"; the index lookup is bounded by the retriever itself.
        "retriever": ResiliencePolicy(
            name="retriever",
            breaker=breakers.get("retriever"),
            timeout_s=None,
            retry=RetryOptions(max_retries=0),
            error_type=RetrieverError,
        ),
    }


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = load_settings()
    setup_logging(settings.log_level, settings.log_json)

    Path(settings.chunk_db_path).parent.mkdir(parents=True, exist_ok=True)

    # Storage
    chunk_store = SQLiteChunkStore(settings.chunk_db_path)
    await chunk_store.initialize()
    vector_store = FAISSVectorStore(
        dimensions=settings.embedding_dimensions,
        index_path=settings.faiss_index_path,
    )

    # Cache
    cache: TTLCache | None = None
    if settings.cache_enabled:
        cache = TTLCache(
            default_ttl=settings.cache_ttl,
            sweep_interval=settings.cache_sweep_interval,
        )
        cache.start()

    # Resilience
    breakers = BreakerRegistry.from_settings(settings)
    policies = build_policies(settings, breakers)

    # Safety
    moderator = OpenAIModerator(api_key=settings.openai_api_key, model=settings.moderation_model)
    safety_gate = SafetyGate(moderator, policies["moderation"], enabled=settings.safety_enabled)

    # Embedding (with cache)
    raw_embedder = OpenAIEmbedder(
        api_key=settings.openai_api_key,
        model=settings.embedding_model,
        batch_size=settings.embedding_batch_size,
        dimensions=settings.embedding_dimensions,
    )
    embedder = CachedEmbedder(
        delegate=raw_embedder,
        policy=policies["embeddings"],
        cache=cache if settings.cache_embeddings else None,
        ttl=settings.cache_ttl,
        documents_timeout_s=settings.embedding_documents_timeout,
    )

    # Retrieval
    retriever = VectorRetriever(
        embedder=embedder,
        vector_store=vector_store,
        chunk_store=chunk_store,
        top_k=settings.top_k,
        score_threshold=settings.retrieval_score_threshold,
        lookup_timeout_s=settings.retrieval_timeout,
    )

    # Generation
    llm = GeminiProvider(
        api_key=settings.google_api_key,
        model=settings.gemini_model,
        temperature=settings.gemini_temperature,
        max_tokens=settings.gemini_max_tokens,
    )
    estimator = TiktokenEstimator(settings.token_encoding) if settings.estimate_token_usage else None
    answer_generator = AnswerGenerator(
        backend=llm,
        policy=policies["llm"],
        usage_extractor=TokenUsageExtractor(estimator=estimator),
    )

    # Query pipeline
    query_pipeline = QueryPipeline(
        safety_gate=safety_gate,
        retriever=retriever,
        answer_generator=answer_generator,
        confidence_scorer=ConfidenceScorer(settings),
        retriever_policy=policies["retriever"],
        settings=settings,
        cache=cache,
    )

    # Attach to app state
    app.state.settings = settings
    app.state.query_pipeline = query_pipeline
    app.state.chunk_store = chunk_store
    app.state.vector_store = vector_store
    app.state.breakers = breakers
    app.state.cache = cache

    logger.info(
        "startup_complete",
        chunks=await chunk_store.count_chunks(),
        index_size=vector_store.size,
        cache_enabled=cache is not None,
    )

    yield

    if cache is not None:
        await cache.close()
    logger.info("shutdown_complete")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Guarded RAG",
        version="1.0.0",
        description="Question answering with safety gate, resilient dependencies and confidence scoring",
        lifespan=lifespan,
    )
    app.add_middleware(RequestTimingMiddleware)
    register_error_handlers(app)
    app.include_router(health_router, tags=["health"])
    app.include_router(query_router, tags=["query"])
    return app
