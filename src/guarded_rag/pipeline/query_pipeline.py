"""Query pipeline orchestrator: safety -> retrieval -> generation -> confidence."""

from __future__ import annotations

from guarded_rag.cache.utils import create_cache_key, hash_data, safe_get, safe_set
from guarded_rag.config.settings import Settings
from guarded_rag.exceptions import SafetyRejectedError
from guarded_rag.generation.answer_generator import AnswerGenerator
from guarded_rag.generation.prompt_templates import NO_DOCUMENTS_ANSWER, format_context
from guarded_rag.models.domain import GenerationResult, RetrievedChunk
from guarded_rag.models.schemas import (
    CacheInfo,
    ConfidenceResponse,
    QueryResponse,
    ResponseMetadata,
    Timings,
)
from guarded_rag.observability.logger import get_logger
from guarded_rag.observability.metrics import (
    log_generation_metrics,
    log_latency,
    log_query_metrics,
    log_retrieval_metrics,
)
from guarded_rag.observability.tracing import TraceContext
from guarded_rag.pipeline.response_builder import (
    build_chunk_responses,
    build_confidence_response,
    build_safety_summary,
    build_token_usage,
)
from guarded_rag.protocols.cache import Cache
from guarded_rag.protocols.retriever import Retriever
from guarded_rag.resilience.policy import ResiliencePolicy
from guarded_rag.safety.gate import SafetyGate
from guarded_rag.safety.sanitization import validate_question
from guarded_rag.scoring.confidence import ConfidenceScorer, extract_similarity_scores

logger = get_logger("query_pipeline")


class QueryPipeline:
    """Runs one question through the fixed stage order.

    Stages share nothing but the injected cache and the resilience policies,
    so many queries can run concurrently on one instance.
    """

    def __init__(
        self,
        safety_gate: SafetyGate,
        retriever: Retriever,
        answer_generator: AnswerGenerator,
        confidence_scorer: ConfidenceScorer,
        retriever_policy: ResiliencePolicy,
        settings: Settings,
        cache: Cache | None = None,
    ) -> None:
        self._safety = safety_gate
        self._retriever = retriever
        self._generator = answer_generator
        self._confidence = confidence_scorer
        self._retriever_policy = retriever_policy
        self._settings = settings
        self._cache = cache if settings.cache_enabled else None

    async def execute(self, question: object) -> QueryResponse:
        trace = TraceContext()
        original = validate_question(question)

        # STEP 1: Safety gate
        with trace.span("safety"):
            safety = await self._safety.check(original)
        safety_summary = build_safety_summary(safety)
        if not safety.safe:
            raise SafetyRejectedError(
                "Question rejected by safety checks",
                details={"safety": safety_summary.model_dump()},
            )
        effective = safety.sanitized_question or original

        # STEP 2: Retrieval (cache-checked)
        with trace.span("retrieval"):
            chunks, retrieval_hit = await self._retrieve(effective)
        similarity_scores = extract_similarity_scores(chunks)
        log_retrieval_metrics(
            trace.trace_id,
            similarity_scores,
            len(chunks),
            self._settings.top_k,
            retrieval_hit,
        )

        # STEP 3: Generation (cache-checked), skipped when nothing was retrieved
        if chunks:
            with trace.span("generation"):
                generation = await self._generate(effective, format_context(chunks))
            log_generation_metrics(
                trace.trace_id,
                self._generator.model_name,
                generation.token_usage,
                generation.cache_hit,
            )
        else:
            logger.info("no_documents_retrieved", trace_id=trace.trace_id)
            generation = GenerationResult(answer=NO_DOCUMENTS_ANSWER)

        # STEP 4: Confidence
        confidence: ConfidenceResponse | None = None
        if self._settings.confidence_enabled:
            with trace.span("confidence"):
                confidence = self._score(
                    similarity_scores, len(chunks), generation.answer, trace.trace_id
                )

        total_ms = trace.elapsed_ms
        for span in trace.spans:
            log_latency(trace.trace_id, span.name, span.duration_ms)
        logger.debug("query_trace", **trace.to_dict())
        log_query_metrics(
            trace.trace_id,
            total_ms,
            confidence.score if confidence else None,
            confidence.level if confidence else None,
        )

        return QueryResponse(
            question=original,
            answer=generation.answer,
            chunks=build_chunk_responses(chunks),
            confidence=confidence,
            safety=safety_summary,
            metadata=ResponseMetadata(
                trace_id=trace.trace_id,
                search_method=self._settings.retriever_type,
                top_k=self._settings.top_k,
                document_count=len(chunks),
                model=self._generator.model_name,
                token_usage=build_token_usage(generation.token_usage),
                timings=Timings(
                    safety_check_ms=trace.duration_of("safety"),
                    retrieval_ms=trace.duration_of("retrieval") or 0.0,
                    generation_ms=trace.duration_of("generation"),
                    confidence_ms=trace.duration_of("confidence"),
                    total_ms=round(total_ms, 2),
                ),
                cache=CacheInfo(retrieval_hit=retrieval_hit, generation_hit=generation.cache_hit),
            ),
        )

    async def _retrieve(self, question: str) -> tuple[list[RetrievedChunk], bool]:
        cache = self._cache if self._settings.cache_retrieval else None
        key = create_cache_key(
            "retrieval", self._settings.retriever_type, self._settings.top_k, hash_data(question)
        )

        cached = await safe_get(cache, key)
        if cached is not None:
            try:
                chunks = [RetrievedChunk.from_dict(item) for item in cached]
            except (KeyError, TypeError) as e:
                logger.debug("retrieval_cache_corrupt", key=key, error=str(e))
            else:
                logger.info("retrieval_cache_hit", count=len(chunks))
                return chunks, True

        chunks = await self._retriever_policy.call(self._retriever.retrieve, question)
        await safe_set(cache, key, [c.to_dict() for c in chunks], self._settings.cache_ttl)
        return chunks, False

    async def _generate(self, question: str, context: str) -> GenerationResult:
        cache = self._cache if self._settings.cache_llm else None
        key = create_cache_key(
            "llm", "response", hash_data({"question": question, "context": context})
        )

        cached = await safe_get(cache, key)
        if isinstance(cached, str):
            logger.info("generation_cache_hit")
            return GenerationResult(answer=cached, token_usage=None, cache_hit=True)

        result = await self._generator.generate(question, context)
        await safe_set(cache, key, result.answer, self._settings.cache_ttl)
        return result

    def _score(
        self,
        similarity_scores: list[float],
        document_count: int,
        answer: str,
        trace_id: str,
    ) -> ConfidenceResponse | None:
        try:
            score = self._confidence.score(
                similarity_scores, document_count, self._settings.top_k, answer
            )
            return build_confidence_response(score, self._settings.confidence_include_factors)
        except Exception as e:
            logger.warning("confidence_failed", trace_id=trace_id, error=str(e))
            return None
