"""Answer generation through the guarded LLM backend."""

from __future__ import annotations

from guarded_rag.generation.prompt_templates import ANSWER_GENERATION_SYSTEM, render_prompt
from guarded_rag.generation.token_usage import TokenUsageExtractor
from guarded_rag.models.domain import GenerationResult
from guarded_rag.observability.logger import get_logger
from guarded_rag.protocols.llm import GenerationBackend
from guarded_rag.resilience.policy import ResiliencePolicy

logger = get_logger("generation")


class AnswerGenerator:
    def __init__(
        self,
        backend: GenerationBackend,
        policy: ResiliencePolicy,
        usage_extractor: TokenUsageExtractor | None = None,
    ) -> None:
        self._backend = backend
        self._policy = policy
        self._usage = usage_extractor or TokenUsageExtractor()

    @property
    def model_name(self) -> str:
        return self._backend.model_name

    async def generate(self, question: str, context: str) -> GenerationResult:
        output = await self._policy.call(self._backend.generate, question, context)

        prompt = f"{ANSWER_GENERATION_SYSTEM}\n\n{render_prompt(question, context)}"
        token_usage = self._usage.extract(output.usage_metadata, prompt, output.text)

        logger.info(
            "generated_answer",
            question_len=len(question),
            answer_len=len(output.text),
            total_tokens=token_usage.total_tokens if token_usage else None,
        )
        return GenerationResult(answer=output.text, token_usage=token_usage, cache_hit=False)
