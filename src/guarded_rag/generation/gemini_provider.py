"""Google Gemini generation backend using the google-genai SDK."""

from __future__ import annotations

from google import genai
from google.genai import types

from guarded_rag.exceptions import GenerationError
from guarded_rag.generation.prompt_templates import ANSWER_GENERATION_SYSTEM, render_prompt
from guarded_rag.models.domain import GenerationOutput
from guarded_rag.observability.logger import get_logger
from guarded_rag.resilience.retry import is_retryable_error

logger = get_logger("gemini")


class GeminiProvider:
    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.0-flash",
        temperature: float = 0.1,
        max_tokens: int = 4096,
    ) -> None:
        self._client = genai.Client(api_key=api_key)
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens

    @property
    def model_name(self) -> str:
        return self._model

    async def generate(self, question: str, context: str) -> GenerationOutput:
        try:
            config = types.GenerateContentConfig(
                temperature=self._temperature,
                max_output_tokens=self._max_tokens,
                system_instruction=ANSWER_GENERATION_SYSTEM,
            )
            response = await self._client.aio.models.generate_content(
                model=self._model,
                contents=render_prompt(question, context),
                config=config,
            )
        except Exception as e:
            raise GenerationError(
                f"Gemini generation failed: {e}", retryable=is_retryable_error(e)
            ) from e

        return GenerationOutput(text=response.text or "", usage_metadata=response.usage_metadata)
