"""Protocol for answer generation backends."""

from __future__ import annotations

from typing import Protocol

from guarded_rag.models.domain import GenerationOutput


class GenerationBackend(Protocol):
    async def generate(self, question: str, context: str) -> GenerationOutput: ...

    @property
    def model_name(self) -> str: ...
