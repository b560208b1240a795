"""Protocol for content moderation backends."""

from __future__ import annotations

from typing import Protocol

from guarded_rag.models.domain import ModerationResult


class ModerationBackend(Protocol):
    async def moderate(self, text: str) -> ModerationResult: ...
