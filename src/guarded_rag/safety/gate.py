"""Safety gate: moderation, PII and prompt-injection checks run concurrently."""

from __future__ import annotations

import asyncio

from guarded_rag.models.domain import ModerationResult, PIIDetection, SafetyResult
from guarded_rag.observability.logger import get_logger
from guarded_rag.protocols.moderation import ModerationBackend
from guarded_rag.resilience.policy import ResiliencePolicy
from guarded_rag.safety.injection import detect_prompt_injection
from guarded_rag.safety.pii import detect_pii, redact_pii

logger = get_logger("safety")


class SafetyGate:
    def __init__(
        self,
        moderator: ModerationBackend | None,
        policy: ResiliencePolicy,
        enabled: bool = True,
    ) -> None:
        self._moderator = moderator
        self._policy = policy
        self._enabled = enabled

    async def check(self, question: str) -> SafetyResult:
        if not self._enabled:
            return SafetyResult(
                safe=True,
                moderation=ModerationResult(),
                injection_detected=False,
                pii=PIIDetection(),
            )

        moderation, pii, injection_detected = await asyncio.gather(
            self._moderate(question),
            asyncio.to_thread(detect_pii, question),
            asyncio.to_thread(detect_prompt_injection, question),
        )

        safe = not moderation.flagged and not injection_detected and not pii.detected
        result = SafetyResult(
            safe=safe,
            moderation=moderation,
            injection_detected=injection_detected,
            pii=pii,
        )
        if pii.detected:
            result.sanitized_question = redact_pii(question, pii)

        if not safe:
            logger.info(
                "unsafe_input_detected",
                flagged=moderation.flagged,
                injection_detected=injection_detected,
                pii_detected=pii.detected,
                pii_types=sorted(pii.types),
            )
        return result

    async def _moderate(self, text: str) -> ModerationResult:
        """Run moderation; any failure after retries is treated as unflagged."""
        if self._moderator is None:
            return ModerationResult()
        try:
            return await self._policy.call(self._moderator.moderate, text)
        except Exception as e:
            logger.error("moderation_failed_open", error=str(e))
            return ModerationResult()
