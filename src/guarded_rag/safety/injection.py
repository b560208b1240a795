"""Prompt-injection phrasing detection."""

from __future__ import annotations

import re

INJECTION_PATTERNS = [
    re.compile(p, re.I)
    for p in (
        r"ignore\s+(all\s+)?(previous\s+)?instructions?",
        r"disregard\s+(all\s+)?(previous|above)\s+instructions?",
        r"forget\s+(everything|all)\s+(you|we)\s+(said|told)",
        r"new\s+instructions?:",
        r"system\s*:\s*",
        r"\[SYSTEM\]",
        r"\[INST\]",
        r"you\s+are\s+now",
        r"act\s+as\s+(if\s+)?you\s+are",
        r"pretend\s+(that\s+)?you\s+are",
    )
]


def detect_prompt_injection(text: str) -> bool:
    return any(pattern.search(text) for pattern in INJECTION_PATTERNS)
