"""Question normalization and validation before any stage runs."""

from __future__ import annotations

import re

from guarded_rag.exceptions import InputValidationError

MAX_QUESTION_LENGTH = 10_000

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B-\x0C\x0E-\x1F\x7F]")
_WHITESPACE = re.compile(r"\s+")


def sanitize_input(text: str) -> str:
    cleaned = _CONTROL_CHARS.sub("", text)
    cleaned = _WHITESPACE.sub(" ", cleaned).strip()
    return cleaned[:MAX_QUESTION_LENGTH]


def validate_question(raw: object) -> str:
    if not isinstance(raw, str):
        raise InputValidationError("Input must be a string")
    question = sanitize_input(raw)
    if not question:
        raise InputValidationError("Input cannot be empty")
    return question
