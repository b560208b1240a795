"""Tests for question validation."""

from __future__ import annotations

import pytest

from guarded_rag.exceptions import InputValidationError
from guarded_rag.safety.sanitization import MAX_QUESTION_LENGTH, sanitize_input, validate_question


def test_strips_control_characters_and_collapses_whitespace():
    assert sanitize_input("  What\x00 is\t\tyour\n\nreturn policy?\x07 ") == (
        "What is your return policy?"
    )


def test_truncates_long_input():
    assert len(sanitize_input("a" * (MAX_QUESTION_LENGTH + 50))) == MAX_QUESTION_LENGTH


@pytest.mark.parametrize("raw", ["", "   ", "\x00\x01", None, 42, ["q"]])
def test_rejects_unusable_input(raw):
    with pytest.raises(InputValidationError) as exc_info:
        validate_question(raw)
    assert exc_info.value.status_code == 400


def test_returns_clean_question():
    assert validate_question(" hello  world ") == "hello world"
