"""Tests for settings validation."""

from __future__ import annotations

import pytest

from guarded_rag.config.settings import Settings, load_settings
from guarded_rag.exceptions import ConfigurationError


def test_defaults():
    settings = Settings(_env_file=None)
    assert settings.top_k == 5
    assert settings.retriever_type == "similarity"
    assert settings.cache_ttl == 3600
    assert settings.generation_timeout == 30
    assert settings.embedding_documents_timeout == 60
    assert settings.moderation_timeout == 10
    assert settings.confidence_low_threshold < settings.confidence_medium_threshold


def test_env_prefix(monkeypatch):
    monkeypatch.setenv("RAG_TOP_K", "7")
    monkeypatch.setenv("RAG_CACHE_ENABLED", "true")
    settings = load_settings(_env_file=None)
    assert settings.top_k == 7
    assert settings.cache_enabled


@pytest.mark.parametrize(
    "overrides",
    [
        {"top_k": 0},
        {"cache_enabled": True, "cache_ttl": 0},
        {"retry_max_retries": -1},
        {"breaker_failure_threshold": 0},
        {"confidence_low_threshold": 0.7, "confidence_medium_threshold": 0.6},
        {"confidence_high_threshold": 0.6},
        {"retriever_type": "mmr"},
    ],
)
def test_invalid_settings_raise_configuration_error(overrides):
    with pytest.raises(ConfigurationError) as exc_info:
        load_settings(_env_file=None, **overrides)
    assert exc_info.value.code == "CONFIGURATION_ERROR"
    assert exc_info.value.message.startswith("Configuration validation failed")


def test_threshold_order_ignored_when_confidence_disabled():
    settings = load_settings(
        _env_file=None, confidence_enabled=False, confidence_low_threshold=0.9
    )
    assert not settings.confidence_enabled
