"""Tests for the OpenAI and Gemini adapters with their clients stubbed out."""

from __future__ import annotations

from types import SimpleNamespace

import httpx
import openai
import pytest

from guarded_rag.embeddings.openai_embedder import OpenAIEmbedder
from guarded_rag.exceptions import EmbeddingError, GenerationError, ModerationError
from guarded_rag.generation.gemini_provider import GeminiProvider
from guarded_rag.safety.moderation import OpenAIModerator


class RateLimited(Exception):
    status_code = 429


class FakeModerations:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error

    async def create(self, **kwargs):
        if self.error:
            raise self.error
        return self.response


class FakeEmbeddings:
    def __init__(self, drop_last=False):
        self.batches = []
        self.kwargs = None
        self.drop_last = drop_last

    async def create(self, input, **kwargs):
        self.batches.append(list(input))
        self.kwargs = kwargs
        data = [SimpleNamespace(embedding=[float(len(t))]) for t in input]
        return SimpleNamespace(data=data[:-1] if self.drop_last else data)


class FakeModels:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.kwargs = None

    async def generate_content(self, **kwargs):
        self.kwargs = kwargs
        if self.error:
            raise self.error
        return self.response


async def test_moderation_result_mapping():
    moderator = OpenAIModerator(api_key="test-key")
    result = SimpleNamespace(
        flagged=True,
        categories={"harassment": True, "violence": False},
        category_scores={"harassment": 0.91, "violence": 0.01},
    )
    moderator._client = SimpleNamespace(
        moderations=FakeModerations(SimpleNamespace(results=[result]))
    )
    moderation = await moderator.moderate("text")
    assert moderation.flagged
    assert moderation.categories == {"harassment": True, "violence": False}
    assert moderation.category_scores["harassment"] == pytest.approx(0.91)


async def test_moderation_errors_keep_retryability():
    moderator = OpenAIModerator(api_key="test-key")
    moderator._client = SimpleNamespace(moderations=FakeModerations(error=RateLimited("slow down")))
    with pytest.raises(ModerationError) as exc_info:
        await moderator.moderate("text")
    assert exc_info.value.retryable


async def test_embedder_batches():
    embedder = OpenAIEmbedder(api_key="test-key", batch_size=2)
    fake = FakeEmbeddings()
    embedder._client = SimpleNamespace(embeddings=fake)
    result = await embedder.embed_texts(["a", "bb", "ccc"])
    assert result == [[1.0], [2.0], [3.0]]
    assert fake.batches == [["a", "bb"], ["ccc"]]
    assert fake.kwargs == {"model": "text-embedding-3-small", "dimensions": 1536}


async def test_embedder_rejects_blank_query():
    embedder = OpenAIEmbedder(api_key="test-key")
    embedder._client = SimpleNamespace(embeddings=FakeEmbeddings())
    with pytest.raises(EmbeddingError):
        await embedder.embed_query("   ")


async def test_embedder_count_mismatch_is_not_retryable():
    embedder = OpenAIEmbedder(api_key="test-key")
    embedder._client = SimpleNamespace(embeddings=FakeEmbeddings(drop_last=True))
    with pytest.raises(EmbeddingError) as exc_info:
        await embedder.embed_texts(["a", "b"])
    assert not exc_info.value.retryable


async def test_embedder_error_is_typed():
    embedder = OpenAIEmbedder(api_key="test-key")

    class Broken:
        async def create(self, **kwargs):
            raise ValueError("invalid model")

    embedder._client = SimpleNamespace(embeddings=Broken())
    with pytest.raises(EmbeddingError) as exc_info:
        await embedder.embed_query("q")
    assert not exc_info.value.retryable


async def test_gemini_returns_text_and_usage():
    provider = GeminiProvider(api_key="test-key", model="gemini-test")
    usage = SimpleNamespace(prompt_token_count=10, candidates_token_count=5, total_token_count=15)
    models = FakeModels(SimpleNamespace(text="Thirty days.", usage_metadata=usage))
    provider._client = SimpleNamespace(aio=SimpleNamespace(models=models))

    output = await provider.generate("How long?", "[1] Returns within 30 days.")
    assert output.text == "Thirty days."
    assert output.usage_metadata is usage
    assert models.kwargs["model"] == "gemini-test"
    assert "[1] Returns within 30 days." in models.kwargs["contents"]
    assert provider.model_name == "gemini-test"


async def test_gemini_error_is_typed():
    provider = GeminiProvider(api_key="test-key")
    provider._client = SimpleNamespace(
        aio=SimpleNamespace(models=FakeModels(error=RuntimeError("503 Service Unavailable")))
    )
    with pytest.raises(GenerationError) as exc_info:
        await provider.generate("q", "c")
    assert exc_info.value.retryable


async def test_embedder_connection_failure_is_retryable():
    embedder = OpenAIEmbedder(api_key="test-key")
    request = httpx.Request("POST", "https://api.openai.com/v1/embeddings")

    class Unreachable:
        async def create(self, **kwargs):
            raise openai.APITimeoutError(request=request)

    embedder._client = SimpleNamespace(embeddings=Unreachable())
    with pytest.raises(EmbeddingError) as exc_info:
        await embedder.embed_query("q")
    assert exc_info.value.retryable
