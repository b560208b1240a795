"""Tests for Pydantic schemas and the error hierarchy."""

import pytest
from pydantic import ValidationError

from guarded_rag.exceptions import (
    CircuitOpenError,
    DependencyTimeoutError,
    GenerationError,
    RetrieverError,
    SafetyRejectedError,
)
from guarded_rag.models.schemas import (
    CacheInfo,
    ConfidenceResponse,
    QueryRequest,
    QueryResponse,
    ResponseMetadata,
    SafetySummary,
    Timings,
)


def _response() -> QueryResponse:
    return QueryResponse(
        question="What is your return policy?",
        answer="You can return items within 30 days.",
        chunks=[],
        confidence=ConfidenceResponse(score=0.84, level="high"),
        safety=SafetySummary(
            safe=True, moderation_flagged=False, injection_detected=False, pii_detected=False
        ),
        metadata=ResponseMetadata(
            trace_id="abc123",
            search_method="similarity",
            top_k=2,
            document_count=0,
            model="gemini-2.0-flash",
            timings=Timings(retrieval_ms=1.0, total_ms=2.0),
            cache=CacheInfo(),
        ),
    )


def test_query_request_requires_question():
    with pytest.raises(ValidationError):
        QueryRequest(question="")


def test_query_response_serialization():
    data = _response().model_dump()
    assert data["answer"] == "You can return items within 30 days."
    assert data["confidence"]["level"] == "high"
    assert data["metadata"]["token_usage"] is None
    assert data["metadata"]["cache"] == {"retrieval_hit": False, "generation_hit": False}


def test_query_response_is_immutable():
    resp = _response()
    with pytest.raises(ValidationError):
        resp.answer = "changed"


def test_confidence_level_is_validated():
    with pytest.raises(ValidationError):
        ConfidenceResponse(score=0.5, level="certain")


def test_error_bodies():
    assert SafetyRejectedError("unsafe").to_dict() == {
        "code": "SAFETY_REJECTED",
        "message": "unsafe",
        "details": {},
    }
    err = GenerationError("llm call failed")
    assert err.status_code == 502
    assert err.details == {"dependency": "llm"}
    assert RetrieverError("x").details["dependency"] == "retriever"


def test_status_codes():
    assert CircuitOpenError("llm", 1.0, 60.0).status_code == 503
    assert DependencyTimeoutError(30).status_code == 504
    assert SafetyRejectedError("unsafe").status_code == 400
