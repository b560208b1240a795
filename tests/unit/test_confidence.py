"""Tests for the confidence scorer."""

from __future__ import annotations

import pytest

from guarded_rag.models.domain import RetrievedChunk
from guarded_rag.scoring.confidence import (
    ConfidenceScorer,
    answer_quality_score,
    detect_uncertainty_markers,
    extract_similarity_scores,
)


@pytest.fixture
def scorer(settings):
    return ConfidenceScorer(settings)


def test_zero_documents_short_circuits(scorer):
    score = scorer.score([], 0, 5, "Some answer that looks fine to a reader.")
    assert score.overall == 0.0
    assert score.level == "very_low"
    assert score.explanation == "No relevant documents were retrieved"


def test_weighted_formula(scorer):
    answer = "You can return items within 30 days."
    score = scorer.score([0.9, 0.8], 2, 2, answer)
    assert score.factors.retrieval == pytest.approx(0.85)
    assert score.factors.relevance == pytest.approx(0.9)
    assert score.factors.coverage == pytest.approx(1.0)
    assert score.factors.answer_quality == pytest.approx(0.6)
    assert score.overall == pytest.approx(0.35 * 0.85 + 0.30 * 0.9 + 0.15 * 1.0 + 0.20 * 0.6)
    assert score.level == "high"


def test_coverage_uses_requested_top_k(scorer):
    score = scorer.score([0.9, 0.8], 2, 5, "You can return items within 30 days.")
    assert score.factors.coverage == pytest.approx(0.4)
    assert score.level == "medium"


def test_scores_are_clamped(scorer):
    score = scorer.score([1.7, -0.3], 2, 2, "A" * 100)
    assert score.factors.relevance == 1.0
    assert score.factors.retrieval == pytest.approx(0.5)
    assert 0.0 <= score.overall <= 1.0


@pytest.mark.parametrize(
    "overall,level",
    [(0.95, "high"), (0.8, "high"), (0.79, "medium"), (0.6, "medium"), (0.4, "low"), (0.39, "very_low")],
)
def test_levels(scorer, overall, level):
    assert scorer.level_for(overall) == level


@pytest.mark.parametrize(
    "answer",
    [
        "I don't know the answer to that question based on the context.",
        "I couldn't find anything about that in the documents provided.",
        "There is no relevant information about shipping in the context.",
        "I don’t know.",
    ],
)
def test_no_information_caps_quality(answer):
    assert answer_quality_score(answer) <= 0.1


def test_empty_answer():
    assert answer_quality_score("") == 0.0
    assert answer_quality_score("   ") == 0.0


def test_length_bands():
    assert answer_quality_score("Yes, it does.") == pytest.approx(0.3)
    assert answer_quality_score("Returns are accepted for 30 days.") == pytest.approx(0.6)
    assert answer_quality_score("x" * 100) == pytest.approx(1.0)
    assert answer_quality_score("x" * 2500) == pytest.approx(0.8)


def test_uncertainty_penalty():
    answer = "Refunds might take longer during holidays and possibly up to two weeks in some regions."
    markers = detect_uncertainty_markers(answer)
    assert "might" in markers
    assert "possibly" in markers
    assert answer_quality_score(answer) < 1.0


def test_uncertainty_words_match_whole_words_only():
    assert detect_uncertainty_markers("Mayonnaise and maybelline are on the list") == []


def test_similarity_extraction_fallbacks():
    chunks = [
        RetrievedChunk(id="a", text="t", similarity_score=0.9),
        RetrievedChunk(id="b", text="t", metadata={"score": 0.7}),
        RetrievedChunk(id="c", text="t", metadata={"relevanceScore": "0.6"}),
        RetrievedChunk(id="d", text="t"),
        RetrievedChunk(id="e", text="t", metadata={"similarity": "high"}),
    ]
    assert extract_similarity_scores(chunks) == [0.9, 0.7, 0.6, 0.5, 0.5]


def test_explanation_mentions_weak_spots(scorer):
    score = scorer.score([0.3], 1, 5, "Maybe.")
    assert "limited document relevance" in score.explanation
    assert "incomplete context coverage" in score.explanation
    assert "answer contains uncertainty indicators" in score.explanation
