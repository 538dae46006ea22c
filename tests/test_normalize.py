"""Tests for score normalization and result serialization."""

import math

from vector_search_demo.search import (
    ScoredResult,
    UnscoredResult,
    normalize_score,
    project_document,
    scored,
    unscored,
)


def test_normalize_score_clamps_into_unit_interval() -> None:
    assert normalize_score(-0.3) == 0.0
    assert normalize_score(0.42) == 0.42
    assert normalize_score(3.7) == 1.0
    assert normalize_score(math.nan) == 0.0


def test_project_document_drops_vectors_and_engine_score() -> None:
    row = {
        "_id": "a",
        "title": "Red Shoes",
        "description_embedding": [0.1, 0.2],
        "score": 12.5,
    }

    assert project_document(row) == {"_id": "a", "title": "Red Shoes"}


def test_scored_result_serializes_normalized_score() -> None:
    result = scored({"_id": "a", "title": "Red Shoes", "score": 4.0})

    assert isinstance(result, ScoredResult)
    assert result.doc_id == "a"
    assert result.to_dict() == {"_id": "a", "title": "Red Shoes", "score": 1.0}


def test_unscored_result_has_no_score_key() -> None:
    result = unscored({"_id": "b", "title": "Office Chair", "score": 0.5})

    assert isinstance(result, UnscoredResult)
    assert "score" not in result.to_dict()
    assert result.to_dict() == {"_id": "b", "title": "Office Chair"}
