"""
Score normalization and result variants.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, TypeAlias

from ..profiles import EMBEDDING_SUFFIX


def normalize_score(raw: float) -> float:
    """Clamp a raw relevance score into [0, 1]."""
    value = float(raw)
    if math.isnan(value):
        return 0.0
    return max(0.0, min(value, 1.0))


def project_document(document: dict[str, Any]) -> dict[str, Any]:
    """Drop embedding vectors and any engine score from a stored document."""
    return {
        key: value
        for key, value in document.items()
        if key != "score" and not key.endswith(EMBEDDING_SUFFIX)
    }


@dataclass(frozen=True)
class ScoredResult:
    """A hit carrying a normalized relevance score."""

    document: dict[str, Any]
    score: float

    @property
    def doc_id(self) -> str:
        return str(self.document.get("_id", ""))

    def to_dict(self) -> dict[str, Any]:
        return {**self.document, "score": self.score}


@dataclass(frozen=True)
class UnscoredResult:
    """A hit from a strategy with no relevance score. Serializes without ``score``."""

    document: dict[str, Any]

    @property
    def doc_id(self) -> str:
        return str(self.document.get("_id", ""))

    def to_dict(self) -> dict[str, Any]:
        return dict(self.document)


SearchResult: TypeAlias = ScoredResult | UnscoredResult


def scored(row: dict[str, Any]) -> ScoredResult:
    """Build a normalized result from a store row carrying a ``score`` key."""
    return ScoredResult(
        document=project_document(row),
        score=normalize_score(row.get("score", 0.0)),
    )


def unscored(row: dict[str, Any]) -> UnscoredResult:
    return UnscoredResult(document=project_document(row))
