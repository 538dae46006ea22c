"""
Ranking helpers for merging vector and full-text result sets.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .normalize import ScoredResult, normalize_score, project_document


@dataclass(frozen=True)
class RankedDocument:
    """Merged retrieval candidate for a document."""

    doc_id: str
    document: dict[str, Any]
    vector_score: float
    text_score: float
    position: int

    @property
    def combined_score(self) -> float:
        # Each side is clipped to [0, 1] first; the stronger signal wins.
        return max(self.vector_score, self.text_score)


def merge_results(
    *,
    vector_rows: list[dict[str, Any]],
    text_rows: list[dict[str, Any]],
) -> list[RankedDocument]:
    """Union two scored row sets by ``_id``, keeping per-side scores."""
    merged: dict[str, dict[str, Any]] = {}
    for side, rows in (("vector_score", vector_rows), ("text_score", text_rows)):
        for row in rows:
            doc_id = str(row["_id"])
            entry = merged.setdefault(
                doc_id,
                {
                    "document": project_document(row),
                    "vector_score": 0.0,
                    "text_score": 0.0,
                    "position": len(merged),
                },
            )
            entry[side] = max(entry[side], normalize_score(row.get("score", 0.0)))

    return [
        RankedDocument(
            doc_id=doc_id,
            document=entry["document"],
            vector_score=float(entry["vector_score"]),
            text_score=float(entry["text_score"]),
            position=int(entry["position"]),
        )
        for doc_id, entry in merged.items()
    ]


def rank_documents(
    documents: list[RankedDocument], *, limit: int
) -> list[RankedDocument]:
    """Sort merged retrieval results and apply limit."""
    ordered = sorted(
        documents,
        key=lambda doc: (
            -doc.combined_score,
            -doc.vector_score,
            -doc.text_score,
            doc.position,
        ),
    )
    return ordered[: max(limit, 1)]


def to_results(documents: list[RankedDocument]) -> list[ScoredResult]:
    return [
        ScoredResult(document=doc.document, score=doc.combined_score)
        for doc in documents
    ]
