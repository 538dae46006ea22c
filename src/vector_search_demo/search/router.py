"""
Multi-strategy search router.

One entry point, ``SearchRouter.search``, dispatches on the request type to a
strategy that builds a store query, optionally calling the completion and
embedding providers first, and returns a uniform response envelope.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable

from ..completion import CompletionProvider
from ..embeddings import EmbeddingProvider
from ..exceptions import ClientInputError
from ..profiles import CollectionProfile
from ..storage import DocumentStore
from .normalize import SearchResult, scored, unscored
from .pipelines import (
    RESULT_LIMIT,
    SearchOptions,
    build_basic_query,
    build_text_search,
    build_vector_search,
)
from .ranker import merge_results, rank_documents, to_results

logger = logging.getLogger(__name__)

CONCEPT_CANDIDATE_LIMIT = 20


@dataclass(frozen=True)
class SearchRequest:
    """A search request as received from the HTTP surface or CLI."""

    type: str
    query: str | None = None
    image: bytes | None = field(default=None, repr=False)
    image_mime_type: str = "image/jpeg"
    options: SearchOptions = field(default_factory=SearchOptions)


@dataclass(frozen=True)
class SearchResponse:
    """Results plus timing, and the generated caption for image searches."""

    results: list[SearchResult]
    elapsed_ms: float
    image_description: str | None = None

    @property
    def search_time(self) -> str:
        return f"{self.elapsed_ms:.2f}"

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "results": [result.to_dict() for result in self.results],
            "searchTime": self.search_time,
        }
        if self.image_description is not None:
            payload["imageDescription"] = self.image_description
        return payload


_StrategyResult = tuple[list[SearchResult], str | None]


class SearchRouter:
    """Dispatch search requests to per-type query strategies."""

    def __init__(
        self,
        store: DocumentStore,
        embedder: EmbeddingProvider,
        completer: CompletionProvider,
        profile: CollectionProfile,
    ) -> None:
        self.store = store
        self.embedder = embedder
        self.completer = completer
        self.profile = profile
        self._strategies: dict[str, Callable[[SearchRequest], _StrategyResult]] = {
            "basic": self._basic,
            "atlas": self._fulltext,
            "fulltext": self._fulltext,
            "vector": self._vector,
            "semantic": self._semantic,
            "image": self._image,
            "concept": self._concept,
        }

    @property
    def search_types(self) -> list[str]:
        return [t for t in self.profile.search_types if t in self._strategies]

    def search(self, request: SearchRequest) -> SearchResponse:
        start = time.perf_counter()
        strategy = (
            self._strategies.get(request.type)
            if request.type in self.profile.search_types
            else None
        )
        if strategy is None:
            raise ClientInputError(
                "Invalid search type",
                details={"type": request.type, "supported": self.search_types},
            )

        results, image_description = strategy(request)
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.debug(
            "%s search returned %d result(s) in %.2fms",
            request.type,
            len(results),
            elapsed_ms,
        )
        return SearchResponse(
            results=results,
            elapsed_ms=elapsed_ms,
            image_description=image_description,
        )

    # ------------------------------------------------------------------
    # Strategies
    # ------------------------------------------------------------------

    def _basic(self, request: SearchRequest) -> _StrategyResult:
        query = self._require_query(request)
        rows = self.store.find_substring(
            build_basic_query(query, self.profile.basic_fields)
        )
        return [unscored(row) for row in rows], None

    def _fulltext(self, request: SearchRequest) -> _StrategyResult:
        query = self._require_query(request)
        rows = self.store.search_text(self._text_search(query, request.options))
        return self._sorted_scored(rows), None

    def _vector(self, request: SearchRequest) -> _StrategyResult:
        query = self._require_query(request)
        return self._vector_results(query), None

    def _semantic(self, request: SearchRequest) -> _StrategyResult:
        query = self._require_query(request)
        enhanced = self.completer.rewrite_query(query)
        return self._vector_results(enhanced), None

    def _image(self, request: SearchRequest) -> _StrategyResult:
        if not request.image:
            raise ClientInputError("No image file provided")
        description = self.completer.caption_image(
            request.image, mime_type=request.image_mime_type
        )
        return self._vector_results(description), description

    def _concept(self, request: SearchRequest) -> _StrategyResult:
        query = self._require_query(request)
        vector_rows = self.store.search_vector(
            build_vector_search(
                self.embedder.embed_query(query),
                index=self.profile.vector_index,
                path=self.profile.embedding_field,
                limit=CONCEPT_CANDIDATE_LIMIT,
            )
        )
        text_rows = self.store.search_text(
            self._text_search(query, request.options, limit=CONCEPT_CANDIDATE_LIMIT)
        )
        merged = merge_results(vector_rows=vector_rows, text_rows=text_rows)
        return to_results(rank_documents(merged, limit=RESULT_LIMIT)), None

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _vector_results(self, text: str) -> list[SearchResult]:
        rows = self.store.search_vector(
            build_vector_search(
                self.embedder.embed_query(text),
                index=self.profile.vector_index,
                path=self.profile.embedding_field,
            )
        )
        return self._sorted_scored(rows)

    def _text_search(
        self, query: str, options: SearchOptions, *, limit: int = RESULT_LIMIT
    ):
        return build_text_search(
            query,
            index=self.profile.text_index,
            paths=self.profile.text_fields,
            options=options,
            autocomplete_path=self.profile.autocomplete_field,
            limit=limit,
        )

    @staticmethod
    def _sorted_scored(rows: list[dict[str, Any]]) -> list[SearchResult]:
        results = [scored(row) for row in rows]
        results.sort(key=lambda result: -result.score)
        return results[:RESULT_LIMIT]

    @staticmethod
    def _require_query(request: SearchRequest) -> str:
        query = (request.query or "").strip()
        if not query:
            raise ClientInputError(f"A query is required for {request.type} search")
        return query
