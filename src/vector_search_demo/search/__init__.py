"""Search strategies, pipeline builders and result helpers."""

from .normalize import (
    ScoredResult,
    SearchResult,
    UnscoredResult,
    normalize_score,
    project_document,
    scored,
    unscored,
)
from .pipelines import (
    SearchOptions,
    build_basic_query,
    build_text_search,
    build_vector_search,
    parse_options,
)
from .ranker import RankedDocument, merge_results, rank_documents, to_results
from .router import SearchRequest, SearchResponse, SearchRouter

__all__ = [
    "ScoredResult",
    "SearchResult",
    "UnscoredResult",
    "normalize_score",
    "project_document",
    "scored",
    "unscored",
    "SearchOptions",
    "build_basic_query",
    "build_text_search",
    "build_vector_search",
    "parse_options",
    "RankedDocument",
    "merge_results",
    "rank_documents",
    "to_results",
    "SearchRequest",
    "SearchResponse",
    "SearchRouter",
]
