"""
Query builders for each search strategy.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from ..exceptions import ClientInputError
from ..storage import (
    FuzzyOptions,
    SubstringQuery,
    TextClause,
    TextSearch,
    VectorSearch,
)

RESULT_LIMIT = 10
VECTOR_CANDIDATES = 100

PHRASE_BOOST = 3.0
AUTOCOMPLETE_BOOST = 2.0
FUZZY_BOOST = 1.0
DEFAULT_FUZZY = FuzzyOptions(max_edits=2, prefix_length=1, max_expansions=100)


@dataclass(frozen=True)
class SearchOptions:
    """Toggles for the full-text strategy."""

    fuzzy_matching: bool = True
    auto_complete: bool = False
    phrase_matching: bool = False

    @classmethod
    def from_payload(cls, payload: dict | None) -> SearchOptions:
        """Read camelCase option keys sent by the web client."""
        if not payload:
            return cls()
        return cls(
            fuzzy_matching=bool(payload.get("fuzzyMatching", True)),
            auto_complete=bool(payload.get("autoComplete", False)),
            phrase_matching=bool(payload.get("phraseMatching", False)),
        )


def parse_options(raw: Any) -> SearchOptions:
    """Accept options as a dict or a JSON object string; anything else is a client error."""
    if raw is None or raw == "":
        return SearchOptions()
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ClientInputError("Options must be a JSON object") from exc
    if not isinstance(raw, dict):
        raise ClientInputError("Options must be a JSON object")
    return SearchOptions.from_payload(raw)


def build_basic_query(
    query: str, fields: tuple[str, ...], *, limit: int = RESULT_LIMIT
) -> SubstringQuery:
    # The query is matched literally; regex metacharacters have no meaning here.
    return SubstringQuery(text=query, fields=fields, limit=limit)


def build_text_search(
    query: str,
    *,
    index: str,
    paths: tuple[str, ...],
    options: SearchOptions | None = None,
    autocomplete_path: str | None = None,
    limit: int = RESULT_LIMIT,
) -> TextSearch:
    """Build a full-text search whose clauses are OR-ed together.

    Each enabled option contributes one clause with its own boost. When every
    option is off the search falls back to a single exact-term clause.
    """
    options = options or SearchOptions()
    clauses: list[TextClause] = []
    if options.phrase_matching:
        clauses.append(
            TextClause(operator="phrase", query=query, paths=paths, boost=PHRASE_BOOST)
        )
    if options.fuzzy_matching:
        clauses.append(
            TextClause(
                operator="text",
                query=query,
                paths=paths,
                boost=FUZZY_BOOST,
                fuzzy=DEFAULT_FUZZY,
            )
        )
    if options.auto_complete and autocomplete_path:
        clauses.append(
            TextClause(
                operator="autocomplete",
                query=query,
                paths=(autocomplete_path,),
                boost=AUTOCOMPLETE_BOOST,
            )
        )
    if not clauses:
        clauses.append(TextClause(operator="text", query=query, paths=paths))
    return TextSearch(index=index, clauses=tuple(clauses), limit=limit)


def build_vector_search(
    query_vector: list[float],
    *,
    index: str,
    path: str,
    num_candidates: int = VECTOR_CANDIDATES,
    limit: int = RESULT_LIMIT,
) -> VectorSearch:
    return VectorSearch(
        index=index,
        path=path,
        query_vector=list(query_vector),
        num_candidates=num_candidates,
        limit=limit,
    )
