"""Document store backends for the search service."""

from .base import (
    DocumentStore,
    FuzzyOptions,
    IndexDefinition,
    SubstringQuery,
    TextClause,
    TextSearch,
    VectorSearch,
)
from .duckdb import DuckDBDocumentStore

__all__ = [
    "DocumentStore",
    "FuzzyOptions",
    "IndexDefinition",
    "SubstringQuery",
    "TextClause",
    "TextSearch",
    "VectorSearch",
    "DuckDBDocumentStore",
]
