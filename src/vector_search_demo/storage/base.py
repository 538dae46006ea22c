"""
Document store interfaces and query stage models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Protocol, TypeAlias

IndexKind: TypeAlias = Literal["ordinary", "fulltext", "vector"]
TextOperator: TypeAlias = Literal["text", "phrase", "autocomplete"]


@dataclass(frozen=True)
class IndexDefinition:
    """A named index on a collection."""

    name: str
    kind: IndexKind
    fields: tuple[str, ...] = ()
    autocomplete_fields: tuple[str, ...] = ()
    path: str | None = None
    dimensions: int | None = None
    similarity: str = "cosine"

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "kind": self.kind,
            "fields": list(self.fields),
            "autocomplete_fields": list(self.autocomplete_fields),
            "path": self.path,
            "dimensions": self.dimensions,
            "similarity": self.similarity,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> IndexDefinition:
        return cls(
            name=str(data["name"]),
            kind=data["kind"],
            fields=tuple(data.get("fields") or ()),
            autocomplete_fields=tuple(data.get("autocomplete_fields") or ()),
            path=data.get("path"),
            dimensions=data.get("dimensions"),
            similarity=str(data.get("similarity") or "cosine"),
        )


@dataclass(frozen=True)
class SubstringQuery:
    """Case-insensitive substring match, OR-ed across fields."""

    text: str
    fields: tuple[str, ...]
    limit: int = 10


@dataclass(frozen=True)
class FuzzyOptions:
    """Edit-distance matching settings for a text clause."""

    max_edits: int = 2
    prefix_length: int = 1
    max_expansions: int = 100


@dataclass(frozen=True)
class TextClause:
    """One OR-ed clause of a full-text search."""

    operator: TextOperator
    query: str
    paths: tuple[str, ...]
    boost: float = 1.0
    fuzzy: FuzzyOptions | None = None


@dataclass(frozen=True)
class TextSearch:
    """Full-text search against a named full-text index."""

    index: str
    clauses: tuple[TextClause, ...]
    limit: int = 10


@dataclass(frozen=True)
class VectorSearch:
    """Nearest-neighbor search against a named vector index."""

    index: str
    path: str
    query_vector: list[float] = field(repr=False)
    num_candidates: int = 100
    limit: int = 10


class DocumentStore(Protocol):
    """Protocol for the document store operations used by search and bootstrap."""

    def ping(self) -> bool:
        """Return True when the store answers."""

    def count_documents(self) -> int:
        """Count documents in the collection."""

    def insert_many(self, documents: list[dict[str, Any]]) -> list[str]:
        """Insert documents and return their assigned ids."""

    def find_substring(self, query: SubstringQuery) -> list[dict[str, Any]]:
        """Return unscored matches in insertion order."""

    def find_all(self) -> list[dict[str, Any]]:
        """Return every document in the collection."""

    def get_document(self, doc_id: str) -> dict[str, Any] | None:
        """Get a document by id."""

    def distinct(self, field_name: str) -> list[Any]:
        """Return sorted distinct values of a field, flattening list values."""

    def find_missing_embedding(self, field_name: str) -> list[dict[str, Any]]:
        """Return documents without a stored vector for *field_name*."""

    def set_embedding(self, doc_id: str, field_name: str, vector: list[float]) -> None:
        """Store or replace a document's vector for *field_name*."""

    def search_text(self, search: TextSearch) -> list[dict[str, Any]]:
        """Run a full-text search; each hit carries a ``score`` key."""

    def search_vector(self, search: VectorSearch) -> list[dict[str, Any]]:
        """Run a vector search; each hit carries a ``score`` key."""

    def list_indexes(self) -> list[IndexDefinition]:
        """List every index defined on the collection."""

    def create_index(self, definition: IndexDefinition) -> None:
        """Create a named index. Fails if the name already exists."""

    def close(self) -> None:
        """Release the underlying connection."""
