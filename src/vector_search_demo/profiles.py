"""
Collection profiles.

A profile bundles everything that differs between deployments of the search
service: which collection is queried, which fields each strategy looks at,
how the embedding text of a document is built and how the completion model is
prompted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .seeds import SAMPLE_BOOKS, SAMPLE_PRODUCTS

EMBEDDING_SUFFIX = "_embedding"


@dataclass(frozen=True)
class CollectionProfile:
    """Domain configuration for one searchable collection."""

    name: str
    collection: str
    basic_fields: tuple[str, ...]
    text_fields: tuple[str, ...]
    embedding_field: str
    embedding_source_fields: tuple[str, ...]
    rewrite_instruction: str
    caption_instruction: str
    search_types: tuple[str, ...]
    autocomplete_field: str | None = None
    ordinary_index: str = "text_search_idx"
    text_index: str = "atlas_search_idx"
    vector_index: str = "vector_index"
    read_prefix: str | None = None
    concept_field: str | None = None
    period_field: str | None = None
    sample_documents: tuple[dict[str, Any], ...] = field(default_factory=tuple)

    def embedding_text(self, document: dict[str, Any]) -> str:
        """Return the text embedded for *document*."""
        parts: list[str] = []
        for name in self.embedding_source_fields:
            value = document.get(name)
            if value is None:
                continue
            if isinstance(value, (list, tuple)):
                parts.append(" ".join(str(item) for item in value))
            else:
                parts.append(str(value))
        return " ".join(part for part in parts if part).strip()


PRODUCTS = CollectionProfile(
    name="products",
    collection="products",
    basic_fields=("title", "description", "category"),
    text_fields=("title", "description", "category"),
    autocomplete_field="title",
    embedding_field="description_embedding",
    embedding_source_fields=("title", "description", "category"),
    rewrite_instruction=(
        "Convert the user's search query into a detailed product description "
        "that captures the semantic meaning. Focus on physical attributes, use "
        "cases, and key features."
    ),
    caption_instruction=(
        "Describe this product image in detail, focusing on visual "
        "characteristics, style, colors, and features that would be relevant "
        "for product search."
    ),
    search_types=("basic", "atlas", "fulltext", "vector", "semantic", "image"),
    sample_documents=SAMPLE_PRODUCTS,
)

BOOKS = CollectionProfile(
    name="books",
    collection="books",
    basic_fields=("title", "author", "summary"),
    text_fields=("title", "author", "summary", "keywords"),
    autocomplete_field="title",
    embedding_field="summary_embedding",
    embedding_source_fields=("title", "summary", "keywords"),
    rewrite_instruction=(
        "You are an Egyptologist. Expand the user's search query into a rich "
        "description of the related ancient Egyptian concepts, deities, rituals, "
        "places and periods, so that it can be matched against summaries of "
        "texts about ancient Egypt."
    ),
    caption_instruction=(
        "Describe this image in detail, focusing on any ancient Egyptian "
        "artifacts, symbols, hieroglyphs, deities, architecture or scenes that "
        "would help find related texts."
    ),
    search_types=(
        "basic",
        "atlas",
        "fulltext",
        "vector",
        "semantic",
        "image",
        "concept",
    ),
    read_prefix="/api/books",
    concept_field="keywords",
    period_field="period",
    sample_documents=SAMPLE_BOOKS,
)

PROFILES: dict[str, CollectionProfile] = {
    PRODUCTS.name: PRODUCTS,
    BOOKS.name: BOOKS,
}


def get_profile(name: str) -> CollectionProfile:
    """Look up a profile by name."""
    try:
        return PROFILES[name]
    except KeyError:
        known = ", ".join(sorted(PROFILES))
        raise ValueError(f"Unknown profile {name!r}. Expected one of: {known}.") from None
