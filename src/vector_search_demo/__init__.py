"""
Vector Search Demo - multi-strategy search backend.

Routes a search request to one of several strategies (substring, full-text,
vector, LLM-enhanced semantic, image-to-vector and hybrid concept search)
against a document store, using Google GenAI for embeddings, query rewriting
and image captioning.

Example usage:
    >>> from vector_search_demo import SearchRouter, SearchRequest
    >>> router = SearchRouter(store, embedder, completer, PRODUCTS)
    >>> response = router.search(SearchRequest(type="vector", query="red shoes"))
"""

from .completion import CompletionProvider
from .embeddings import EmbeddingProvider
from .exceptions import (
    BootstrapError,
    ClientInputError,
    NotFoundError,
    SearchError,
    StoreError,
    UpstreamError,
)
from .profiles import BOOKS, PRODUCTS, CollectionProfile, get_profile
from .search import SearchOptions, SearchRequest, SearchResponse, SearchRouter

__all__ = [
    # Providers
    "CompletionProvider",
    "EmbeddingProvider",
    # Errors
    "BootstrapError",
    "ClientInputError",
    "NotFoundError",
    "SearchError",
    "StoreError",
    "UpstreamError",
    # Profiles
    "BOOKS",
    "PRODUCTS",
    "CollectionProfile",
    "get_profile",
    # Search
    "SearchOptions",
    "SearchRequest",
    "SearchResponse",
    "SearchRouter",
]
