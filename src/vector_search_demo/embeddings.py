"""
Embedding provider for vector search.

Wraps the Google GenAI embedding API for batch and single-query embedding
with configurable model, dimensions, and batch size.
"""

from __future__ import annotations

import logging
import os
from typing import Any

from google.genai import Client as GenAIClient

from .exceptions import UpstreamError

logger = logging.getLogger(__name__)

_DEFAULT_MODEL = "gemini-embedding-001"
_DEFAULT_DIM = 1536
_DEFAULT_BATCH_SIZE = 50


class EmbeddingProvider:
    """Generate text embeddings via Google GenAI."""

    def __init__(
        self,
        *,
        api_key: str | None = None,
        model: str | None = None,
        dim: int | None = None,
        batch_size: int | None = None,
        client: Any | None = None,
    ) -> None:
        self.model = model or os.getenv("VECTOR_SEARCH_EMBEDDING_MODEL", _DEFAULT_MODEL)
        self.dim = dim or int(os.getenv("VECTOR_SEARCH_EMBEDDING_DIM", str(_DEFAULT_DIM)))
        self.batch_size = batch_size or int(
            os.getenv("VECTOR_SEARCH_EMBEDDING_BATCH_SIZE", str(_DEFAULT_BATCH_SIZE))
        )

        if client is not None:
            self._client = client
        else:
            resolved_key = api_key or os.getenv("GOOGLE_API_KEY")
            if resolved_key is None:
                raise ValueError(
                    "GOOGLE_API_KEY not found. "
                    "Provide api_key or set the environment variable."
                )
            self._client = GenAIClient(api_key=resolved_key)

    def embed_texts(
        self,
        texts: list[str],
        *,
        task_type: str = "RETRIEVAL_DOCUMENT",
    ) -> list[list[float]]:
        """Embed a list of texts in batches.

        Returns a list of embedding vectors in the same order as *texts*.
        """
        all_embeddings: list[list[float]] = []
        for start in range(0, len(texts), self.batch_size):
            batch = texts[start : start + self.batch_size]
            for values in self._embed(batch, task_type=task_type):
                all_embeddings.append(values)
        return all_embeddings

    def embed_query(self, query: str) -> list[float]:
        """Embed a single query text for retrieval."""
        return self._embed([query], task_type="RETRIEVAL_QUERY")[0]

    def _embed(self, contents: list[str], *, task_type: str) -> list[list[float]]:
        try:
            result = self._client.models.embed_content(
                model=self.model,
                contents=contents,
                config={
                    "task_type": task_type,
                    "output_dimensionality": self.dim,
                },
            )
        except Exception as exc:
            raise UpstreamError(
                "Embedding request failed",
                details={"model": self.model, "reason": str(exc)},
                cause=exc,
            ) from exc

        vectors = [list(emb.values) for emb in (result.embeddings or [])]
        if len(vectors) != len(contents):
            raise UpstreamError(
                "Embedding response is missing vectors",
                details={"expected": len(contents), "received": len(vectors)},
            )
        for values in vectors:
            if len(values) != self.dim:
                raise UpstreamError(
                    "Embedding has unexpected dimensionality",
                    details={"expected": self.dim, "received": len(values)},
                )
        logger.debug("Embedded %d text(s) with %s", len(contents), self.model)
        return vectors
