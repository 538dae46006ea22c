import hashlib
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pytest
from google.genai.types import (
    Candidate,
    Content,
    GenerateContentResponse,
    Part,
)

from vector_search_demo.completion import CompletionProvider
from vector_search_demo.config import Settings
from vector_search_demo.embeddings import EmbeddingProvider
from vector_search_demo.profiles import PRODUCTS
from vector_search_demo.storage import (
    DuckDBDocumentStore,
    IndexDefinition,
    SubstringQuery,
    TextSearch,
    VectorSearch,
)

TEST_DIM = 16


def bag_of_words_vector(text: str, dim: int = TEST_DIM) -> list[float]:
    """Deterministic embedding: hashed word counts plus a small constant."""
    values = [0.0] * dim
    values[0] = 0.1
    for word in re.findall(r"[a-z0-9]+", text.lower()):
        bucket = int(hashlib.md5(word.encode("utf-8")).hexdigest(), 16) % (dim - 1)
        values[bucket + 1] += 1.0
    return values


@dataclass
class _FakeEmbedding:
    values: list[float]


@dataclass
class _FakeEmbedResult:
    embeddings: list[_FakeEmbedding]


class MockModels:
    """Records calls; embeds with hashed word counts and replies with canned text."""

    def __init__(self, reply: str = "a detailed description") -> None:
        self.reply = reply
        self.fail_embed = False
        self.fail_generate = False
        self.embed_calls: list[dict[str, Any]] = []
        self.generate_calls: list[dict[str, Any]] = []

    def embed_content(
        self, *, model: str, contents: list[str], config: dict
    ) -> _FakeEmbedResult:
        self.embed_calls.append({"model": model, "contents": contents, "config": config})
        if self.fail_embed:
            raise RuntimeError("embedding service unavailable")
        dim = config.get("output_dimensionality", TEST_DIM)
        return _FakeEmbedResult(
            embeddings=[
                _FakeEmbedding(values=bag_of_words_vector(text, dim)) for text in contents
            ]
        )

    def generate_content(self, *, model: str, contents: Any, config: dict) -> GenerateContentResponse:
        self.generate_calls.append({"model": model, "contents": contents, "config": config})
        if self.fail_generate:
            raise RuntimeError("completion service unavailable")
        return GenerateContentResponse(
            candidates=[
                Candidate(
                    content=Content(role="model", parts=[Part.from_text(text=self.reply)])
                )
            ]
        )


class MockGenAIClient:
    def __init__(self, reply: str = "a detailed description") -> None:
        self.models = MockModels(reply)


class RecordingStore:
    """In-memory store returning canned rows and recording every call."""

    def __init__(
        self,
        *,
        substring_rows: list[dict[str, Any]] | None = None,
        text_rows: list[dict[str, Any]] | None = None,
        vector_rows: list[dict[str, Any]] | None = None,
        indexes: list[IndexDefinition] | None = None,
        documents: list[dict[str, Any]] | None = None,
    ) -> None:
        self.substring_rows = substring_rows or []
        self.text_rows = text_rows or []
        self.vector_rows = vector_rows or []
        self.indexes = list(indexes or [])
        self.documents = list(documents or [])
        self.calls: list[tuple[str, Any]] = []
        self.fail_create: set[str] = set()

    def ping(self) -> bool:
        return True

    def count_documents(self) -> int:
        return len(self.documents)

    def insert_many(self, documents: list[dict[str, Any]]) -> list[str]:
        self.calls.append(("insert_many", documents))
        ids = []
        for position, document in enumerate(documents, start=len(self.documents)):
            stored = {"_id": f"doc{position}", **document}
            self.documents.append(stored)
            ids.append(stored["_id"])
        return ids

    def find_substring(self, query: SubstringQuery) -> list[dict[str, Any]]:
        self.calls.append(("find_substring", query))
        return [dict(row) for row in self.substring_rows]

    def find_all(self) -> list[dict[str, Any]]:
        return [dict(doc) for doc in self.documents]

    def get_document(self, doc_id: str) -> dict[str, Any] | None:
        for doc in self.documents:
            if doc["_id"] == doc_id:
                return dict(doc)
        return None

    def distinct(self, field_name: str) -> list[Any]:
        return sorted({doc[field_name] for doc in self.documents if field_name in doc})

    def find_missing_embedding(self, field_name: str) -> list[dict[str, Any]]:
        return [dict(doc) for doc in self.documents if field_name not in doc]

    def set_embedding(self, doc_id: str, field_name: str, vector: list[float]) -> None:
        self.calls.append(("set_embedding", (doc_id, field_name)))
        for doc in self.documents:
            if doc["_id"] == doc_id:
                doc[field_name] = vector

    def search_text(self, search: TextSearch) -> list[dict[str, Any]]:
        self.calls.append(("search_text", search))
        return [dict(row) for row in self.text_rows]

    def search_vector(self, search: VectorSearch) -> list[dict[str, Any]]:
        self.calls.append(("search_vector", search))
        return [dict(row) for row in self.vector_rows]

    def list_indexes(self) -> list[IndexDefinition]:
        self.calls.append(("list_indexes", None))
        return list(self.indexes)

    def create_index(self, definition: IndexDefinition) -> None:
        self.calls.append(("create_index", definition))
        if definition.name in self.fail_create:
            from vector_search_demo.exceptions import StoreError

            raise StoreError(f"cannot create {definition.name}")
        self.indexes.append(definition)

    def close(self) -> None:
        return None

    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]


@pytest.fixture()
def genai_client() -> MockGenAIClient:
    return MockGenAIClient()


@pytest.fixture()
def embedder(genai_client: MockGenAIClient) -> EmbeddingProvider:
    return EmbeddingProvider(client=genai_client, dim=TEST_DIM, batch_size=10)


@pytest.fixture()
def completer(genai_client: MockGenAIClient) -> CompletionProvider:
    return CompletionProvider(
        rewrite_instruction=PRODUCTS.rewrite_instruction,
        caption_instruction=PRODUCTS.caption_instruction,
        client=genai_client,
    )


@pytest.fixture()
def db_path(tmp_path: Path) -> str:
    return str(tmp_path / "store.duckdb")


@pytest.fixture()
def store(db_path: str):
    duck = DuckDBDocumentStore(db_path, collection="products")
    yield duck
    duck.close()


@pytest.fixture()
def settings(db_path: str) -> Settings:
    return Settings(db_path=db_path, profile=PRODUCTS, mode="development", seed=False)
