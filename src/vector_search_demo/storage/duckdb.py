"""
DuckDB document store backend.

Documents are stored as JSON bodies per collection. Vectors live in a side
table keyed by document and field. Full-text indexes are term tables built
when the index is created and maintained on every insert; vector indexes are
catalog entries that constrain which field and dimensionality can be searched.
"""

from __future__ import annotations

import json
import logging
import re
import threading
import uuid
from pathlib import Path
from typing import Any

import duckdb

from ..exceptions import StoreError
from ..profiles import EMBEDDING_SUFFIX
from .base import (
    FuzzyOptions,
    IndexDefinition,
    SubstringQuery,
    TextClause,
    TextSearch,
    VectorSearch,
)

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(r"[a-z0-9]+")


def _tokenize(text: str) -> list[str]:
    return _TOKEN_RE.findall(text.lower())


def _field_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return " ".join(str(item) for item in value)
    return str(value)


def _is_vector(value: Any) -> bool:
    return isinstance(value, (list, tuple)) and all(
        isinstance(item, (int, float)) and not isinstance(item, bool) for item in value
    )


def _placeholders(values: tuple[str, ...] | list[str]) -> str:
    return ", ".join(["?"] * len(values))


class DuckDBDocumentStore:
    """DuckDB-backed document store bound to a single collection."""

    def __init__(
        self,
        db_path: str,
        *,
        collection: str,
        initialize: bool = True,
    ) -> None:
        if db_path == ":memory:":
            self.db_path = db_path
        else:
            self.db_path = str(Path(db_path).expanduser().resolve())
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self.collection = collection
        self._lock = threading.RLock()
        try:
            self._conn = duckdb.connect(self.db_path)
        except duckdb.Error as exc:
            raise StoreError(
                "Could not open document store", details={"db_path": self.db_path}, cause=exc
            ) from exc
        if initialize:
            self.initialize()

    def close(self) -> None:
        """Close the underlying DuckDB connection."""
        with self._lock:
            self._conn.close()

    def initialize(self) -> None:
        self._run("CREATE SEQUENCE IF NOT EXISTS document_seq START 1")
        self._run(
            """
            CREATE TABLE IF NOT EXISTS documents (
                id VARCHAR PRIMARY KEY,
                collection VARCHAR NOT NULL,
                seq BIGINT NOT NULL DEFAULT nextval('document_seq'),
                body VARCHAR NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            );
            """
        )
        self._run(
            """
            CREATE TABLE IF NOT EXISTS document_embeddings (
                doc_id VARCHAR NOT NULL,
                field VARCHAR NOT NULL,
                embedding DOUBLE[] NOT NULL
            );
            """
        )
        self._run(
            """
            CREATE TABLE IF NOT EXISTS collection_indexes (
                collection VARCHAR NOT NULL,
                name VARCHAR NOT NULL,
                kind VARCHAR NOT NULL,
                definition VARCHAR NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                PRIMARY KEY (collection, name)
            );
            """
        )
        self._run(
            """
            CREATE TABLE IF NOT EXISTS search_terms (
                collection VARCHAR NOT NULL,
                index_name VARCHAR NOT NULL,
                doc_id VARCHAR NOT NULL,
                field VARCHAR NOT NULL,
                term VARCHAR NOT NULL
            );
            """
        )

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def ping(self) -> bool:
        row = self._fetchone("SELECT 1")
        return row is not None and int(row[0]) == 1

    def count_documents(self) -> int:
        row = self._fetchone(
            "SELECT COUNT(*) FROM documents WHERE collection = ?", [self.collection]
        )
        return int(row[0]) if row else 0

    def insert_many(self, documents: list[dict[str, Any]]) -> list[str]:
        fulltext = [d for d in self.list_indexes() if d.kind == "fulltext"]
        inserted: list[str] = []
        with self._lock:
            for document in documents:
                body = dict(document)
                doc_id = str(body.pop("_id", None) or uuid.uuid4().hex)
                vectors = {
                    key: [float(v) for v in body.pop(key)]
                    for key in list(body)
                    if key.endswith(EMBEDDING_SUFFIX) and _is_vector(body[key])
                }
                self._run(
                    "INSERT INTO documents (id, collection, body) VALUES (?, ?, ?)",
                    [doc_id, self.collection, json.dumps(body, default=str)],
                )
                for field_name, vector in vectors.items():
                    self.set_embedding(doc_id, field_name, vector)
                for definition in fulltext:
                    self._index_terms(definition, doc_id, body)
                inserted.append(doc_id)
        logger.debug("Inserted %d document(s) into %s", len(inserted), self.collection)
        return inserted

    def find_substring(self, query: SubstringQuery) -> list[dict[str, Any]]:
        if not query.fields:
            return []
        clauses = " OR ".join(
            ["contains(lower(coalesce(json_extract_string(body, ?), '')), ?)"]
            * len(query.fields)
        )
        params: list[Any] = [self.collection]
        needle = query.text.lower()
        for field_name in query.fields:
            params.extend([f"$.{field_name}", needle])
        params.append(query.limit)
        rows = self._fetchall(
            f"""
            SELECT id, body
            FROM documents
            WHERE collection = ?
              AND ({clauses})
            ORDER BY seq ASC
            LIMIT ?
            """,
            params,
        )
        return [self._hydrate(row[0], row[1]) for row in rows]

    def find_all(self) -> list[dict[str, Any]]:
        rows = self._fetchall(
            "SELECT id, body FROM documents WHERE collection = ? ORDER BY seq ASC",
            [self.collection],
        )
        return [self._hydrate(row[0], row[1]) for row in rows]

    def get_document(self, doc_id: str) -> dict[str, Any] | None:
        row = self._fetchone(
            """
            SELECT id, body
            FROM documents
            WHERE collection = ? AND id = ?
            LIMIT 1
            """,
            [self.collection, doc_id],
        )
        if row is None:
            return None
        return self._hydrate(row[0], row[1])

    def distinct(self, field_name: str) -> list[Any]:
        values: set[Any] = set()
        for document in self.find_all():
            value = document.get(field_name)
            if value is None:
                continue
            if isinstance(value, list):
                values.update(item for item in value if item is not None)
            else:
                values.add(value)
        return sorted(values, key=lambda item: str(item))

    def find_missing_embedding(self, field_name: str) -> list[dict[str, Any]]:
        rows = self._fetchall(
            """
            SELECT d.id, d.body
            FROM documents d
            WHERE d.collection = ?
              AND NOT EXISTS (
                  SELECT 1 FROM document_embeddings e
                  WHERE e.doc_id = d.id AND e.field = ?
              )
            ORDER BY d.seq ASC
            """,
            [self.collection, field_name],
        )
        return [self._hydrate(row[0], row[1]) for row in rows]

    def set_embedding(self, doc_id: str, field_name: str, vector: list[float]) -> None:
        with self._lock:
            # Delete + insert instead of an upsert on a list column.
            self._run(
                "DELETE FROM document_embeddings WHERE doc_id = ? AND field = ?",
                [doc_id, field_name],
            )
            self._run(
                "INSERT INTO document_embeddings (doc_id, field, embedding) VALUES (?, ?, ?)",
                [doc_id, field_name, [float(v) for v in vector]],
            )

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def search_vector(self, search: VectorSearch) -> list[dict[str, Any]]:
        definition = self._get_index(search.index)
        if definition is None:
            logger.warning(
                "Vector index %r does not exist on %s", search.index, self.collection
            )
            return []
        if definition.kind != "vector":
            raise StoreError(
                f"Index {search.index!r} is not a vector index",
                details={"kind": definition.kind},
            )
        if search.path != definition.path:
            raise StoreError(
                f"Path {search.path!r} is not indexed by {search.index!r}",
                details={"indexed_path": definition.path},
            )
        if definition.dimensions is not None and len(search.query_vector) != definition.dimensions:
            raise StoreError(
                "Query vector dimensionality does not match the index",
                details={
                    "expected": definition.dimensions,
                    "received": len(search.query_vector),
                },
            )

        limit = max(min(search.limit, search.num_candidates), 0)
        rows = self._fetchall(
            """
            SELECT d.id, d.body, list_cosine_similarity(e.embedding, ?::DOUBLE[]) AS score
            FROM document_embeddings e
            JOIN documents d ON d.id = e.doc_id
            WHERE d.collection = ?
              AND e.field = ?
              AND len(e.embedding) = ?
            ORDER BY score DESC, d.seq ASC
            LIMIT ?
            """,
            [
                [float(v) for v in search.query_vector],
                self.collection,
                search.path,
                len(search.query_vector),
                limit,
            ],
        )
        return [self._hydrate(row[0], row[1], score=row[2]) for row in rows]

    def search_text(self, search: TextSearch) -> list[dict[str, Any]]:
        definition = self._get_index(search.index)
        if definition is None:
            logger.warning(
                "Full-text index %r does not exist on %s", search.index, self.collection
            )
            return []
        if definition.kind != "fulltext":
            raise StoreError(
                f"Index {search.index!r} is not a full-text index",
                details={"kind": definition.kind},
            )

        parts: list[tuple[str, list[Any]]] = []
        for clause in search.clauses:
            parts.extend(self._clause_parts(definition, clause))
        if not parts:
            return []

        union_sql = "\nUNION ALL\n".join(sql for sql, _ in parts)
        params: list[Any] = []
        for _, part_params in parts:
            params.extend(part_params)
        params.extend([self.collection, search.limit])
        rows = self._fetchall(
            f"""
            SELECT d.id, d.body, s.score
            FROM (
                SELECT doc_id, sum(weight) AS score
                FROM ({union_sql}) hits
                GROUP BY doc_id
            ) s
            JOIN documents d ON d.id = s.doc_id
            WHERE d.collection = ?
            ORDER BY s.score DESC, d.seq ASC
            LIMIT ?
            """,
            params,
        )
        return [self._hydrate(row[0], row[1], score=row[2]) for row in rows]

    def _clause_parts(
        self, definition: IndexDefinition, clause: TextClause
    ) -> list[tuple[str, list[Any]]]:
        allowed = (
            definition.autocomplete_fields
            if clause.operator == "autocomplete"
            else definition.fields
        )
        paths = tuple(p for p in clause.paths if p in allowed)
        terms = _tokenize(clause.query)
        tokens = list(dict.fromkeys(terms))
        if not paths or not tokens:
            return []

        scope = (
            "collection = ? AND index_name = ? "
            f"AND field IN ({_placeholders(paths)})"
        )
        scope_params: list[Any] = [self.collection, definition.name, *paths]
        parts: list[tuple[str, list[Any]]] = []

        if clause.operator == "phrase":
            # Compared on token boundaries: both sides are reduced to
            # space-separated [a-z0-9] runs, repeated words kept.
            phrase = f" {' '.join(terms)} "
            for path in paths:
                parts.append(
                    (
                        """
                        SELECT id AS doc_id, CAST(? AS DOUBLE) AS weight
                        FROM documents
                        WHERE collection = ?
                          AND contains(
                              ' ' || regexp_replace(
                                  lower(coalesce(json_extract_string(body, ?), '')),
                                  '[^a-z0-9]+', ' ', 'g'
                              ) || ' ',
                              ?
                          )
                        """,
                        [clause.boost, self.collection, f"$.{path}", phrase],
                    )
                )
            return parts

        for token in tokens:
            if clause.operator == "autocomplete":
                parts.append(
                    (
                        f"""
                        SELECT doc_id, CAST(? AS DOUBLE) AS weight
                        FROM search_terms
                        WHERE {scope} AND starts_with(term, ?)
                        """,
                        [clause.boost, *scope_params, token],
                    )
                )
            elif clause.fuzzy is None:
                parts.append(
                    (
                        f"""
                        SELECT doc_id, CAST(? AS DOUBLE) AS weight
                        FROM search_terms
                        WHERE {scope} AND term = ?
                        """,
                        [clause.boost, *scope_params, token],
                    )
                )
            else:
                expansions = self._fuzzy_expansions(
                    scope, scope_params, token, clause.fuzzy
                )
                if not expansions:
                    continue
                # Closer expansions weigh more: boost / (1 + edit distance).
                parts.append(
                    (
                        f"""
                        SELECT doc_id,
                               CAST(? AS DOUBLE) / (1 + levenshtein(term, ?)) AS weight
                        FROM search_terms
                        WHERE {scope} AND term IN ({_placeholders(expansions)})
                        """,
                        [clause.boost, token, *scope_params, *expansions],
                    )
                )
        return parts

    def _fuzzy_expansions(
        self,
        scope: str,
        scope_params: list[Any],
        token: str,
        fuzzy: FuzzyOptions,
    ) -> list[str]:
        rows = self._fetchall(
            f"""
            SELECT term, min(levenshtein(term, ?)) AS distance
            FROM search_terms
            WHERE {scope}
              AND left(term, ?) = left(?, ?)
              AND levenshtein(term, ?) <= ?
            GROUP BY term
            ORDER BY distance ASC, term ASC
            LIMIT ?
            """,
            [
                token,
                *scope_params,
                fuzzy.prefix_length,
                token,
                fuzzy.prefix_length,
                token,
                fuzzy.max_edits,
                fuzzy.max_expansions,
            ],
        )
        return [str(row[0]) for row in rows]

    # ------------------------------------------------------------------
    # Indexes
    # ------------------------------------------------------------------

    def list_indexes(self) -> list[IndexDefinition]:
        rows = self._fetchall(
            """
            SELECT definition
            FROM collection_indexes
            WHERE collection = ?
            ORDER BY created_at ASC, name ASC
            """,
            [self.collection],
        )
        return [IndexDefinition.from_dict(json.loads(str(row[0]))) for row in rows]

    def create_index(self, definition: IndexDefinition) -> None:
        with self._lock:
            if self._get_index(definition.name) is not None:
                raise StoreError(
                    f"Index {definition.name!r} already exists on {self.collection}"
                )
            if definition.kind == "vector":
                if not definition.path or not definition.dimensions:
                    raise StoreError(
                        "Vector index requires a path and dimensions",
                        details=definition.to_dict(),
                    )
            elif not definition.fields:
                raise StoreError(
                    f"Index {definition.name!r} requires at least one field",
                    details=definition.to_dict(),
                )

            if definition.kind == "ordinary":
                self._run(
                    f'CREATE INDEX IF NOT EXISTS "{self._physical_name(definition.name)}" '
                    "ON documents (collection, seq)"
                )
            self._run(
                """
                INSERT INTO collection_indexes (collection, name, kind, definition)
                VALUES (?, ?, ?, ?)
                """,
                [
                    self.collection,
                    definition.name,
                    definition.kind,
                    json.dumps(definition.to_dict(), sort_keys=True),
                ],
            )
            if definition.kind == "fulltext":
                for document in self.find_all():
                    doc_id = str(document.pop("_id"))
                    self._index_terms(definition, doc_id, document)
        logger.info(
            "Created %s index %r on %s", definition.kind, definition.name, self.collection
        )

    def _get_index(self, name: str) -> IndexDefinition | None:
        row = self._fetchone(
            """
            SELECT definition
            FROM collection_indexes
            WHERE collection = ? AND name = ?
            LIMIT 1
            """,
            [self.collection, name],
        )
        if row is None:
            return None
        return IndexDefinition.from_dict(json.loads(str(row[0])))

    def _index_terms(
        self, definition: IndexDefinition, doc_id: str, body: dict[str, Any]
    ) -> None:
        rows: list[tuple[str, str, str, str, str]] = []
        for field_name in dict.fromkeys(
            (*definition.fields, *definition.autocomplete_fields)
        ):
            for term in dict.fromkeys(_tokenize(_field_text(body.get(field_name)))):
                rows.append((self.collection, definition.name, doc_id, field_name, term))
        if rows:
            with self._lock:
                try:
                    self._conn.executemany(
                        """
                        INSERT INTO search_terms (collection, index_name, doc_id, field, term)
                        VALUES (?, ?, ?, ?, ?)
                        """,
                        rows,
                    )
                except duckdb.Error as exc:
                    raise StoreError("Failed to index document terms", cause=exc) from exc

    def _physical_name(self, name: str) -> str:
        return re.sub(r"[^A-Za-z0-9_]", "_", f"{self.collection}_{name}")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _hydrate(doc_id: Any, body: Any, *, score: Any = None) -> dict[str, Any]:
        document: dict[str, Any] = {"_id": str(doc_id)}
        document.update(json.loads(str(body)))
        if score is not None:
            document["score"] = float(score)
        return document

    def _run(self, sql: str, params: list[Any] | None = None) -> None:
        with self._lock:
            try:
                self._conn.execute(sql, params or [])
            except duckdb.Error as exc:
                raise StoreError("Document store command failed", details={"reason": str(exc)}, cause=exc) from exc

    def _fetchall(self, sql: str, params: list[Any] | None = None) -> list[tuple[Any, ...]]:
        with self._lock:
            try:
                return self._conn.execute(sql, params or []).fetchall()
            except duckdb.Error as exc:
                raise StoreError("Document store query failed", details={"reason": str(exc)}, cause=exc) from exc

    def _fetchone(self, sql: str, params: list[Any] | None = None) -> tuple[Any, ...] | None:
        with self._lock:
            try:
                return self._conn.execute(sql, params or []).fetchone()
            except duckdb.Error as exc:
                raise StoreError("Document store query failed", details={"reason": str(exc)}, cause=exc) from exc
