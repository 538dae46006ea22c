"""
Startup orchestration: index creation, sample seeding and embedding backfill.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .embeddings import EmbeddingProvider
from .exceptions import BootstrapError, SearchError
from .profiles import CollectionProfile
from .storage import DocumentStore, IndexDefinition

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BackfillResult:
    """Summary output for an embedding backfill run."""

    processed: int
    updated: int
    skipped: int
    failed: int


def index_definitions(
    profile: CollectionProfile, *, dimensions: int
) -> list[IndexDefinition]:
    """Return the ordinary, full-text and vector indexes a profile needs."""
    return [
        IndexDefinition(
            name=profile.ordinary_index,
            kind="ordinary",
            fields=profile.basic_fields,
        ),
        IndexDefinition(
            name=profile.text_index,
            kind="fulltext",
            fields=profile.text_fields,
            autocomplete_fields=(
                (profile.autocomplete_field,) if profile.autocomplete_field else ()
            ),
        ),
        IndexDefinition(
            name=profile.vector_index,
            kind="vector",
            path=profile.embedding_field,
            dimensions=dimensions,
            similarity="cosine",
        ),
    ]


def ensure_indexes(
    store: DocumentStore,
    profile: CollectionProfile,
    *,
    dimensions: int,
) -> bool:
    """Create any missing index, matching existing ones by name only.

    Returns False when the ordinary index cannot be created. Search index
    failures are logged as warnings and do not fail the run.
    """
    existing = {definition.name for definition in store.list_indexes()}
    for definition in index_definitions(profile, dimensions=dimensions):
        if definition.name in existing:
            continue
        try:
            store.create_index(definition)
        except SearchError as exc:
            if definition.kind == "ordinary":
                logger.error("Index %r creation failed: %s", definition.name, exc)
                return False
            logger.warning(
                "%s index %r creation failed: %s",
                definition.kind,
                definition.name,
                exc,
            )
            continue
    return True


def seed_sample_data(
    store: DocumentStore,
    embedder: EmbeddingProvider,
    profile: CollectionProfile,
) -> int:
    """Insert the profile's sample documents when the collection is empty."""
    if store.count_documents() != 0:
        return 0
    if not profile.sample_documents:
        return 0

    logger.info("Seeding sample data into %s...", profile.collection)
    documents = [dict(sample) for sample in profile.sample_documents]
    vectors = embedder.embed_texts(
        [profile.embedding_text(document) for document in documents]
    )
    for document, vector in zip(documents, vectors):
        document[profile.embedding_field] = vector

    store.insert_many(documents)
    logger.info("Inserted %d sample document(s)", len(documents))
    return len(documents)


def backfill_embeddings(
    store: DocumentStore,
    embedder: EmbeddingProvider,
    profile: CollectionProfile,
) -> BackfillResult:
    """Embed every document that has no vector for the profile's field.

    A failed embedding skips that document; the run continues.
    """
    pending = store.find_missing_embedding(profile.embedding_field)
    updated = skipped = failed = 0
    for document in pending:
        doc_id = str(document["_id"])
        text = profile.embedding_text(document)
        if not text:
            logger.warning("Skipping document %s: no text to embed", doc_id)
            skipped += 1
            continue
        try:
            [vector] = embedder.embed_texts([text])
        except SearchError as exc:
            logger.error("Failed to embed document %s: %s", doc_id, exc)
            failed += 1
            continue
        store.set_embedding(doc_id, profile.embedding_field, vector)
        updated += 1
    logger.info("Embedding update completed: %d of %d updated", updated, len(pending))
    return BackfillResult(
        processed=len(pending), updated=updated, skipped=skipped, failed=failed
    )


def bootstrap(
    store: DocumentStore,
    embedder: EmbeddingProvider,
    profile: CollectionProfile,
    *,
    seed: bool = True,
) -> int:
    """Check the store, ensure indexes, then seed. Any failure aborts startup.

    Returns the number of seeded documents.
    """
    try:
        if not store.ping():
            raise BootstrapError("Document store did not answer ping")
        if not ensure_indexes(store, profile, dimensions=embedder.dim):
            raise BootstrapError(f"Failed to create indexes on {profile.collection}")
        seeded = seed_sample_data(store, embedder, profile) if seed else 0
    except BootstrapError:
        raise
    except SearchError as exc:
        raise BootstrapError(
            f"Failed to initialize {profile.collection}: {exc.message}", cause=exc
        ) from exc
    return seeded
