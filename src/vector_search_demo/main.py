import logging
import mimetypes
from dataclasses import replace
from pathlib import Path
from typing import Annotated, Optional

from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from typer import Exit, Option, Typer

from .bootstrap import backfill_embeddings, bootstrap
from .completion import CompletionProvider
from .config import Settings, load_settings
from .embeddings import EmbeddingProvider
from .exceptions import SearchError
from .search import SearchRequest, SearchRouter, parse_options
from .server import run_server
from .storage import DuckDBDocumentStore

app = Typer(help="Vector search demo backend.")
console = Console()

DbPathOption = Annotated[
    Optional[str],
    Option("--db-path", help="DuckDB file holding the collections."),
]
ProfileOption = Annotated[
    Optional[str],
    Option("--profile", "-p", help="Collection profile: products or books."),
]


@app.callback()
def configure(
    verbose: Annotated[
        bool, Option("--verbose", "-v", help="Enable debug logging.")
    ] = False,
) -> None:
    load_dotenv()
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _open_store(settings: Settings) -> DuckDBDocumentStore:
    return DuckDBDocumentStore(settings.db_path, collection=settings.profile.collection)


@app.command()
def serve(
    db_path: DbPathOption = None,
    profile: ProfileOption = None,
    host: Annotated[Optional[str], Option("--host", help="Bind address.")] = None,
    port: Annotated[Optional[int], Option("--port", help="Bind port.")] = None,
) -> None:
    """Bootstrap the store and start the HTTP server."""
    settings = load_settings(db_path=db_path, profile=profile)
    if host is not None or port is not None:
        settings = replace(settings, host=host or settings.host, port=port or settings.port)
    console.print(
        f"Server running on [bold]http://{settings.host}:{settings.port}[/] "
        f"(health check at /health)"
    )
    run_server(settings)


@app.command()
def seed(
    db_path: DbPathOption = None,
    profile: ProfileOption = None,
) -> None:
    """Create missing indexes and seed sample data into an empty collection."""
    settings = load_settings(db_path=db_path, profile=profile)
    store = _open_store(settings)
    try:
        seeded = bootstrap(store, EmbeddingProvider(), settings.profile, seed=True)
    except SearchError as exc:
        console.print(f"[bold red]Initialization failed:[/] {exc.message}")
        raise Exit(code=1)
    finally:
        store.close()
    console.print(
        f"[bold green]Ready.[/] Seeded {seeded} document(s) into "
        f"[bold]{settings.profile.collection}[/]."
    )


@app.command()
def embed(
    db_path: DbPathOption = None,
    profile: ProfileOption = None,
) -> None:
    """Generate embeddings for documents that do not have one yet."""
    settings = load_settings(db_path=db_path, profile=profile)
    store = _open_store(settings)
    try:
        result = backfill_embeddings(store, EmbeddingProvider(), settings.profile)
    finally:
        store.close()
    console.print(
        f"Processed {result.processed} document(s): {result.updated} updated, "
        f"{result.skipped} skipped, {result.failed} failed."
    )


@app.command()
def indexes(
    db_path: DbPathOption = None,
    profile: ProfileOption = None,
) -> None:
    """List the indexes defined on the collection."""
    settings = load_settings(db_path=db_path, profile=profile)
    store = _open_store(settings)
    try:
        definitions = store.list_indexes()
    finally:
        store.close()

    table = Table(title=f"Indexes on {settings.profile.collection}")
    table.add_column("Name")
    table.add_column("Kind")
    table.add_column("Target")
    for definition in definitions:
        target = (
            f"{definition.path} ({definition.dimensions}d, {definition.similarity})"
            if definition.kind == "vector"
            else ", ".join(definition.fields)
        )
        table.add_row(definition.name, definition.kind, target)
    console.print(table)


@app.command()
def search(
    search_type: Annotated[
        str, Option("--type", "-t", help="basic, atlas, fulltext, vector, semantic, image or concept.")
    ],
    query: Annotated[Optional[str], Option("--query", "-q", help="Search text.")] = None,
    image: Annotated[
        Optional[Path], Option("--image", help="Image file for image search.")
    ] = None,
    options: Annotated[
        Optional[str],
        Option("--options", help='Full-text options as JSON, e.g. {"phraseMatching": true}.'),
    ] = None,
    db_path: DbPathOption = None,
    profile: ProfileOption = None,
) -> None:
    """Run one search against the collection and print the results."""
    settings = load_settings(db_path=db_path, profile=profile)
    store = _open_store(settings)
    try:
        router = SearchRouter(
            store,
            EmbeddingProvider(),
            CompletionProvider(
                rewrite_instruction=settings.profile.rewrite_instruction,
                caption_instruction=settings.profile.caption_instruction,
            ),
            settings.profile,
        )
        response = router.search(
            SearchRequest(
                type=search_type,
                query=query,
                image=image.read_bytes() if image is not None else None,
                image_mime_type=(
                    (mimetypes.guess_type(image.name)[0] if image is not None else None)
                    or "image/jpeg"
                ),
                options=parse_options(options),
            )
        )
    except SearchError as exc:
        console.print(f"[bold red]Search failed:[/] {exc.message}")
        raise Exit(code=1)
    finally:
        store.close()

    if response.image_description:
        console.print(f"[bold]Image description:[/] {response.image_description}")
    table = Table(title=f"{search_type} search ({response.search_time} ms)")
    table.add_column("#", justify="right")
    table.add_column("Title")
    table.add_column("Score", justify="right")
    for position, result in enumerate(response.results, start=1):
        data = result.to_dict()
        score = data.get("score")
        table.add_row(
            str(position),
            str(data.get("title", data.get("_id", ""))),
            f"{score:.3f}" if score is not None else "-",
        )
    console.print(table)
