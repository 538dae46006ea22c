"""
FastAPI server for the search demo.

Exposes the multi-strategy search endpoint, a raw data dump, health checks
and, for profiles that define them, read endpoints over the collection.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError
from starlette.datastructures import UploadFile

from .bootstrap import bootstrap
from .completion import CompletionProvider
from .config import MAX_UPLOAD_BYTES, Settings, load_settings
from .embeddings import EmbeddingProvider
from .exceptions import (
    ClientInputError,
    NotFoundError,
    PayloadTooLargeError,
    SearchError,
)
from .search import SearchRequest, SearchRouter, parse_options
from .storage import DocumentStore, DuckDBDocumentStore

logger = logging.getLogger(__name__)


class SearchBody(BaseModel):
    """JSON body for search requests."""

    type: str = ""
    query: str | None = None
    options: dict[str, Any] | None = None


def _error_response(
    error: str,
    *,
    status_code: int,
    settings: Settings,
    details: str | None = None,
) -> JSONResponse:
    payload: dict[str, Any] = {"error": error}
    if details is not None and settings.is_development:
        payload["details"] = details
    return JSONResponse(payload, status_code=status_code)


async def _parse_search_request(request: Request) -> SearchRequest:
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(("multipart/form-data", "application/x-www-form-urlencoded")):
        form = await request.form()
        image: bytes | None = None
        mime_type = "image/jpeg"
        upload = form.get("image")
        if isinstance(upload, UploadFile):
            image = await upload.read()
            if len(image) > MAX_UPLOAD_BYTES:
                raise PayloadTooLargeError(
                    "Image exceeds the upload size limit",
                    details={"limit_bytes": MAX_UPLOAD_BYTES},
                )
            mime_type = upload.content_type or mime_type
        query = form.get("query")
        return SearchRequest(
            type=str(form.get("type") or ""),
            query=query if isinstance(query, str) else None,
            image=image or None,
            image_mime_type=mime_type,
            options=parse_options(form.get("options")),
        )

    raw = await request.body()
    try:
        body = SearchBody.model_validate_json(raw) if raw else SearchBody()
    except ValidationError as exc:
        raise ClientInputError("Malformed search request body") from exc
    return SearchRequest(
        type=body.type,
        query=body.query,
        options=parse_options(body.options),
    )


def create_app(
    settings: Settings | None = None,
    *,
    store: DocumentStore | None = None,
    embedder: EmbeddingProvider | None = None,
    completer: CompletionProvider | None = None,
) -> FastAPI:
    """Build the application. Dependencies not passed in are created at startup."""
    settings = settings or load_settings()
    profile = settings.profile

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app_store = store or DuckDBDocumentStore(
            settings.db_path, collection=profile.collection
        )
        try:
            app_embedder = embedder or EmbeddingProvider()
            app_completer = completer or CompletionProvider(
                rewrite_instruction=profile.rewrite_instruction,
                caption_instruction=profile.caption_instruction,
            )
            seeded = await asyncio.to_thread(
                bootstrap, app_store, app_embedder, profile, seed=settings.seed
            )
            if seeded:
                logger.info("Seeded %d document(s) into %s", seeded, profile.collection)
            app.state.store = app_store
            app.state.router = SearchRouter(app_store, app_embedder, app_completer, profile)
            logger.info("Serving %s search on collection %s", profile.name, profile.collection)
            yield
        finally:
            if store is None:
                app_store.close()

    app = FastAPI(
        title="Vector Search Demo",
        description="Basic, full-text, vector, semantic and image search",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "Accept"],
        allow_credentials=True,
    )

    @app.post("/api/search")
    async def search(request: Request):
        """Run one search strategy selected by the ``type`` field."""
        try:
            search_request = await _parse_search_request(request)
            response = await asyncio.to_thread(
                request.app.state.router.search, search_request
            )
        except ClientInputError as exc:
            return JSONResponse({"error": exc.message}, status_code=exc.status_code)
        except SearchError as exc:
            logger.error("Search error: %s %s", exc.message, exc.details)
            return _error_response(
                "Search failed",
                status_code=exc.status_code,
                settings=settings,
                details=exc.message,
            )
        except Exception as exc:
            logger.exception("Search error")
            return _error_response(
                "Search failed", status_code=500, settings=settings, details=str(exc)
            )
        return response.to_dict()

    @app.get("/api/data")
    async def get_data(request: Request):
        """Dump every document in the collection."""
        try:
            return await asyncio.to_thread(request.app.state.store.find_all)
        except Exception as exc:
            logger.error("Error fetching data: %s", exc)
            return _error_response(
                "Failed to fetch data", status_code=500, settings=settings, details=str(exc)
            )

    async def health(request: Request):
        try:
            connected = await asyncio.to_thread(request.app.state.store.ping)
        except Exception as exc:
            return JSONResponse(
                {"status": "error", "database": "disconnected", "error": str(exc)},
                status_code=500,
            )
        return {
            "status": "ok",
            "database": "connected" if connected else "disconnected",
            "search_types": request.app.state.router.search_types,
        }

    app.add_api_route("/health", health, methods=["GET"])
    app.add_api_route("/api/health", health, methods=["GET"])

    if profile.read_prefix:
        _add_read_routes(app, settings)

    return app


def _add_read_routes(app: FastAPI, settings: Settings) -> None:
    profile = settings.profile
    prefix = profile.read_prefix

    async def list_documents(request: Request):
        return await asyncio.to_thread(request.app.state.store.find_all)

    async def list_concepts(request: Request):
        if profile.concept_field is None:
            return {"concepts": []}
        values = await asyncio.to_thread(
            request.app.state.store.distinct, profile.concept_field
        )
        return {"concepts": values}

    async def list_periods(request: Request):
        if profile.period_field is None:
            return {"periods": []}
        values = await asyncio.to_thread(
            request.app.state.store.distinct, profile.period_field
        )
        return {"periods": values}

    async def get_document(doc_id: str, request: Request):
        try:
            document = await asyncio.to_thread(
                request.app.state.store.get_document, doc_id
            )
            if document is None:
                raise NotFoundError(f"No document with id {doc_id}")
        except NotFoundError as exc:
            return JSONResponse({"error": exc.message}, status_code=exc.status_code)
        except SearchError as exc:
            return _error_response(
                "Failed to fetch document",
                status_code=exc.status_code,
                settings=settings,
                details=exc.message,
            )
        return document

    app.add_api_route(prefix, list_documents, methods=["GET"])
    app.add_api_route(f"{prefix}/concepts", list_concepts, methods=["GET"])
    app.add_api_route(f"{prefix}/periods", list_periods, methods=["GET"])
    app.add_api_route(f"{prefix}/{{doc_id}}", get_document, methods=["GET"])


def run_server(settings: Settings | None = None) -> None:
    """Run the FastAPI server."""
    import uvicorn

    settings = settings or load_settings()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)
