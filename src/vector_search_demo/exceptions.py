"""
Error taxonomy shared by the router, store, providers and HTTP surface.
"""

from __future__ import annotations

from typing import Any


class SearchError(Exception):
    """Base error for the search service."""

    status_code = 500

    def __init__(
        self,
        message: str,
        *,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.message = message
        self.details = details or {}
        self.cause = cause
        super().__init__(message)


class ClientInputError(SearchError):
    """Raised when a request is missing a field or names an unknown type."""

    status_code = 400


class PayloadTooLargeError(ClientInputError):
    """Raised when an uploaded file exceeds the size limit."""

    status_code = 413


class NotFoundError(SearchError):
    """Raised when a lookup by id finds nothing."""

    status_code = 404


class UpstreamError(SearchError):
    """Raised when the model provider or the document store fails."""


class StoreError(UpstreamError):
    """Raised by document store backends."""


class BootstrapError(SearchError):
    """Raised when startup (connect, indexes, seeding) cannot complete."""
