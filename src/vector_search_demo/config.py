"""
Configuration helpers for the search service.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from .profiles import CollectionProfile, get_profile


DEFAULT_DB_PATH = "~/.vector_search_demo/store.duckdb"
ENV_DB_PATH = "VECTOR_SEARCH_DB_PATH"
ENV_PROFILE = "VECTOR_SEARCH_PROFILE"
ENV_MODE = "VECTOR_SEARCH_ENV"
ENV_CORS_ORIGINS = "VECTOR_SEARCH_CORS_ORIGINS"
ENV_HOST = "VECTOR_SEARCH_HOST"
ENV_PORT = "VECTOR_SEARCH_PORT"
ENV_SEED = "VECTOR_SEARCH_SEED"

DEFAULT_CORS_ORIGINS = "http://localhost:5173"
MAX_UPLOAD_BYTES = 5 * 1024 * 1024


def resolve_db_path(override_path: str | None = None) -> str:
    """
    Resolve the DuckDB path from CLI override, env var, or default.

    Precedence:
    1) explicit override_path
    2) VECTOR_SEARCH_DB_PATH
    3) default path

    ``:memory:`` is passed through untouched.
    """
    raw_path = override_path or os.getenv(ENV_DB_PATH) or DEFAULT_DB_PATH
    if raw_path == ":memory:":
        return raw_path
    resolved = Path(raw_path).expanduser().resolve()
    resolved.parent.mkdir(parents=True, exist_ok=True)
    return str(resolved)


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the HTTP service and CLI."""

    db_path: str
    profile: CollectionProfile
    mode: str = "development"
    cors_origins: tuple[str, ...] = (DEFAULT_CORS_ORIGINS,)
    host: str = "127.0.0.1"
    port: int = 3003
    seed: bool = True

    @property
    def is_development(self) -> bool:
        return self.mode == "development"


def load_settings(
    *,
    db_path: str | None = None,
    profile: str | None = None,
    mode: str | None = None,
) -> Settings:
    """Build settings from explicit overrides, then environment, then defaults."""
    origins = os.getenv(ENV_CORS_ORIGINS, DEFAULT_CORS_ORIGINS)
    return Settings(
        db_path=resolve_db_path(db_path),
        profile=get_profile(profile or os.getenv(ENV_PROFILE, "products")),
        mode=mode or os.getenv(ENV_MODE, "development"),
        cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
        host=os.getenv(ENV_HOST, "127.0.0.1"),
        port=int(os.getenv(ENV_PORT, "3003")),
        seed=_env_flag(ENV_SEED, True),
    )
