"""Tests for settings resolution and collection profiles."""

from pathlib import Path

import pytest

from vector_search_demo.config import Settings, load_settings, resolve_db_path
from vector_search_demo.profiles import BOOKS, PRODUCTS, get_profile


def test_resolve_db_path_prefers_override(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("VECTOR_SEARCH_DB_PATH", str(tmp_path / "env.duckdb"))

    resolved = resolve_db_path(str(tmp_path / "nested" / "cli.duckdb"))

    assert resolved == str((tmp_path / "nested" / "cli.duckdb").resolve())
    assert (tmp_path / "nested").is_dir()


def test_resolve_db_path_reads_environment(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("VECTOR_SEARCH_DB_PATH", str(tmp_path / "env.duckdb"))

    assert resolve_db_path() == str((tmp_path / "env.duckdb").resolve())


def test_resolve_db_path_keeps_memory() -> None:
    assert resolve_db_path(":memory:") == ":memory:"


def test_load_settings_from_environment(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("VECTOR_SEARCH_PROFILE", "books")
    monkeypatch.setenv("VECTOR_SEARCH_ENV", "production")
    monkeypatch.setenv("VECTOR_SEARCH_CORS_ORIGINS", "http://a.test, http://b.test,")
    monkeypatch.setenv("VECTOR_SEARCH_PORT", "8080")
    monkeypatch.setenv("VECTOR_SEARCH_SEED", "false")

    settings = load_settings(db_path=str(tmp_path / "s.duckdb"))

    assert settings.profile is BOOKS
    assert settings.is_development is False
    assert settings.cors_origins == ("http://a.test", "http://b.test")
    assert settings.port == 8080
    assert settings.seed is False


def test_load_settings_defaults(tmp_path: Path, monkeypatch) -> None:
    for name in (
        "VECTOR_SEARCH_PROFILE",
        "VECTOR_SEARCH_ENV",
        "VECTOR_SEARCH_CORS_ORIGINS",
        "VECTOR_SEARCH_HOST",
        "VECTOR_SEARCH_PORT",
        "VECTOR_SEARCH_SEED",
    ):
        monkeypatch.delenv(name, raising=False)

    settings = load_settings(db_path=":memory:")

    assert settings == Settings(db_path=":memory:", profile=PRODUCTS)
    assert settings.is_development is True


def test_explicit_overrides_win(monkeypatch) -> None:
    monkeypatch.setenv("VECTOR_SEARCH_PROFILE", "books")

    settings = load_settings(db_path=":memory:", profile="products", mode="staging")

    assert settings.profile is PRODUCTS
    assert settings.mode == "staging"


def test_unknown_profile_is_rejected() -> None:
    with pytest.raises(ValueError, match="Unknown profile"):
        get_profile("movies")


def test_embedding_text_joins_source_fields() -> None:
    assert PRODUCTS.embedding_text(
        {"title": "Red Shoes", "description": "running shoes", "category": "Footwear"}
    ) == "Red Shoes running shoes Footwear"
    assert BOOKS.embedding_text(
        {"title": "Sinuhe", "summary": "An exile", "keywords": ["exile", "loyalty"]}
    ) == "Sinuhe An exile exile loyalty"
    assert PRODUCTS.embedding_text({}) == ""
