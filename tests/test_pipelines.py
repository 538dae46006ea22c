"""Tests for the per-strategy query builders."""

import pytest

from vector_search_demo.exceptions import ClientInputError
from vector_search_demo.search import (
    SearchOptions,
    build_basic_query,
    build_text_search,
    build_vector_search,
    parse_options,
)
from vector_search_demo.search.pipelines import (
    AUTOCOMPLETE_BOOST,
    DEFAULT_FUZZY,
    FUZZY_BOOST,
    PHRASE_BOOST,
)

PATHS = ("title", "description", "category")


def test_options_defaults() -> None:
    options = SearchOptions()

    assert options.fuzzy_matching is True
    assert options.auto_complete is False
    assert options.phrase_matching is False


def test_options_from_camel_case_payload() -> None:
    options = SearchOptions.from_payload(
        {"fuzzyMatching": False, "autoComplete": True, "phraseMatching": True}
    )

    assert options == SearchOptions(
        fuzzy_matching=False, auto_complete=True, phrase_matching=True
    )
    assert SearchOptions.from_payload(None) == SearchOptions()
    assert SearchOptions.from_payload({}) == SearchOptions()


def test_basic_query_keeps_text_literal() -> None:
    query = build_basic_query("a.b*(c", PATHS)

    assert query.text == "a.b*(c"
    assert query.fields == PATHS
    assert query.limit == 10


def test_default_text_search_is_single_fuzzy_clause() -> None:
    search = build_text_search(
        "runing shoes", index="atlas_search_idx", paths=PATHS, autocomplete_path="title"
    )

    assert search.index == "atlas_search_idx"
    assert search.limit == 10
    assert len(search.clauses) == 1
    clause = search.clauses[0]
    assert clause.operator == "text"
    assert clause.fuzzy == DEFAULT_FUZZY
    assert clause.boost == FUZZY_BOOST
    assert clause.paths == PATHS


def test_all_options_produce_boosted_clauses() -> None:
    search = build_text_search(
        "trail run",
        index="atlas_search_idx",
        paths=PATHS,
        options=SearchOptions(
            fuzzy_matching=True, auto_complete=True, phrase_matching=True
        ),
        autocomplete_path="title",
    )

    operators = [clause.operator for clause in search.clauses]
    assert operators == ["phrase", "text", "autocomplete"]
    boosts = {clause.operator: clause.boost for clause in search.clauses}
    assert boosts == {
        "phrase": PHRASE_BOOST,
        "text": FUZZY_BOOST,
        "autocomplete": AUTOCOMPLETE_BOOST,
    }
    assert search.clauses[2].paths == ("title",)


def test_autocomplete_needs_a_configured_field() -> None:
    search = build_text_search(
        "trail",
        index="atlas_search_idx",
        paths=PATHS,
        options=SearchOptions(fuzzy_matching=False, auto_complete=True),
    )

    assert len(search.clauses) == 1
    assert search.clauses[0].operator == "text"
    assert search.clauses[0].fuzzy is None


def test_all_options_off_falls_back_to_exact_text() -> None:
    search = build_text_search(
        "camera",
        index="atlas_search_idx",
        paths=PATHS,
        options=SearchOptions(fuzzy_matching=False),
    )

    assert len(search.clauses) == 1
    clause = search.clauses[0]
    assert clause.operator == "text"
    assert clause.fuzzy is None
    assert clause.boost == 1.0


def test_vector_search_defaults() -> None:
    search = build_vector_search(
        (0.1, 0.2), index="vector_index", path="description_embedding"
    )

    assert search.query_vector == [0.1, 0.2]
    assert search.num_candidates == 100
    assert search.limit == 10


def test_parse_options_accepts_json_string_and_dict() -> None:
    expected = SearchOptions(fuzzy_matching=False, phrase_matching=True)

    assert parse_options('{"fuzzyMatching": false, "phraseMatching": true}') == expected
    assert parse_options({"fuzzyMatching": False, "phraseMatching": True}) == expected
    assert parse_options(None) == SearchOptions()
    assert parse_options("") == SearchOptions()


@pytest.mark.parametrize("raw", ["{bad", "[1, 2]", "3", '"text"', ["phraseMatching"]])
def test_parse_options_rejects_non_objects(raw) -> None:
    with pytest.raises(ClientInputError, match="Options must be a JSON object"):
        parse_options(raw)
