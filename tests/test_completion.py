"""Tests for query rewriting and image captioning."""

import os
from unittest.mock import patch

import pytest

from vector_search_demo.completion import (
    CAPTION_MAX_TOKENS,
    REWRITE_MAX_TOKENS,
    CompletionProvider,
)
from vector_search_demo.exceptions import UpstreamError
from vector_search_demo.profiles import PRODUCTS

from .conftest import MockGenAIClient


def _provider(client: MockGenAIClient) -> CompletionProvider:
    return CompletionProvider(
        rewrite_instruction=PRODUCTS.rewrite_instruction,
        caption_instruction=PRODUCTS.caption_instruction,
        client=client,
    )


def test_rewrite_query_returns_model_text() -> None:
    client = MockGenAIClient(reply="  Lightweight trail running shoes with grip.  ")
    provider = _provider(client)

    assert provider.rewrite_query("running shoes") == (
        "Lightweight trail running shoes with grip."
    )
    call = client.models.generate_calls[0]
    assert call["config"]["system_instruction"] == PRODUCTS.rewrite_instruction
    assert call["config"]["max_output_tokens"] == REWRITE_MAX_TOKENS
    assert call["contents"][0].parts[0].text == "running shoes"


def test_rewrite_query_falls_back_on_error() -> None:
    client = MockGenAIClient()
    client.models.fail_generate = True
    provider = _provider(client)

    assert provider.rewrite_query("running shoes") == "running shoes"


def test_rewrite_query_falls_back_on_empty_text() -> None:
    provider = _provider(MockGenAIClient(reply="   "))

    assert provider.rewrite_query("camera") == "camera"


def test_caption_image_sends_instruction_and_bytes() -> None:
    client = MockGenAIClient(reply="A red leather shoe")
    provider = _provider(client)

    caption = provider.caption_image(b"\x89PNG fake", mime_type="image/png")

    assert caption == "A red leather shoe"
    call = client.models.generate_calls[0]
    parts = call["contents"][0].parts
    assert parts[0].text == PRODUCTS.caption_instruction
    assert parts[1].inline_data.data == b"\x89PNG fake"
    assert parts[1].inline_data.mime_type == "image/png"
    assert call["config"]["max_output_tokens"] == CAPTION_MAX_TOKENS


def test_caption_image_failure_raises() -> None:
    client = MockGenAIClient()
    client.models.fail_generate = True
    provider = _provider(client)

    with pytest.raises(UpstreamError, match="Image description failed"):
        provider.caption_image(b"bytes")


def test_caption_image_empty_text_raises() -> None:
    provider = _provider(MockGenAIClient(reply=""))

    with pytest.raises(UpstreamError, match="empty"):
        provider.caption_image(b"bytes")


def test_missing_api_key_raises() -> None:
    with patch.dict(os.environ, {}, clear=True):
        with pytest.raises(ValueError, match="GOOGLE_API_KEY"):
            CompletionProvider(rewrite_instruction="r", caption_instruction="c")
