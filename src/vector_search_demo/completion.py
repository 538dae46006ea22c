import logging
import os
from typing import Any

from google.genai import Client as GenAIClient
from google.genai.types import Content, Part

from .exceptions import UpstreamError

logger = logging.getLogger(__name__)

_DEFAULT_MODEL = "gemini-2.5-flash"
REWRITE_MAX_TOKENS = 150
CAPTION_MAX_TOKENS = 300


class CompletionProvider:
    """Query rewriting and image captioning via Google GenAI."""

    def __init__(
        self,
        *,
        rewrite_instruction: str,
        caption_instruction: str,
        api_key: str | None = None,
        model: str | None = None,
        client: Any | None = None,
    ) -> None:
        self.rewrite_instruction = rewrite_instruction
        self.caption_instruction = caption_instruction
        self.model = model or os.getenv("VECTOR_SEARCH_COMPLETION_MODEL", _DEFAULT_MODEL)
        if client is not None:
            self._client = client
        else:
            if api_key is None:
                api_key = os.getenv("GOOGLE_API_KEY")
            if api_key is None:
                raise ValueError(
                    "GOOGLE_API_KEY not found within the current environment: please export it or provide it to the class constructor."
                )
            self._client = GenAIClient(api_key=api_key)

    def rewrite_query(self, query: str) -> str:
        """Expand a short query into a descriptive passage.

        Falls back to the original query when the model call fails or returns
        no text.
        """
        try:
            response = self._client.models.generate_content(
                model=self.model,
                contents=[Content(role="user", parts=[Part.from_text(text=query)])],
                config={
                    "system_instruction": self.rewrite_instruction,
                    "max_output_tokens": REWRITE_MAX_TOKENS,
                },
            )
            text = (response.text or "").strip()
        except Exception as exc:
            logger.warning("Query enhancement failed, using original query: %s", exc)
            return query
        if not text:
            logger.warning("Query enhancement returned no text, using original query")
            return query
        logger.info("Enhanced query: %s", text)
        return text

    def caption_image(self, image: bytes, mime_type: str = "image/jpeg") -> str:
        """Describe an image. Errors propagate; there is no fallback caption."""
        try:
            response = self._client.models.generate_content(
                model=self.model,
                contents=[
                    Content(
                        role="user",
                        parts=[
                            Part.from_text(text=self.caption_instruction),
                            # inline data is sent base64-encoded by the SDK
                            Part.from_bytes(data=image, mime_type=mime_type),
                        ],
                    )
                ],
                config={"max_output_tokens": CAPTION_MAX_TOKENS},
            )
        except Exception as exc:
            logger.error("Error processing image: %s", exc)
            raise UpstreamError(
                "Image description failed",
                details={"model": self.model, "reason": str(exc)},
                cause=exc,
            ) from exc
        text = (response.text or "").strip()
        if not text:
            raise UpstreamError(
                "Image description was empty", details={"model": self.model}
            )
        logger.info("Image description: %s", text)
        return text
