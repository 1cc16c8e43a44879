"""OpenAI embeddings provider.

Also works with OpenAI-compatible endpoints through ``OPENAI_BASE_URL``.
"""

from collections.abc import Sequence
from typing import Any

import httpx

from embedkit.config import OpenAISettings, get_settings
from embedkit.embeddings.models import EmbeddingInput, EmbeddingOptions
from embedkit.embeddings.providers.base import HTTPEmbeddingProvider

MODEL_PREFIX = "openai:"


class OpenAIEmbeddingProvider(HTTPEmbeddingProvider):
    """Provider for ``text-embedding-*`` and ``openai:<model>`` models."""

    name = "openai"
    default_model = "text-embedding-3-small"
    default_dimensions = 1536

    MODEL_DIMENSIONS = {
        "text-embedding-ada-002": 1536,
        "text-embedding-3-small": 1536,
        "text-embedding-3-large": 3072,
    }

    def __init__(
        self,
        settings: OpenAISettings | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the OpenAI provider.

        Args:
            settings: OpenAI configuration. Uses defaults if not provided.
            timeout: Request timeout in seconds.
            client: HTTP client. Creates new one if not provided.
        """
        settings = settings or get_settings().openai
        super().__init__(
            api_key=settings.api_key,
            base_url=settings.base_url,
            batch_size=settings.batch_size,
            timeout=timeout,
            client=client,
        )

    def supports_model(self, model: str) -> bool:
        """Match ``text-embedding-*`` and ``openai:*`` model names."""
        if not isinstance(model, str):
            return False
        return model.startswith("text-embedding-") or model.startswith(MODEL_PREFIX)

    def resolve_model(self, options: EmbeddingOptions) -> str:
        """Model name with any ``openai:`` prefix removed."""
        return super().resolve_model(options).removeprefix(MODEL_PREFIX)

    def build_payload(
        self,
        items: Sequence[EmbeddingInput],
        options: EmbeddingOptions,
    ) -> dict[str, Any]:
        """Build an OpenAI embeddings request body.

        Field-map inputs are reduced to their first field's text.
        """
        payload: dict[str, Any] = {
            "model": self.resolve_model(options),
            "input": [_as_text(item) for item in items],
            "encoding_format": "float",
        }
        if options.dimensions:
            payload["dimensions"] = options.dimensions
        return payload


def _as_text(item: EmbeddingInput) -> str:
    if isinstance(item, str):
        return item
    return next(iter(item.values()), "")
