"""Jina AI embeddings provider."""

import base64
import sys
from array import array
from collections.abc import Sequence
from typing import Any

import httpx

from embedkit.config import JinaSettings, get_settings
from embedkit.embeddings.models import EmbeddingInput, EmbeddingOptions, TaskType
from embedkit.embeddings.providers.base import HTTPEmbeddingProvider
from embedkit.exceptions import ValidationError


class JinaEmbeddingProvider(HTTPEmbeddingProvider):
    """Provider for the Jina embeddings API.

    Serves ``jina-*`` models and, as the catch-all, any bare model name that
    is neither namespaced (``vendor:model``) nor an OpenAI ``text-embedding-*``
    model. Accepts field-map inputs such as ``{"text": ...}`` or
    ``{"image": ...}`` unchanged.
    """

    name = "jina"
    default_model = "jina-embeddings-v3"
    default_dimensions = 1024

    MODEL_DIMENSIONS = {
        "jina-embeddings-v3": 1024,
        "jina-embeddings-v4": 2048,
        "jina-embeddings-v2-base-en": 768,
        "jina-embeddings-v2-small-en": 512,
        "jina-clip-v2": 1024,
    }

    # Models that take a task hint and input truncation.
    TASK_MODELS = frozenset({"jina-embeddings-v3"})

    # Values the API accepts for ``embedding_type``. base64 vectors are packed
    # little-endian float32; binary types come back as integer lists.
    EMBEDDING_TYPES = frozenset({"float", "base64", "binary", "ubinary"})

    def __init__(
        self,
        settings: JinaSettings | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the Jina provider.

        Args:
            settings: Jina configuration. Uses defaults if not provided.
            timeout: Request timeout in seconds.
            client: HTTP client. Creates new one if not provided.
        """
        settings = settings or get_settings().jina
        super().__init__(
            api_key=settings.api_key,
            base_url=settings.base_url,
            batch_size=settings.batch_size,
            timeout=timeout,
            client=client,
        )

    def supports_model(self, model: str) -> bool:
        """Match ``jina-*`` and un-namespaced non-OpenAI model names."""
        if not isinstance(model, str):
            return False
        return model.startswith("jina-") or (
            ":" not in model and not model.startswith("text-embedding-")
        )

    def validate_options(self, options: EmbeddingOptions) -> None:
        """Reject embedding types the Jina API does not offer."""
        embedding_type = options.embedding_type
        if embedding_type and embedding_type not in self.EMBEDDING_TYPES:
            raise ValidationError(
                f"Unsupported Jina embedding type: {embedding_type}",
                details={
                    "embedding_type": embedding_type,
                    "choices": sorted(self.EMBEDDING_TYPES),
                },
            )

    def decode_embedding(self, value: Any) -> Any:
        """Unpack base64 float32 vectors; other encodings pass through."""
        if not isinstance(value, str):
            return value
        vector = array("f")
        vector.frombytes(base64.b64decode(value, validate=True))
        if sys.byteorder != "little":
            vector.byteswap()
        return vector.tolist()

    def build_payload(
        self,
        items: Sequence[EmbeddingInput],
        options: EmbeddingOptions,
    ) -> dict[str, Any]:
        """Build a Jina embeddings request body."""
        model = self.resolve_model(options)
        payload: dict[str, Any] = {"model": model, "input": list(items)}

        if model in self.TASK_MODELS:
            payload["task"] = (options.task or TaskType.TEXT_MATCHING).value
            payload["truncate"] = True
        elif options.task:
            payload["task"] = options.task.value

        if options.dimensions:
            payload["dimensions"] = options.dimensions
        if options.late_chunking:
            payload["late_chunking"] = True
        if options.embedding_type:
            payload["embedding_type"] = options.embedding_type

        return payload
