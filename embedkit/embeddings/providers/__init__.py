"""Embedding provider implementations."""

from embedkit.embeddings.providers.base import (
    EmbeddingProvider,
    HTTPEmbeddingProvider,
)
from embedkit.embeddings.providers.jina import JinaEmbeddingProvider
from embedkit.embeddings.providers.openai import OpenAIEmbeddingProvider

__all__ = [
    "EmbeddingProvider",
    "HTTPEmbeddingProvider",
    "JinaEmbeddingProvider",
    "OpenAIEmbeddingProvider",
]
