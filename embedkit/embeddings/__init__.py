"""Embedding client module."""

from embedkit.embeddings.client import EmbeddingClient, get_embeddings
from embedkit.embeddings.executor import RetryingBatchExecutor
from embedkit.embeddings.models import (
    BatchOutcome,
    BatchPlan,
    BatchStatus,
    EmbeddingOptions,
    EmbeddingResult,
    TaskType,
)
from embedkit.embeddings.planner import plan_batches
from embedkit.embeddings.providers import (
    EmbeddingProvider,
    JinaEmbeddingProvider,
    OpenAIEmbeddingProvider,
)
from embedkit.embeddings.registry import ProviderRegistry, default_registry

__all__ = [
    "BatchOutcome",
    "BatchPlan",
    "BatchStatus",
    "EmbeddingClient",
    "EmbeddingOptions",
    "EmbeddingProvider",
    "EmbeddingResult",
    "JinaEmbeddingProvider",
    "OpenAIEmbeddingProvider",
    "ProviderRegistry",
    "RetryingBatchExecutor",
    "TaskType",
    "default_registry",
    "get_embeddings",
    "plan_batches",
]
