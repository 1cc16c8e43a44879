"""Observability module for metrics and monitoring."""

from embedkit.observability.metrics import (
    get_metrics,
    track_batch_outcome,
    track_embedding_request,
    track_retry,
)

__all__ = [
    "get_metrics",
    "track_batch_outcome",
    "track_embedding_request",
    "track_retry",
]
