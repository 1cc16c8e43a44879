"""Prometheus metrics for the embedding client.

Provides metrics instrumentation for:
- Provider request latency, counts and batch sizes
- Token usage per provider and model
- Retries, placeholder vectors and batch outcomes
"""

from prometheus_client import (
    Counter,
    Histogram,
    generate_latest,
)

# Provider request metrics
EMBEDDING_REQUEST_DURATION = Histogram(
    "embedding_request_duration_seconds",
    "Embedding request duration in seconds",
    ["provider", "model", "status"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0],
)

EMBEDDING_REQUEST_TOTAL = Counter(
    "embedding_requests_total",
    "Total embedding requests",
    ["provider", "model", "status"],
)

EMBEDDING_BATCH_SIZE = Histogram(
    "embedding_batch_size",
    "Inputs submitted per embedding request",
    ["provider"],
    buckets=[1, 5, 10, 25, 50, 100, 128, 250, 500, 1000],
)

EMBEDDING_TOKENS_TOTAL = Counter(
    "embedding_tokens_total",
    "Total tokens billed for embeddings",
    ["provider", "model"],
)

# Resilience metrics
EMBEDDING_RETRIES_TOTAL = Counter(
    "embedding_retries_total",
    "Embedding attempts that left inputs unresolved",
    ["provider", "reason"],  # "reason" label values: error, no_data, partial
)

EMBEDDING_PLACEHOLDERS_TOTAL = Counter(
    "embedding_placeholders_total",
    "Zero vectors substituted after retries were exhausted",
    ["provider"],
)

EMBEDDING_BATCHES_TOTAL = Counter(
    "embedding_batches_total",
    "Embedding batches by outcome",
    ["provider", "status"],
)


def get_metrics() -> bytes:
    """Render every registered metric in Prometheus text format."""
    return generate_latest()


def track_embedding_request(
    provider: str,
    model: str,
    duration: float,
    batch_size: int,
    tokens: int = 0,
    success: bool = True,
) -> None:
    """Track a single provider request.

    Args:
        provider: Provider name.
        model: Embedding model name.
        duration: Request duration in seconds.
        batch_size: Number of inputs in the request.
        tokens: Tokens billed for the request.
        success: Whether the request returned result data.
    """
    status = "success" if success else "error"

    EMBEDDING_REQUEST_DURATION.labels(
        provider=provider, model=model, status=status
    ).observe(duration)
    EMBEDDING_REQUEST_TOTAL.labels(provider=provider, model=model, status=status).inc()
    EMBEDDING_BATCH_SIZE.labels(provider=provider).observe(batch_size)

    if tokens:
        EMBEDDING_TOKENS_TOTAL.labels(provider=provider, model=model).inc(tokens)


def track_retry(provider: str, reason: str) -> None:
    """Track an attempt that left inputs unresolved."""
    EMBEDDING_RETRIES_TOTAL.labels(provider=provider, reason=reason).inc()


def track_batch_outcome(
    provider: str,
    status: str,
    placeholders: int = 0,
) -> None:
    """Track how a batch concluded.

    Args:
        provider: Provider name.
        status: Batch outcome: complete, degraded or aborted.
        placeholders: Zero vectors substituted in the batch.
    """
    EMBEDDING_BATCHES_TOTAL.labels(provider=provider, status=status).inc()
    if placeholders:
        EMBEDDING_PLACEHOLDERS_TOTAL.labels(provider=provider).inc(placeholders)
