"""Batch planning: split an input list into bounded-size request windows."""

from embedkit.embeddings.models import BatchPlan, BatchRange
from embedkit.exceptions import ValidationError


def plan_batches(
    count: int,
    batch_size: int,
    late_chunking: bool = False,
) -> BatchPlan:
    """Split ``count`` inputs into contiguous batches.

    Late chunking needs the provider to see every input in one request, so
    it always yields a single batch regardless of ``batch_size``.

    Args:
        count: Number of inputs.
        batch_size: Provider-specific maximum inputs per request.
        late_chunking: Keep all inputs in one batch.

    Returns:
        BatchPlan whose ranges cover ``[0, count)`` in order.

    Raises:
        ValidationError: If ``count`` is negative or ``batch_size`` is below 1.
    """
    if count < 0:
        raise ValidationError(
            "Input count cannot be negative",
            details={"count": count},
        )
    if batch_size < 1:
        raise ValidationError(
            "Batch size must be at least 1",
            details={"batch_size": batch_size},
        )

    if count == 0:
        return BatchPlan(batches=(), total=0)

    if late_chunking:
        return BatchPlan(batches=(BatchRange(start=0, end=count),), total=count)

    batches = tuple(
        BatchRange(start=start, end=min(start + batch_size, count))
        for start in range(0, count, batch_size)
    )
    return BatchPlan(batches=batches, total=count)
