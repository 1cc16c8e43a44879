"""Retrying batch executor.

Runs one batch against a provider and recovers from partial failures:
inputs the provider returned vectors for are kept, and only the missing
ones are resubmitted. Every submitted input ends up with exactly one vector,
real or zero-filled, unless the provider reports a fatal error.
"""

import asyncio
from collections.abc import Sequence
from typing import TYPE_CHECKING

from embedkit.config import EmbeddingSettings
from embedkit.embeddings.models import (
    BatchOutcome,
    BatchStatus,
    EmbeddingInput,
    EmbeddingOptions,
    EmbeddingResult,
    ProviderResponse,
)
from embedkit.embeddings.planner import plan_batches
from embedkit.exceptions import FatalProviderError, TransientProviderError
from embedkit.logging_config import get_logger
from embedkit.observability.metrics import track_batch_outcome, track_retry

if TYPE_CHECKING:
    from embedkit.embeddings.providers.base import EmbeddingProvider

logger = get_logger(__name__)

MAX_RETRIES = 3
RETRY_BACKOFF_SECONDS = 1.0


def preview(item: EmbeddingInput, length: int = 50) -> str:
    """Short printable prefix of an input for log lines."""
    if isinstance(item, str):
        return item[:length]
    return next(iter(item.values()), "")[:length]


class RetryState:
    """Index bookkeeping for one batch across retry attempts.

    ``pending[position]`` is the original batch index of the input submitted
    at ``position`` in the current attempt. ``results`` maps original indices
    to vectors and fills in as attempts succeed.
    """

    def __init__(self, size: int) -> None:
        self.size = size
        self.pending: list[int] = list(range(size))
        self.results: dict[int, list[float]] = {}
        self.placeholders: list[int] = []

    @property
    def done(self) -> bool:
        return not self.pending

    def pending_items(self, items: Sequence[EmbeddingInput]) -> list[EmbeddingInput]:
        """Inputs for the next attempt, in current position order."""
        return [items[original] for original in self.pending]

    def apply(self, response: ProviderResponse) -> int:
        """Record a successful response and shrink ``pending``.

        Positions the response has no vector for stay pending, in their
        relative order, and keep their original index.

        Returns:
            Number of inputs resolved by this response.
        """
        received: dict[int, list[float]] = {}
        for item in response.data or []:
            if 0 <= item.index < len(self.pending) and item.index not in received:
                received[item.index] = item.embedding

        remaining: list[int] = []
        for position, original in enumerate(self.pending):
            if position in received:
                self.results[original] = received[position]
            else:
                remaining.append(original)

        resolved = len(self.pending) - len(remaining)
        self.pending = remaining
        return resolved

    def fill_placeholders(self, dimensions: int) -> None:
        """Give every still-pending input a zero vector."""
        for original in self.pending:
            self.results[original] = [0.0] * dimensions
            self.placeholders.append(original)
        self.pending = []

    def embeddings(self) -> list[list[float]]:
        """Vectors in original batch order."""
        return [self.results[index] for index in range(self.size)]


class RetryingBatchExecutor:
    """Drive one batch to completion with partial-failure retries.

    Attempts within a batch are strictly sequential: each one submits only
    the inputs the previous attempts did not resolve.
    """

    def __init__(
        self,
        max_retries: int = MAX_RETRIES,
        backoff: float = RETRY_BACKOFF_SECONDS,
    ) -> None:
        """Initialize the executor.

        Args:
            max_retries: Remote calls allowed per batch.
            backoff: Seconds to wait after a failed call.
        """
        self.max_retries = max_retries
        self.backoff = backoff

    @classmethod
    def from_settings(cls, settings: EmbeddingSettings) -> "RetryingBatchExecutor":
        """Build an executor from embedding settings."""
        return cls(max_retries=settings.max_retries, backoff=settings.retry_backoff)

    async def execute(
        self,
        provider: "EmbeddingProvider",
        items: Sequence[EmbeddingInput],
        options: EmbeddingOptions,
        label: str = "1/1",
    ) -> BatchOutcome:
        """Embed one batch.

        Args:
            provider: Provider to call.
            items: Batch inputs.
            options: Embedding options.
            label: Batch position for log lines, e.g. ``"2/5"``.

        Returns:
            BatchOutcome with one vector per item, or an empty ABORTED outcome
            if the provider reported a fatal error.
        """
        state = RetryState(len(items))
        tokens = 0
        attempts = 0

        while not state.done and attempts < self.max_retries:
            attempts += 1
            last_attempt = attempts >= self.max_retries

            try:
                response = await provider.request(state.pending_items(items), options)
            except FatalProviderError as e:
                logger.error(
                    f"[embeddings] Batch {label} aborted: {e.message}",
                    extra={"provider": provider.name, "details": e.details},
                )
                track_batch_outcome(provider.name, BatchStatus.ABORTED.value)
                return BatchOutcome.aborted(attempts=attempts, size=len(items))
            except TransientProviderError as e:
                track_retry(provider.name, "error")
                if last_attempt:
                    break
                logger.warning(
                    f"[embeddings] Batch {label} - retry attempt "
                    f"{attempts}/{self.max_retries} after error: {e.message}",
                    extra={"provider": provider.name, "code": e.code.value},
                )
                await asyncio.sleep(self.backoff)
                continue

            if response.data is None:
                track_retry(provider.name, "no_data")
                if last_attempt:
                    break
                logger.warning(
                    f"[embeddings] Batch {label} - no data returned, retry attempt "
                    f"{attempts}/{self.max_retries}",
                    extra={"provider": provider.name},
                )
                await asyncio.sleep(self.backoff)
                continue

            tokens += response.total_tokens
            submitted = len(state.pending)
            state.apply(response)

            if not state.done:
                track_retry(provider.name, "partial")
                for original in state.pending:
                    logger.info(
                        f"Missing embedding for index {original}, will retry: "
                        f"[{preview(items[original])}...]"
                    )
                if not last_attempt:
                    logger.info(
                        f"[embeddings] Batch {label} - retrying {len(state.pending)} "
                        f"of {submitted} texts "
                        f"(attempt {attempts}/{self.max_retries})"
                    )

        status = BatchStatus.COMPLETE
        if not state.done:
            dimensions = provider.dimensions_for(options)
            logger.error(
                f"[embeddings] Failed to get embeddings for {len(state.pending)} "
                f"texts after {attempts} attempts; using zero vectors",
                extra={
                    "provider": provider.name,
                    "indices": list(state.pending),
                    "dimensions": dimensions,
                },
            )
            for original in state.pending:
                logger.error(
                    f"Creating zero embedding for index {original}: "
                    f"[{preview(items[original])}...]"
                )
            state.fill_placeholders(dimensions)
            status = BatchStatus.DEGRADED

        track_batch_outcome(
            provider.name, status.value, placeholders=len(state.placeholders)
        )
        return BatchOutcome(
            embeddings=state.embeddings(),
            tokens=tokens,
            status=status,
            placeholder_indices=sorted(state.placeholders),
            attempts=attempts,
            size=len(items),
        )


async def run_batches(
    provider: "EmbeddingProvider",
    inputs: Sequence[EmbeddingInput],
    options: EmbeddingOptions,
    executor: RetryingBatchExecutor | None = None,
    max_concurrency: int = 1,
) -> EmbeddingResult:
    """Plan ``inputs`` into batches and run each through the executor.

    Batches are independent: a fatal or degraded batch never cancels its
    siblings. Output is assembled in plan order whatever order batches
    finish in.

    Args:
        provider: Provider to call.
        inputs: Inputs to embed.
        options: Embedding options.
        executor: Batch executor. Uses defaults if not provided.
        max_concurrency: Batches allowed in flight at once.

    Returns:
        EmbeddingResult with vectors concatenated in input order.
    """
    executor = executor or RetryingBatchExecutor()
    model = provider.resolve_model(options)
    plan = plan_batches(len(inputs), provider.batch_size, options.late_chunking)
    batch_count = len(plan)

    logger.info(
        f"[embeddings] Embedding {len(inputs)} texts using model: {model} "
        f"({batch_count} batches)",
        extra={"provider": provider.name},
    )

    async def run_one(number: int, batch_items: list[EmbeddingInput]) -> BatchOutcome:
        label = f"{number}/{batch_count}"
        logger.info(
            f"[embeddings] Processing batch {label} ({len(batch_items)} texts)"
        )
        outcome = await executor.execute(provider, batch_items, options, label=label)
        logger.info(
            f"[embeddings] Batch {label} {outcome.status.value}. "
            f"Tokens used: {outcome.tokens}"
        )
        return outcome

    jobs = [
        (number, batch.slice(inputs))
        for number, batch in enumerate(plan.batches, start=1)
    ]

    if max_concurrency <= 1:
        outcomes = [await run_one(number, items) for number, items in jobs]
    else:
        semaphore = asyncio.Semaphore(max_concurrency)

        async def bounded(number: int, items: list[EmbeddingInput]) -> BatchOutcome:
            async with semaphore:
                return await run_one(number, items)

        outcomes = list(
            await asyncio.gather(*(bounded(number, items) for number, items in jobs))
        )

    embeddings: list[list[float]] = []
    for outcome in outcomes:
        embeddings.extend(outcome.embeddings)
    tokens = sum(outcome.tokens for outcome in outcomes)

    logger.info(
        f"[embeddings] Complete. Generated {len(embeddings)} embeddings "
        f"using {tokens} tokens",
        extra={"provider": provider.name, "model": model},
    )
    return EmbeddingResult(
        embeddings=embeddings,
        tokens=tokens,
        model=model,
        batches=outcomes,
    )
