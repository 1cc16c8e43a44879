"""Embedding data models."""

from collections.abc import Sequence
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

# A plain text, or a small mapping of named fields (e.g. {"text": ...}).
EmbeddingInput = str | dict[str, str]


class TaskType(str, Enum):
    """Downstream task hint understood by task-aware models."""

    TEXT_MATCHING = "text-matching"
    RETRIEVAL_PASSAGE = "retrieval.passage"
    RETRIEVAL_QUERY = "retrieval.query"


class EmbeddingOptions(BaseModel):
    """Per-request embedding options.

    Attributes left as None take the provider's defaults.

    Attributes:
        model: Model identifier, also used to select the provider.
        dimensions: Requested vector width.
        late_chunking: Embed all inputs jointly in a single request.
        task: Task hint for task-aware models.
        embedding_type: Provider-specific output format hint.
    """

    model_config = ConfigDict(frozen=True)

    model: str | None = Field(default=None, description="Model identifier")
    dimensions: int | None = Field(default=None, gt=0, description="Vector width")
    late_chunking: bool = Field(default=False, description="Disable batching")
    task: TaskType | None = Field(default=None, description="Task hint")
    embedding_type: str | None = Field(default=None, description="Format hint")


class BatchRange(BaseModel):
    """Half-open index range ``[start, end)`` over the caller's inputs."""

    model_config = ConfigDict(frozen=True)

    start: int = Field(ge=0)
    end: int = Field(ge=0)

    @model_validator(mode="after")
    def _check_order(self) -> "BatchRange":
        if self.end < self.start:
            raise ValueError(f"end ({self.end}) precedes start ({self.start})")
        return self

    def __len__(self) -> int:
        return self.end - self.start

    def slice(self, items: Sequence[EmbeddingInput]) -> list[EmbeddingInput]:
        """Return the items this range covers."""
        return list(items[self.start : self.end])


class BatchPlan(BaseModel):
    """Ordered, disjoint batches covering every input exactly once."""

    model_config = ConfigDict(frozen=True)

    batches: tuple[BatchRange, ...] = Field(default=())
    total: int = Field(default=0, ge=0, description="Number of inputs covered")

    @model_validator(mode="after")
    def _check_coverage(self) -> "BatchPlan":
        cursor = 0
        for batch in self.batches:
            if batch.start != cursor:
                raise ValueError(
                    f"batch {batch.start}-{batch.end} does not continue at {cursor}"
                )
            cursor = batch.end
        if cursor != self.total:
            raise ValueError(f"batches cover {cursor} of {self.total} inputs")
        return self

    def __len__(self) -> int:
        return len(self.batches)


class EmbeddingData(BaseModel):
    """One vector returned by a provider, keyed by request position."""

    index: int
    embedding: list[float] = Field(min_length=1)


class ProviderResponse(BaseModel):
    """Parsed reply to a single embeddings request.

    Attributes:
        data: Returned vectors, or None when the reply carried no result data.
        total_tokens: Tokens billed for the request.
    """

    data: list[EmbeddingData] | None = None
    total_tokens: int = Field(default=0, ge=0)


class BatchStatus(str, Enum):
    """How a batch concluded."""

    COMPLETE = "complete"
    DEGRADED = "degraded"
    ABORTED = "aborted"


class BatchOutcome(BaseModel):
    """Result of running one batch through the retrying executor.

    Attributes:
        embeddings: One vector per batch item, in batch order. Empty when aborted.
        tokens: Tokens billed across all attempts.
        status: COMPLETE, DEGRADED (placeholders present) or ABORTED (fatal error).
        placeholder_indices: Batch-relative indices filled with zero vectors.
        attempts: Remote calls made for this batch.
        size: Number of inputs the batch covered.
    """

    embeddings: list[list[float]] = Field(default_factory=list)
    tokens: int = Field(default=0, ge=0)
    status: BatchStatus = BatchStatus.COMPLETE
    placeholder_indices: list[int] = Field(default_factory=list)
    attempts: int = Field(default=0, ge=0)
    size: int = Field(default=0, ge=0)

    @classmethod
    def aborted(cls, attempts: int, size: int = 0) -> "BatchOutcome":
        """Outcome for a batch stopped by a fatal provider error."""
        return cls(status=BatchStatus.ABORTED, attempts=attempts, size=size)


class EmbeddingResult(BaseModel):
    """Result of an embed call.

    Attributes:
        embeddings: One vector per input, in input order.
        tokens: Total tokens billed across every successful response.
        model: Model identifier the request was resolved with.
        batches: Per-batch outcomes, in plan order.
    """

    embeddings: list[list[float]] = Field(default_factory=list)
    tokens: int = Field(default=0, ge=0)
    model: str | None = None
    batches: list[BatchOutcome] = Field(default_factory=list)

    @property
    def placeholder_count(self) -> int:
        """Number of zero vectors substituted for failed inputs."""
        return sum(len(batch.placeholder_indices) for batch in self.batches)

    @property
    def aborted_batches(self) -> int:
        """Number of batches dropped because of a fatal provider error."""
        return sum(1 for batch in self.batches if batch.status is BatchStatus.ABORTED)

    @property
    def is_complete(self) -> bool:
        """True when every input got a real vector."""
        return all(batch.status is BatchStatus.COMPLETE for batch in self.batches)
