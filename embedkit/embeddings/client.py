"""Embedding client facade.

Composes the provider registry, batch planner and retrying executor into a
single ``embed`` call.
"""

from collections.abc import Sequence
from types import TracebackType

from embedkit.config import EmbeddingSettings, get_settings
from embedkit.embeddings.executor import RetryingBatchExecutor, run_batches
from embedkit.embeddings.models import (
    EmbeddingInput,
    EmbeddingOptions,
    EmbeddingResult,
)
from embedkit.embeddings.registry import ProviderRegistry, default_registry
from embedkit.logging_config import get_logger

logger = get_logger(__name__)


class EmbeddingClient:
    """Turn texts into embeddings through whichever provider serves the model.

    Only ConfigurationError, NoProviderError and ValidationError escape
    ``embed``. Per-input provider failures come back as zero vectors, and a
    batch refused for lack of balance comes back empty with status ABORTED;
    see ``EmbeddingResult.batches``.
    """

    def __init__(
        self,
        registry: ProviderRegistry | None = None,
        settings: EmbeddingSettings | None = None,
        executor: RetryingBatchExecutor | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            registry: Providers to choose from. Built-in providers if not provided.
            settings: Client settings. Loaded from environment if not provided.
            executor: Batch executor. Built from settings if not provided.
        """
        self._settings = settings or get_settings().embedding
        self._registry = registry if registry is not None else default_registry()
        self._executor = executor or RetryingBatchExecutor.from_settings(self._settings)

    @property
    def registry(self) -> ProviderRegistry:
        """The client's provider registry."""
        return self._registry

    async def embed(
        self,
        inputs: Sequence[EmbeddingInput],
        options: EmbeddingOptions | None = None,
    ) -> EmbeddingResult:
        """Embed ``inputs``.

        Args:
            inputs: Texts or field mappings to embed.
            options: Embedding options. ``options.model`` selects the provider.

        Returns:
            EmbeddingResult with one vector per input, in input order, and the
            total tokens billed.

        Raises:
            NoProviderError: If no provider supports the model.
            ConfigurationError: If the provider's API key is missing.
            ValidationError: If the provider cannot serve the options.
        """
        options = options or EmbeddingOptions()
        model = options.model or self._settings.default_model

        if not inputs:
            return EmbeddingResult(model=model)

        provider = self._registry.resolve(model)
        provider.ensure_configured()
        provider.validate_options(options)

        if options.model is None:
            options = options.model_copy(update={"model": model})

        return await run_batches(
            provider,
            inputs,
            options,
            executor=self._executor,
            max_concurrency=self._settings.max_concurrency,
        )

    async def close(self) -> None:
        """Close every provider's owned HTTP client."""
        for provider in self._registry.providers:
            await provider.close()

    async def __aenter__(self) -> "EmbeddingClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()


async def get_embeddings(
    inputs: Sequence[EmbeddingInput],
    options: EmbeddingOptions | None = None,
) -> EmbeddingResult:
    """Embed ``inputs`` with a one-off client built from settings.

    Args:
        inputs: Texts or field mappings to embed.
        options: Embedding options.

    Returns:
        EmbeddingResult with one vector per input.
    """
    async with EmbeddingClient() as client:
        return await client.embed(inputs, options)
