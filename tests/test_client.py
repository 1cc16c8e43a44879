"""Tests for the embedding client facade."""

from unittest.mock import AsyncMock, patch

import pytest
from conftest import DIMENSIONS, FakeProvider, respond, texts, vector_for

from embedkit.config import EmbeddingSettings, JinaSettings, OpenAISettings, Settings
from embedkit.embeddings.client import EmbeddingClient, get_embeddings
from embedkit.embeddings.executor import RetryingBatchExecutor
from embedkit.embeddings.models import (
    BatchStatus,
    EmbeddingOptions,
    EmbeddingResult,
    ProviderResponse,
)
from embedkit.embeddings.registry import ProviderRegistry
from embedkit.exceptions import (
    ConfigurationError,
    FatalProviderError,
    NoProviderError,
    TransientProviderError,
)


@pytest.fixture
def client(
    registry: ProviderRegistry,
    embedding_settings: EmbeddingSettings,
    executor: RetryingBatchExecutor,
) -> EmbeddingClient:
    """Client wired to the fake provider."""
    return EmbeddingClient(
        registry=registry, settings=embedding_settings, executor=executor
    )


class TestEmbed:
    """Tests for EmbeddingClient.embed."""

    @pytest.mark.asyncio
    async def test_embeds_in_order(
        self, client: EmbeddingClient, fake_provider: FakeProvider
    ) -> None:
        """Vectors come back one per input, in input order."""
        items = texts(5)

        result = await client.embed(items)

        assert result.embeddings == [vector_for(t) for t in items]
        assert result.tokens == 5
        assert result.model == "fake-model"
        assert result.is_complete
        assert len(fake_provider.calls) == 1

    @pytest.mark.asyncio
    async def test_empty_input_makes_no_call(
        self, client: EmbeddingClient, fake_provider: FakeProvider
    ) -> None:
        """Empty input returns immediately."""
        result = await client.embed([])

        assert result == EmbeddingResult(model="fake-model")
        assert fake_provider.calls == []

    @pytest.mark.asyncio
    async def test_empty_input_skips_resolution(
        self, embedding_settings: EmbeddingSettings
    ) -> None:
        """Empty input succeeds even for an unknown model."""
        client = EmbeddingClient(
            registry=ProviderRegistry(), settings=embedding_settings
        )

        result = await client.embed([], EmbeddingOptions(model="nobody-serves-this"))

        assert result.embeddings == []
        assert result.tokens == 0

    @pytest.mark.asyncio
    async def test_model_option_selects_provider(
        self,
        embedding_settings: EmbeddingSettings,
        executor: RetryingBatchExecutor,
    ) -> None:
        """options.model picks the provider."""
        alpha = FakeProvider(name="alpha", prefix="alpha-")
        beta = FakeProvider(name="beta", prefix="beta-")
        client = EmbeddingClient(
            registry=ProviderRegistry([alpha, beta]),
            settings=embedding_settings,
            executor=executor,
        )

        result = await client.embed(texts(2), EmbeddingOptions(model="alpha-large"))

        assert len(alpha.calls) == 1
        assert beta.calls == []
        assert result.model == "alpha-large"

    @pytest.mark.asyncio
    async def test_unknown_model(self, client: EmbeddingClient) -> None:
        """NoProviderError crosses the client boundary."""
        with pytest.raises(NoProviderError):
            await client.embed(texts(1), EmbeddingOptions(model="mystery-model"))

    @pytest.mark.asyncio
    async def test_missing_credentials(
        self,
        embedding_settings: EmbeddingSettings,
        executor: RetryingBatchExecutor,
    ) -> None:
        """ConfigurationError is raised before any request."""
        provider = FakeProvider(configured=False)
        client = EmbeddingClient(
            registry=ProviderRegistry([provider]),
            settings=embedding_settings,
            executor=executor,
        )

        with pytest.raises(ConfigurationError):
            await client.embed(texts(3))

        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_late_chunking_single_call(
        self,
        embedding_settings: EmbeddingSettings,
        executor: RetryingBatchExecutor,
    ) -> None:
        """Late chunking makes one call however large the input."""
        provider = FakeProvider(batch_size=10)
        client = EmbeddingClient(
            registry=ProviderRegistry([provider]),
            settings=embedding_settings,
            executor=executor,
        )

        result = await client.embed(texts(55), EmbeddingOptions(late_chunking=True))

        assert len(provider.calls) == 1
        assert len(result.embeddings) == 55

    @pytest.mark.asyncio
    async def test_batches_by_provider_window(
        self,
        embedding_settings: EmbeddingSettings,
        executor: RetryingBatchExecutor,
    ) -> None:
        """Without late chunking inputs are split by the provider batch size."""
        provider = FakeProvider(batch_size=10)
        client = EmbeddingClient(
            registry=ProviderRegistry([provider]),
            settings=embedding_settings,
            executor=executor,
        )

        result = await client.embed(texts(25))

        assert [len(call) for call in provider.calls] == [10, 10, 5]
        assert result.tokens == 25

    @pytest.mark.asyncio
    async def test_output_length_survives_failures(
        self,
        embedding_settings: EmbeddingSettings,
        executor: RetryingBatchExecutor,
    ) -> None:
        """Transient failures and missing items never shorten the output."""

        def script(call: int, items: list) -> ProviderResponse:
            if call % 3 == 0:
                raise TransientProviderError("flaky")
            return respond(items, skip={"t3", "t17"})

        provider = FakeProvider(batch_size=7, script=script)
        client = EmbeddingClient(
            registry=ProviderRegistry([provider]),
            settings=embedding_settings,
            executor=executor,
        )

        result = await client.embed(texts(20))

        assert len(result.embeddings) == 20
        assert result.embeddings[3] == [0.0] * DIMENSIONS
        assert result.embeddings[17] == [0.0] * DIMENSIONS
        assert result.placeholder_count == 2

    @pytest.mark.asyncio
    async def test_fatal_batch_is_reported(
        self,
        embedding_settings: EmbeddingSettings,
        executor: RetryingBatchExecutor,
    ) -> None:
        """An aborted batch is distinguishable in the result."""

        def script(call: int, items: list) -> ProviderResponse:
            raise FatalProviderError("insufficient balance")

        provider = FakeProvider(script=script)
        client = EmbeddingClient(
            registry=ProviderRegistry([provider]),
            settings=embedding_settings,
            executor=executor,
        )

        result = await client.embed(texts(3))

        assert result.embeddings == []
        assert result.tokens == 0
        assert result.batches[0].status == BatchStatus.ABORTED
        assert result.aborted_batches == 1

    @pytest.mark.asyncio
    async def test_tokens_summed_across_responses(
        self,
        embedding_settings: EmbeddingSettings,
        executor: RetryingBatchExecutor,
    ) -> None:
        """Token usage is the sum over every successful response."""

        def script(call: int, items: list) -> ProviderResponse:
            return respond(items, tokens=100 + call)

        provider = FakeProvider(batch_size=4, script=script)
        client = EmbeddingClient(
            registry=ProviderRegistry([provider]),
            settings=embedding_settings,
            executor=executor,
        )

        result = await client.embed(texts(10))

        assert result.tokens == 101 + 102 + 103

    @pytest.mark.asyncio
    async def test_concurrent_batches(
        self, executor: RetryingBatchExecutor
    ) -> None:
        """max_concurrency keeps results in input order."""
        provider = FakeProvider(batch_size=3)
        settings = EmbeddingSettings(default_model="fake-model", max_concurrency=4)
        client = EmbeddingClient(
            registry=ProviderRegistry([provider]),
            settings=settings,
            executor=executor,
        )

        result = await client.embed(texts(11))

        assert result.embeddings == [vector_for(t) for t in texts(11)]
        assert len(provider.calls) == 4


class TestClientLifecycle:
    """Tests for client construction and cleanup."""

    @pytest.mark.asyncio
    async def test_context_manager_closes_providers(
        self,
        registry: ProviderRegistry,
        embedding_settings: EmbeddingSettings,
        fake_provider: FakeProvider,
    ) -> None:
        """Leaving the context closes every provider."""
        async with EmbeddingClient(registry=registry, settings=embedding_settings):
            pass

        assert fake_provider.closed

    def test_default_registry(self) -> None:
        """Built-in providers are registered when no registry is given."""
        settings = Settings(jina=JinaSettings(), openai=OpenAISettings())
        with patch("embedkit.embeddings.registry.get_settings", return_value=settings):
            client = EmbeddingClient(settings=EmbeddingSettings())

        assert client.registry.list_providers() == ["openai", "jina"]

    def test_executor_from_settings(self, registry: ProviderRegistry) -> None:
        """Retry budget comes from settings."""
        client = EmbeddingClient(
            registry=registry,
            settings=EmbeddingSettings(max_retries=7, retry_backoff=0.5),
        )

        assert client._executor.max_retries == 7
        assert client._executor.backoff == 0.5


class TestGetEmbeddings:
    """Tests for the one-shot helper."""

    @pytest.mark.asyncio
    async def test_uses_and_closes_default_client(self) -> None:
        """get_embeddings embeds through a temporary client."""
        expected = EmbeddingResult(embeddings=[[1.0]], tokens=1)

        with (
            patch.object(
                EmbeddingClient, "embed", new_callable=AsyncMock, return_value=expected
            ) as mock_embed,
            patch.object(
                EmbeddingClient, "close", new_callable=AsyncMock
            ) as mock_close,
            patch("embedkit.embeddings.client.default_registry") as mock_registry,
        ):
            result = await get_embeddings(["a"], EmbeddingOptions(dimensions=8))

        assert result is expected
        mock_registry.assert_called_once()
        mock_embed.assert_awaited_once_with(["a"], EmbeddingOptions(dimensions=8))
        mock_close.assert_awaited_once()
