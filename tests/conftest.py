"""Pytest configuration and shared fixtures."""

from collections.abc import Callable, Iterator, Sequence

import pytest

from embedkit.config import EmbeddingSettings, get_settings
from embedkit.embeddings.executor import RetryingBatchExecutor
from embedkit.embeddings.models import (
    EmbeddingData,
    EmbeddingInput,
    EmbeddingOptions,
    ProviderResponse,
)
from embedkit.embeddings.providers.base import EmbeddingProvider
from embedkit.embeddings.registry import ProviderRegistry
from embedkit.exceptions import ConfigurationError

DIMENSIONS = 4

Script = Callable[[int, list[EmbeddingInput]], ProviderResponse]


def vector_for(item: EmbeddingInput) -> list[float]:
    """Deterministic non-zero vector for inputs named ``t<N>``."""
    text = item if isinstance(item, str) else next(iter(item.values()))
    return [float(int(text[1:]) + 1)] * DIMENSIONS


def respond(
    items: Sequence[EmbeddingInput],
    skip: set[str] | None = None,
    tokens: int | None = None,
) -> ProviderResponse:
    """Response with vectors for every item except those named in ``skip``."""
    skip = skip or set()
    data = [
        EmbeddingData(index=position, embedding=vector_for(item))
        for position, item in enumerate(items)
        if item not in skip
    ]
    return ProviderResponse(
        data=data,
        total_tokens=len(items) if tokens is None else tokens,
    )


class FakeProvider(EmbeddingProvider):
    """In-process provider that records every request it receives."""

    default_dimensions = DIMENSIONS

    def __init__(
        self,
        name: str = "fake",
        prefix: str = "fake-",
        batch_size: int = 128,
        script: Script | None = None,
        configured: bool = True,
    ) -> None:
        self.name = name
        self.default_model = f"{prefix}model"
        self._prefix = prefix
        self._batch_size = batch_size
        self._script = script
        self._configured = configured
        self.calls: list[list[EmbeddingInput]] = []
        self.closed = False

    def supports_model(self, model: str) -> bool:
        return isinstance(model, str) and model.startswith(self._prefix)

    @property
    def batch_size(self) -> int:
        return self._batch_size

    def ensure_configured(self) -> None:
        if not self._configured:
            raise ConfigurationError(f"{self.name.upper()}_API_KEY is not set")

    async def request(
        self,
        items: Sequence[EmbeddingInput],
        options: EmbeddingOptions,
    ) -> ProviderResponse:
        self.calls.append(list(items))
        if self._script is not None:
            return self._script(len(self.calls), list(items))
        return respond(items)

    async def close(self) -> None:
        self.closed = True


def texts(count: int) -> list[str]:
    """Inputs ``t0`` .. ``t<count-1>``."""
    return [f"t{i}" for i in range(count)]


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Iterator[None]:
    """Keep cached settings from leaking between tests."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def executor() -> RetryingBatchExecutor:
    """Executor with the default retry budget and no backoff delay."""
    return RetryingBatchExecutor(max_retries=3, backoff=0)


@pytest.fixture
def embedding_settings() -> EmbeddingSettings:
    """Client settings with the fake provider as default model."""
    return EmbeddingSettings(default_model="fake-model", retry_backoff=0)


@pytest.fixture
def fake_provider() -> FakeProvider:
    """Fake provider answering every input."""
    return FakeProvider()


@pytest.fixture
def registry(fake_provider: FakeProvider) -> ProviderRegistry:
    """Registry holding only the fake provider."""
    return ProviderRegistry([fake_provider])
