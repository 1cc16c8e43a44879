"""Tests for the provider registry."""

import pytest
from conftest import FakeProvider

from embedkit.config import JinaSettings, OpenAISettings, Settings
from embedkit.embeddings.providers.jina import JinaEmbeddingProvider
from embedkit.embeddings.providers.openai import OpenAIEmbeddingProvider
from embedkit.embeddings.registry import ProviderRegistry, default_registry
from embedkit.exceptions import ErrorCode, NoProviderError


class TestProviderRegistry:
    """Tests for ProviderRegistry."""

    def test_later_registration_wins(self) -> None:
        """The most recently registered matching provider is chosen."""
        first = FakeProvider(name="first", prefix="shared-")
        second = FakeProvider(name="second", prefix="shared-")
        registry = ProviderRegistry()
        registry.register(first)
        registry.register(second)

        assert registry.resolve("shared-model") is second

    def test_falls_through_to_earlier_provider(self) -> None:
        """Non-matching newer providers are skipped."""
        alpha = FakeProvider(name="alpha", prefix="alpha-")
        beta = FakeProvider(name="beta", prefix="beta-")
        registry = ProviderRegistry([alpha, beta])

        assert registry.resolve("alpha-small") is alpha

    def test_list_providers_in_priority_order(self) -> None:
        """Names are listed newest first."""
        registry = ProviderRegistry(
            [FakeProvider(name="a"), FakeProvider(name="b"), FakeProvider(name="c")]
        )
        assert registry.list_providers() == ["c", "b", "a"]
        assert len(registry) == 3
        assert "b" in registry
        assert "z" not in registry

    def test_unknown_model_raises(self) -> None:
        """NoProviderError names the model and every provider."""
        registry = ProviderRegistry(
            [
                FakeProvider(name="alpha", prefix="alpha-"),
                FakeProvider(name="beta", prefix="beta-"),
            ]
        )

        with pytest.raises(NoProviderError) as exc_info:
            registry.resolve("gamma-1")

        error = exc_info.value
        assert error.code == ErrorCode.NO_PROVIDER
        assert "gamma-1" in error.message
        assert "alpha" in error.message and "beta" in error.message
        assert error.details == {
            "model": "gamma-1",
            "available_providers": ["beta", "alpha"],
        }

    def test_empty_registry_raises(self) -> None:
        """Resolving against an empty registry fails."""
        with pytest.raises(NoProviderError):
            ProviderRegistry().resolve("anything")


class TestDefaultRegistry:
    """Tests for the built-in provider set."""

    @pytest.fixture
    def registry(self) -> ProviderRegistry:
        settings = Settings(jina=JinaSettings(), openai=OpenAISettings())
        return default_registry(settings)

    def test_openai_model_resolves_to_openai(self, registry: ProviderRegistry) -> None:
        """OpenAI wins for text-embedding models despite being registered later."""
        assert isinstance(
            registry.resolve("text-embedding-3-small"), OpenAIEmbeddingProvider
        )

    def test_prefixed_openai_model(self, registry: ProviderRegistry) -> None:
        """openai: prefix selects the OpenAI provider."""
        assert isinstance(registry.resolve("openai:my-model"), OpenAIEmbeddingProvider)

    def test_jina_models(self, registry: ProviderRegistry) -> None:
        """Jina serves jina-* and bare model names."""
        assert isinstance(registry.resolve("jina-embeddings-v3"), JinaEmbeddingProvider)
        assert isinstance(registry.resolve("jina-clip-v2"), JinaEmbeddingProvider)
        assert isinstance(registry.resolve("custom-model"), JinaEmbeddingProvider)

    def test_namespaced_unknown_model(self, registry: ProviderRegistry) -> None:
        """A vendor:model name nobody serves is rejected."""
        with pytest.raises(NoProviderError) as exc_info:
            registry.resolve("cohere:embed-v3")
        assert exc_info.value.details["available_providers"] == ["openai", "jina"]

    def test_fresh_registry_each_call(self) -> None:
        """Registries are not shared between callers."""
        settings = Settings()
        assert default_registry(settings) is not default_registry(settings)
