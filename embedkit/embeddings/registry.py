"""Provider registry: select an embedding provider by model identifier."""

from embedkit.config import Settings, get_settings
from embedkit.embeddings.providers.base import EmbeddingProvider
from embedkit.embeddings.providers.jina import JinaEmbeddingProvider
from embedkit.embeddings.providers.openai import OpenAIEmbeddingProvider
from embedkit.exceptions import NoProviderError
from embedkit.logging_config import get_logger

logger = get_logger(__name__)


class ProviderRegistry:
    """Priority-ordered set of embedding providers.

    Providers are kept on a stack: the most recently registered provider is
    consulted first, so a later registration overrides earlier ones for any
    model both would accept.
    """

    def __init__(self, providers: list[EmbeddingProvider] | None = None) -> None:
        """Initialize the registry.

        Args:
            providers: Providers to register, in registration order.
        """
        self._stack: list[EmbeddingProvider] = []
        for provider in providers or []:
            self.register(provider)

    def register(self, provider: EmbeddingProvider) -> None:
        """Register ``provider`` with priority over those already present."""
        self._stack.insert(0, provider)
        logger.debug(f"Registered embedding provider: {provider.name}")

    def resolve(self, model: str) -> EmbeddingProvider:
        """Return the highest-priority provider that supports ``model``.

        Raises:
            NoProviderError: If no registered provider supports the model.
        """
        for provider in self._stack:
            if provider.supports_model(model):
                return provider
        raise NoProviderError(model, self.list_providers())

    def list_providers(self) -> list[str]:
        """Provider names in priority order."""
        return [provider.name for provider in self._stack]

    @property
    def providers(self) -> list[EmbeddingProvider]:
        """Registered providers in priority order."""
        return list(self._stack)

    def __len__(self) -> int:
        return len(self._stack)

    def __contains__(self, name: object) -> bool:
        return any(provider.name == name for provider in self._stack)


def default_registry(settings: Settings | None = None) -> ProviderRegistry:
    """Build a registry with the built-in providers.

    OpenAI is registered after Jina, so it takes ``text-embedding-*`` models
    even though Jina's catch-all would also accept them.
    """
    settings = settings or get_settings()
    timeout = settings.embedding.timeout
    return ProviderRegistry(
        [
            JinaEmbeddingProvider(settings=settings.jina, timeout=timeout),
            OpenAIEmbeddingProvider(settings=settings.openai, timeout=timeout),
        ]
    )
