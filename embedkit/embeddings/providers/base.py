"""Embedding provider interface and shared HTTP implementation."""

import time
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

import httpx
from pydantic import SecretStr
from pydantic import ValidationError as PydanticValidationError

from embedkit.config import get_settings
from embedkit.embeddings.executor import RetryingBatchExecutor, run_batches
from embedkit.embeddings.models import (
    EmbeddingData,
    EmbeddingInput,
    EmbeddingOptions,
    EmbeddingResult,
    ProviderResponse,
)
from embedkit.exceptions import (
    ConfigurationError,
    ErrorCode,
    FatalProviderError,
    TransientProviderError,
)
from embedkit.logging_config import get_logger
from embedkit.observability.metrics import track_embedding_request

logger = get_logger(__name__)

# Markers providers put in error bodies when the account cannot pay.
INSUFFICIENT_BALANCE_MARKERS = ("insufficientbalanceerror", "insufficient balance")


class EmbeddingProvider(ABC):
    """Abstract base class for embedding providers.

    A provider knows how to call one remote embeddings API for a bounded
    set of inputs. Batching and retries are layered on top by the executor.
    """

    name: str = "provider"
    default_model: str = ""
    default_dimensions: int = 1024

    # Known model dimensions
    MODEL_DIMENSIONS: dict[str, int] = {}

    @abstractmethod
    def supports_model(self, model: str) -> bool:
        """Whether this provider serves ``model``.

        Must never raise, whatever ``model`` is.
        """
        ...

    @property
    @abstractmethod
    def batch_size(self) -> int:
        """Maximum inputs per request."""
        ...

    @abstractmethod
    def ensure_configured(self) -> None:
        """Check the provider can make requests.

        Raises:
            ConfigurationError: If a required credential is missing.
        """
        ...

    @abstractmethod
    async def request(
        self,
        items: Sequence[EmbeddingInput],
        options: EmbeddingOptions,
    ) -> ProviderResponse:
        """Make exactly one embeddings call for ``items``.

        Args:
            items: Inputs to embed, in request order.
            options: Embedding options.

        Returns:
            Parsed response. ``data`` is None when the reply had no results.

        Raises:
            FatalProviderError: If the provider refuses payment.
            TransientProviderError: On any other failed call.
        """
        ...

    def resolve_model(self, options: EmbeddingOptions) -> str:
        """Model identifier to send for ``options``."""
        return options.model or self.default_model

    def validate_options(self, options: EmbeddingOptions) -> None:
        """Reject options the provider cannot serve, before any request.

        Raises:
            ValidationError: If an option value is unsupported.
        """
        return None

    def dimensions_for(self, options: EmbeddingOptions) -> int:
        """Vector width used for placeholders when no real vector exists."""
        if options.dimensions:
            return options.dimensions
        return self.MODEL_DIMENSIONS.get(
            self.resolve_model(options), self.default_dimensions
        )

    async def get_embeddings(
        self,
        inputs: Sequence[EmbeddingInput],
        options: EmbeddingOptions | None = None,
    ) -> EmbeddingResult:
        """Embed ``inputs`` with batching and partial-failure retries.

        Args:
            inputs: Texts or field mappings to embed.
            options: Embedding options.

        Returns:
            EmbeddingResult with one vector per input.

        Raises:
            ConfigurationError: If the provider is not configured.
        """
        options = options or EmbeddingOptions()
        if not inputs:
            return EmbeddingResult(model=self.resolve_model(options))

        self.ensure_configured()
        self.validate_options(options)
        settings = get_settings().embedding
        return await run_batches(
            self,
            inputs,
            options,
            executor=RetryingBatchExecutor.from_settings(settings),
            max_concurrency=settings.max_concurrency,
        )

    async def close(self) -> None:
        """Release any resources held by the provider."""
        return None


class HTTPEmbeddingProvider(EmbeddingProvider):
    """Provider speaking a JSON-over-HTTP ``/embeddings`` API.

    Subclasses build the request body; this class owns the HTTP client,
    authentication and failure classification.
    """

    def __init__(
        self,
        api_key: SecretStr | None,
        base_url: str,
        batch_size: int,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the HTTP provider.

        Args:
            api_key: Bearer token for the API.
            base_url: API base URL, without the ``/embeddings`` suffix.
            batch_size: Maximum inputs per request.
            timeout: Request timeout in seconds. Defaults to settings.
            client: HTTP client. Creates new one if not provided.
        """
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._batch_size = batch_size
        if timeout is None:
            timeout = get_settings().embedding.timeout
        self._timeout = timeout
        self._client = client
        self._owns_client = client is None

    @property
    def batch_size(self) -> int:
        """Maximum inputs per request."""
        return self._batch_size

    @property
    def url(self) -> str:
        """Embeddings endpoint URL."""
        return f"{self._base_url}/embeddings"

    def ensure_configured(self) -> None:
        """Raise ConfigurationError when no API key is set."""
        if self._api_key is None or not self._api_key.get_secret_value():
            env_var = f"{self.name.upper()}_API_KEY"
            raise ConfigurationError(
                f"{env_var} is not set in environment variables",
                details={"provider": self.name, "env_var": env_var},
            )

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if we own it."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    @abstractmethod
    def build_payload(
        self,
        items: Sequence[EmbeddingInput],
        options: EmbeddingOptions,
    ) -> dict[str, Any]:
        """Build the JSON request body for ``items``."""
        ...

    async def request(
        self,
        items: Sequence[EmbeddingInput],
        options: EmbeddingOptions,
    ) -> ProviderResponse:
        """Post one embeddings request and parse the reply."""
        self.ensure_configured()
        api_key = self._api_key.get_secret_value() if self._api_key else ""

        client = await self._get_client()
        payload = self.build_payload(items, options)
        model = payload.get("model", self.resolve_model(options))
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {api_key}",
        }

        start = time.perf_counter()
        try:
            response = await client.post(self.url, json=payload, headers=headers)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            self._track(model, start, len(items), success=False)
            logger.error(
                f"{self.name} embeddings request timed out: {e}",
                extra={"provider": self.name, "url": self.url},
            )
            raise TransientProviderError(
                f"{self.name} embeddings request timed out",
                code=ErrorCode.PROVIDER_TIMEOUT,
                details={"provider": self.name, "timeout": self._timeout},
            ) from e
        except httpx.HTTPStatusError as e:
            self._track(model, start, len(items), success=False)
            raise self._classify_status_error(e) from e
        except httpx.RequestError as e:
            self._track(model, start, len(items), success=False)
            logger.error(
                f"{self.name} embeddings request error: {e}",
                extra={"provider": self.name, "url": self.url},
            )
            raise TransientProviderError(
                f"Failed to connect to {self.name} embeddings API: {e}",
                code=ErrorCode.PROVIDER_SERVICE_ERROR,
                details={"provider": self.name, "url": self.url},
            ) from e

        try:
            parsed = self.parse_response(response.json())
        except (ValueError, TypeError, PydanticValidationError) as e:
            self._track(model, start, len(items), success=False)
            logger.error(
                f"Invalid response from {self.name} embeddings API: {e}",
                extra={"provider": self.name},
            )
            raise TransientProviderError(
                f"Invalid response from {self.name} embeddings API: {e}",
                code=ErrorCode.PROVIDER_INVALID_RESPONSE,
                details={"provider": self.name, "error": str(e)},
            ) from e

        self._track(
            model,
            start,
            len(items),
            success=parsed.data is not None,
            tokens=parsed.total_tokens,
        )
        return parsed

    def parse_response(self, body: Any) -> ProviderResponse:
        """Parse ``{data: [{index, embedding}], usage: {total_tokens}}``.

        A body without a ``data`` list yields ``data=None``. Entries without a
        usable vector are dropped so their positions are requested again; the
        reply's token usage is kept.
        """
        if not isinstance(body, dict):
            raise ValueError(f"expected a JSON object, got {type(body).__name__}")

        usage = body.get("usage")
        total_tokens = 0
        if isinstance(usage, dict):
            total_tokens = usage.get("total_tokens") or 0

        data = body.get("data")
        if not isinstance(data, list):
            logger.error(
                f"No data returned from {self.name} embeddings API",
                extra={"provider": self.name},
            )
            return ProviderResponse(data=None, total_tokens=total_tokens)

        vectors: list[EmbeddingData] = []
        for item in data:
            try:
                vectors.append(self.parse_item(item))
            except (PydanticValidationError, ValueError, TypeError) as e:
                index = item.get("index") if isinstance(item, dict) else None
                logger.warning(
                    f"Skipping unusable {self.name} embedding at index {index}: {e}",
                    extra={"provider": self.name, "index": index},
                )

        return ProviderResponse(data=vectors, total_tokens=total_tokens)

    def parse_item(self, item: Any) -> EmbeddingData:
        """Validate one ``data`` entry.

        Raises:
            ValueError: If the entry has no usable vector.
        """
        if isinstance(item, dict) and "embedding" in item:
            item = {**item, "embedding": self.decode_embedding(item["embedding"])}
        return EmbeddingData.model_validate(item)

    def decode_embedding(self, value: Any) -> Any:
        """Convert a wire-encoded vector to a list of floats."""
        return value

    def _classify_status_error(self, error: httpx.HTTPStatusError) -> Exception:
        """Map an HTTP error response onto the provider error taxonomy."""
        status = error.response.status_code
        body = _response_text(error.response)
        logger.error(
            f"{self.name} embeddings request failed: {status}",
            extra={"provider": self.name, "status": status, "body": body[:500]},
        )

        lowered = body.lower()
        if status == 402 or any(m in lowered for m in INSUFFICIENT_BALANCE_MARKERS):
            return FatalProviderError(
                f"{self.name} account has insufficient balance",
                details={"provider": self.name, "status_code": status},
            )

        if status == 429:
            return TransientProviderError(
                f"{self.name} rate limit exceeded",
                code=ErrorCode.PROVIDER_RATE_LIMIT,
                details={"provider": self.name, "status_code": status},
            )

        return TransientProviderError(
            f"{self.name} embeddings API returned {status}",
            code=ErrorCode.PROVIDER_SERVICE_ERROR,
            details={"provider": self.name, "status_code": status},
        )

    def _track(
        self,
        model: str,
        start: float,
        batch_size: int,
        success: bool,
        tokens: int = 0,
    ) -> None:
        track_embedding_request(
            provider=self.name,
            model=model,
            duration=time.perf_counter() - start,
            batch_size=batch_size,
            tokens=tokens,
            success=success,
        )


def _response_text(response: httpx.Response) -> str:
    """Best-effort body text of an error response."""
    try:
        text = response.text
    except (httpx.ResponseNotRead, UnicodeDecodeError):
        return ""
    return text if isinstance(text, str) else ""
