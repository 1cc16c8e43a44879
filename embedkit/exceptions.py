"""Application exception hierarchy.

All custom exceptions inherit from EmbedKitError.
Each exception has an error code for structured error handling.

Only configuration, validation and provider-resolution errors cross the
client boundary. Provider errors are raised by a single remote call and are
absorbed by the batch executor.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Error codes for structured error handling."""

    # General errors (1xxx)
    INTERNAL_ERROR = "EMB-1000"
    CONFIGURATION_ERROR = "EMB-1001"
    VALIDATION_ERROR = "EMB-1002"

    # Registry errors (2xxx)
    NO_PROVIDER = "EMB-2000"

    # Provider errors (3xxx)
    PROVIDER_ERROR = "EMB-3000"
    PROVIDER_PAYMENT_REQUIRED = "EMB-3001"
    PROVIDER_SERVICE_ERROR = "EMB-3002"
    PROVIDER_TIMEOUT = "EMB-3003"
    PROVIDER_RATE_LIMIT = "EMB-3004"
    PROVIDER_INVALID_RESPONSE = "EMB-3005"


class EmbedKitError(Exception):
    """Base exception for all embedkit errors.

    Attributes:
        message: Human-readable error message.
        code: Structured error code.
        details: Additional error context.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a serializable dictionary."""
        return {
            "error": {
                "code": self.code.value,
                "message": self.message,
                "details": self.details,
            }
        }


class ConfigurationError(EmbedKitError):
    """Configuration or environment error, such as a missing API key."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.CONFIGURATION_ERROR, details)


class ValidationError(EmbedKitError):
    """Input validation error."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.VALIDATION_ERROR, details)


class NoProviderError(EmbedKitError):
    """No registered provider supports the requested model."""

    def __init__(self, model: str, available: list[str]) -> None:
        super().__init__(
            f"No provider supports model: {model}. "
            f"Available providers: {', '.join(available)}",
            ErrorCode.NO_PROVIDER,
            {"model": model, "available_providers": available},
        )


class ProviderError(EmbedKitError):
    """A single remote embeddings call failed."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.PROVIDER_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class FatalProviderError(ProviderError):
    """Provider refused the call for a reason retrying cannot fix.

    Raised for payment-required / insufficient-balance responses.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.PROVIDER_PAYMENT_REQUIRED,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class TransientProviderError(ProviderError):
    """Network error, rate limit, server error or unusable response."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.PROVIDER_SERVICE_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)
