"""Application configuration using Pydantic Settings.

All configuration is loaded from environment variables or a local `.env` file.
No secrets are hardcoded.
"""

from enum import Enum
from functools import lru_cache

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Application environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class JinaSettings(BaseSettings):
    """Jina embeddings API configuration."""

    model_config = SettingsConfigDict(
        env_prefix="JINA_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_key: SecretStr | None = Field(
        default=None,
        description="Jina API key",
    )
    base_url: str = Field(
        default="https://api.jina.ai/v1",
        description="Jina API base URL",
    )
    batch_size: int = Field(
        default=128,
        ge=1,
        description="Maximum inputs per embeddings request",
    )


class OpenAISettings(BaseSettings):
    """OpenAI (or OpenAI-compatible) embeddings API configuration."""

    model_config = SettingsConfigDict(
        env_prefix="OPENAI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_key: SecretStr | None = Field(
        default=None,
        description="OpenAI API key",
    )
    base_url: str = Field(
        default="https://api.openai.com/v1",
        description="OpenAI API base URL",
    )
    batch_size: int = Field(
        default=1000,
        ge=1,
        description="Maximum inputs per embeddings request",
    )


class EmbeddingSettings(BaseSettings):
    """Embedding client behaviour shared by all providers."""

    model_config = SettingsConfigDict(
        env_prefix="EMBEDDING_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    default_model: str = Field(
        default="jina-embeddings-v3",
        description="Model used when a request does not name one",
    )
    max_retries: int = Field(
        default=3,
        ge=1,
        description="Attempts per batch before falling back to placeholders",
    )
    retry_backoff: float = Field(
        default=1.0,
        ge=0.0,
        description="Seconds to wait after a failed attempt",
    )
    timeout: float = Field(
        default=60.0,
        description="Per-request timeout in seconds",
    )
    max_concurrency: int = Field(
        default=1,
        ge=1,
        description="Batches processed concurrently (1 = sequential)",
    )


class Settings(BaseSettings):
    """Main application settings.

    Aggregates all configuration sections.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application settings
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )

    # Nested settings
    embedding: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    jina: JinaSettings = Field(default_factory=JinaSettings)
    openai: OpenAISettings = Field(default_factory=OpenAISettings)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings instance loaded from environment.
    """
    return Settings()
