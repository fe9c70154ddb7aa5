"""Application configuration using Pydantic Settings.

This module provides type-safe configuration management with automatic
environment variable loading and validation.
"""

import logging

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class MongoConfig(BaseSettings):
    """MongoDB configuration settings."""

    model_config = SettingsConfigDict(
        env_prefix="MONGO_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    uri: str = Field(..., description="MongoDB connection URI")
    db_name: str = Field(default="summarizer", description="Database name")
    timeout_ms: int = Field(
        default=5000,
        description="Server selection, connect and socket timeout in milliseconds",
    )

    # Collection names
    users_collection: str = Field(
        default="users",
        description="Collection for dashboard user accounts",
    )
    api_keys_collection: str = Field(
        default="api_keys",
        description="Collection for API keys and their usage counters",
    )


class AuthConfig(BaseSettings):
    """Session token and password hashing settings."""

    model_config = SettingsConfigDict(
        env_prefix="AUTH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    jwt_secret: str = Field(..., description="Secret used to sign session tokens")
    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")
    token_ttl_days: int = Field(default=7, description="Session token lifetime")
    bcrypt_rounds: int = Field(default=10, description="bcrypt cost factor")
    min_password_length: int = Field(default=6, description="Minimum password length")


class GitHubConfig(BaseSettings):
    """GitHub content retrieval settings."""

    model_config = SettingsConfigDict(
        env_prefix="GITHUB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_base: str = Field(
        default="https://api.github.com", description="GitHub REST API base URL"
    )
    raw_base: str = Field(
        default="https://raw.githubusercontent.com",
        description="Base URL for raw file content",
    )
    token: str | None = Field(
        default=None, description="Optional token for higher GitHub rate limits"
    )
    timeout_seconds: float = Field(default=10.0, description="HTTP request timeout")


class LLMConfig(BaseSettings):
    """Language model settings.

    Anthropic is used when its key is set, otherwise any OpenAI-compatible
    endpoint.
    """

    model_config = SettingsConfigDict(
        env_prefix="LLM_",
        populate_by_name=True,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    anthropic_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("LLM_ANTHROPIC_API_KEY", "ANTHROPIC_API_KEY"),
        description="Anthropic API key, preferred when set",
    )
    anthropic_model: str = Field(
        default="claude-3-5-haiku-20241022", description="Anthropic model name"
    )
    api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("LLM_API_KEY", "OPENAI_API_KEY"),
        description="OpenAI-compatible provider API key",
    )
    base_url: str | None = Field(
        default=None, description="Override for OpenAI-compatible providers"
    )
    model: str = Field(default="gpt-4o", description="OpenAI model name")
    temperature: float = Field(default=0.0, description="Sampling temperature")
    max_tokens: int = Field(default=1000, description="Max tokens in the reply")
    timeout_seconds: float = Field(default=60.0, description="Model call timeout")
    max_readme_chars: int = Field(
        default=20_000, description="README characters passed to the model"
    )

    @property
    def provider(self) -> str | None:
        """``"anthropic"``, ``"openai"`` or None when no key is configured."""
        if self.anthropic_api_key and self.anthropic_api_key.strip():
            return "anthropic"
        if self.api_key and self.api_key.strip():
            return "openai"
        return None


class AppConfig(BaseSettings):
    """General application configuration settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    api_key_header_name: str = Field(
        default="X-API-Key",
        description="HTTP header name used to pass the API key",
    )
    api_key_prefix: str = Field(
        default="myapp_", description="Prefix for generated API keys"
    )
    default_rate_limit: int = Field(
        default=100, description="Usage ceiling given to new API keys"
    )


class Settings(BaseSettings):
    """Main application settings combining all configuration sections."""

    # Load from .env
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    mongo: MongoConfig = Field(default_factory=MongoConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    github: GitHubConfig = Field(default_factory=GitHubConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    app: AppConfig = Field(default_factory=AppConfig)

    def configure_logging(self) -> None:
        """Configure application logging based on settings."""
        numeric_level = getattr(logging, self.app.log_level.upper(), None)
        if not isinstance(numeric_level, int):
            numeric_level = logging.INFO

        logging.basicConfig(
            level=numeric_level,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        # Quiet noisy third-party loggers
        for noisy_logger in (
            "pymongo",
            "pymongo.pool",
            "pymongo.topology",
            "urllib3",
            "httpx",
            "openai",
            "anthropic",
        ):
            logging.getLogger(noisy_logger).setLevel(logging.WARNING)


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create the global settings instance.

    Returns:
        Settings instance with loaded configuration.
    """
    global _settings
    if _settings is None:
        _settings = Settings()
        _settings.configure_logging()
    return _settings
