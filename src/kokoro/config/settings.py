"""
Kokoro Application Settings

Production-grade configuration management using Pydantic Settings.
All sensitive values are loaded from environment variables.

SECURITY: Never log or expose settings containing secrets.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class JWTSettings(BaseSettings):
    """JWT verification configuration (tokens are issued elsewhere)."""

    model_config = SettingsConfigDict(env_prefix="KOKORO_JWT_")

    secret_key: SecretStr = Field(default=SecretStr("dev_jwt_secret_key_not_for_production"), description="JWT signing secret")
    algorithm: str = Field(default="HS256", description="JWT algorithm")
    user_id_claim: str = Field(default="userId", description="Claim holding the user id")


class OpenAISettings(BaseSettings):
    """OpenAI API configuration."""

    model_config = SettingsConfigDict(env_prefix="KOKORO_OPENAI_")

    api_key: SecretStr = Field(default=SecretStr(""), description="OpenAI API key")
    model: str = Field(default="gpt-4o-mini", description="Model identifier")
    max_tokens: int = Field(default=1000, ge=1, le=4096)
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)


class GeminiSettings(BaseSettings):
    """Google Gemini API configuration."""

    model_config = SettingsConfigDict(env_prefix="KOKORO_GEMINI_")

    api_key: SecretStr = Field(default=SecretStr(""), description="Gemini API key")
    model: str = Field(default="gemini-2.0-flash", description="Model identifier")


class MemUSettings(BaseSettings):
    """memU long-term memory service configuration."""

    model_config = SettingsConfigDict(env_prefix="KOKORO_MEMU_")

    api_url: str = Field(default="https://api.memu.so", description="memU API base URL")
    api_key: SecretStr = Field(default=SecretStr(""), description="memU API key")
    timeout_seconds: float = Field(default=5.0, gt=0.0, le=60.0)
    retrieve_limit: int = Field(default=5, ge=1, le=50)


class ChatSettings(BaseSettings):
    """Streaming chat pipeline configuration."""

    model_config = SettingsConfigDict(env_prefix="KOKORO_CHAT_")

    provider_order: list[Literal["gemini", "openai"]] = Field(
        default=["gemini", "openai"],
        description="Generative providers in fallback order",
    )
    max_output_tokens: int = Field(default=1000, ge=50, le=4096)
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    first_chunk_timeout_seconds: float = Field(default=15.0, gt=0.0)
    chunk_timeout_seconds: float = Field(default=30.0, gt=0.0)
    enrichment_timeout_seconds: float = Field(default=3.0, gt=0.0)
    template_chunk_delay_seconds: float = Field(default=0.04, ge=0.0, le=1.0)
    default_locale: str = Field(default="JP", description="Jurisdiction for crisis contacts")
    crisis_keywords_path: Optional[str] = Field(default=None, description="JSON keyword overrides")
    crisis_contacts_path: Optional[str] = Field(default=None, description="JSON crisis contact overrides")
    archive_retry_attempts: int = Field(default=2, ge=1, le=5)
    archive_drain_timeout_seconds: float = Field(default=5.0, ge=0.0)


class SentrySettings(BaseSettings):
    """Sentry error tracking configuration."""

    model_config = SettingsConfigDict(env_prefix="KOKORO_SENTRY_")

    dsn: str = Field(default="", description="Sentry DSN, empty disables tracking")
    traces_sample_rate: float = Field(default=0.1, ge=0.0, le=1.0)


class Settings(BaseSettings):
    """
    Main application settings.

    All configuration is loaded from environment variables with KOKORO_ prefix.
    Sensitive values use SecretStr to prevent accidental logging.

    Usage:
        settings = get_settings()
        order = settings.chat.provider_order
    """

    model_config = SettingsConfigDict(
        env_prefix="KOKORO_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    env: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment"
    )
    debug: bool = Field(default=False, description="Debug mode - NEVER enable in production")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level"
    )
    api_version: str = Field(default="v1", description="API version prefix")
    cors_origins: list[str] = Field(
        default=["http://localhost:5173"],
        description="Allowed CORS origins"
    )

    # Nested settings
    jwt: JWTSettings = Field(default_factory=JWTSettings)
    openai: OpenAISettings = Field(default_factory=OpenAISettings)
    gemini: GeminiSettings = Field(default_factory=GeminiSettings)
    memu: MemUSettings = Field(default_factory=MemUSettings)
    chat: ChatSettings = Field(default_factory=ChatSettings)
    sentry: SentrySettings = Field(default_factory=SentrySettings)

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Accept lower-case level names from the environment."""
        return v.upper() if isinstance(v, str) else v

    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.env == "production"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are only loaded once.
    For testing, use dependency injection to override.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
