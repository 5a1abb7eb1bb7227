"""Configuration management with Pydantic Settings.

Environment variables are loaded from:
1. Environment variables (highest priority)
2. .env file (development)
3. Defaults (lowest priority)
"""

from datetime import timedelta
from enum import Enum
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Deployment environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class LogLevel(str, Enum):
    """Logging level."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Logging format."""

    JSON = "json"
    TEXT = "text"


class RedisSettings(BaseSettings):
    """Redis connection and namespace configuration."""

    model_config = SettingsConfigDict(env_prefix="REDIS_")

    host: str = Field(default="localhost", description="Redis host")
    port: int = Field(default=6379, description="Redis port")
    password: str | None = Field(default=None, description="Redis password")
    db: int = Field(default=0, description="Redis database number")
    key_prefix: str = Field(
        default="",
        description="Namespace prepended to every key (e.g. 'myapp:')",
    )
    default_ttl_seconds: int = Field(
        default=24 * 60 * 60,
        description="TTL applied by set/hset when no expiration is given",
    )
    socket_timeout: float | None = Field(
        default=None,
        description="Socket timeout in seconds (None = client default)",
    )

    @field_validator("default_ttl_seconds")
    @classmethod
    def validate_default_ttl(cls, v: int) -> int:
        """Redis rejects non-positive expirations."""
        if v < 1:
            raise ValueError("default_ttl_seconds must be at least 1")
        return v

    @property
    def url(self) -> str:
        """Build Redis URL."""
        if self.password:
            return f"redis://:{self.password}@{self.host}:{self.port}/{self.db}"
        return f"redis://{self.host}:{self.port}/{self.db}"

    @property
    def default_ttl(self) -> timedelta:
        return timedelta(seconds=self.default_ttl_seconds)


class Settings(BaseSettings):
    """Main application settings.

    All settings can be overridden via environment variables.
    For nested settings, use the appropriate prefix (e.g., REDIS_HOST).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = Field(default="nsredis", description="Application name")
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        alias="ENV",
        description="Deployment environment",
    )

    # Logging configuration
    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")
    log_format: LogFormat = Field(default=LogFormat.JSON, description="Logging format")

    redis: RedisSettings = Field(default_factory=RedisSettings)

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == Environment.DEVELOPMENT


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses LRU cache to avoid re-parsing environment variables.
    """
    return Settings()
