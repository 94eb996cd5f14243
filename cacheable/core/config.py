"""
Cacheable Configuration

Configuration management with environment variable support.
Provides validated defaults for the store connection and cache operations.
"""

from functools import lru_cache
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..constants import (
    DEFAULT_CACHE_TIMEOUT,
    DEFAULT_DELAYED_DOUBLE_DELETION,
    DEFAULT_DOUBLE_DELETION_DELAY_MS,
    PENETRATION_TTL,
)

# Load environment variables from .env file
load_dotenv()


class Settings(BaseSettings):
    """Cache settings with validation and safe defaults."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=True, extra="ignore"
    )

    # Store selection
    CACHE_STORE_TYPE: Literal["memory", "redis"] = Field(
        default="memory", description="Backing store implementation"
    )
    CACHE_KEY_PREFIX: str = Field(
        default="", max_length=64, description="Prefix prepended to every stored key"
    )

    # Redis configuration
    REDIS_URL: str = Field(
        default="redis://localhost:6379", description="Redis connection URL"
    )
    REDIS_MAX_CONNECTIONS: int = Field(
        default=10, ge=1, le=50, description="Redis connection pool size"
    )
    REDIS_CONNECTION_TIMEOUT: float = Field(
        default=5.0, gt=0, le=60, description="Socket connect timeout in seconds"
    )
    REDIS_OPERATION_TIMEOUT: float = Field(
        default=5.0, gt=0, le=60, description="Socket read/write timeout in seconds"
    )

    # Cache operation defaults
    CACHE_DEFAULT_TIMEOUT: int = Field(
        default=DEFAULT_CACHE_TIMEOUT,
        ge=1,
        le=86400 * 365,
        description="TTL in seconds for cached results",
    )
    CACHE_DELAYED_DOUBLE_DELETION: bool = Field(
        default=DEFAULT_DELAYED_DOUBLE_DELETION,
        description="Schedule a second delete after evictions",
    )
    CACHE_DOUBLE_DELETION_DELAY_MS: int = Field(
        default=DEFAULT_DOUBLE_DELETION_DELAY_MS,
        ge=0,
        le=600_000,
        description="Delay before the second delete in milliseconds",
    )
    CACHE_PENETRATION_TTL: int = Field(
        default=PENETRATION_TTL,
        ge=1,
        le=60,
        description="TTL in seconds for cached empty results",
    )

    LOG_LEVEL: str = Field(default="INFO", description="Logging level")

    @field_validator("REDIS_URL")
    @classmethod
    def validate_redis_url(cls, v):
        """Validate Redis URL scheme."""
        if not v.startswith(("redis://", "rediss://", "unix://")):
            raise ValueError("REDIS_URL must use redis://, rediss:// or unix://")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed:
            raise ValueError(f"LOG_LEVEL must be one of: {allowed}")
        return v.upper()

    @model_validator(mode="after")
    def validate_penetration_ttl(self) -> "Settings":
        """The empty-result TTL must stay shorter than the regular TTL."""
        if self.CACHE_PENETRATION_TTL >= self.CACHE_DEFAULT_TIMEOUT:
            raise ValueError(
                "CACHE_PENETRATION_TTL must be shorter than CACHE_DEFAULT_TIMEOUT"
            )
        return self


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Create global settings instance
settings = get_settings()
