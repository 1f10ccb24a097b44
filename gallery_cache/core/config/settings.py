#!/usr/bin/env python3
"""
Centralized Configuration Module using Pydantic Settings

This module provides type-safe, environment-based configuration for the
gallery API and its response cache. All configuration is centralized here to
ensure consistency across modules.

Architectural Decision: Pydantic Settings for type safety and validation
- Environment variable loading with .env support
- Type validation at startup (fail fast on misconfiguration)
- Environment names shared with the existing gallery deployment
  (REDIS_URL, CACHE_TTL_DEFAULT, CACHE_MAX_MEMORY_ITEMS)
- Easy testing: pass overrides straight to the constructor
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CacheSettings(BaseSettings):
    """
    Response/data cache configuration.

    STAGE-0.1: Cache tier configuration

    L1 (memory) is always on. L2 (Redis) is optional and only used when
    enabled and a connection URL is configured.
    """

    CACHE_TTL_DEFAULT: int = Field(default=300, ge=0, description="Default entry TTL in seconds")
    CACHE_MAX_MEMORY_ITEMS: int = Field(default=10000, ge=1, description="L1 population bound")
    CACHE_CLEANUP_INTERVAL: int = Field(default=60, ge=1, description="Sweeper period in seconds")
    CACHE_REDIS_ENABLED: bool = Field(default=False, description="Use the Redis tier")
    CACHE_KEY_NAMESPACE: str = Field(default="gallery:cache", description="Redis key namespace")
    CACHE_SHORT_TTL: int = Field(default=60, ge=0, description="Short preset TTL (volatile listings)")
    CACHE_LONG_TTL: int = Field(default=1800, ge=0, description="Long preset TTL (near-static lookups)")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class RedisSettings(BaseSettings):
    """
    Redis connection configuration for the distributed cache tier.

    STAGE-0.2: Redis connection configuration

    Architectural Decision: short, hard timeouts
    - Every cache round trip is bounded (default 100ms) so an unreachable
      Redis slows requests by at most one timeout, never stalls them
    - Administrative scans (clear / pattern invalidation) get a longer bound
    """

    REDIS_URL: str | None = Field(default=None, description="Redis connection URL")
    REDIS_TIMEOUT_MS: int = Field(default=100, ge=1, description="Per-operation timeout (ms)")
    REDIS_SCAN_TIMEOUT: float = Field(default=5.0, gt=0, description="Scan operation timeout (s)")
    REDIS_MAX_CONNECTIONS: int = Field(default=50, ge=1, description="Connection pool size")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class LoggingSettings(BaseSettings):
    """
    Logging configuration for structured logging.

    STAGE-L: Logging configuration
    """

    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json", description="Log output format")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class ApplicationSettings(BaseSettings):
    """
    General application settings.

    STAGE-0: Application initialization
    """

    ENVIRONMENT: Literal["development", "test", "staging", "production"] = Field(
        default="development",
        description="Application environment"
    )
    APP_NAME: str = Field(default="Gallery API", description="Application name")
    APP_VERSION: str = Field(default="1.0.0", description="Application version")
    API_HOST: str = Field(default="0.0.0.0", description="API host")
    API_PORT: int = Field(default=3000, description="API port")
    API_BASE_PATH: str = Field(default="/api", description="Prefix for all API routers")
    CORS_ORIGINS: list[str] = Field(default=["*"], description="Allowed CORS origins")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class Settings(BaseSettings):
    """
    Main settings class that aggregates all configuration sections.

    STAGE-0: Centralized configuration initialization

    Usage:
        from gallery_cache.core.config.settings import get_settings

        settings = get_settings()
        ttl = settings.cache.CACHE_TTL_DEFAULT
        redis_url = settings.redis.REDIS_URL

    Tests build isolated instances directly:

        settings = Settings(CACHE_MAX_MEMORY_ITEMS=3, REDIS_URL=None)
    """

    # Cache settings
    CACHE_TTL_DEFAULT: int = Field(default=300, ge=0, description="Default entry TTL in seconds")
    CACHE_MAX_MEMORY_ITEMS: int = Field(default=10000, ge=1, description="L1 population bound")
    CACHE_CLEANUP_INTERVAL: int = Field(default=60, ge=1, description="Sweeper period in seconds")
    CACHE_REDIS_ENABLED: bool | None = Field(
        default=None,
        description="Use the Redis tier (unset: enabled when REDIS_URL is set)"
    )
    CACHE_KEY_NAMESPACE: str = Field(default="gallery:cache", description="Redis key namespace")
    CACHE_SHORT_TTL: int = Field(default=60, ge=0, description="Short preset TTL (volatile listings)")
    CACHE_LONG_TTL: int = Field(default=1800, ge=0, description="Long preset TTL (near-static lookups)")

    # Redis settings
    REDIS_URL: str | None = Field(default=None, description="Redis connection URL")
    REDIS_TIMEOUT_MS: int = Field(default=100, ge=1, description="Per-operation timeout (ms)")
    REDIS_SCAN_TIMEOUT: float = Field(default=5.0, gt=0, description="Scan operation timeout (s)")
    REDIS_MAX_CONNECTIONS: int = Field(default=50, ge=1, description="Connection pool size")

    # Logging settings
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json", description="Log output format")

    # Application settings
    ENVIRONMENT: Literal["development", "test", "staging", "production"] = Field(
        default="development",
        description="Application environment"
    )
    APP_NAME: str = Field(default="Gallery API", description="Application name")
    APP_VERSION: str = Field(default="1.0.0", description="Application version")
    API_HOST: str = Field(default="0.0.0.0", description="API host")
    API_PORT: int = Field(default=3000, description="API port")
    API_BASE_PATH: str = Field(default="/api", description="Prefix for all API routers")
    CORS_ORIGINS: list[str] = Field(default=["*"], description="Allowed CORS origins")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    @property
    def distributed_enabled(self) -> bool:
        """Whether the Redis tier should be used (explicit flag wins over REDIS_URL presence)."""
        if self.CACHE_REDIS_ENABLED is None:
            return bool(self.REDIS_URL)
        return self.CACHE_REDIS_ENABLED and bool(self.REDIS_URL)

    # Nested configuration views
    @property
    def cache(self) -> 'CacheSettings':
        """Get cache settings."""
        return CacheSettings(
            CACHE_TTL_DEFAULT=self.CACHE_TTL_DEFAULT,
            CACHE_MAX_MEMORY_ITEMS=self.CACHE_MAX_MEMORY_ITEMS,
            CACHE_CLEANUP_INTERVAL=self.CACHE_CLEANUP_INTERVAL,
            CACHE_REDIS_ENABLED=self.distributed_enabled,
            CACHE_KEY_NAMESPACE=self.CACHE_KEY_NAMESPACE,
            CACHE_SHORT_TTL=self.CACHE_SHORT_TTL,
            CACHE_LONG_TTL=self.CACHE_LONG_TTL,
        )

    @property
    def redis(self) -> 'RedisSettings':
        """Get Redis settings."""
        return RedisSettings(
            REDIS_URL=self.REDIS_URL,
            REDIS_TIMEOUT_MS=self.REDIS_TIMEOUT_MS,
            REDIS_SCAN_TIMEOUT=self.REDIS_SCAN_TIMEOUT,
            REDIS_MAX_CONNECTIONS=self.REDIS_MAX_CONNECTIONS,
        )

    @property
    def logging(self) -> 'LoggingSettings':
        """Get logging settings."""
        return LoggingSettings(
            LOG_LEVEL=self.LOG_LEVEL,
            LOG_FORMAT=self.LOG_FORMAT,
        )

    @property
    def app(self) -> 'ApplicationSettings':
        """Get application settings."""
        return ApplicationSettings(
            ENVIRONMENT=self.ENVIRONMENT,
            APP_NAME=self.APP_NAME,
            APP_VERSION=self.APP_VERSION,
            API_HOST=self.API_HOST,
            API_PORT=self.API_PORT,
            API_BASE_PATH=self.API_BASE_PATH,
            CORS_ORIGINS=self.CORS_ORIGINS,
        )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"  # Ignore extra environment variables
    )


# Global settings instance (lazily created)
_settings: Settings | None = None


def get_settings() -> Settings:
    """
    Get the global settings instance.

    STAGE-0.3: Settings initialization

    Settings are read once per process. The cache itself is NOT a global:
    the application factory builds one CacheManager per app from these
    settings and injects it where needed.

    Returns:
        Settings: Global settings instance
    """
    global _settings

    if _settings is None:
        _settings = Settings()

    return _settings


def reload_settings() -> Settings:
    """
    Reload settings (useful for testing).

    Returns:
        Settings: New settings instance
    """
    global _settings
    _settings = Settings()
    return _settings
