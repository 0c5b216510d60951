"""
Shared configuration management for the enchanted query cache.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_VERSION_KEY = "&_cacheVersion_$"


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        populate_by_name=True,
        extra="allow"
    )

    # Environment
    env: str = Field(default="local", validation_alias="CACHE_SYNC_ENV")
    log_level: str = Field(default="info", validation_alias="CACHE_SYNC_LOG_LEVEL")


class CacheSyncSettings(BaseConfig):
    """Settings for durable query persistence."""

    # Storage backend
    redis_url: str = Field(default="redis://localhost:6379/0", validation_alias="CACHE_SYNC_REDIS_URL")
    storage_key_prefix: str = Field(default="enchanted:", validation_alias="CACHE_SYNC_STORAGE_KEY_PREFIX")
    version_key: str = Field(default=DEFAULT_VERSION_KEY, validation_alias="CACHE_SYNC_VERSION_KEY")
    socket_timeout: float = Field(default=5.0, validation_alias="CACHE_SYNC_SOCKET_TIMEOUT")

    # Diagnostics
    log_cache_writes: bool = Field(default=False, validation_alias="CACHE_SYNC_LOG_CACHE_WRITES")
    enable_metrics: bool = Field(default=False, validation_alias="CACHE_SYNC_ENABLE_METRICS")
    cache_name: Optional[str] = Field(default=None, validation_alias="CACHE_SYNC_CACHE_NAME")


@lru_cache(maxsize=1)
def get_settings() -> CacheSyncSettings:
    """Load settings once from .env/environment."""
    return CacheSyncSettings()
