"""
Shared configuration management for the session cache.
"""

from typing import Optional

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import CacheConfigurationError


DEFAULT_CONFIG_FILE = "package:session_cache/memcached.ini"


class CacheSettings(BaseSettings):
    """Process-level settings for memcached-backed caches.

    Every field can be overridden with a ``SESSION_CACHE_`` prefixed
    environment variable or a ``.env`` entry.
    """

    model_config = SettingsConfigDict(
        env_prefix="SESSION_CACHE_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # INI resource holding the [main] servers list
    config_file: str = Field(default=DEFAULT_CONFIG_FILE)

    # Client options; values from the INI [main] section take precedence
    connect_timeout: Optional[float] = Field(default=None)
    timeout: Optional[float] = Field(default=None)
    no_delay: bool = Field(default=False)
    use_pooling: bool = Field(default=True)
    max_pool_size: Optional[int] = Field(default=None)

    # Failover for HashClient. A failing server is retried on every call
    # (retry_timeout 0) so faults raise instead of returning placeholder
    # results; after retry_attempts failures it is left out for
    # dead_timeout seconds and calls fail fast.
    retry_attempts: int = Field(default=2, ge=0)
    retry_timeout: float = Field(default=0, ge=0)
    dead_timeout: float = Field(default=10, ge=0)


def get_settings(**overrides) -> CacheSettings:
    """Get cache settings, applying keyword overrides on top of the environment."""
    try:
        return CacheSettings(**overrides)
    except ValidationError as exc:
        raise CacheConfigurationError(
            "Invalid session cache settings",
            details={"error": str(exc)}
        ) from exc
