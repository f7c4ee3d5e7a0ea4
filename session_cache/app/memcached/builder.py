"""
Memcached client builder.

Holds the endpoint list and client options read from configuration and
produces one pymemcache HashClient per cache region.
"""

from __future__ import annotations

import configparser
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pymemcache.client.hash import HashClient
from pymemcache.serde import pickle_serde

from cache_shared.config import CacheSettings, get_settings
from cache_shared.errors import CacheConfigurationError, CacheInitializationError
from cache_shared.logging import get_logger
from .addresses import Endpoint, format_address, parse_addresses

CONFIG_SECTION_MAIN = "main"
CONFIG_PROP_SERVERS = "servers"

_FLOAT_OPTIONS = ("connect_timeout", "timeout", "retry_timeout", "dead_timeout")
_INT_OPTIONS = ("max_pool_size", "retry_attempts")
_BOOL_OPTIONS = ("no_delay", "use_pooling")


@dataclass
class MemcachedClientBuilder:
    """Builds memcached clients for a fixed list of endpoints."""

    servers: List[Endpoint] = field(default_factory=list)
    connect_timeout: Optional[float] = None
    timeout: Optional[float] = None
    no_delay: bool = False
    use_pooling: bool = True
    max_pool_size: Optional[int] = None
    retry_attempts: int = 2
    retry_timeout: float = 0
    dead_timeout: float = 10

    def __post_init__(self):
        self.servers = list(self.servers)
        self.logger = get_logger("session_cache.memcached.builder")

    @classmethod
    def from_settings(cls, settings: CacheSettings, servers: Optional[List[Endpoint]] = None) -> "MemcachedClientBuilder":
        """Create a builder using the client options from settings."""
        return cls(
            servers=servers or [],
            connect_timeout=settings.connect_timeout,
            timeout=settings.timeout,
            no_delay=settings.no_delay,
            use_pooling=settings.use_pooling,
            max_pool_size=settings.max_pool_size,
            retry_attempts=settings.retry_attempts,
            retry_timeout=settings.retry_timeout,
            dead_timeout=settings.dead_timeout,
        )

    @classmethod
    def from_ini(cls, ini: configparser.ConfigParser, settings: Optional[CacheSettings] = None) -> "MemcachedClientBuilder":
        """
        Create a builder from the [main] section of an INI document.

        ``servers`` is required. The client options ``connect_timeout``,
        ``timeout``, ``max_pool_size``, ``no_delay``, ``use_pooling``,
        ``retry_attempts``, ``retry_timeout`` and ``dead_timeout`` are
        optional and override the matching settings.
        """
        if ini.has_section(CONFIG_SECTION_MAIN):
            servers = ini.get(CONFIG_SECTION_MAIN, CONFIG_PROP_SERVERS, fallback=None)
        else:
            servers = None

        builder = cls.from_settings(settings or get_settings(), parse_addresses(servers))
        if ini.has_section(CONFIG_SECTION_MAIN):
            builder.apply_options(ini[CONFIG_SECTION_MAIN])
        return builder

    def apply_options(self, section: configparser.SectionProxy) -> None:
        """Override client options with values from an INI section."""
        try:
            for option in _FLOAT_OPTIONS:
                if section.get(option, "").strip():
                    setattr(self, option, section.getfloat(option))
            for option in _INT_OPTIONS:
                if section.get(option, "").strip():
                    setattr(self, option, section.getint(option))
            for option in _BOOL_OPTIONS:
                if section.get(option, "").strip():
                    setattr(self, option, section.getboolean(option))
        except ValueError as exc:
            raise CacheConfigurationError(
                "Invalid memcached client option",
                details={"section": section.name, "error": str(exc)}
            ) from exc

    def client_options(self) -> Dict[str, Any]:
        """Keyword arguments passed to every client built."""
        options: Dict[str, Any] = {
            "serde": pickle_serde,
            "connect_timeout": self.connect_timeout,
            "timeout": self.timeout,
            "no_delay": self.no_delay,
            "use_pooling": self.use_pooling,
            "retry_attempts": self.retry_attempts,
            "retry_timeout": self.retry_timeout,
            "dead_timeout": self.dead_timeout,
            # keys are str(key), which may hold any principal name
            "allow_unicode_keys": True,
        }
        if self.use_pooling and self.max_pool_size is not None:
            options["max_pool_size"] = self.max_pool_size
        return options

    def build(self, name: Optional[str] = None) -> HashClient:
        """Build a client spanning every configured endpoint."""
        try:
            client = HashClient(list(self.servers), **self.client_options())
        except (OSError, ValueError, TypeError) as exc:
            self.logger.error(
                "Building memcached client failed",
                region=name,
                servers=self.addresses(),
                error=str(exc)
            )
            raise CacheInitializationError(
                "Unable to build memcached client",
                details={"region": name, "servers": self.addresses(), "error": str(exc)}
            ) from exc

        self.logger.debug("Built memcached client", region=name, servers=self.addresses())
        return client

    def addresses(self) -> List[str]:
        return [format_address(endpoint) for endpoint in self.servers]
