"""
Cache implementation backed by a memcached client.
"""

from __future__ import annotations

from typing import Any, Collection, FrozenSet, Optional, TypeVar

from cache_shared.config import CacheSettings, get_settings
from cache_shared.errors import CacheInitializationError, CacheOperationError
from cache_shared.logging import get_logger
from ..spi import Cache
from .addresses import clean, format_address, has_text, parse_addresses
from .builder import MemcachedClientBuilder

K = TypeVar("K")
V = TypeVar("V")

# Expiry passed to memcached for entries that never expire.
NO_EXPIRY = 0


class MemcachedCache(Cache[K, V]):
    """
    Cache whose entries live in memcached.

    Keys are stored under ``str(key)``, so key types must have a stable,
    meaningful string form; no other key encoding is applied. Values are
    serialized by the client.

    ``put`` and ``remove`` return the previous value by reading before
    writing. The read and the write are separate round trips, so the
    returned value is a best-effort snapshot when other writers race on the
    same key.
    """

    def __init__(self, client: Any, name: Optional[str] = None):
        if client is None:
            raise ValueError("Client argument cannot be None.")
        self.client = client
        self.name = clean(name)
        self.logger = get_logger("session_cache.memcached.cache").bind(region=self.name)

    @classmethod
    def from_defaults(
        cls,
        name: Optional[str] = None,
        servers: Optional[str] = None,
        settings: Optional[CacheSettings] = None
    ) -> "MemcachedCache":
        """
        Build a cache over a new client with no servers, then apply name and servers.

        Invalid settings raise CacheConfigurationError and client faults raise
        CacheInitializationError.
        """
        builder = MemcachedClientBuilder.from_settings(settings or get_settings())
        cache: MemcachedCache = cls(builder.build(name))
        cache.set_cache_name(name)
        if has_text(servers):
            cache.set_cache_servers(servers)
        return cache

    def set_cache_name(self, name: Optional[str]) -> None:
        if has_text(name):
            self.name = clean(name)
            self.logger = self.logger.bind(region=self.name)

    def set_cache_servers(self, servers: str) -> None:
        """Add every endpoint in servers to the underlying client."""
        for endpoint in parse_addresses(servers):
            host, port = endpoint
            try:
                self.client.add_server(host, port)
            except Exception as e:
                self.logger.error(
                    "Adding server to memcached client failed",
                    server=format_address(endpoint),
                    servers=clean(servers),
                    error=str(e)
                )
                raise CacheInitializationError(
                    f"Unable to add memcached server [{format_address(endpoint)}]",
                    details={"region": self.name, "servers": clean(servers)}
                ) from e

    def get(self, key: Optional[K]) -> Optional[V]:
        """
        Get the value stored under key.

        Returns None when key is None, was never stored, or has expired;
        memcached does not distinguish these cases.
        """
        self.logger.debug("Getting object from cache", key=str(key))
        if key is None:
            return None
        try:
            return self.client.get(str(key))
        except Exception as e:
            raise CacheOperationError("get", str(e), details={"region": self.name, "key": str(key)}) from e

    def put(self, key: K, value: V) -> Optional[V]:
        """Store value under key without expiry and return the previous value."""
        self.logger.debug("Putting object in cache", key=str(key))
        if key is None:
            raise CacheOperationError("put", "Key cannot be None", details={"region": self.name})
        previous = self.get(key)
        try:
            stored = self.client.set(str(key), value, expire=NO_EXPIRY, noreply=False)
        except Exception as e:
            raise CacheOperationError("put", str(e), details={"region": self.name, "key": str(key)}) from e
        if not stored:
            self.logger.warning("Memcached did not store object", key=str(key))
            raise CacheOperationError("put", "value not stored", details={"region": self.name, "key": str(key)})
        return previous

    def remove(self, key: K) -> Optional[V]:
        """
        Remove the entry for key and return the value it held.

        Removing a missing key is a no-op that returns None.
        """
        self.logger.debug("Removing object from cache", key=str(key))
        if key is None:
            raise CacheOperationError("remove", "Key cannot be None", details={"region": self.name})
        previous = self.get(key)
        try:
            self.client.delete(str(key), noreply=False)
        except Exception as e:
            raise CacheOperationError("remove", str(e), details={"region": self.name, "key": str(key)}) from e
        return previous

    def clear(self) -> None:
        """
        Flush memcached without waiting for replies.

        memcached has no per-region flush: this drops every key on every
        server the client talks to, including keys of other regions.
        """
        self.logger.debug("Clearing all objects from cache")
        try:
            self.client.flush_all(noreply=True)
        except Exception as e:
            raise CacheOperationError("clear", str(e), details={"region": self.name}) from e

    # memcached cannot enumerate its keys, so the bulk views are always empty.

    def size(self) -> int:
        return 0

    def keys(self) -> FrozenSet[K]:
        return frozenset()

    def values(self) -> Collection[V]:
        return []

    def __str__(self) -> str:
        return f"Memcache [{self.name}]"

    __repr__ = __str__
