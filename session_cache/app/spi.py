"""
Cache contracts of the host security framework.

The framework asks a CacheManager for named caches and talks to them through
the Cache interface. Managers that own resources also implement the
Initializable/Destroyable lifecycle hooks, which the framework calls at
startup and shutdown.
"""

from abc import ABC, abstractmethod
from typing import Collection, Generic, Optional, Set, TypeVar

K = TypeVar("K")
V = TypeVar("V")


class Cache(ABC, Generic[K, V]):
    """Key/value cache used for sessions and authorization info."""

    @abstractmethod
    def get(self, key: Optional[K]) -> Optional[V]:
        """Return the value stored under key, or None."""

    @abstractmethod
    def put(self, key: K, value: V) -> Optional[V]:
        """Store value under key and return the previous value, if any."""

    @abstractmethod
    def remove(self, key: K) -> Optional[V]:
        """Remove key and return the value it held, if any."""

    @abstractmethod
    def clear(self) -> None:
        """Remove every entry, leaving the cache usable."""

    @abstractmethod
    def size(self) -> int:
        """Number of entries."""

    @abstractmethod
    def keys(self) -> Set[K]:
        """Snapshot of the keys."""

    @abstractmethod
    def values(self) -> Collection[V]:
        """Snapshot of the values."""


class CacheManager(ABC):
    """Hands out named caches."""

    @abstractmethod
    def get_cache(self, name: str) -> Cache:
        """Return the cache for name, creating it if needed."""


class Initializable(ABC):
    """Component with an explicit initialization step."""

    @abstractmethod
    def init(self) -> None:
        """Initialize the component."""


class Destroyable(ABC):
    """Component that releases resources on shutdown."""

    @abstractmethod
    def destroy(self) -> None:
        """Release resources held by the component."""
