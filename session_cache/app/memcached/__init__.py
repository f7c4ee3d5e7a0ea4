"""
Memcached cache package.

Provides the cache manager and cache used by the security framework to keep
sessions and authorization info in memcached. One client is created per
region; caches are thin, per-request wrappers around it.
"""

from .builder import MemcachedClientBuilder
from .cache import MemcachedCache
from .manager import MemcachedCacheManager
from .registry import ClientRegistry

__all__ = [
    "ClientRegistry",
    "MemcachedCache",
    "MemcachedCacheManager",
    "MemcachedClientBuilder",
]
