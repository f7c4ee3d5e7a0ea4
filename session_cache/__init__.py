"""
Memcached-backed session and authorization cache.

Lets a security framework keep its session/authorization cache in a
memcached cluster instead of process memory.

Structure:
- app.spi: Cache, CacheManager and lifecycle contracts of the host framework.
- app.memcached: Client builder, region registry, cache manager and adapter.
"""

from .app.memcached import MemcachedCache, MemcachedCacheManager

__all__ = ["MemcachedCache", "MemcachedCacheManager"]
