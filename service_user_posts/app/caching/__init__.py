"""
Gateway caching package.

Provides the in-memory cache used to reduce load on the upstream user API.
Entries live for a fixed TTL; there is no other eviction policy.
"""

from .memory_cache import Cache, MemoryCache, NullCache

__all__ = ["Cache", "MemoryCache", "NullCache"]
