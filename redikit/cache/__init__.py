"""Redis cache with cache-aside loading and stampede protection."""

from .cache import Cache, CacheItem
from .redis_lua import RELEASE_LOCK_SCRIPT

__all__ = [
    "Cache",
    "CacheItem",
    "RELEASE_LOCK_SCRIPT",
]
