"""Redis-backed cache with cache-aside loading and stampede protection.

``get_or_set`` is the plain cache-aside read: on a miss every concurrent
caller runs the loader. ``get_or_set_safe`` adds a lease so that only one
caller per key runs the loader while the others wait for its result:

    no lease --SET NX--> held by X --DEL / TTL--> no lease

The caller whose SET NX succeeds becomes the loader. Everyone else polls
the cache until the value shows up or ``wait_timeout`` elapses, and then
loads it themselves. A crashed holder therefore delays waiters by at most
``wait_timeout`` and never blocks them for good.
"""

import asyncio
import json
import uuid
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Generic, Iterable, Optional, Tuple, TypeVar, Union

from redikit.core.config import settings
from redikit.core.keys import prefix_key
from redikit.core.logging import get_log_context, get_logger
from redikit.core.redis import get_redis_client
from redikit.exceptions import ConfigurationError

from .redis_lua import RELEASE_LOCK_SCRIPT

logger = get_logger(__name__)

T = TypeVar("T")

Loader = Callable[[], Awaitable[T]]

LOCK_SUFFIX = "lock"

# Marks an option the caller did not pass, so an explicit None can mean "no expiry"
_UNSET: Any = object()


@dataclass
class CacheItem(Generic[T]):
    """One entry for ``Cache.set_many``."""
    key: str
    value: T
    ttl: Optional[int] = None


def _validate_ttl(ttl: Optional[int], name: str = "ttl") -> Optional[int]:
    if ttl is not None and ttl < 1:
        raise ConfigurationError(f"{name} must be at least 1 second, got {ttl}", field=name)
    return ttl


class Cache(Generic[T]):
    """A Redis-backed cache with TTL, cache-aside loading, optional stampede
    protection and batch operations.

    Example:
        >>> cache = Cache(redis, default_ttl=300)
        >>> await cache.set("user:42", {"name": "alice"})
        >>> user = await cache.get("user:42")
        >>> user = await cache.get_or_set_safe("user:42", lambda: db.load_user(42))
    """

    def __init__(
        self,
        redis_client: Optional[Any] = None,
        prefix: Optional[str] = None,
        default_ttl: Optional[int] = _UNSET,
        lock_ttl: Optional[int] = None,
        wait_timeout: Optional[float] = None,
        retry_interval: Optional[float] = None,
        serializer: Callable[[Any], Union[str, bytes]] = json.dumps,
        deserializer: Callable[[Union[str, bytes]], Any] = json.loads,
    ) -> None:
        """Initialize the cache.

        Args:
            redis_client: Async Redis client. You manage its lifecycle. When
                omitted the shared client from ``get_redis_client()`` is used.
            prefix: Key namespace (default ``settings.cache_prefix``)
            default_ttl: TTL in seconds for ``set`` without one; None = no expiry.
                When omitted, ``settings.cache_default_ttl`` is used.
            lock_ttl: Seconds a stampede lease lives at most
            wait_timeout: Seconds a waiter polls before loading itself
            retry_interval: Seconds between waiter polls
            serializer: Turns a value into the stored string (default json.dumps)
            deserializer: Turns the stored string back into a value (default json.loads)

        Raises:
            ConfigurationError: If a duration is out of range.
        """
        self._redis = redis_client if redis_client is not None else get_redis_client()
        self.prefix = prefix if prefix is not None else settings.cache_prefix
        self.default_ttl = _validate_ttl(
            default_ttl if default_ttl is not _UNSET else settings.cache_default_ttl,
            "default_ttl",
        )
        self.lock_ttl = lock_ttl if lock_ttl is not None else settings.cache_lock_ttl
        self.wait_timeout = wait_timeout if wait_timeout is not None else settings.cache_wait_timeout
        self.retry_interval = (
            retry_interval if retry_interval is not None else settings.cache_retry_interval
        )
        self._check_lease_options(self.lock_ttl, self.wait_timeout, self.retry_interval)
        self._serialize = serializer
        self._deserialize = deserializer
        self._release_script = self._redis.register_script(RELEASE_LOCK_SCRIPT)

    @staticmethod
    def _check_lease_options(lock_ttl: int, wait_timeout: float, retry_interval: float) -> None:
        _validate_ttl(lock_ttl, "lock_ttl")
        if wait_timeout < 0:
            raise ConfigurationError("wait_timeout must not be negative", field="wait_timeout")
        if retry_interval <= 0:
            raise ConfigurationError("retry_interval must be positive", field="retry_interval")

    def _key(self, key: str) -> str:
        return prefix_key(self.prefix, key)

    def _lock_key(self, key: str) -> str:
        return f"{self._key(key)}:{LOCK_SUFFIX}"

    def _effective_ttl(self, ttl: Optional[int]) -> Optional[int]:
        return _validate_ttl(ttl) if ttl is not None else self.default_ttl

    def _load(self, raw: Any) -> Optional[T]:
        if raw is None:
            return None
        return self._deserialize(raw)

    # -- plain operations -------------------------------------------------

    async def get(self, key: str) -> Optional[T]:
        """Get a cached value. Returns None on a miss."""
        return self._load(await self._redis.get(self._key(key)))

    async def set(self, key: str, value: T, ttl: Optional[int] = None) -> None:
        """Store a value. ``ttl`` in seconds overrides ``default_ttl``."""
        effective_ttl = self._effective_ttl(ttl)
        serialized = self._serialize(value)
        if effective_ttl is not None:
            await self._redis.set(self._key(key), serialized, ex=effective_ttl)
        else:
            await self._redis.set(self._key(key), serialized)

    async def delete(self, key: str) -> bool:
        """Delete a cached value. Returns True if the key existed."""
        return int(await self._redis.delete(self._key(key))) == 1

    async def has(self, key: str) -> bool:
        """Check if a key exists in the cache."""
        return int(await self._redis.exists(self._key(key))) == 1

    # -- cache-aside ------------------------------------------------------

    async def get_or_set(self, key: str, loader: Loader, ttl: Optional[int] = None) -> T:
        """Return the cached value, or run ``loader`` on a miss and cache it.

        No stampede protection: if many callers miss at once, all of them
        run the loader. Use ``get_or_set_safe`` when that matters.
        """
        ttl = self._effective_ttl(ttl)
        cached = await self.get(key)
        if cached is not None:
            return cached
        return await self._load_and_store(key, loader, ttl)

    async def get_or_set_safe(
        self,
        key: str,
        loader: Loader,
        ttl: Optional[int] = None,
        lock_ttl: Optional[int] = None,
        wait_timeout: Optional[float] = None,
        retry_interval: Optional[float] = None,
    ) -> T:
        """Cache-aside with stampede protection.

        Only the caller that acquires the lease (SET NX EX) runs the loader;
        the others poll for its result. Loader exceptions propagate after the
        lease is released, and nothing is cached for a failed load.

        Args:
            key: Cache key
            loader: Async callable producing the value on a miss
            ttl: TTL in seconds for the cached value (default ``default_ttl``)
            lock_ttl: Seconds the lease lives at most
            wait_timeout: Seconds a waiter polls before loading itself
            retry_interval: Seconds between polls
        """
        ttl = self._effective_ttl(ttl)
        lock_ttl = lock_ttl if lock_ttl is not None else self.lock_ttl
        wait_timeout = wait_timeout if wait_timeout is not None else self.wait_timeout
        retry_interval = retry_interval if retry_interval is not None else self.retry_interval
        self._check_lease_options(lock_ttl, wait_timeout, retry_interval)

        cached = await self.get(key)
        if cached is not None:
            return cached

        lock_key = self._lock_key(key)
        token = uuid.uuid4().hex
        acquired = await self._redis.set(lock_key, token, ex=lock_ttl, nx=True)

        if acquired:
            return await self._load_as_holder(key, loader, ttl, lock_key, token)

        found, value = await self._wait_for_value(key, wait_timeout, retry_interval)
        if found:
            return value

        # The holder crashed or is slow; its lease will expire on its own
        logger.warning(
            "Timed out waiting for cache lease holder, loading directly",
            extra=get_log_context(key=lock_key, wait_timeout=wait_timeout),
        )
        return await self._load_and_store(key, loader, ttl)

    async def _load_as_holder(
        self, key: str, loader: Loader, ttl: Optional[int], lock_key: str, token: str
    ) -> T:
        logger.debug("Acquired cache lease", extra=get_log_context(key=lock_key))
        try:
            return await self._load_and_store(key, loader, ttl)
        finally:
            await self._release_script(keys=[lock_key], args=[token])

    async def _wait_for_value(
        self, key: str, wait_timeout: float, retry_interval: float
    ) -> Tuple[bool, Optional[T]]:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + wait_timeout
        while loop.time() < deadline:
            await asyncio.sleep(min(retry_interval, max(0.0, deadline - loop.time())))
            value = await self.get(key)
            if value is not None:
                return True, value
        return False, None

    async def _load_and_store(self, key: str, loader: Loader, ttl: Optional[int]) -> T:
        value = await loader()
        await self.set(key, value, ttl)
        return value

    # -- batch operations -------------------------------------------------

    async def get_many(self, keys: Iterable[str]) -> Dict[str, Optional[T]]:
        """Get multiple values in a single round trip.

        Returns a dict in input order; misses map to None.
        """
        keys = list(keys)
        if not keys:
            return {}

        pipe = self._redis.pipeline(transaction=False)
        for key in keys:
            pipe.get(self._key(key))
        results = await pipe.execute()

        return {key: self._load(raw) for key, raw in zip(keys, results)}

    async def set_many(
        self, entries: Iterable[Union[CacheItem, Tuple[str, Any], Tuple[str, Any, Optional[int]]]]
    ) -> None:
        """Set multiple values in a single round trip.

        Entries are CacheItem records or ``(key, value)`` / ``(key, value, ttl)``
        tuples. A missing ttl falls back to ``default_ttl``.
        """
        items = [entry if isinstance(entry, CacheItem) else CacheItem(*entry) for entry in entries]
        if not items:
            return

        pipe = self._redis.pipeline(transaction=False)
        for item in items:
            effective_ttl = self._effective_ttl(item.ttl)
            serialized = self._serialize(item.value)
            if effective_ttl is not None:
                pipe.set(self._key(item.key), serialized, ex=effective_ttl)
            else:
                pipe.set(self._key(item.key), serialized)
        await pipe.execute()

    async def delete_many(self, keys: Iterable[str]) -> int:
        """Delete multiple keys in a single round trip. Returns number deleted."""
        prefixed = [self._key(key) for key in keys]
        if not prefixed:
            return 0
        return int(await self._redis.delete(*prefixed))
