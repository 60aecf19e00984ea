"""Rate limiting strategies backed by Redis.

Each strategy owns one store-resident record per key and exposes the same
three operations. The sliding window and token bucket run their whole
read-modify-write inside a Lua script; the fixed window relies on INCR.
"""

import math
import time
import uuid
from abc import ABC, abstractmethod
from typing import Any

from redikit.core.config import settings
from redikit.core.logging import get_log_context, get_logger
from redikit.rate_limit.models import (
    FIXED_WINDOW,
    SLIDING_WINDOW,
    TOKEN_BUCKET,
    RateLimitResult,
)
from redikit.rate_limit.redis_lua import SLIDING_WINDOW_SCRIPT, TOKEN_BUCKET_SCRIPT

logger = get_logger(__name__)


class RateLimitStrategy(ABC):
    """Abstract base class for rate limiting strategies.

    Keys passed in are already namespaced by the RateLimiter.
    """

    name: str = ""

    def __init__(self, redis_client: Any) -> None:
        self._redis = redis_client

    @abstractmethod
    async def limit(self, key: str) -> RateLimitResult:
        """Check whether a request is allowed and consume one unit."""

    @abstractmethod
    async def peek(self, key: str) -> RateLimitResult:
        """Report the current state without consuming anything."""

    @abstractmethod
    async def reset(self, key: str) -> None:
        """Clear all state so the next call behaves like a first call."""


class FixedWindowStrategy(RateLimitStrategy):
    """Fixed window counter.

    Each window gets its own counter key, ``<key>:<window start>``, where the
    window start is the current time floored to a multiple of the window
    length. Example with window=60: 1708617624 -> ``rl:user:42:1708617600``.

    The INCR and the EXPIRE are two separate commands. If the process dies
    between them the counter has no TTL; it is still abandoned at the next
    window boundary because the key name changes, but it stays in Redis.
    This gap is accepted rather than paying for a script on the hot path.
    """

    name = FIXED_WINDOW

    def __init__(self, redis_client: Any, limit: int, window: int) -> None:
        super().__init__(redis_client)
        self.max_requests = limit
        self.window_seconds = window

    def _window_start(self, now: float) -> int:
        return int(now // self.window_seconds) * self.window_seconds

    def _window_key(self, key: str, now: float) -> str:
        return f"{key}:{self._window_start(now)}"

    def _seconds_until_window_end(self, now: float) -> int:
        return math.ceil(self._window_start(now) + self.window_seconds - now)

    def _result(self, allowed: bool, count: int, now: float) -> RateLimitResult:
        return RateLimitResult(
            allowed=allowed,
            remaining=max(0, self.max_requests - count),
            limit=self.max_requests,
            retry_after=0 if allowed else self._seconds_until_window_end(now),
        )

    async def limit(self, key: str) -> RateLimitResult:
        now = time.time()
        window_key = self._window_key(key, now)

        # INCR creates the key at 0 before incrementing
        count = int(await self._redis.incr(window_key))
        if count == 1:
            await self._redis.expire(window_key, self.window_seconds)

        allowed = count <= self.max_requests
        if not allowed:
            logger.debug(
                "Fixed window limit reached",
                extra=get_log_context(key=window_key, strategy=self.name, count=count),
            )
        return self._result(allowed, count, now)

    async def peek(self, key: str) -> RateLimitResult:
        now = time.time()
        raw = await self._redis.get(self._window_key(key, now))
        count = int(raw) if raw is not None else 0
        return self._result(count < self.max_requests, count, now)

    async def reset(self, key: str) -> None:
        # Earlier windows expire on their own
        await self._redis.delete(self._window_key(key, time.time()))


class SlidingWindowStrategy(RateLimitStrategy):
    """Sliding window log.

    Every admitted request is a sorted set member scored by its timestamp in
    milliseconds. Pruning, counting, admission and TTL refresh happen in one
    Lua script, so concurrent callers see a single total order per key.
    """

    name = SLIDING_WINDOW

    def __init__(self, redis_client: Any, limit: int, window: int) -> None:
        super().__init__(redis_client)
        self.max_requests = limit
        self.window_seconds = window
        self._script = redis_client.register_script(SLIDING_WINDOW_SCRIPT)

    async def _run(self, key: str, consume: bool) -> tuple[bool, int]:
        now_ms = int(time.time() * 1000)
        window_start_ms = now_ms - self.window_seconds * 1000
        member = f"{now_ms}:{uuid.uuid4().hex[:12]}"
        allowed, count = await self._script(
            keys=[key],
            args=[
                window_start_ms,
                now_ms,
                self.max_requests,
                member,
                self.window_seconds,
                "1" if consume else "0",
            ],
        )
        return bool(int(allowed)), int(count)

    def _result(self, allowed: bool, count: int) -> RateLimitResult:
        # The oldest entry may sit at the very start of the window, so a full
        # window is the only safe wait bound.
        return RateLimitResult(
            allowed=allowed,
            remaining=max(0, self.max_requests - count),
            limit=self.max_requests,
            retry_after=0 if allowed else self.window_seconds,
        )

    async def limit(self, key: str) -> RateLimitResult:
        allowed, count = await self._run(key, consume=True)
        if not allowed:
            logger.debug(
                "Sliding window limit reached",
                extra=get_log_context(key=key, strategy=self.name, count=count),
            )
        return self._result(allowed, count)

    async def peek(self, key: str) -> RateLimitResult:
        allowed, count = await self._run(key, consume=False)
        return self._result(allowed, count)

    async def reset(self, key: str) -> None:
        await self._redis.delete(key)


class TokenBucketStrategy(RateLimitStrategy):
    """Token bucket.

    The bucket is a hash ``{tokens, last_refill}`` created full on first
    touch. Refill, consumption and write-back run in one Lua script. ``peek``
    computes the refilled level but writes nothing back.

    ``retry_after`` on a rejection is ``ceil(1 / refill_rate)``, the time for
    one whole token to regenerate from empty. It approximates the wait; a
    bucket holding a fractional token becomes usable sooner.
    """

    name = TOKEN_BUCKET

    def __init__(
        self,
        redis_client: Any,
        capacity: int,
        refill_rate: float,
        ttl_buffer: int | None = None,
    ) -> None:
        super().__init__(redis_client)
        self.capacity = capacity
        self.refill_rate = refill_rate
        self.ttl_buffer = ttl_buffer if ttl_buffer is not None else settings.token_bucket_ttl_buffer
        self._script = redis_client.register_script(TOKEN_BUCKET_SCRIPT)

    @property
    def ttl_seconds(self) -> int:
        """Seconds an idle bucket survives: time to refill from empty plus slack."""
        return math.ceil(self.capacity / self.refill_rate) + self.ttl_buffer

    async def _run(self, key: str, consume: bool) -> RateLimitResult:
        now_ms = int(time.time() * 1000)
        allowed, tokens = await self._script(
            keys=[key],
            args=[
                self.capacity,
                repr(float(self.refill_rate)),
                now_ms,
                "1" if consume else "0",
                self.ttl_buffer,
            ],
        )
        allowed = bool(int(allowed))
        return RateLimitResult(
            allowed=allowed,
            remaining=max(0, int(tokens)),
            limit=self.capacity,
            retry_after=0 if allowed else math.ceil(1 / self.refill_rate),
        )

    async def limit(self, key: str) -> RateLimitResult:
        result = await self._run(key, consume=True)
        if not result.allowed:
            logger.debug(
                "Token bucket empty",
                extra=get_log_context(key=key, strategy=self.name),
            )
        return result

    async def peek(self, key: str) -> RateLimitResult:
        return await self._run(key, consume=False)

    async def reset(self, key: str) -> None:
        # The next access recreates a full bucket
        await self._redis.delete(key)
