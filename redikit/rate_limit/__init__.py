"""Distributed rate limiting backed by Redis.

Three strategies share one interface: fixed window (INCR + EXPIRE), sliding
window (sorted set log in a Lua script) and token bucket (hash state in a
Lua script).
"""

from .limiter import RateLimiter, parse_config
from .models import (
    FixedWindowConfig,
    RateLimiterConfig,
    RateLimitResult,
    SlidingWindowConfig,
    TokenBucketConfig,
)
from .redis_lua import SLIDING_WINDOW_SCRIPT, TOKEN_BUCKET_SCRIPT
from .strategies import (
    FixedWindowStrategy,
    RateLimitStrategy,
    SlidingWindowStrategy,
    TokenBucketStrategy,
)

__all__ = [
    "RateLimiter",
    "parse_config",
    "RateLimitResult",
    "RateLimiterConfig",
    "FixedWindowConfig",
    "SlidingWindowConfig",
    "TokenBucketConfig",
    "RateLimitStrategy",
    "FixedWindowStrategy",
    "SlidingWindowStrategy",
    "TokenBucketStrategy",
    "SLIDING_WINDOW_SCRIPT",
    "TOKEN_BUCKET_SCRIPT",
]
