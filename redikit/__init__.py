"""Redis coordination primitives: rate limiting, stampede-safe caching and
leaderboards for many uncoordinated callers sharing one Redis.

Only the rate limiter, cache and leaderboard are exported here; the HTTP
middleware lives in ``redikit.middleware``.
"""

from redikit.cache import Cache, CacheItem
from redikit.exceptions import ConfigurationError, RateLimitExceededError, RedikitError
from redikit.leaderboard import Leaderboard, LeaderboardEntry, SortOrder
from redikit.rate_limit import (
    FixedWindowConfig,
    RateLimiter,
    RateLimiterConfig,
    RateLimitResult,
    SlidingWindowConfig,
    TokenBucketConfig,
)

__version__ = "0.1.0"

__all__ = [
    "RateLimiter",
    "RateLimitResult",
    "RateLimiterConfig",
    "FixedWindowConfig",
    "SlidingWindowConfig",
    "TokenBucketConfig",
    "Cache",
    "CacheItem",
    "Leaderboard",
    "LeaderboardEntry",
    "SortOrder",
    "RedikitError",
    "ConfigurationError",
    "RateLimitExceededError",
]
