"""Shared Redis client for components constructed without one.

Callers that manage their own connection pass ``redis_client=`` to
RateLimiter, Cache or Leaderboard and never touch this module.
"""

from typing import Any, Optional
from urllib.parse import urlsplit, urlunsplit

import redis.asyncio as aioredis

from redikit.core.config import settings
from redikit.core.logging import get_logger

logger = get_logger(__name__)

# Global client instance (singleton pattern)
_client: Optional[Any] = None


def _redact_url(url: str) -> str:
    """Drop credentials from a Redis URL before it is logged."""
    parts = urlsplit(url)
    if parts.username is None and parts.password is None:
        return url
    host = parts.hostname or ""
    if parts.port is not None:
        host = f"{host}:{parts.port}"
    return urlunsplit(parts._replace(netloc=f"***"))


def get_redis_client(redis_url: Optional[str] = None, force_new: bool = False) -> Any:
    """Get or create the process-wide async Redis client.

    The connection is lazy: nothing touches the network until the first
    command is issued.

    Args:
        redis_url: Redis connection URL. If not provided, uses settings.redis_url.
        force_new: If True, create a new client even if one exists.

    Returns:
        A ``redis.asyncio.Redis`` instance.
    """
    global _client

    if _client is not None and not force_new:
        return _client

    url = redis_url or settings.redis_url
    _client = aioredis.from_url(url)
    logger.debug("Created shared Redis client", extra={"url": _redact_url(url)})
    return _client


async def close_redis_client() -> None:
    """Close the shared client's connection pool, if one was created."""
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None


def reset_redis_client() -> None:
    """Forget the shared client without closing it.

    This is primarily useful for testing.
    """
    global _client
    _client = None
