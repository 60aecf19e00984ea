"""Core utilities shared by redikit components."""

from redikit.core.config import Settings, settings
from redikit.core.keys import prefix_key
from redikit.core.logging import get_log_context, get_logger, setup_logging
from redikit.core.redis import close_redis_client, get_redis_client, reset_redis_client

__all__ = [
    "Settings",
    "settings",
    "prefix_key",
    "get_logger",
    "get_log_context",
    "setup_logging",
    "get_redis_client",
    "close_redis_client",
    "reset_redis_client",
]
