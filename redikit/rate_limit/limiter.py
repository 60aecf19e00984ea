"""RateLimiter facade.

Selects exactly one strategy at construction and forwards calls to it with
a namespaced key. The strategy choice is fixed for the limiter's lifetime.
"""

from typing import Any, Optional

from pydantic import TypeAdapter, ValidationError

from redikit.core.config import settings
from redikit.core.keys import prefix_key
from redikit.core.logging import get_log_context, get_logger
from redikit.core.redis import get_redis_client
from redikit.exceptions import ConfigurationError
from redikit.rate_limit.models import (
    FixedWindowConfig,
    RateLimiterConfig,
    RateLimitResult,
    SlidingWindowConfig,
    TokenBucketConfig,
)
from redikit.rate_limit.strategies import (
    FixedWindowStrategy,
    RateLimitStrategy,
    SlidingWindowStrategy,
    TokenBucketStrategy,
)

logger = get_logger(__name__)

_config_adapter: TypeAdapter = TypeAdapter(RateLimiterConfig)


def parse_config(config: Any = None, **options: Any) -> RateLimiterConfig:
    """Validate a strategy configuration.

    Accepts a config model, a mapping, or keyword options such as
    ``strategy="fixed-window", limit=100, window=60``.

    Raises:
        ConfigurationError: If the strategy is unknown or a value is invalid.
    """
    if isinstance(config, (FixedWindowConfig, SlidingWindowConfig, TokenBucketConfig)):
        if options:
            raise ConfigurationError("Pass either a config object or keyword options, not both")
        return config
    data = dict(config or {})
    data.update(options)
    try:
        return _config_adapter.validate_python(data)
    except ValidationError as e:
        error = e.errors()[0]
        field = ".".join(str(part) for part in error.get("loc", ())) or None
        raise ConfigurationError(
            f"Invalid rate limiter configuration: {error['msg']}", field=field
        ) from e


class RateLimiter:
    """A Redis-backed rate limiter supporting fixed-window, sliding-window
    and token-bucket strategies.

    Example:
        >>> limiter = RateLimiter(redis, strategy="sliding-window", limit=100, window=60)
        >>> result = await limiter.limit("user:42")
        >>> if not result.allowed:
        ...     ...  # reject, retry after result.retry_after seconds
    """

    def __init__(
        self,
        redis_client: Optional[Any] = None,
        config: Any = None,
        *,
        prefix: Optional[str] = None,
        **options: Any,
    ) -> None:
        """Initialize the limiter and its strategy.

        Args:
            redis_client: Async Redis client. You manage its lifecycle. When
                omitted the shared client from ``get_redis_client()`` is used.
            config: Strategy config model or mapping with a ``strategy`` key
            prefix: Key namespace (default ``settings.rate_limit_prefix``)
            **options: Strategy options when ``config`` is not given

        Raises:
            ConfigurationError: On an unknown strategy or invalid values.
        """
        self.config = parse_config(config, **options)
        self.prefix = prefix if prefix is not None else settings.rate_limit_prefix
        self._redis = redis_client if redis_client is not None else get_redis_client()
        self._strategy = self._build_strategy(self.config)
        logger.debug(
            "Rate limiter initialized",
            extra=get_log_context(strategy=self.config.strategy, prefix=self.prefix),
        )

    def _build_strategy(self, config: RateLimiterConfig) -> RateLimitStrategy:
        if isinstance(config, FixedWindowConfig):
            return FixedWindowStrategy(self._redis, config.limit, config.window)
        if isinstance(config, SlidingWindowConfig):
            return SlidingWindowStrategy(self._redis, config.limit, config.window)
        if isinstance(config, TokenBucketConfig):
            return TokenBucketStrategy(self._redis, config.capacity, config.refill_rate)
        raise ConfigurationError(f"Unknown rate limiting strategy: {config!r}", field="strategy")

    @property
    def strategy(self) -> RateLimitStrategy:
        return self._strategy

    def _key(self, key: str) -> str:
        return prefix_key(self.prefix, key)

    async def limit(self, key: str) -> RateLimitResult:
        """Check if a request is allowed and consume one unit.

        Call this on every incoming request. Rejections are returned as
        ``allowed=False``; only store failures raise.
        """
        return await self._strategy.limit(self._key(key))

    async def peek(self, key: str) -> RateLimitResult:
        """Check the current state without consuming a unit."""
        return await self._strategy.peek(self._key(key))

    async def reset(self, key: str) -> None:
        """Reset all rate limit state for a key."""
        await self._strategy.reset(self._key(key))
