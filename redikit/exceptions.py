"""Custom exceptions for redikit.

Store failures (``redis.exceptions.RedisError`` and subclasses) are not
wrapped: they reach the caller unchanged so the caller decides whether to
fail open or closed.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from redikit.rate_limit.models import RateLimitResult


class RedikitError(Exception):
    """Base class for redikit exceptions with an HTTP status code.

    The status code lets web frameworks map library errors to responses
    without a lookup table.
    """
    status_code: int = 500

    def __init__(self, message: str = "redikit error"):
        self.message = message
        super().__init__(message)


class ConfigurationError(RedikitError):
    """Raised at construction time for an invalid or unknown configuration.

    Never raised from ``limit``/``peek``/``reset`` or cache calls.
    """
    status_code = 500

    def __init__(self, message: str = "Invalid configuration", field: str | None = None):
        self.field = field
        super().__init__(message)


class RateLimitExceededError(RedikitError):
    """Raised by callers that prefer an exception over ``allowed=False``.

    The rate limiter itself returns rejections as results; the HTTP
    middleware uses this type to build its 429 body.
    Maps to HTTP 429 Too Many Requests.
    """
    status_code = 429

    def __init__(self, result: "RateLimitResult", detail: str | None = None):
        self.result = result
        message = detail or (
            f"Rate limit exceeded. Retry after {result.retry_after} seconds."
        )
        super().__init__(message)

    def to_response(self) -> dict:
        """Convert to API response format."""
        return {
            "error": "rate_limit_exceeded",
            "message": self.message,
            "limit": self.result.limit,
            "remaining": self.result.remaining,
            "retry_after": self.result.retry_after,
        }
