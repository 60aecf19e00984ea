"""Rate limiting middleware for Starlette and FastAPI applications.

The core RateLimiter never hides store failures. This middleware is the
caller that decides what a failure means for an HTTP request: fail open
(let it through) or fail closed (reject it).
"""

import hashlib
from typing import Callable, Optional

import redis
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from redikit.core.config import settings
from redikit.core.logging import get_log_context, get_logger
from redikit.exceptions import RateLimitExceededError
from redikit.rate_limit import RateLimiter, RateLimitResult

logger = get_logger(__name__)

# Retry-After sent when the store is down and the policy is fail-closed
FAIL_CLOSED_RETRY_AFTER = 60

MAX_API_KEY_LENGTH = 512


def default_client_key(request: Request, trust_forwarded_for: bool = False) -> str:
    """Get rate limit key for the request.

    Uses the bearer token if present, otherwise the client IP address.
    Both are hashed with SHA-256 so raw credentials and addresses never
    reach Redis.

    The first X-Forwarded-For hop is only used with ``trust_forwarded_for``.
    Enable it only behind a proxy that overwrites the header; otherwise any
    client can rotate it to get a fresh bucket.
    """
    auth = request.headers.get("Authorization", "")
    if auth.startswith("Bearer "):
        api_key = auth[7:].strip()
        # 32 hex chars (128 bits) for collision resistance
        key_hash = hashlib.sha256(api_key.encode()).hexdigest()[:32]
        return f"apikey:{key_hash}"

    forwarded = request.headers.get("X-Forwarded-For") if trust_forwarded_for else None
    if forwarded:
        client_ip = forwarded.split(",")[0].strip()
    else:
        client_ip = request.client.host if request.client else "unknown"

    ip_hash = hashlib.sha256(client_ip.encode()).hexdigest()[:32]
    return f"ip:{ip_hash}"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Middleware to enforce rate limits on requests.

    Rate limits are applied per API key if available, otherwise per IP.
    """

    def __init__(
        self,
        app: ASGIApp,
        limiter: RateLimiter,
        key_func: Optional[Callable[[Request], str]] = None,
        fail_closed: Optional[bool] = None,
        trust_forwarded_for: Optional[bool] = None,
    ):
        super().__init__(app)
        self.limiter = limiter
        self.trust_forwarded_for = (
            trust_forwarded_for
            if trust_forwarded_for is not None
            else settings.rate_limit_trust_forwarded_for
        )
        self.key_func = key_func or self._client_key
        self.fail_closed = (
            fail_closed if fail_closed is not None else settings.rate_limit_fail_closed
        )

    def _client_key(self, request: Request) -> str:
        return default_client_key(request, trust_forwarded_for=self.trust_forwarded_for)

    @staticmethod
    def _headers(result: RateLimitResult) -> dict:
        return {
            "X-RateLimit-Limit": str(result.limit),
            "X-RateLimit-Remaining": str(result.remaining),
        }

    def _reject(self, result: RateLimitResult) -> Response:
        error = RateLimitExceededError(result)
        headers = self._headers(result)
        headers["Retry-After"] = str(result.retry_after)
        return JSONResponse(
            status_code=error.status_code,
            content=error.to_response(),
            headers=headers,
        )

    async def _handle_store_failure(
        self, request: Request, call_next: RequestResponseEndpoint, error_type: str
    ) -> Response:
        """Apply the fail-open/fail-closed policy after a Redis failure."""
        if self.fail_closed:
            logger.warning(
                f"Rate limiting fail-closed triggered due to {error_type}. Request denied.",
                extra=get_log_context(path=request.url.path),
            )
            return self._reject(
                RateLimitResult(
                    allowed=False,
                    remaining=0,
                    limit=0,
                    retry_after=FAIL_CLOSED_RETRY_AFTER,
                )
            )

        logger.warning(
            f"Rate limiting fail-open triggered due to {error_type}. "
            "Request allowed without rate limit check.",
            extra=get_log_context(path=request.url.path),
        )
        return await call_next(request)

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint
    ) -> Response:
        """Process request with rate limiting."""
        auth = request.headers.get("Authorization", "")
        if auth.startswith("Bearer ") and len(auth) - 7 > MAX_API_KEY_LENGTH:
            return JSONResponse(
                status_code=400,
                content={"error": "invalid_api_key", "message": "API key too long (max 512 characters)"},
            )

        key = self.key_func(request)
        try:
            result = await self.limiter.limit(key)
        except redis.ConnectionError as e:
            logger.error(f"Redis connection failed: {e}")
            return await self._handle_store_failure(request, call_next, "connection_error")
        except redis.TimeoutError as e:
            logger.warning(f"Redis timeout: {e}")
            return await self._handle_store_failure(request, call_next, "timeout")
        except redis.RedisError as e:
            logger.error(f"Redis error: {e}")
            return await self._handle_store_failure(request, call_next, "redis_error")

        if not result.allowed:
            logger.info(
                "Request rate limited",
                extra=get_log_context(key=key, strategy=self.limiter.config.strategy),
            )
            return self._reject(result)

        response = await call_next(request)
        response.headers.update(self._headers(result))
        return response
