"""HTTP middleware built on redikit primitives."""

from .rate_limit import RateLimitMiddleware, default_client_key

__all__ = ["RateLimitMiddleware", "default_client_key"]
