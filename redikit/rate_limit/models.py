"""Data models for rate limiting.

Strategy configurations form a closed set discriminated by ``strategy``;
the discriminant is chosen once when a RateLimiter is built.
"""

from dataclasses import dataclass
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

FIXED_WINDOW = "fixed-window"
SLIDING_WINDOW = "sliding-window"
TOKEN_BUCKET = "token-bucket"


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of a ``limit`` or ``peek`` call.

    Attributes:
        allowed: Whether the request is (or would be) admitted
        remaining: Requests left in the window, or whole tokens left in the bucket
        limit: The configured limit (or bucket capacity)
        retry_after: Seconds until a request would be allowed; 0 when allowed
    """
    allowed: bool
    remaining: int
    limit: int
    retry_after: int = 0

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "allowed": self.allowed,
            "remaining": self.remaining,
            "limit": self.limit,
            "retry_after": self.retry_after,
        }


class _StrategyConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class FixedWindowConfig(_StrategyConfig):
    """At most ``limit`` requests per aligned ``window``-second bucket."""
    strategy: Literal["fixed-window"] = FIXED_WINDOW
    limit: int = Field(gt=0)
    window: int = Field(gt=0, description="Window duration in seconds")


class SlidingWindowConfig(_StrategyConfig):
    """At most ``limit`` requests in any trailing ``window`` seconds."""
    strategy: Literal["sliding-window"] = SLIDING_WINDOW
    limit: int = Field(gt=0)
    window: int = Field(gt=0, description="Window duration in seconds")


class TokenBucketConfig(_StrategyConfig):
    """Bursts up to ``capacity``, sustained ``refill_rate`` tokens per second."""
    strategy: Literal["token-bucket"] = TOKEN_BUCKET
    capacity: int = Field(gt=0)
    refill_rate: float = Field(gt=0, description="Tokens added per second")


RateLimiterConfig = Annotated[
    Union[FixedWindowConfig, SlidingWindowConfig, TokenBucketConfig],
    Field(discriminator="strategy"),
]
