from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


_LOG_FORMATS = ("text", "structured", "json")


class Settings(BaseSettings):
    """Library settings loaded from environment variables.

    All settings can be configured via environment variables or .env file.
    Explicit constructor arguments on RateLimiter, Cache and Leaderboard
    always take precedence over these defaults.
    """

    # Redis connection used when no client is passed in
    redis_url: str = "redis://localhost:6379/0"

    # Logging settings
    log_level: str = "INFO"
    log_format: str = "text"  # text | structured | json

    # Rate limiting settings
    rate_limit_prefix: str = "rl"
    token_bucket_ttl_buffer: int = 10  # Slack added to the full-refill TTL
    rate_limit_fail_closed: bool = (
        False  # Middleware only: deny requests when Redis is unavailable
    )
    rate_limit_trust_forwarded_for: bool = (
        False  # Middleware only: key clients by X-Forwarded-For (trusted proxy required)
    )

    # Cache settings
    cache_prefix: str = "cache"
    cache_default_ttl: Optional[int] = None  # None = keys never expire
    cache_lock_ttl: int = 10  # Seconds a stampede lease is held at most
    cache_wait_timeout: float = 5.0  # Seconds a waiter polls before loading itself
    cache_retry_interval: float = 0.05  # Seconds between waiter polls

    # Leaderboard settings
    leaderboard_prefix: str = "lb"

    @field_validator("cache_default_ttl")
    @classmethod
    def validate_default_ttl(cls, v: Optional[int]) -> Optional[int]:
        """Validate default TTL is positive when set."""
        if v is not None and v < 1:
            raise ValueError("cache_default_ttl must be at least 1 second")
        return v

    @field_validator("cache_lock_ttl", "token_bucket_ttl_buffer")
    @classmethod
    def validate_positive_seconds(cls, v: int) -> int:
        if v < 1:
            raise ValueError("TTL values must be at least 1 second")
        return v

    @field_validator("cache_wait_timeout", "cache_retry_interval")
    @classmethod
    def validate_timeout_positive(cls, v: float) -> float:
        """Validate timeout values are positive."""
        if v <= 0:
            raise ValueError("Timeout values must be positive")
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in _LOG_FORMATS:
            raise ValueError(f"log_format must be one of {', '.join(_LOG_FORMATS)}")
        return v

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


# Global settings instance
settings = Settings()
