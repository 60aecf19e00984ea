"""Tests for redikit exceptions and key helpers."""

from redikit.core.keys import as_str, prefix_key
from redikit.exceptions import ConfigurationError, RateLimitExceededError, RedikitError
from redikit.rate_limit import RateLimitResult


class TestRateLimitExceededError:
    def test_response_body(self):
        result = RateLimitResult(allowed=False, remaining=0, limit=10, retry_after=42)
        error = RateLimitExceededError(result)

        assert error.status_code == 429
        assert error.to_response() == {
            "error": "rate_limit_exceeded",
            "message": "Rate limit exceeded. Retry after 42 seconds.",
            "limit": 10,
            "remaining": 0,
            "retry_after": 42,
        }

    def test_custom_detail(self):
        result = RateLimitResult(allowed=False, remaining=0, limit=1, retry_after=1)
        error = RateLimitExceededError(result, detail="Slow down")
        assert error.message == "Slow down"
        assert isinstance(error, RedikitError)


class TestConfigurationError:
    def test_field(self):
        error = ConfigurationError("bad window", field="window")
        assert error.field == "window"
        assert str(error) == "bad window"


class TestKeys:
    def test_prefix_key(self):
        assert prefix_key("rl", "api:login") == "rl:api:login"

    def test_as_str(self):
        assert as_str(b"alice") == "alice"
        assert as_str("bob") == "bob"
