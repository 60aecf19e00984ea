"""Tests for environment-driven settings."""

import pytest
from pydantic import ValidationError

from redikit.core.config import Settings


class TestSettingsDefaults:
    def test_defaults(self, monkeypatch):
        for name in ("REDIS_URL", "LOG_FORMAT", "CACHE_DEFAULT_TTL", "RATE_LIMIT_PREFIX"):
            monkeypatch.delenv(name, raising=False)

        s = Settings(_env_file=None)

        assert s.redis_url == "redis://localhost:6379/0"
        assert s.log_format == "text"
        assert s.rate_limit_prefix == "rl"
        assert s.cache_prefix == "cache"
        assert s.cache_default_ttl is None
        assert s.cache_lock_ttl == 10
        assert s.leaderboard_prefix == "lb"
        assert s.rate_limit_fail_closed is False
        assert s.rate_limit_trust_forwarded_for is False


class TestSettingsFromEnv:
    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("REDIS_URL", "redis://cache-host:6380/2")
        monkeypatch.setenv("CACHE_DEFAULT_TTL", "300")
        monkeypatch.setenv("RATE_LIMIT_FAIL_CLOSED", "true")
        monkeypatch.setenv("LOG_FORMAT", " JSON ")

        s = Settings(_env_file=None)

        assert s.redis_url == "redis://cache-host:6380/2"
        assert s.cache_default_ttl == 300
        assert s.rate_limit_fail_closed is True
        assert s.log_format == "json"


class TestSettingsValidation:
    @pytest.mark.parametrize(
        "field,value",
        [
            ("cache_default_ttl", 0),
            ("cache_lock_ttl", 0),
            ("token_bucket_ttl_buffer", -1),
            ("cache_wait_timeout", 0),
            ("cache_retry_interval", -0.1),
            ("log_format", "xml"),
        ],
    )
    def test_invalid_values_rejected(self, field, value):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, **{field: value})
