"""Shared fixtures: an isolated in-process Redis per test.

fakeredis runs the Lua scripts for real (``fakeredis[lua]``), so the atomic
strategies are exercised end to end without a Redis server.
"""

from unittest.mock import patch

import fakeredis
import pytest


@pytest.fixture
def redis_client():
    """Async Redis client backed by a fresh fake server."""
    return fakeredis.FakeAsyncRedis(server=fakeredis.FakeServer(), decode_responses=True)


@pytest.fixture
def bytes_redis_client():
    """Same as redis_client but returning raw bytes like a default redis-py client."""
    return fakeredis.FakeAsyncRedis(server=fakeredis.FakeServer())


@pytest.fixture
def frozen_time():
    """Control the clock the rate limiting strategies read.

    Only the strategies' view of time is patched; Redis TTLs keep real time.
    """
    with patch("redikit.rate_limit.strategies.time") as mock_time:
        mock_time.time.return_value = 1_000_000.0
        yield mock_time
