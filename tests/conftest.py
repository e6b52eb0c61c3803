"""Shared test fixtures."""

import fakeredis
import pytest

from config import Settings


class FakeRedisClient:
    """Stands in for storage.redis_client.RedisClient without retries."""

    def __init__(self, redis):
        self.redis = redis
        self.closed = False

    def execute_with_retry(self, func, max_retries=3):
        return func(self.redis)

    def close(self):
        self.closed = True


@pytest.fixture
def fake_server():
    """Set `connected = False` to make every command raise ConnectionError."""
    return fakeredis.FakeServer()


@pytest.fixture
def fake_redis(fake_server):
    return fakeredis.FakeRedis(server=fake_server, decode_responses=True)


@pytest.fixture
def redis_client(fake_redis):
    return FakeRedisClient(fake_redis)


@pytest.fixture
def settings():
    """Test settings with localhost defaults and a small detection window."""
    return Settings(
        redis_url="redis://localhost:6379/1",
        source_series="cpu",
        source_column="value",
        target_series="cpu_annotated",
        days_ago=0,
        window_len=3,
        breakout_tracker_len=3,
        breakout_threshold=1,
        sigmas=3.0,
    )
