"""Pytest configuration and shared fixtures."""

import os
from collections.abc import Generator
from unittest.mock import MagicMock

import fakeredis
import pytest

# Set test environment before importing settings
os.environ["ENV"] = "development"
os.environ["LOG_LEVEL"] = "DEBUG"
os.environ["LOG_FORMAT"] = "text"

from nsredis import RedisClient  # noqa: E402

TEST_PREFIX = "test:"


@pytest.fixture
def fake_server() -> fakeredis.FakeServer:
    """In-process Redis server shared by every connection of a test."""
    return fakeredis.FakeServer()


@pytest.fixture
def fake_redis(fake_server: fakeredis.FakeServer) -> Generator[fakeredis.FakeRedis, None, None]:
    """Raw handle for asserting on physical keys."""
    client = fakeredis.FakeRedis(server=fake_server, decode_responses=True)
    yield client
    client.close()


@pytest.fixture
def facade(fake_redis: fakeredis.FakeRedis) -> RedisClient:
    """Facade over the fake server using TEST_PREFIX."""
    return RedisClient(fake_redis, prefix=TEST_PREFIX)


@pytest.fixture
def mock_redis() -> MagicMock:
    """Create mock redis-py client."""
    redis = MagicMock()
    redis.get.return_value = None
    redis.hget.return_value = None
    redis.hgetall.return_value = {}
    redis.publish.return_value = 1
    return redis


@pytest.fixture
def mock_facade(mock_redis: MagicMock) -> RedisClient:
    return RedisClient(mock_redis, prefix=TEST_PREFIX)


# =============================================================================
# Markers
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line(
        "markers", "integration: Integration tests (require external services)"
    )
    config.addinivalue_line("markers", "slow: Slow tests")
