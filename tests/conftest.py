"""
Shared fixtures.

``FakeRedis`` implements the handful of redis-py commands the store uses,
with a clock the tests can advance to expire keys.
"""

from __future__ import annotations

import fnmatch
from unittest.mock import MagicMock

import pytest
import redis

from config.settings import Settings
from newsroom.store import RedisAIService


class FakeRedis:
    """In-memory stand-in for ``redis.Redis(decode_responses=True)``."""

    def __init__(self) -> None:
        self.now = 0.0
        self.data: dict[str, str] = {}
        self.expires: dict[str, float] = {}

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def _purge(self, key: str) -> None:
        deadline = self.expires.get(key)
        if deadline is not None and self.now >= deadline:
            self.data.pop(key, None)
            self.expires.pop(key, None)

    def ping(self) -> bool:
        return True

    def close(self) -> None:
        pass

    def get(self, key: str):
        self._purge(key)
        return self.data.get(key)

    def setex(self, key: str, ttl: int, value: str) -> bool:
        self.data[key] = value
        self.expires[key] = self.now + ttl
        return True

    def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
            self.expires.pop(key, None)
        return removed

    def incr(self, key: str) -> int:
        self._purge(key)
        value = int(self.data.get(key, "0")) + 1
        self.data[key] = str(value)
        return value

    def incrbyfloat(self, key: str, amount: float) -> float:
        self._purge(key)
        value = float(self.data.get(key, "0")) + amount
        self.data[key] = repr(value)
        return value

    def ttl(self, key: str) -> int:
        self._purge(key)
        if key not in self.data:
            return -2
        if key not in self.expires:
            return -1
        return int(self.expires[key] - self.now)

    def scan_iter(self, match: str = "*"):
        for key in list(self.data):
            self._purge(key)
            if key in self.data and fnmatch.fnmatchcase(key, match):
                yield key


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def store(fake_redis) -> RedisAIService:
    """A connected store backed by ``FakeRedis``."""
    service = RedisAIService(fake_redis)
    service.connect()
    return service


@pytest.fixture
def down_store() -> RedisAIService:
    """A store whose every command raises ``redis.ConnectionError``."""
    client = MagicMock()
    error = redis.ConnectionError("connection refused")
    for name in ("ping", "get", "setex", "delete", "incr", "incrbyfloat", "scan_iter"):
        getattr(client, name).side_effect = error
    return RedisAIService(client)


@pytest.fixture
def settings(monkeypatch) -> Settings:
    for var in ("ANTHROPIC_API_KEY", "NEWS_API_KEY", "NEWS_SOURCE", "FEED_PROXY_URL"):
        monkeypatch.delenv(var, raising=False)
    return Settings()
