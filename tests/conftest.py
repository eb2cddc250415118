"""Pytest configuration and fixtures for rollcall tests."""

import asyncio
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from rollcall.core.config import StoreConfig
from rollcall.core.transport import RedisTransport


# =============================================================================
# IN-MEMORY REDIS
# =============================================================================
# Implements only the hash/key commands rollcall issues, with the same
# return types as redis.asyncio. Pipelines buffer commands and apply them
# with no await in between, so a transaction is indivisible relative to
# other coroutines, as MULTI/EXEC is on a real server. Setting exec_gate
# holds every EXEC in flight until the gate opens.


class InMemoryPipeline:
    def __init__(self, redis: "InMemoryRedis"):
        self._redis = redis
        self._commands: list[tuple[str, tuple[Any, ...]]] = []

    def __getattr__(self, name: str) -> Any:
        if name not in InMemoryRedis.COMMANDS:
            raise AttributeError(name)

        def queue(*args: Any) -> "InMemoryPipeline":
            self._commands.append((name, args))
            return self

        return queue

    async def execute(self) -> list[Any]:
        if self._redis.exec_gate is not None:
            self._redis.exec_started.set()
            await self._redis.exec_gate.wait()
        self._redis.executed_batches.append(list(self._commands))
        if self._redis.fail_next_exec is not None:
            error, self._redis.fail_next_exec = self._redis.fail_next_exec, None
            self._commands = []
            raise error
        results = [self._redis.apply(name, args) for name, args in self._commands]
        self._commands = []
        return results


class InMemoryRedis:
    """Dict-backed stand-in for one Redis logical database."""

    COMMANDS = {"hget", "hset", "hgetall", "hincrby", "hdel", "exists", "delete", "expire"}

    def __init__(self, decode_responses: bool = True):
        self.decode_responses = decode_responses
        self.hashes: dict[str, dict[str, Any]] = {}
        self.ttls: dict[str, int] = {}
        self.executed_batches: list[list[tuple[str, tuple[Any, ...]]]] = []
        self.expire_calls: list[tuple[str, int]] = []
        self.fail_next_exec: Exception | None = None
        self.exec_gate: asyncio.Event | None = None
        self.exec_started = asyncio.Event()
        self.closed = False

    def _value(self, value: Any) -> Any:
        if isinstance(value, int):
            value = str(value)
        if self.decode_responses:
            return value.decode() if isinstance(value, bytes) else value
        return value.encode() if isinstance(value, str) else value

    def apply(self, name: str, args: tuple[Any, ...]) -> Any:
        return getattr(self, f"_{name}")(*args)

    def _hget(self, key: str, field: str) -> Any:
        return self.hashes.get(key, {}).get(field)

    def _hset(self, key: str, field: str, value: Any) -> int:
        fields = self.hashes.setdefault(key, {})
        is_new = field not in fields
        fields[field] = self._value(value)
        return int(is_new)

    def _hgetall(self, key: str) -> dict[str, Any]:
        return dict(self.hashes.get(key, {}))

    def _hincrby(self, key: str, field: str, amount: int) -> int:
        fields = self.hashes.setdefault(key, {})
        current = int(fields.get(field, 0))
        fields[field] = self._value(current + amount)
        return current + amount

    def _hdel(self, key: str, *fields: str) -> int:
        existing = self.hashes.get(key, {})
        removed = sum(1 for field in fields if existing.pop(field, None) is not None)
        if key in self.hashes and not existing:
            del self.hashes[key]
        return removed

    def _exists(self, *keys: str) -> int:
        return sum(1 for key in keys if key in self.hashes)

    def _delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self.hashes.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed

    def _expire(self, key: str, seconds: int) -> bool:
        self.expire_calls.append((key, seconds))
        if key not in self.hashes:
            return False
        self.ttls[key] = seconds
        return True

    def ttl(self, key: str) -> int:
        if key not in self.hashes:
            return -2
        return self.ttls.get(key, -1)

    def __getattr__(self, name: str) -> Any:
        if name not in self.COMMANDS:
            raise AttributeError(name)

        async def command(*args: Any) -> Any:
            return self.apply(name, args)

        return command

    def pipeline(self, transaction: bool = True) -> InMemoryPipeline:
        assert transaction, "rollcall only issues transactional pipelines"
        return InMemoryPipeline(self)

    async def ping(self) -> bool:
        return True

    async def aclose(self) -> None:
        self.closed = True


# =============================================================================
# SHARED FIXTURES
# =============================================================================


@pytest.fixture
def store_config() -> StoreConfig:
    """Enabled store configuration with default TTL and DB layout."""
    return StoreConfig(enabled=True, host="localhost", cache_ttl=3600)


@pytest.fixture
def disabled_config() -> StoreConfig:
    return StoreConfig.disabled()


@pytest.fixture
def mock_redis() -> MagicMock:
    """Mocked redis.asyncio client with an inspectable transaction pipeline."""
    client = MagicMock()
    for command in ("hget", "hset", "hgetall", "hincrby", "hdel", "exists", "delete", "expire", "ping", "aclose"):
        setattr(client, command, AsyncMock())

    pipe = MagicMock()
    pipe.execute = AsyncMock(return_value=[])
    client.pipeline.return_value = pipe
    return client


@pytest.fixture
def cache_redis() -> InMemoryRedis:
    return InMemoryRedis(decode_responses=False)


@pytest.fixture
def metrics_redis() -> InMemoryRedis:
    return InMemoryRedis(decode_responses=True)


@pytest.fixture
def cache_transport(cache_redis) -> RedisTransport:
    return RedisTransport(cache_redis, name="cache")


@pytest.fixture
def metrics_transport(metrics_redis) -> RedisTransport:
    return RedisTransport(metrics_redis, name="metrics")
