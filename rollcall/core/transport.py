"""Redis transport for one logical database.

Wraps a ``redis.asyncio`` client and exposes only the primitives the cache
and metrics components need, plus an atomic batch:

    >>> async with transport.batch() as batch:
    ...     batch.hincrby("deploymentKeyLabels:dk_b", "v2:Active", 1)
    ...     batch.hincrby("deploymentKeyLabels:dk_a", "v1:Active", -1)

Batched commands are buffered client-side and sent as a single
MULTI/EXEC transaction when the ``async with`` block exits normally, so Redis
applies all of them or none. Leaving the block with an exception sends
nothing.

Every Redis failure surfaces as TransportError, chained to the original
exception. Nothing here retries.
"""

from collections.abc import AsyncIterator, Iterator
from contextlib import asynccontextmanager, contextmanager
from typing import Any

from redis.asyncio import Redis
from redis.exceptions import RedisError

from rollcall.core.config import StoreConfig
from rollcall.core.exceptions import TransportError
from rollcall.observability.logging import LogEvents, get_logger

logger = get_logger(__name__)


class Batch:
    """Commands queued for one MULTI/EXEC transaction."""

    def __init__(self, transport: "RedisTransport"):
        self._transport = transport
        self._commands: list[tuple[str, tuple[Any, ...]]] = []

    def __len__(self) -> int:
        return len(self._commands)

    def hincrby(self, key: str, field: str, amount: int = 1) -> "Batch":
        self._commands.append(("hincrby", (key, field, amount)))
        return self

    def hset(self, key: str, field: str, value: str | bytes) -> "Batch":
        self._commands.append(("hset", (key, field, value)))
        return self

    def hdel(self, key: str, *fields: str) -> "Batch":
        self._commands.append(("hdel", (key, *fields)))
        return self

    async def execute(self) -> list[Any]:
        """Send all queued commands as one transaction.

        Returns:
            Per-command results in queue order (empty list for an empty batch)

        Raises:
            TransportError: Connection failure or EXEC aborted
        """
        if not self._commands:
            return []

        commands, self._commands = self._commands, []
        pipe = self._transport.client.pipeline(transaction=True)
        for name, args in commands:
            getattr(pipe, name)(*args)

        with self._transport.translate_errors("exec", commands=len(commands)):
            results: list[Any] = await pipe.execute()
        return results


class RedisTransport:
    """Thin async wrapper over one Redis logical database.

    Args:
        client: redis.asyncio client bound to the database
        name: Store name used in logs and error details ("cache", "metrics")
    """

    def __init__(self, client: "Redis[Any]", name: str = "store"):
        self.client = client
        self.name = name
        self._closed = False

    @classmethod
    def from_config(
        cls,
        config: StoreConfig,
        db: int,
        name: str,
        decode_responses: bool = True,
    ) -> "RedisTransport":
        """Create a transport for one logical database of the configured server."""
        client = Redis.from_url(
            config.redis_url(db),
            password=config.password,
            socket_timeout=config.timeout,
            socket_connect_timeout=config.timeout,
            decode_responses=decode_responses,
        )
        logger.info(
            LogEvents.STORE_INITIALIZED, store=name, url=config.redis_url(db)
        )
        return cls(client, name=name)

    @contextmanager
    def translate_errors(self, operation: str, **details: Any) -> Iterator[None]:
        """Re-raise Redis failures as TransportError."""
        try:
            yield
        except RedisError as e:
            logger.warning(
                LogEvents.TRANSPORT_ERROR,
                store=self.name,
                operation=operation,
                error=str(e),
            )
            raise TransportError(
                f"Redis {operation} failed on {self.name} store: {e}",
                details={"store": self.name, "operation": operation, **details},
            ) from e

    async def hget(self, key: str, field: str) -> Any:
        with self.translate_errors("hget", key=key):
            return await self.client.hget(key, field)

    async def hset(self, key: str, field: str, value: str | bytes) -> int:
        with self.translate_errors("hset", key=key):
            return int(await self.client.hset(key, field, value))

    async def hgetall(self, key: str) -> dict[Any, Any]:
        with self.translate_errors("hgetall", key=key):
            return dict(await self.client.hgetall(key))

    async def hincrby(self, key: str, field: str, amount: int = 1) -> int:
        with self.translate_errors("hincrby", key=key):
            return int(await self.client.hincrby(key, field, amount))

    async def hdel(self, key: str, *fields: str) -> int:
        with self.translate_errors("hdel", key=key):
            return int(await self.client.hdel(key, *fields))

    async def exists(self, key: str) -> bool:
        with self.translate_errors("exists", key=key):
            return bool(await self.client.exists(key))

    async def delete(self, *keys: str) -> int:
        with self.translate_errors("delete", keys=list(keys)):
            return int(await self.client.delete(*keys))

    async def expire(self, key: str, seconds: int) -> bool:
        with self.translate_errors("expire", key=key):
            return bool(await self.client.expire(key, seconds))

    async def ping(self) -> bool:
        with self.translate_errors("ping"):
            return bool(await self.client.ping())

    @asynccontextmanager
    async def batch(self) -> AsyncIterator[Batch]:
        """Collect commands and commit them atomically on exit.

        Raises:
            TransportError: The transaction could not be committed
        """
        batch = Batch(self)
        yield batch
        await batch.execute()

    async def close(self) -> None:
        """Close the connection pool. Safe to call more than once.

        A failed close leaves the transport open so it can be retried.
        """
        if self._closed:
            return
        with self.translate_errors("close"):
            await self.client.aclose()
        self._closed = True
