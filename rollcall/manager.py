"""Store manager wiring the response cache and the metrics ledger.

The manager owns the two Redis connections (cache database and metrics
database) and hands each component the transport for its own database.
Whether the store is enabled is decided from the StoreConfig it is built
with; nothing is read from global state afterwards.

Usage in an application lifespan:
    >>> @asynccontextmanager
    >>> async def lifespan(app) -> AsyncIterator[None]:
    ...     async with StoreManager.from_settings() as store:
    ...         app.state.store = store
    ...         yield

Disabled mode:
    >>> store = StoreManager(StoreConfig.disabled())
    >>> await store.cache.get("deploymentKey:abc", "/updateCheck")  # None
    >>> await store.check_health()  # raises NotEnabledError
"""

import asyncio
from types import TracebackType

from rollcall.cache.service import ResponseCache
from rollcall.core.config import Settings, StoreConfig, load_store_config
from rollcall.core.exceptions import NotEnabledError, TransportError
from rollcall.core.transport import RedisTransport
from rollcall.metrics.ledger import MetricsLedger
from rollcall.metrics.legacy import LegacyClientLabels
from rollcall.observability.logging import LogEvents, get_logger

logger = get_logger(__name__)


class StoreManager:
    """Entry point to the cache and metrics stores.

    Attributes:
        config: Store configuration
        cache: Response cache on the cache database
        metrics: Metrics ledger on the metrics database
    """

    def __init__(
        self,
        config: StoreConfig,
        cache_transport: RedisTransport | None = None,
        metrics_transport: RedisTransport | None = None,
    ):
        """Initialize store manager.

        Args:
            config: Store configuration
            cache_transport: Override the cache database transport (tests)
            metrics_transport: Override the metrics database transport (tests)
        """
        self.config = config
        self._cache_transport: RedisTransport | None = None
        self._metrics_transport: RedisTransport | None = None
        self._legacy: LegacyClientLabels | None = None

        if config.enabled:
            self._cache_transport = cache_transport or RedisTransport.from_config(
                config, config.cache_db, name="cache", decode_responses=False
            )
            self._metrics_transport = metrics_transport or RedisTransport.from_config(
                config, config.metrics_db, name="metrics", decode_responses=True
            )
        else:
            logger.info(LogEvents.STORE_DISABLED)

        self.cache = ResponseCache(self._cache_transport, config)
        self.metrics = MetricsLedger(self._metrics_transport, config)

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "StoreManager":
        """Build a manager from environment settings and rollcall.yaml."""
        return cls(load_store_config(settings))

    @property
    def is_enabled(self) -> bool:
        return self.config.enabled

    @property
    def legacy(self) -> LegacyClientLabels:
        """Deprecated client-label interface, created on first use."""
        if self._legacy is None:
            self._legacy = LegacyClientLabels(self._metrics_transport, self.config)
        return self._legacy

    async def check_health(self) -> None:
        """Ping both databases.

        Raises:
            NotEnabledError: Store is not configured
            TransportError: Either database is unreachable (the cache
                database's error if both are)
        """
        if not self.is_enabled or not self._cache_transport or not self._metrics_transport:
            raise NotEnabledError("Store is not enabled")

        results = await asyncio.gather(
            self._cache_transport.ping(),
            self._metrics_transport.ping(),
            return_exceptions=True,
        )
        failures = [r for r in results if isinstance(r, BaseException)]
        for failure in failures:
            if isinstance(failure, TransportError):
                logger.error(LogEvents.HEALTH_CHECK_FAILED, **failure.details)
        if failures:
            raise failures[0]

    async def close(self) -> None:
        """Close both connections. Safe when disabled or already closed."""
        transports = [t for t in (self._cache_transport, self._metrics_transport) if t]
        if not transports:
            return
        results = await asyncio.gather(
            *(t.close() for t in transports), return_exceptions=True
        )
        failures = [r for r in results if isinstance(r, BaseException)]
        if failures:
            raise failures[0]
        logger.info(LogEvents.STORE_CLOSED)

    async def __aenter__(self) -> "StoreManager":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()
