"""Redis response cache keyed by scope and URL."""

from rollcall.cache.models import CacheStats, PayloadCodec, get_codec
from rollcall.core.config import StoreConfig
from rollcall.core.exceptions import MalformedDataError, TransportError
from rollcall.core.models import CacheableResponse
from rollcall.core.transport import RedisTransport
from rollcall.observability.logging import LogEvents, get_logger

logger = get_logger(__name__)


class ResponseCache:
    """Caches serialized responses in one Redis hash per scope.

    Each scope key (typically one deployment, see
    ``keys.deployment_key_hash``) maps ``url -> payload``. The whole scope
    shares a single expiry, assigned once when the scope key is first
    created. Later writes do not extend it, so every URL cached under a
    scope expires together with it.

    Features:
        - Overwrite semantics, no compare-and-set
        - Coarse invalidation: one DEL drops every URL of the scope
        - JSON (default) or MessagePack payloads
        - Hit/miss statistics

    When the store is disabled every call is a silent no-op returning
    None. Transport and decode failures propagate to the caller.
    """

    def __init__(self, transport: RedisTransport | None, config: StoreConfig):
        """Initialize response cache.

        Args:
            transport: Transport bound to the cache database (None if disabled)
            config: Store configuration
        """
        self.config = config
        self.transport = transport if config.enabled else None
        self.codec: PayloadCodec = get_codec(config.codec)
        self.stats = CacheStats()

    @property
    def enabled(self) -> bool:
        return self.transport is not None

    async def get(self, scope_key: str, url: str) -> CacheableResponse | None:
        """Retrieve a cached response.

        Args:
            scope_key: Scope hash key
            url: Resource URL within the scope

        Returns:
            Cached response, or None on a miss (absent or empty field) or
            when disabled

        Raises:
            TransportError: Redis unreachable
            MalformedDataError: Stored payload cannot be decoded
        """
        if self.transport is None:
            return None

        try:
            data = await self.transport.hget(scope_key, url)
            if not data:
                self.stats.misses += 1
                self.stats.update_hit_rate()
                logger.debug(LogEvents.CACHE_MISS, scope_key=scope_key)
                return None

            response = self.codec.decode(data)
        except MalformedDataError:
            self.stats.errors += 1
            logger.error(LogEvents.CACHE_DECODE_FAILED, scope_key=scope_key, codec=self.codec.name)
            raise
        except TransportError:
            self.stats.errors += 1
            raise

        self.stats.hits += 1
        self.stats.update_hit_rate()
        logger.debug(LogEvents.CACHE_HIT, scope_key=scope_key)
        return response

    async def set(self, scope_key: str, url: str, response: CacheableResponse) -> None:
        """Store a response under a scope.

        The field is always overwritten. If the scope key did not exist
        before this write, the scope TTL is applied once; writes to an
        existing scope leave its remaining TTL untouched.

        Args:
            scope_key: Scope hash key
            url: Resource URL within the scope
            response: Response to cache

        Raises:
            TransportError: Redis unreachable
        """
        if self.transport is None:
            return

        payload = self.codec.encode(response)
        try:
            is_new_scope = not await self.transport.exists(scope_key)
            await self.transport.hset(scope_key, url, payload)
            if is_new_scope:
                await self.transport.expire(scope_key, self.config.cache_ttl)
        except TransportError:
            self.stats.errors += 1
            raise

        self.stats.writes += 1
        if is_new_scope:
            self.stats.scopes_created += 1
            logger.debug(
                LogEvents.CACHE_SCOPE_CREATED, scope_key=scope_key, ttl=self.config.cache_ttl
            )
        logger.debug(LogEvents.CACHE_WRITE, scope_key=scope_key, size=len(payload))

    async def invalidate(self, scope_key: str) -> None:
        """Drop every cached response of a scope.

        Raises:
            TransportError: Redis unreachable
        """
        if self.transport is None:
            return

        try:
            await self.transport.delete(scope_key)
        except TransportError:
            self.stats.errors += 1
            raise

        self.stats.invalidations += 1
        logger.info(LogEvents.CACHE_INVALIDATED, scope_key=scope_key)

    def get_stats(self) -> CacheStats:
        return self.stats
