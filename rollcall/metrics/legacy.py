"""Deprecated client-to-label tracking.

Older clients were counted by remembering each client's current label in
a per-deployment clients hash and adjusting the active counters from
that. The scheme is kept only so existing callers keep working. It must
not be combined with ``MetricsLedger.record_transition`` for the same
event, or the active counters are applied twice.
"""

import warnings

from rollcall.core import keys
from rollcall.core.config import StoreConfig
from rollcall.core.transport import RedisTransport
from rollcall.observability.logging import LogEvents, get_logger

logger = get_logger(__name__)


class LegacyClientLabels:
    """Deprecated per-client active label bookkeeping.

    Clients hash layout:
        deploymentKeyClients:{deployment_key}
            "{client_unique_id}" -> "{current_label}"
    """

    def __init__(self, transport: RedisTransport | None, config: StoreConfig):
        warnings.warn(
            "LegacyClientLabels is deprecated; use MetricsLedger.record_transition",
            DeprecationWarning,
            stacklevel=2,
        )
        self.config = config
        self.transport = transport if config.enabled else None

    async def get_current_active_label(
        self, deployment_key: str, client_unique_id: str
    ) -> str | None:
        """Label a client was last recorded on, or None."""
        if self.transport is None:
            return None

        label = await self.transport.hget(
            keys.deployment_clients_hash(deployment_key), client_unique_id
        )
        return str(label) if label is not None else None

    async def update_active_app_for_client(
        self,
        deployment_key: str,
        client_unique_id: str,
        to_label: str,
        from_label: str | None = None,
    ) -> None:
        """Move a client to ``to_label`` within one deployment.

        Records the client's label and shifts one active count from
        ``from_label`` (if given) to ``to_label`` in a single transaction.

        Raises:
            TransportError: Redis unreachable or transaction aborted
        """
        if self.transport is None:
            return

        to_field = keys.label_active_count_field(to_label)
        if to_field is None:
            logger.info(
                LogEvents.INVALID_METRIC_INPUT, deployment_key=deployment_key, label=to_label
            )
            return

        labels_hash = keys.deployment_labels_hash(deployment_key)
        from_field = keys.label_active_count_field(from_label)

        async with self.transport.batch() as batch:
            batch.hset(keys.deployment_clients_hash(deployment_key), client_unique_id, to_label)
            batch.hincrby(labels_hash, to_field, 1)
            if from_field is not None:
                batch.hincrby(labels_hash, from_field, -1)

        logger.debug(
            LogEvents.CLIENT_LABEL_UPDATED,
            deployment_key=deployment_key,
            label=to_label,
            previous_label=from_label,
        )

    async def remove_client_active_label(
        self, deployment_key: str, client_unique_id: str
    ) -> None:
        """Forget a client's recorded label. Counters are left unchanged.

        Raises:
            TransportError: Redis unreachable
        """
        if self.transport is None:
            return

        await self.transport.hdel(keys.deployment_clients_hash(deployment_key), client_unique_id)
        logger.debug(LogEvents.CLIENT_LABEL_REMOVED, deployment_key=deployment_key)
