"""Per-deployment rollout counters.

Each deployment owns one labels hash in the metrics database:

    deploymentKeyLabels:{deployment_key}
        "v3:Active"              -> 41
        "v3:DeploymentSucceeded" -> 57
        "v3:Downloaded"          -> 60
        "v2:Active"              -> -1   (transiently negative is allowed)

Counters only ever change by HINCRBY deltas. Whenever more than one
counter must change for one event (a client moving between labels or
deployments), the deltas go out as a single MULTI/EXEC batch so no reader
can observe the client counted as active twice or not at all.

Invalid input (unknown status, empty label) is logged and ignored.
Metrics collection must never interrupt the request path it instruments.
"""

from rollcall.core import keys
from rollcall.core.config import StoreConfig
from rollcall.core.exceptions import MalformedDataError
from rollcall.core.models import DeploymentMetrics, DeploymentStatus, LabelMetrics
from rollcall.core.transport import RedisTransport
from rollcall.observability.logging import LogEvents, get_logger

logger = get_logger(__name__)


class MetricsLedger:
    """Atomic deployment/label counters backed by Redis hashes.

    Example:
        >>> ledger = MetricsLedger(transport, config)
        >>> await ledger.increment_status_count("dk_a", "v1", "Downloaded")
        >>> await ledger.record_transition("dk_a", "v2", "dk_a", "v1")
        >>> await ledger.read_metrics("dk_a")
        {'v1:Downloaded': 1, 'v2:Active': 1, 'v2:DeploymentSucceeded': 1, 'v1:Active': -1}
    """

    def __init__(self, transport: RedisTransport | None, config: StoreConfig):
        """Initialize metrics ledger.

        Args:
            transport: Transport bound to the metrics database (None if disabled)
            config: Store configuration
        """
        self.config = config
        self.transport = transport if config.enabled else None

    @property
    def enabled(self) -> bool:
        return self.transport is not None

    async def increment_status_count(
        self, deployment_key: str, label: str, status: str
    ) -> None:
        """Add one to the ``label:status`` counter of a deployment.

        Args:
            deployment_key: Deployment identifier
            label: Rollout label
            status: DeploymentStatus value reported by the client

        Raises:
            TransportError: Redis unreachable
        """
        if self.transport is None:
            return

        field = keys.label_status_field(label, status)
        if field is None:
            logger.info(
                LogEvents.INVALID_METRIC_INPUT,
                deployment_key=deployment_key,
                label=label,
                status=status,
            )
            return

        await self.transport.hincrby(keys.deployment_labels_hash(deployment_key), field, 1)
        logger.debug(
            LogEvents.METRICS_INCREMENTED, deployment_key=deployment_key, field=field
        )

    async def record_transition(
        self,
        current_deployment_key: str,
        current_label: str,
        previous_deployment_key: str | None = None,
        previous_label: str | None = None,
    ) -> None:
        """Count a client moving onto a new deployment/label.

        Applies in one transaction:
            1. ``current_label:Active`` +1 on the current deployment
            2. ``current_label:DeploymentSucceeded`` +1 on the current deployment
            3. ``previous_label:Active`` -1 on the previous deployment, only
               when both previous values are given

        The previous deployment may differ from the current one, in which
        case the batch spans two hashes.

        Args:
            current_deployment_key: Deployment the client is now on
            current_label: Label the client is now on
            previous_deployment_key: Deployment the client was on, if any
            previous_label: Label the client was on, if any

        Raises:
            TransportError: Redis unreachable or transaction aborted
        """
        if self.transport is None:
            return

        active_field = keys.label_active_count_field(current_label)
        succeeded_field = keys.label_status_field(
            current_label, DeploymentStatus.SUCCEEDED
        )
        if active_field is None or succeeded_field is None:
            logger.info(
                LogEvents.INVALID_METRIC_INPUT,
                deployment_key=current_deployment_key,
                label=current_label,
            )
            return

        current_hash = keys.deployment_labels_hash(current_deployment_key)
        previous_field = None
        if previous_deployment_key and previous_label:
            previous_field = keys.label_active_count_field(previous_label)

        async with self.transport.batch() as batch:
            batch.hincrby(current_hash, active_field, 1)
            batch.hincrby(current_hash, succeeded_field, 1)
            if previous_deployment_key and previous_field:
                batch.hincrby(
                    keys.deployment_labels_hash(previous_deployment_key),
                    previous_field,
                    -1,
                )

        logger.debug(
            LogEvents.TRANSITION_RECORDED,
            deployment_key=current_deployment_key,
            label=current_label,
            previous_deployment_key=previous_deployment_key,
            previous_label=previous_label,
        )

    async def clear_metrics(self, deployment_key: str) -> None:
        """Delete the labels and clients hashes of a deployment in one command.

        Raises:
            TransportError: Redis unreachable
        """
        if self.transport is None:
            return

        await self.transport.delete(
            keys.deployment_labels_hash(deployment_key),
            keys.deployment_clients_hash(deployment_key),
        )
        logger.info(LogEvents.METRICS_CLEARED, deployment_key=deployment_key)

    async def read_metrics(self, deployment_key: str) -> DeploymentMetrics:
        """Read every counter of a deployment.

        Returns:
            Mapping of field to counter; empty when nothing was recorded or
            the store is disabled

        Raises:
            TransportError: Redis unreachable
            MalformedDataError: A stored counter is not an integer
        """
        if self.transport is None:
            return {}

        raw = await self.transport.hgetall(keys.deployment_labels_hash(deployment_key))

        metrics: DeploymentMetrics = {}
        for field, value in raw.items():
            try:
                metrics[field] = int(value)
            except (TypeError, ValueError) as e:
                logger.error(
                    LogEvents.METRICS_DECODE_FAILED,
                    deployment_key=deployment_key,
                    field=field,
                )
                raise MalformedDataError(
                    f"Counter {field!r} of deployment {deployment_key!r} is not an integer",
                    details={"deployment_key": deployment_key, "field": field},
                ) from e
        return metrics

    async def read_label_metrics(self, deployment_key: str, label: str) -> LabelMetrics:
        """Read the counters of one label, grouped by kind."""
        return LabelMetrics.from_metrics(label, await self.read_metrics(deployment_key))
