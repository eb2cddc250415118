"""Core infrastructure for rollcall: config, keys, models, transport."""

from rollcall.core.config import (
    LoggingSettings,
    Settings,
    StoreConfig,
    load_store_config,
)
from rollcall.core.exceptions import (
    ConfigurationError,
    MalformedDataError,
    NotEnabledError,
    RollcallError,
    TransportError,
)
from rollcall.core.models import (
    ACTIVE,
    CacheableResponse,
    DeploymentMetrics,
    DeploymentStatus,
    LabelMetrics,
)
from rollcall.core.transport import Batch, RedisTransport

__all__ = [
    # Config
    "LoggingSettings",
    "Settings",
    "StoreConfig",
    "load_store_config",
    # Exceptions
    "RollcallError",
    "NotEnabledError",
    "TransportError",
    "MalformedDataError",
    "ConfigurationError",
    # Models
    "ACTIVE",
    "CacheableResponse",
    "DeploymentMetrics",
    "DeploymentStatus",
    "LabelMetrics",
    # Transport
    "Batch",
    "RedisTransport",
]
