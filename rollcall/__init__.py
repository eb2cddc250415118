"""rollcall - response cache and deployment metrics for release distribution.

rollcall caches origin responses per deployment scope and keeps atomic
per-deployment, per-label rollout counters, both in Redis.

Basic usage:
    >>> from rollcall import StoreManager, CacheableResponse
    >>> async with StoreManager.from_settings() as store:
    ...     await store.cache.set(scope, url, CacheableResponse(status_code=200, body={}))
    ...     await store.metrics.record_transition("dk_prod", "v8", "dk_prod", "v7")
"""

from dotenv import load_dotenv

load_dotenv()

from rollcall.cache import CacheStats, ResponseCache
from rollcall.core import (
    CacheableResponse,
    ConfigurationError,
    DeploymentMetrics,
    DeploymentStatus,
    LabelMetrics,
    MalformedDataError,
    NotEnabledError,
    RollcallError,
    Settings,
    StoreConfig,
    TransportError,
    load_store_config,
)
from rollcall.manager import StoreManager
from rollcall.metrics import LegacyClientLabels, MetricsLedger

__version__ = "0.1.0"

__all__ = [
    # Main interface
    "StoreManager",
    "ResponseCache",
    "MetricsLedger",
    "LegacyClientLabels",
    # Models
    "CacheableResponse",
    "CacheStats",
    "DeploymentMetrics",
    "DeploymentStatus",
    "LabelMetrics",
    # Configuration
    "Settings",
    "StoreConfig",
    "load_store_config",
    # Exceptions
    "RollcallError",
    "NotEnabledError",
    "TransportError",
    "MalformedDataError",
    "ConfigurationError",
]
