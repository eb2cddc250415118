"""Deployment metrics: per-label install and rollout counters.

Usage:
    >>> from rollcall.metrics import MetricsLedger
    >>>
    >>> # First report from a client: two increments, no decrement
    >>> await ledger.record_transition("dk_prod", "v7")
    >>> # Client updated from v7 to v8
    >>> await ledger.record_transition("dk_prod", "v8", "dk_prod", "v7")
    >>> await ledger.read_label_metrics("dk_prod", "v8")
    LabelMetrics(label='v8', active=1, downloaded=0, succeeded=1, failed=0)

``LegacyClientLabels`` is the deprecated per-client scheme and is kept
apart from the ledger on purpose.
"""

from rollcall.metrics.ledger import MetricsLedger
from rollcall.metrics.legacy import LegacyClientLabels

__all__ = [
    "MetricsLedger",
    "LegacyClientLabels",
]
