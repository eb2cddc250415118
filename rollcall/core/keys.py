"""Key namespacing for cache scopes and deployment metrics.

Every Redis key and hash field used by rollcall is derived here. The
functions are pure and deterministic. Invalid label/status combinations
yield ``None`` so that callers can skip the write instead of storing a
malformed field.

Key patterns:
    - Cache scope:    "deploymentKey:{deployment_key}"
    - Labels hash:    "deploymentKeyLabels:{deployment_key}"
    - Clients hash:   "deploymentKeyClients:{deployment_key}"

Field patterns (inside a labels hash):
    - Status count:   "{label}:{status}"
    - Active count:   "{label}:Active"

The three key prefixes differ before the caller-supplied part, so two
distinct deployment keys never map to the same key, and the key kinds
never collide with one another.
"""

from rollcall.core.models import ACTIVE, DeploymentStatus

DEPLOYMENT_KEY_PREFIX = "deploymentKey:"
DEPLOYMENT_LABELS_PREFIX = "deploymentKeyLabels:"
DEPLOYMENT_CLIENTS_PREFIX = "deploymentKeyClients:"


def is_valid_deployment_status(status: str | None) -> bool:
    return DeploymentStatus.is_valid(status)


def label_status_field(label: str | None, status: str | None) -> str | None:
    """Composite field for a label's status counter.

    Args:
        label: Rollout label within the deployment
        status: One of the DeploymentStatus values

    Returns:
        "{label}:{status}", or None for an empty label or unknown status
    """
    if not label or not is_valid_deployment_status(status):
        return None
    return f"{label}:{DeploymentStatus(status).value}"


def label_active_count_field(label: str | None) -> str | None:
    """Composite field for a label's active install counter."""
    return f"{label}:{ACTIVE}" if label else None


def deployment_key_hash(deployment_key: str) -> str:
    """Cache scope key grouping all cached responses of one deployment."""
    return f"{DEPLOYMENT_KEY_PREFIX}{deployment_key}"


def deployment_labels_hash(deployment_key: str) -> str:
    return f"{DEPLOYMENT_LABELS_PREFIX}{deployment_key}"


def deployment_clients_hash(deployment_key: str) -> str:
    return f"{DEPLOYMENT_CLIENTS_PREFIX}{deployment_key}"
