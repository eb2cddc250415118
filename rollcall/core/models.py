"""Data models for cached responses and deployment metrics."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Suffix of the per-label active install counter. Not a deployment status.
ACTIVE = "Active"

# Flat view of a labels hash: "label:status" / "label:Active" -> counter
DeploymentMetrics = dict[str, int]


class DeploymentStatus(str, Enum):
    """Closed set of rollout outcomes reported by clients."""

    SUCCEEDED = "DeploymentSucceeded"
    FAILED = "DeploymentFailed"
    DOWNLOADED = "Downloaded"

    @classmethod
    def is_valid(cls, status: str | None) -> bool:
        """Check whether a raw status string belongs to the enumeration."""
        return any(status == member.value for member in cls)


class CacheableResponse(BaseModel):
    """HTTP-like response stored in the cache.

    Serialized as ``{"statusCode": ..., "body": ...}`` so that other
    readers of the same store see the same wire format.

    Attributes:
        status_code: HTTP status code of the origin response
        body: JSON-serializable response body
    """

    model_config = ConfigDict(populate_by_name=True)

    status_code: int = Field(..., alias="statusCode", description="HTTP status code")
    body: Any = Field(default=None, description="JSON-serializable body")

    def to_wire(self) -> dict[str, Any]:
        """Return the dict form written to the store."""
        return self.model_dump(by_alias=True, mode="json")


class LabelMetrics(BaseModel):
    """Counters for one label of a deployment, grouped from the labels hash."""

    label: str
    active: int = 0
    downloaded: int = 0
    succeeded: int = 0
    failed: int = 0

    @classmethod
    def from_metrics(cls, label: str, metrics: DeploymentMetrics) -> "LabelMetrics":
        return cls(
            label=label,
            active=metrics.get(f"{label}:{ACTIVE}", 0),
            downloaded=metrics.get(f"{label}:{DeploymentStatus.DOWNLOADED.value}", 0),
            succeeded=metrics.get(f"{label}:{DeploymentStatus.SUCCEEDED.value}", 0),
            failed=metrics.get(f"{label}:{DeploymentStatus.FAILED.value}", 0),
        )
