"""Response cache for release distribution endpoints.

Responses are grouped under scope keys (one per deployment) so a whole
deployment's cached responses share one expiry and can be invalidated
with a single command when its content changes.

Usage:
    >>> from rollcall.cache import ResponseCache
    >>> from rollcall.core.keys import deployment_key_hash
    >>>
    >>> scope = deployment_key_hash("dk_123")
    >>> cached = await cache.get(scope, "/updateCheck?label=v3")
    >>> if cached is None:
    >>>     response = await origin(request)
    >>>     await cache.set(scope, "/updateCheck?label=v3", response)
"""

from rollcall.cache.models import (
    CacheStats,
    JsonCodec,
    MsgpackCodec,
    PayloadCodec,
    get_codec,
)
from rollcall.cache.service import ResponseCache

__all__ = [
    "ResponseCache",
    "CacheStats",
    "PayloadCodec",
    "JsonCodec",
    "MsgpackCodec",
    "get_codec",
]
