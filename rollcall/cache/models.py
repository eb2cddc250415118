"""Cache statistics and payload codecs."""

import json
from typing import Any, Protocol

import msgpack
from pydantic import BaseModel, Field, ValidationError

from rollcall.core.exceptions import ConfigurationError, MalformedDataError
from rollcall.core.models import CacheableResponse


class CacheStats(BaseModel):
    """Cache performance statistics.

    Attributes:
        hits: Number of successful cache hits
        misses: Number of cache misses
        writes: Number of responses written
        scopes_created: Writes that created a new scope key (and set its TTL)
        invalidations: Number of scope keys invalidated
        errors: Number of failed cache operations
        hit_rate: Cache hit rate (hits / total lookups)
    """

    hits: int = Field(default=0, description="Cache hits")
    misses: int = Field(default=0, description="Cache misses")
    writes: int = Field(default=0, description="Responses written")
    scopes_created: int = Field(default=0, description="New scope keys")
    invalidations: int = Field(default=0, description="Scopes invalidated")
    errors: int = Field(default=0, description="Cache errors")
    hit_rate: float = Field(default=0.0, description="Hit rate percentage")

    def update_hit_rate(self) -> None:
        """Recalculate hit rate based on current stats."""
        total = self.hits + self.misses
        self.hit_rate = (self.hits / total * 100) if total > 0 else 0.0


class PayloadCodec(Protocol):
    """Encodes cached responses for storage in a hash field."""

    name: str

    def encode(self, response: CacheableResponse) -> bytes: ...

    def decode(self, data: bytes | str) -> CacheableResponse: ...


def _validate(payload: Any, codec: str) -> CacheableResponse:
    try:
        return CacheableResponse.model_validate(payload)
    except ValidationError as e:
        raise MalformedDataError(
            f"Cached payload is not a response: {e.error_count()} errors",
            details={"codec": codec},
        ) from e


class JsonCodec:
    """JSON text, readable by any other consumer of the cache database."""

    name = "json"

    def encode(self, response: CacheableResponse) -> bytes:
        return json.dumps(response.to_wire(), separators=(",", ":")).encode("utf-8")

    def decode(self, data: bytes | str) -> CacheableResponse:
        try:
            payload = json.loads(data)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise MalformedDataError(
                f"Cached payload is not valid JSON: {e}", details={"codec": self.name}
            ) from e
        return _validate(payload, self.name)


class MsgpackCodec:
    """MessagePack, compact binary storage."""

    name = "msgpack"

    def encode(self, response: CacheableResponse) -> bytes:
        return msgpack.packb(response.to_wire(), use_bin_type=True)

    def decode(self, data: bytes | str) -> CacheableResponse:
        if isinstance(data, str):
            data = data.encode("utf-8")
        try:
            payload = msgpack.unpackb(data, raw=False)
        except (ValueError, TypeError) as e:
            raise MalformedDataError(
                f"Cached payload is not valid msgpack: {e}", details={"codec": self.name}
            ) from e
        return _validate(payload, self.name)


_CODECS: dict[str, type[JsonCodec] | type[MsgpackCodec]] = {
    "json": JsonCodec,
    "msgpack": MsgpackCodec,
}


def get_codec(name: str) -> PayloadCodec:
    """Look up a payload codec by name.

    Raises:
        ConfigurationError: Unknown codec name
    """
    try:
        return _CODECS[name]()
    except KeyError:
        raise ConfigurationError(
            f"Unknown cache codec '{name}'", details={"available": sorted(_CODECS)}
        ) from None
