"""Unit tests for data models and payload codecs."""

import json

import msgpack
import pytest

from rollcall.cache.models import CacheStats, JsonCodec, MsgpackCodec, get_codec
from rollcall.core.exceptions import ConfigurationError, MalformedDataError
from rollcall.core.models import CacheableResponse, DeploymentStatus, LabelMetrics


@pytest.fixture
def response():
    return CacheableResponse(
        status_code=200,
        body={
            "updateInfo": {
                "isAvailable": True,
                "label": "v12",
                "packageSize": 10243,
                "description": "Fixes ünïcode rendering",
                "rollout": None,
                "hashes": ["a1", "b2"],
            }
        },
    )


class TestDeploymentStatus:
    def test_values(self):
        assert {s.value for s in DeploymentStatus} == {
            "DeploymentSucceeded",
            "DeploymentFailed",
            "Downloaded",
        }

    def test_is_valid(self):
        assert DeploymentStatus.is_valid("DeploymentFailed")
        assert DeploymentStatus.is_valid(DeploymentStatus.DOWNLOADED)
        assert not DeploymentStatus.is_valid("Active")
        assert not DeploymentStatus.is_valid(None)


class TestCacheableResponse:
    def test_wire_format_uses_status_code_alias(self, response):
        wire = response.to_wire()
        assert wire["statusCode"] == 200
        assert "status_code" not in wire

    def test_accepts_wire_format(self):
        parsed = CacheableResponse.model_validate({"statusCode": 404, "body": "nope"})
        assert parsed.status_code == 404
        assert parsed.body == "nope"

    def test_body_defaults_to_none(self):
        assert CacheableResponse(status_code=204).body is None


class TestCodecs:
    """Tests for cached payload encoding."""

    @pytest.mark.parametrize("codec", [JsonCodec(), MsgpackCodec()])
    def test_decode_reproduces_response(self, codec, response):
        assert codec.decode(codec.encode(response)) == response

    def test_json_payload_is_plain_json(self, response):
        payload = JsonCodec().encode(response)
        assert json.loads(payload) == {"statusCode": 200, "body": response.body}

    def test_json_decodes_text(self, response):
        text = JsonCodec().encode(response).decode("utf-8")
        assert JsonCodec().decode(text) == response

    def test_json_invalid_payload(self):
        with pytest.raises(MalformedDataError) as exc_info:
            JsonCodec().decode(b"{not json")
        assert exc_info.value.details["codec"] == "json"

    def test_json_wrong_shape(self):
        """Test valid JSON that is not a response is rejected, not coerced."""
        with pytest.raises(MalformedDataError):
            JsonCodec().decode(b'{"body": 1}')

    def test_msgpack_invalid_payload(self):
        with pytest.raises(MalformedDataError):
            MsgpackCodec().decode(b"\xc1\xc1\xc1")

    def test_msgpack_wrong_shape(self):
        with pytest.raises(MalformedDataError):
            MsgpackCodec().decode(msgpack.packb([1, 2, 3]))

    def test_get_codec(self):
        assert isinstance(get_codec("json"), JsonCodec)
        assert isinstance(get_codec("msgpack"), MsgpackCodec)

    def test_get_codec_unknown(self):
        with pytest.raises(ConfigurationError, match="Unknown cache codec"):
            get_codec("pickle")


class TestCacheStats:
    def test_hit_rate(self):
        stats = CacheStats(hits=3, misses=1)
        stats.update_hit_rate()
        assert stats.hit_rate == 75.0

    def test_hit_rate_no_lookups(self):
        stats = CacheStats()
        stats.update_hit_rate()
        assert stats.hit_rate == 0.0


class TestLabelMetrics:
    def test_groups_counters_for_one_label(self):
        metrics = {
            "v2:Active": 4,
            "v2:DeploymentSucceeded": 5,
            "v2:DeploymentFailed": 1,
            "v2:Downloaded": 6,
            "v1:Active": -1,
        }
        grouped = LabelMetrics.from_metrics("v2", metrics)

        assert grouped == LabelMetrics(
            label="v2", active=4, downloaded=6, succeeded=5, failed=1
        )

    def test_missing_counters_are_zero(self):
        assert LabelMetrics.from_metrics("v9", {}).active == 0
