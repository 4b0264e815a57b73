"""Tests for descriptor decoding and normalization."""

import json

import pytest

from conftest import make_payload, to_bytes
from peer_registry.descriptor import (
    canonical_key,
    decode_descriptor,
    encode_descriptor,
    peer_id_from_key,
    validate_descriptor,
)
from peer_registry.errors import DecodeError, InvalidMetricError, ValidationError
from peer_registry.types import Address, Descriptor, Metric


class TestKeys:
    """Tests for canonical key helpers."""

    def test_canonical_key(self):
        assert canonical_key("p1") == "/peer/p1"

    def test_peer_id_from_prefixed_key(self):
        assert peer_id_from_key("/peer/p1") == "p1"

    def test_peer_id_from_bare_key(self):
        assert peer_id_from_key("p1") == "p1"

    def test_peer_id_from_prefix_only_key(self):
        """Stripping that leaves nothing falls back to the raw key."""
        assert peer_id_from_key("/peer/") == "/peer/"


class TestDecodeDescriptor:
    """Tests for decode_descriptor()."""

    def test_valid_record_not_modified(self):
        result = decode_descriptor(to_bytes(make_payload()), "/peer/p1")
        assert result.modified is False
        assert result.descriptor.peer_id == "p1"
        assert result.descriptor.address == Address(ip="10.0.0.5", port="4001", protocol="tcp")
        assert result.descriptor.metrics["metric"] == Metric(current=40, soft_limit=60, hard_limit=90)
        assert result.descriptor.raw == "raw-payload"

    def test_legacy_migration_scenario(self):
        """A bare limits record gets metrics and a peerId from its key."""
        data = json.dumps(
            {"address": {"ip": "10.0.0.9"}, "raw": "r", "limits": {"soft": 40, "hard": 90}}
        ).encode()
        result = decode_descriptor(data, "p1")
        assert result.modified is True
        assert result.descriptor.peer_id == "p1"
        assert result.descriptor.metrics == {
            "metric": Metric(current=40, soft_limit=40, hard_limit=90)
        }

    def test_legacy_record_without_address_fails_validation(self):
        """Migration repairs metrics only; other required fields stay required."""
        with pytest.raises(ValidationError) as exc_info:
            decode_descriptor(b'{"limits":{"soft":40,"hard":90}}', "p1")
        assert exc_info.value.field == "address.ip"

    def test_clamp_on_read_scenario(self):
        data = to_bytes(make_payload(current=150, soft=-5, hard=80))
        result = decode_descriptor(data, "/peer/p1")
        assert result.modified is True
        assert result.descriptor.metrics["metric"] == Metric(current=80, soft_limit=0, hard_limit=80)

    def test_peer_id_derived_from_key(self):
        data = to_bytes(make_payload(peer_id=""))
        result = decode_descriptor(data, "/peer/from-key")
        assert result.modified is True
        assert result.descriptor.peer_id == "from-key"

    def test_peer_id_trimmed(self):
        result = decode_descriptor(to_bytes(make_payload(peer_id="  p1 ")), "/peer/p1")
        assert result.modified is True
        assert result.descriptor.peer_id == "p1"

    def test_custom_key_prefix(self):
        data = to_bytes(make_payload(peer_id=""))
        result = decode_descriptor(data, "nodes:abc", key_prefix="nodes:")
        assert result.descriptor.peer_id == "abc"

    def test_null_fields_treated_as_empty(self):
        data = to_bytes(make_payload(peer_id=None))
        result = decode_descriptor(data, "/peer/p1")
        assert result.descriptor.peer_id == "p1"

    @pytest.mark.parametrize(
        "data",
        [b"not json", b"", b"[]", b'{"peerId": 5}', b'{"values": "lots"}'],
    )
    def test_malformed_bytes(self, data):
        with pytest.raises(DecodeError):
            decode_descriptor(data, "/peer/p1")

    def test_non_utf8_bytes(self):
        with pytest.raises(DecodeError):
            decode_descriptor(b"\xff\xfe\x00garbage", "/peer/p1")

    @pytest.mark.parametrize("metric_name", ["metric", "disk"])
    @pytest.mark.parametrize("token", ["NaN", "Infinity", "-Infinity"])
    def test_non_finite_tokens_rejected(self, metric_name, token):
        """NaN/Infinity are not JSON numbers, in any metric slot."""
        payload = make_payload()
        payload["values"][metric_name] = {"current": 0, "softLimit": 1, "hardLimit": 2}
        data = to_bytes(payload).replace(b'"current": 0,', f'"current": {token},'.encode(), 1)
        assert token.encode() in data
        with pytest.raises(DecodeError):
            decode_descriptor(data, "/peer/p1")

    def test_repaired_record_with_extra_metric_stays_decodable(self):
        """Rewriting a clamped record keeps every metric re-decodable."""
        payload = make_payload(current=150)
        payload["values"]["disk"] = {"current": 5, "softLimit": 10, "hardLimit": 20}
        first = decode_descriptor(to_bytes(payload), "/peer/p1")
        assert first.modified is True

        second = decode_descriptor(encode_descriptor(first.descriptor), "/peer/p1")
        assert second.modified is False
        assert second.descriptor.metrics["disk"] == Metric(current=5, soft_limit=10, hard_limit=20)

    def test_missing_metric_rejected(self):
        payload = make_payload()
        payload["values"] = {"other": {"current": 1, "softLimit": 2, "hardLimit": 3}}
        with pytest.raises(ValidationError) as exc_info:
            decode_descriptor(to_bytes(payload), "/peer/p1")
        assert str(exc_info.value) == "values.metric is required"

    def test_no_metrics_and_no_limits_rejected(self):
        payload = make_payload()
        del payload["values"]
        with pytest.raises(ValidationError, match="values.metric is required"):
            decode_descriptor(to_bytes(payload), "/peer/p1")

    @pytest.mark.parametrize("field,payload_kwargs", [("address.ip", {"ip": " "}), ("raw", {"raw": ""})])
    def test_required_fields(self, field, payload_kwargs):
        with pytest.raises(ValidationError) as exc_info:
            decode_descriptor(to_bytes(make_payload(**payload_kwargs)), "/peer/p1")
        assert exc_info.value.field == field

    def test_idempotent_on_own_output(self):
        """Re-decoding an encoded result reports no modification."""
        payloads = [
            make_payload(current=150, soft=-5, hard=80),
            make_payload(peer_id="", soft=99, hard=20),
            {"address": {"ip": "1.2.3.4"}, "raw": "x", "limits": {"soft": 70, "hard": 30}},
        ]
        for payload in payloads:
            first = decode_descriptor(to_bytes(payload), "/peer/p9")
            second = decode_descriptor(encode_descriptor(first.descriptor), "/peer/p9")
            assert second.modified is False
            assert second.descriptor == first.descriptor

    def test_does_not_mutate_input_descriptor_shape(self):
        """Extra metric names survive decoding untouched."""
        payload = make_payload()
        payload["values"]["disk"] = {"current": 500, "softLimit": 1, "hardLimit": 2}
        result = decode_descriptor(to_bytes(payload), "/peer/p1")
        assert result.descriptor.metrics["disk"].current == 500


class TestEncodeDescriptor:
    """Tests for encode_descriptor()."""

    def test_wire_shape(self):
        descriptor = Descriptor(
            peer_id="p1",
            address=Address(ip="10.0.0.5"),
            metrics={"metric": Metric(current=1, soft_limit=2, hard_limit=3)},
            raw="r",
        )
        assert json.loads(encode_descriptor(descriptor)) == {
            "peerId": "p1",
            "address": {"ip": "10.0.0.5"},
            "values": {"metric": {"current": 1.0, "softLimit": 2.0, "hardLimit": 3.0}},
            "raw": "r",
        }

    def test_legacy_limits_dropped_on_rewrite(self):
        data = json.dumps({"address": {"ip": "1.2.3.4"}, "raw": "x", "limits": {"soft": 1, "hard": 2}})
        result = decode_descriptor(data.encode(), "/peer/p1")
        assert "limits" not in json.loads(encode_descriptor(result.descriptor))


class TestValidateDescriptor:
    """Tests for validate_descriptor()."""

    def test_empty_peer_id_rejected(self):
        descriptor = Descriptor(
            peer_id="  ",
            address=Address(ip="1.1.1.1"),
            metrics={"metric": Metric(current=1, soft_limit=2, hard_limit=3)},
            raw="r",
        )
        with pytest.raises(ValidationError, match="peerId is required"):
            validate_descriptor(descriptor)

    def test_out_of_range_metric_rejected(self):
        descriptor = Descriptor(
            peer_id="p1",
            address=Address(ip="1.1.1.1"),
            metrics={"metric": Metric(current=1, soft_limit=2, hard_limit=300)},
            raw="r",
        )
        with pytest.raises(InvalidMetricError):
            validate_descriptor(descriptor)
