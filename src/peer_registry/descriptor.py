"""
Descriptor decoding, normalization and strict validation.

decode_descriptor() is the read path for stored records. It is lenient where
a stored record can be repaired (legacy limits, out-of-range metrics, missing
peerId) and strict where it cannot. It never touches storage: callers get a
`modified` flag and decide themselves whether to write the repaired record
back.
"""

import logging
from dataclasses import dataclass

import pydantic

from .errors import DecodeError, ValidationError
from .limits import normalize_values, validate_metric
from .migration import migrate_legacy
from .types import METRIC_KEY, Descriptor

logger = logging.getLogger(__name__)

# Canonical storage keys are KEY_PREFIX + peerId
KEY_PREFIX = "/peer/"


@dataclass(frozen=True)
class DecodeResult:
    """A reconciled descriptor and whether it differs from the stored bytes."""

    descriptor: Descriptor
    modified: bool


def canonical_key(peer_id: str, key_prefix: str = KEY_PREFIX) -> str:
    """Return the storage key for a peer identifier."""
    return f"{key_prefix}{peer_id}"


def peer_id_from_key(storage_key: str, key_prefix: str = KEY_PREFIX) -> str:
    """Derive a peer identifier from a storage key.

    Falls back to the raw key when stripping the prefix leaves nothing.
    """
    trimmed = storage_key.removeprefix(key_prefix)
    return trimmed or storage_key


def parse_descriptor(data: bytes | str) -> Descriptor:
    """
    Parse JSON bytes into a Descriptor without any repair or validation.

    Raises:
        DecodeError: If the bytes are not a JSON object of the right shape.
    """
    try:
        return Descriptor.model_validate_json(data)
    except pydantic.ValidationError as e:
        raise DecodeError(_first_error(e)) from e


def encode_descriptor(descriptor: Descriptor) -> bytes:
    """Serialize a descriptor to its wire shape."""
    return descriptor.model_dump_json(by_alias=True, exclude_none=True).encode()


def validate_descriptor(descriptor: Descriptor, metric_key: str = METRIC_KEY) -> None:
    """
    Strictly validate a descriptor.

    Raises:
        ValidationError: Naming the first offending field.
    """
    if not descriptor.peer_id.strip():
        raise ValidationError("peerId", "peerId is required")
    if not descriptor.address.ip.strip():
        raise ValidationError("address.ip", "address.ip is required")
    if not descriptor.raw.strip():
        raise ValidationError("raw", "raw is required")

    metric = descriptor.metrics.get(metric_key)
    if metric is None:
        field = f"values.{metric_key}"
        raise ValidationError(field, f"{field} is required")
    validate_metric(metric, metric_key)


def decode_descriptor(
    data: bytes | str,
    storage_key: str,
    *,
    key_prefix: str = KEY_PREFIX,
    metric_key: str = METRIC_KEY,
) -> DecodeResult:
    """
    Decode a stored record and reconcile it with the current schema.

    Steps:
    1. Parse the bytes.
    2. If there are no metrics, migrate a legacy limits object if present.
    3. Clamp and reorder the recognized metric.
    4. Fill in or trim peerId, deriving it from storage_key when empty.
    5. Strictly validate the result.

    Args:
        data: Stored bytes
        storage_key: Key the bytes were read from
        key_prefix: Canonical key prefix, stripped when deriving peerId
        metric_key: Recognized metric name

    Returns:
        DecodeResult; modified is True when the caller should persist
        encode_descriptor(result.descriptor) back under storage_key.

    Raises:
        DecodeError: If the bytes are malformed.
        ValidationError: If the record cannot be repaired into a valid one.
    """
    descriptor = parse_descriptor(data)
    modified = False

    metrics = descriptor.metrics
    if not metrics:
        migration = migrate_legacy(data, metric_key)
        if migration.ok:
            metrics = migration.metrics
            modified = True
            logger.debug(f"Migrated legacy limits for key {storage_key}")

    metrics, changed = normalize_values(metrics, metric_key)
    modified = modified or changed

    peer_id = descriptor.peer_id.strip()
    if not peer_id:
        peer_id = peer_id_from_key(storage_key, key_prefix)
    if peer_id != descriptor.peer_id:
        modified = True

    descriptor = descriptor.model_copy(update={"peer_id": peer_id, "metrics": metrics})
    validate_descriptor(descriptor, metric_key)

    return DecodeResult(descriptor=descriptor, modified=modified)


def _first_error(error: pydantic.ValidationError) -> str:
    """Condense a pydantic error into a single line."""
    details = error.errors()
    if not details:
        return str(error)
    first = details[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = first.get("msg", "invalid value")
    return f"{location}: {message}" if location else message
