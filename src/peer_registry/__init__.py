"""
Peer registry: stores peer/server descriptors keyed by peer identifier.

The core is the descriptor read path, which lazily migrates records written
under the legacy limits schema, clamps metrics into range, and resolves
identifiers through several fallbacks, including a full scan for records
stored under pre-canonical keys.

Key entry points:
- decode_descriptor: Reconcile stored bytes with the current schema
- migrate_legacy: Build a metrics map from a legacy limits object
- resolve_peer_id / find_by_peer_id: Locate the record a request targets
- cleanup_legacy: Remove records superseded by a canonical write
- PeerRegistry: List/register/get/delete over a Store
"""

from peer_registry.cleanup import cleanup_legacy
from peer_registry.descriptor import (
    DecodeResult,
    canonical_key,
    decode_descriptor,
    encode_descriptor,
    validate_descriptor,
)
from peer_registry.errors import (
    CorruptRecordError,
    DecodeError,
    InvalidMetricError,
    MalformedBodyError,
    MissingIdentifierError,
    PeerNotFoundError,
    RegistryError,
    StorageError,
    ValidationError,
)
from peer_registry.limits import clamp, normalize_metric, validate_metric
from peer_registry.migration import MigrationResult, migrate_legacy
from peer_registry.registry import PeerRegistry
from peer_registry.resolver import FoundRecord, PeerRequest, find_by_peer_id, resolve_peer_id
from peer_registry.store import RedisStore, Store
from peer_registry.types import Address, Descriptor, Metric

__all__ = [
    # Core operations
    "clamp",
    "validate_metric",
    "normalize_metric",
    "migrate_legacy",
    "decode_descriptor",
    "encode_descriptor",
    "validate_descriptor",
    "canonical_key",
    "resolve_peer_id",
    "find_by_peer_id",
    "cleanup_legacy",
    "PeerRegistry",
    # Storage
    "Store",
    "RedisStore",
    # Data types
    "Address",
    "Metric",
    "Descriptor",
    "DecodeResult",
    "MigrationResult",
    "PeerRequest",
    "FoundRecord",
    # Errors
    "RegistryError",
    "DecodeError",
    "ValidationError",
    "InvalidMetricError",
    "MissingIdentifierError",
    "MalformedBodyError",
    "PeerNotFoundError",
    "StorageError",
    "CorruptRecordError",
]
