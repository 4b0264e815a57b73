"""
CRUD orchestration for peer descriptors.

PeerRegistry wires the pure descriptor logic to a Store:
- list_peers: decode every canonical record, rewriting repaired ones
- register: validate a submission, write it canonically, drop duplicates
- get: resolve the target, decode it, rewrite it in place if repaired
- delete: resolve the target and remove whichever key it lives under

Reads that repair a record write it back with a plain put (no
compare-and-swap), so a delete racing with such a read can be undone.
"""

import logging

from .cleanup import cleanup_legacy
from .descriptor import (
    KEY_PREFIX,
    canonical_key,
    decode_descriptor,
    encode_descriptor,
    parse_descriptor,
    validate_descriptor,
)
from .errors import CorruptRecordError, DecodeError, RegistryError, ValidationError
from .limits import normalize_values
from .metrics import record_operation, record_repair
from .migration import migrate_legacy
from .resolver import RESERVED_ROUTE_TOKEN, PeerRequest, find_by_peer_id, resolve_peer_id
from .store import Store
from .types import METRIC_KEY, Descriptor

logger = logging.getLogger(__name__)


class PeerRegistry:
    """Registry operations over a record store."""

    def __init__(
        self,
        store: Store,
        *,
        key_prefix: str = KEY_PREFIX,
        metric_key: str = METRIC_KEY,
        reserved_token: str = RESERVED_ROUTE_TOKEN,
        legacy_scan: bool = True,
    ):
        self._store = store
        self._key_prefix = key_prefix
        self._metric_key = metric_key
        self._reserved_token = reserved_token
        self._legacy_scan = legacy_scan

    @classmethod
    def from_settings(cls, store: Store) -> "PeerRegistry":
        """Create a registry configured from environment settings."""
        from .config import settings

        return cls(
            store,
            key_prefix=settings.key_prefix,
            metric_key=settings.metric_key,
            reserved_token=settings.reserved_route_token,
            legacy_scan=settings.legacy_scan_enabled,
        )

    async def list_peers(self) -> list[Descriptor]:
        """
        Return every descriptor stored under the canonical prefix.

        Records removed between listing and reading are skipped.

        Raises:
            CorruptRecordError: If a stored record cannot be repaired.
            StorageError: On storage failures.
        """
        try:
            descriptors = []
            for key in await self._store.list(self._key_prefix):
                data = await self._store.get(key)
                if data is None:
                    continue
                descriptors.append(await self._load(key, data))
        except RegistryError:
            record_operation("list", "error")
            raise
        record_operation("list", "ok")
        return descriptors

    async def register(self, body: bytes) -> Descriptor:
        """
        Validate a submitted descriptor and store it under its canonical key.

        A submission with no metrics but a legacy limits object is migrated
        first. Only the recognized metric is kept. After the write, other
        records carrying the same peerId are removed.

        Args:
            body: Raw JSON request body

        Returns:
            The descriptor as stored.

        Raises:
            DecodeError: If the body is not a descriptor.
            ValidationError: If the descriptor is invalid.
            StorageError: On storage failures (the canonical write may have
                succeeded if cleanup failed).
        """
        try:
            descriptor = parse_descriptor(body)
            metrics = descriptor.metrics
            if not metrics:
                migration = migrate_legacy(body, self._metric_key)
                if migration.ok:
                    metrics = migration.metrics
                    descriptor = descriptor.model_copy(update={"metrics": metrics})

            validate_descriptor(descriptor, self._metric_key)

            metrics, _ = normalize_values(metrics, self._metric_key)
            peer_id = descriptor.peer_id.strip()
            descriptor = descriptor.model_copy(
                update={
                    "peer_id": peer_id,
                    "metrics": {self._metric_key: metrics[self._metric_key]},
                }
            )

            key = canonical_key(peer_id, self._key_prefix)
            await self._store.put(key, encode_descriptor(descriptor))
            removed = await cleanup_legacy(self._store, peer_id, key)
        except RegistryError:
            record_operation("register", "error")
            raise

        record_operation("register", "ok")
        logger.info(f"Registered peer {peer_id} ({removed} legacy records removed)")
        return descriptor

    async def get(self, request: PeerRequest) -> Descriptor:
        """
        Fetch the descriptor a request targets.

        Raises:
            MissingIdentifierError, MalformedBodyError: If no target.
            PeerNotFoundError: If nothing is stored for the target.
            CorruptRecordError: If the stored record cannot be repaired.
            StorageError: On storage failures.
        """
        try:
            peer_id = resolve_peer_id(request, reserved_token=self._reserved_token)
            found = await find_by_peer_id(
                self._store,
                peer_id,
                key_prefix=self._key_prefix,
                legacy_scan=self._legacy_scan,
            )
            descriptor = await self._load(found.key, found.data)
        except RegistryError:
            record_operation("get", "error")
            raise
        record_operation("get", "ok")
        return descriptor

    async def delete(self, request: PeerRequest) -> str:
        """
        Delete the record a request targets.

        Returns:
            The resolved peer identifier.

        Raises:
            MissingIdentifierError, MalformedBodyError: If no target.
            PeerNotFoundError: If nothing is stored for the target.
            StorageError: On storage failures.
        """
        try:
            peer_id = resolve_peer_id(request, reserved_token=self._reserved_token)
            found = await find_by_peer_id(
                self._store,
                peer_id,
                key_prefix=self._key_prefix,
                legacy_scan=self._legacy_scan,
            )
            await self._store.delete(found.key)
        except RegistryError:
            record_operation("delete", "error")
            raise
        record_operation("delete", "ok")
        logger.info(f"Deleted peer {peer_id} (key {found.key})")
        return peer_id

    async def _load(self, key: str, data: bytes) -> Descriptor:
        """Decode a stored record, writing it back if it was repaired."""
        try:
            result = decode_descriptor(
                data,
                key,
                key_prefix=self._key_prefix,
                metric_key=self._metric_key,
            )
        except (DecodeError, ValidationError) as e:
            logger.warning(f"Stored record {key} is invalid: {e}")
            raise CorruptRecordError(key, str(e)) from e

        if result.modified:
            await self._store.put(key, encode_descriptor(result.descriptor))
            record_repair()
            logger.info(f"Rewrote repaired record {key}")
        return result.descriptor
