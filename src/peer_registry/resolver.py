"""
Peer identifier resolution.

Single-record operations (get, delete) find their target in two stages:

1. resolve_peer_id() extracts an identifier from the request, trying in
   order the last path segment, the peerId query parameter, the id query
   parameter, and finally a JSON body with peerId/id fields.
2. find_by_peer_id() maps the identifier to a stored record, first through
   the canonical key and then, for records written under an older key
   scheme, through a full scan matching the peerId embedded in each value.

The full scan is O(number of stored records). It exists so that old records
stay reachable without a one-off migration job; large deployments should
replace it with a forward index or an explicit migration pass.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field

import pydantic

from .descriptor import KEY_PREFIX, canonical_key
from .errors import MalformedBodyError, MissingIdentifierError, PeerNotFoundError
from .metrics import record_legacy_scan
from .store import Store
from .types import IdentifierBody, PeerIdProbe

logger = logging.getLogger(__name__)

# Last path segment of the body-addressed delete route, never a peer id
RESERVED_ROUTE_TOKEN = "delete"


@dataclass(frozen=True)
class PeerRequest:
    """
    Transport-neutral view of an inbound request.

    Attributes:
        path: Request path below the route's mount point (e.g. "/p1")
        query: Query parameters (first value per name)
        body: Raw request body
    """

    path: str = ""
    query: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""


@dataclass(frozen=True)
class FoundRecord:
    """A stored record located for a peer identifier."""

    key: str
    data: bytes


def _last_path_segment(path: str) -> str:
    # Blank segments such as "a/ /" are ignored
    segments = [segment.strip() for segment in path.split("/") if segment.strip()]
    return segments[-1] if segments else ""


def resolve_peer_id(request: PeerRequest, *, reserved_token: str = RESERVED_ROUTE_TOKEN) -> str:
    """
    Determine the peer identifier a request targets.

    Args:
        request: The inbound request
        reserved_token: Path segment that names a route, not a peer

    Returns:
        The first non-empty identifier found, whitespace-trimmed.

    Raises:
        MissingIdentifierError: If no strategy yields an identifier.
        MalformedBodyError: If the body fallback is reached and the body is
            not a JSON object.
    """
    segment = _last_path_segment(request.path)
    if segment and segment != reserved_token:
        return segment

    for name in ("peerId", "id"):
        value = (request.query.get(name) or "").strip()
        if value:
            return value

    if not request.body:
        raise MissingIdentifierError()

    try:
        body = IdentifierBody.model_validate_json(request.body)
    except pydantic.ValidationError as e:
        raise MalformedBodyError(str(e)) from e

    for value in (body.peer_id, body.id):
        if value.strip():
            return value.strip()

    raise MissingIdentifierError()


def probe_peer_id(data: bytes) -> str | None:
    """Return the trimmed peerId embedded in stored bytes.

    None means the bytes could not be decoded at all.
    """
    try:
        return PeerIdProbe.model_validate_json(data).peer_id.strip()
    except pydantic.ValidationError:
        return None


async def find_by_peer_id(
    store: Store,
    peer_id: str,
    *,
    key_prefix: str = KEY_PREFIX,
    legacy_scan: bool = True,
) -> FoundRecord:
    """
    Locate the stored record for a peer.

    Args:
        store: Record storage
        peer_id: Identifier to look up
        key_prefix: Canonical key prefix
        legacy_scan: Fall back to scanning every record on a canonical miss

    Returns:
        FoundRecord with the key the record lives under and its bytes.

    Raises:
        PeerNotFoundError: If no record matches.
        StorageError: On storage failures.
    """
    key = canonical_key(peer_id, key_prefix)
    data = await store.get(key)
    if data is not None:
        return FoundRecord(key=key, data=data)

    if not legacy_scan:
        raise PeerNotFoundError(peer_id)

    found = await _scan_for_peer_id(store, peer_id.strip())
    record_legacy_scan(found is not None)
    if found is None:
        raise PeerNotFoundError(peer_id)
    logger.info(f"Resolved peer {peer_id} to legacy key {found.key}")
    return found


async def _scan_for_peer_id(store: Store, peer_id: str) -> FoundRecord | None:
    if not peer_id:
        return None
    for key in await store.list(""):
        data = await store.get(key)
        if data is None:
            continue
        embedded = probe_peer_id(data)
        if embedded is None:
            logger.debug(f"Skipping undecodable record {key} during scan")
            continue
        if embedded == peer_id:
            return FoundRecord(key=key, data=data)
    return None
