"""
Removal of records superseded by a canonical registration.

After a peer registers under its canonical key, older records that still
carry the same peerId (written under a bare or numeric key) would otherwise
linger as duplicates. cleanup_legacy() deletes them.

Cleanup is not transactional: it runs after the canonical write, and if a
delete fails the scan stops with the earlier deletes already applied.
"""

import logging

from .metrics import record_legacy_removed
from .resolver import probe_peer_id
from .store import Store

logger = logging.getLogger(__name__)


async def cleanup_legacy(store: Store, peer_id: str, keep_key: str) -> int:
    """
    Delete every record other than keep_key whose embedded peerId matches.

    Undecodable records are skipped; they cannot belong to this peer.

    Args:
        store: Record storage
        peer_id: Identifier that was just registered
        keep_key: Key of the record just written

    Returns:
        Number of records removed.

    Raises:
        StorageError: On the first failing list/get/delete. Records deleted
            before the failure stay deleted.
    """
    target = peer_id.strip()
    if not target:
        return 0

    removed = 0
    try:
        for key in await store.list(""):
            if key == keep_key:
                continue
            data = await store.get(key)
            if data is None:
                continue
            embedded = probe_peer_id(data)
            if embedded is None:
                logger.debug(f"Skipping undecodable record {key} during cleanup")
                continue
            if embedded != target:
                continue
            await store.delete(key)
            removed += 1
            logger.info(f"Removed legacy record {key} for peer {target}")
    finally:
        record_legacy_removed(removed)

    return removed
