"""Tests for legacy record cleanup."""

from unittest.mock import AsyncMock

import pytest

from conftest import make_payload, to_bytes
from peer_registry.cleanup import cleanup_legacy
from peer_registry.errors import StorageError


class TestCleanupLegacy:
    """Tests for cleanup_legacy()."""

    @pytest.mark.asyncio
    async def test_removes_matching_records(self, store):
        await store.put("/peer/p1", to_bytes(make_payload(peer_id="p1")))
        await store.put("p1-old", to_bytes(make_payload(peer_id="p1")))
        await store.put("17", to_bytes(make_payload(peer_id=" p1 ")))

        removed = await cleanup_legacy(store, "p1", "/peer/p1")

        assert removed == 2
        assert await store.list("") == ["/peer/p1"]

    @pytest.mark.asyncio
    async def test_keeps_other_peers_and_corrupt_records(self, store):
        await store.put("/peer/p1", to_bytes(make_payload(peer_id="p1")))
        await store.put("/peer/p2", to_bytes(make_payload(peer_id="p2")))
        await store.put("broken", b"not json at all")
        await store.put("no-id", b'{"limits": {"soft": 1, "hard": 2}}')

        removed = await cleanup_legacy(store, "p1", "/peer/p1")

        assert removed == 0
        assert await store.list("") == ["/peer/p1", "/peer/p2", "broken", "no-id"]

    @pytest.mark.asyncio
    async def test_skips_non_utf8_records(self, store):
        await store.put("/peer/p1", to_bytes(make_payload(peer_id="p1")))
        await store.put("aaa-binary", b"\xff\xfe\x00garbage")
        await store.put("zzz-old", to_bytes(make_payload(peer_id="p1")))

        removed = await cleanup_legacy(store, "p1", "/peer/p1")

        assert removed == 1
        assert await store.list("") == ["/peer/p1", "aaa-binary"]

    @pytest.mark.asyncio
    async def test_empty_peer_id_is_noop(self, store):
        await store.put("a", b'{"peerId": ""}')
        assert await cleanup_legacy(store, "  ", "/peer/") == 0
        assert await store.list("") == ["a"]

    @pytest.mark.asyncio
    async def test_delete_failure_aborts(self, store):
        """The first failing delete propagates; earlier deletes stand."""
        for key in ("a", "b", "c"):
            await store.put(key, to_bytes(make_payload(peer_id="p1")))

        real_delete = store.delete
        calls = []

        async def flaky_delete(key):
            calls.append(key)
            if len(calls) == 2:
                raise StorageError("delete", key, "connection reset")
            await real_delete(key)

        store.delete = AsyncMock(side_effect=flaky_delete)

        with pytest.raises(StorageError):
            await cleanup_legacy(store, "p1", "/peer/p1")

        assert calls == ["a", "b"]
        assert await store.get("a") is None
        assert await store.get("b") is not None
        assert await store.get("c") is not None
