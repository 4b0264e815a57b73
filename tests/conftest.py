"""Shared fixtures for peer registry tests."""

import json

import fakeredis
import pytest

from peer_registry.registry import PeerRegistry
from peer_registry.store import RedisStore


@pytest.fixture
async def redis_client():
    """Create in-memory async Redis client for tests."""
    client = fakeredis.FakeAsyncRedis()
    yield client
    await client.flushall()
    await client.aclose()


@pytest.fixture
def store(redis_client):
    """Create RedisStore on the fake client."""
    return RedisStore(redis=redis_client)


@pytest.fixture
def registry(store):
    """Create PeerRegistry with default settings."""
    return PeerRegistry(store)


def make_payload(
    peer_id: str = "p1",
    ip: str = "10.0.0.5",
    current: float = 40,
    soft: float = 60,
    hard: float = 90,
    raw: str = "raw-payload",
    **extra,
) -> dict:
    """Build a wire-shaped descriptor dict."""
    payload = {
        "peerId": peer_id,
        "address": {"ip": ip, "port": "4001", "protocol": "tcp"},
        "values": {"metric": {"current": current, "softLimit": soft, "hardLimit": hard}},
        "raw": raw,
    }
    payload.update(extra)
    return payload


def to_bytes(payload: dict) -> bytes:
    """Encode a payload dict as stored bytes."""
    return json.dumps(payload).encode()
