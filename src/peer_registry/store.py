"""
Storage collaborator for descriptor records.

The registry core only needs four operations with single-key atomicity:
get, put, delete, and list-by-prefix. There are no transactions, batches or
conditional writes, so multi-key sequences (write then clean up legacy
records) can interleave with concurrent requests.
"""

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import redis.asyncio as redis

from .errors import StorageError


@runtime_checkable
class Store(Protocol):
    """Key-value storage used by the registry."""

    async def get(self, key: str) -> bytes | None:
        """Return the value for key, or None if absent."""
        ...

    async def put(self, key: str, data: bytes) -> None:
        """Store data under key, replacing any previous value."""
        ...

    async def delete(self, key: str) -> None:
        """Remove key. Removing an absent key is not an error."""
        ...

    async def list(self, prefix: str = "") -> list[str]:
        """Return all keys starting with prefix (all keys for "")."""
        ...


def _escape_glob(pattern: str) -> str:
    """Escape Redis glob metacharacters so a prefix matches literally."""
    return "".join(f"\\{c}" if c in "*?[]\\" else c for c in pattern)


@dataclass
class RedisStore:
    """
    Store backed by plain Redis string keys.

    Every key is stored under a namespace so that listing with an empty
    prefix only sees registry records, not the rest of the database.

    Attributes:
        redis: Pre-configured redis.asyncio.Redis client.
        namespace: Prefix applied to every key in Redis.

    Example:
        async with redis.Redis.from_url("redis://localhost:6379") as r:
            store = RedisStore(redis=r)
            await store.put("/peer/p1", b"{...}")
            keys = await store.list("/peer/")
    """

    redis: redis.Redis
    namespace: str = "peer-registry:"

    def _key(self, key: str) -> str:
        return f"{self.namespace}{key}"

    async def get(self, key: str) -> bytes | None:
        try:
            value = await self.redis.get(self._key(key))
        except redis.RedisError as e:
            raise StorageError("get", key, str(e)) from e
        if value is None:
            return None
        return value.encode() if isinstance(value, str) else value

    async def put(self, key: str, data: bytes) -> None:
        try:
            await self.redis.set(self._key(key), data)
        except redis.RedisError as e:
            raise StorageError("put", key, str(e)) from e

    async def delete(self, key: str) -> None:
        try:
            await self.redis.delete(self._key(key))
        except redis.RedisError as e:
            raise StorageError("delete", key, str(e)) from e

    async def list(self, prefix: str = "") -> list[str]:
        pattern = _escape_glob(self._key(prefix)) + "*"
        keys: list[str] = []
        try:
            async for raw_key in self.redis.scan_iter(match=pattern):
                key = raw_key.decode() if isinstance(raw_key, bytes) else raw_key
                keys.append(key.removeprefix(self.namespace))
        except redis.RedisError as e:
            raise StorageError("list", prefix, str(e)) from e
        # SCAN may return a key more than once
        return sorted(set(keys))
