"""Redis pool lifecycle and the store dependency for the HTTP service.

open_pool() runs on app startup and close_pool() on shutdown; request
handlers receive a RedisStore through get_store().
"""

import redis.asyncio as redis

from .config import settings
from .store import RedisStore

_pool: redis.ConnectionPool | None = None


async def open_pool(url: str | None = None) -> None:
    """Create the shared connection pool (defaults to settings.redis_url)."""
    global _pool
    _pool = redis.ConnectionPool.from_url(url or settings.redis_url)


async def close_pool() -> None:
    """Disconnect and forget the shared pool."""
    global _pool
    if _pool:
        await _pool.disconnect()
        _pool = None


async def get_store() -> RedisStore:
    """Return a store on the shared pool. Use as FastAPI dependency.

    Raises:
        RuntimeError: If the pool is not open (app not started).
    """
    if _pool is None:
        raise RuntimeError("Redis pool not initialized")
    client = redis.Redis(connection_pool=_pool)
    return RedisStore(redis=client, namespace=settings.key_namespace)
