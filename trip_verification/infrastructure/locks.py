"""
Per-key locks used by the lifecycle engine.

* ``KeyedLock`` -- one ``asyncio.Lock`` per key; serializes calls inside a
  single process (default backend).
* ``RedisLockProvider`` / ``DistributedLock`` -- Redis-based lock for
  deployments running several API processes against one database.

The Redis lock uses SET NX EX for acquire and a Lua script for atomic
check-and-delete on release.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from contextlib import asynccontextmanager

import redis.asyncio as aioredis

from trip_verification.domain.ports import LockProvider

logger = logging.getLogger(__name__)


class KeyedLock(LockProvider):
    """A key's lock lives only while someone holds or waits for it."""

    def __init__(self):
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str):
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield lock
        finally:
            self._users[key] -= 1
            if not self._users[key]:
                del self._users[key]
                del self._locks[key]


class DistributedLock:
    RELEASE_SCRIPT = """
    if redis.call("get", KEYS[1]) == ARGV[1] then
        return redis.call("del", KEYS[1])
    else
        return 0
    end
    """

    def __init__(
        self,
        client: aioredis.Redis,
        key: str,
        ttl_seconds: int = 30,
        blocking_timeout: float = 0.0,
        retry_interval: float = 0.05,
    ):
        self.redis = client
        self.key = f"lock:{key}"
        self.ttl = ttl_seconds
        self.blocking_timeout = blocking_timeout
        self.retry_interval = retry_interval
        self.token = str(uuid.uuid4())

    async def acquire(self) -> bool:
        """Try to acquire once. Returns True on success."""
        return bool(
            await self.redis.set(self.key, self.token, nx=True, ex=self.ttl)
        )

    async def acquire_blocking(self) -> bool:
        """Retry until acquired or ``blocking_timeout`` elapses."""
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.blocking_timeout
        while True:
            if await self.acquire():
                return True
            if loop.time() >= deadline:
                return False
            await asyncio.sleep(self.retry_interval)

    async def release(self) -> None:
        """Release only if we still own the lock (atomic via Lua)."""
        await self.redis.eval(self.RELEASE_SCRIPT, 1, self.key, self.token)

    # context-manager support
    async def __aenter__(self):
        acquired = await self.acquire_blocking()
        if not acquired:
            logger.warning("Timed out waiting for %s", self.key)
            raise RuntimeError(f"Could not acquire lock: {self.key}")
        return self

    async def __aexit__(self, *args):
        await self.release()


class RedisLockProvider(LockProvider):
    def __init__(
        self,
        client: aioredis.Redis,
        ttl_seconds: int = 30,
        blocking_timeout: float = 5.0,
    ):
        self.client = client
        self.ttl = ttl_seconds
        self.blocking_timeout = blocking_timeout

    def hold(self, key: str) -> DistributedLock:
        return DistributedLock(
            self.client,
            key,
            ttl_seconds=self.ttl,
            blocking_timeout=self.blocking_timeout,
        )


def redis_lock_provider(
    redis_url: str, ttl_seconds: int = 30, blocking_timeout: float = 5.0
) -> RedisLockProvider:
    """Build a provider backed by its own Redis connection pool."""
    client = aioredis.Redis(
        connection_pool=aioredis.ConnectionPool.from_url(
            redis_url, decode_responses=True
        )
    )
    return RedisLockProvider(
        client, ttl_seconds=ttl_seconds, blocking_timeout=blocking_timeout
    )
