import logging
from typing import Optional

from redis.asyncio import Redis

logger = logging.getLogger(__name__)


class CacheService:
    """Thin wrapper around an async Redis client.

    If *redis_client* is ``None`` (Redis unavailable), every operation
    degrades to a no-op, so callers never need to check for ``None``.
    """

    def __init__(self, redis_client: Optional[Redis] = None) -> None:
        self._redis: Optional[Redis] = redis_client

    # ------------------------------------------------------------------
    # Best-effort distributed lock used by the ingestion sweep
    # ------------------------------------------------------------------

    async def acquire_lock(self, key: str, owner: str, ttl: int) -> bool:
        """Try to take *key* for *owner* for at most *ttl* seconds.

        Returns ``True`` when the lock was taken **or** when Redis is
        unavailable; in the latter case the database uniqueness
        constraint on lead email is the only guard against duplicates.
        Returns ``False`` only when another owner currently holds it.
        """
        if self._redis is None:
            return True
        try:
            acquired = await self._redis.set(key, owner, nx=True, ex=ttl)
            return bool(acquired)
        except Exception:
            logger.warning("Redis SET NX failed for key %s; running unlocked", key)
            return True

    async def release_lock(self, key: str, owner: str) -> None:
        """Release *key* if it is still held by *owner* (best-effort)."""
        if self._redis is None:
            return
        try:
            current = await self._redis.get(key)
            if current == owner:
                await self._redis.delete(key)
        except Exception:
            logger.warning("Redis lock release failed for key %s", key)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def is_available(self) -> bool:
        """Return ``True`` if a Redis client is configured."""
        return self._redis is not None
