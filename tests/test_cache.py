"""Run-lock behaviour of CacheService."""

from unittest.mock import AsyncMock

import pytest

from removals_crm.core.cache import CacheService


class TestRunLock:
    @pytest.mark.asyncio
    async def test_acquire_uses_set_nx_with_ttl(self, mock_cache, mock_redis):
        assert await mock_cache.acquire_lock("ingestion:run", "owner-1", 600) is True
        mock_redis.set.assert_awaited_once_with(
            "ingestion:run", "owner-1", nx=True, ex=600
        )

    @pytest.mark.asyncio
    async def test_acquire_fails_when_held(self, mock_cache, mock_redis):
        mock_redis.set = AsyncMock(return_value=None)
        assert await mock_cache.acquire_lock("ingestion:run", "owner-2", 600) is False

    @pytest.mark.asyncio
    async def test_release_only_by_owner(self, mock_cache, mock_redis):
        mock_redis.get = AsyncMock(return_value="someone-else")
        await mock_cache.release_lock("ingestion:run", "owner-1")
        mock_redis.delete.assert_not_awaited()

        mock_redis.get = AsyncMock(return_value="owner-1")
        await mock_cache.release_lock("ingestion:run", "owner-1")
        mock_redis.delete.assert_awaited_once_with("ingestion:run")

    @pytest.mark.asyncio
    async def test_without_redis_lock_is_always_granted(self):
        cache = CacheService()
        assert cache.is_available is False
        assert await cache.acquire_lock("ingestion:run", "owner", 600) is True
        await cache.release_lock("ingestion:run", "owner")

    @pytest.mark.asyncio
    async def test_redis_errors_degrade_to_unlocked(self, mock_cache, mock_redis):
        mock_redis.set = AsyncMock(side_effect=ConnectionError("down"))
        mock_redis.get = AsyncMock(side_effect=ConnectionError("down"))

        assert await mock_cache.acquire_lock("ingestion:run", "owner", 600) is True
        await mock_cache.release_lock("ingestion:run", "owner")
