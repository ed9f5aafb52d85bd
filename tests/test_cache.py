import json
from unittest.mock import AsyncMock, patch

import pytest

from app.core.cache import CacheService, pipeline_stages_key, scoring_config_key
from app.dependencies import get_redis_client


class TestCacheService:
    @pytest.mark.asyncio
    async def test_no_redis_is_a_no_op(self):
        cache = CacheService(redis_client=None)
        await cache.set_scoring_config("t1", {"fields": []})
        assert await cache.get_scoring_config("t1") is None
        await cache.invalidate_tenant("t1")
        assert cache.is_available is False

    @pytest.mark.asyncio
    async def test_set_uses_ttl(self, mock_cache, mock_redis):
        await mock_cache.set_stages("t1", [{"id": "New"}])
        mock_redis.setex.assert_awaited_once_with(
            pipeline_stages_key("t1"), 300, json.dumps([{"id": "New"}])
        )

    @pytest.mark.asyncio
    async def test_set_without_ttl(self, mock_redis):
        cache = CacheService(redis_client=mock_redis, ttl=0)
        await cache.set_json("k", {"a": 1})
        mock_redis.set.assert_awaited_once_with("k", json.dumps({"a": 1}))

    @pytest.mark.asyncio
    async def test_get_decodes_json(self, mock_cache, mock_redis):
        mock_redis.get = AsyncMock(return_value='{"fields": []}')
        assert await mock_cache.get_scoring_config("t1") == {"fields": []}
        mock_redis.get.assert_awaited_once_with(scoring_config_key("t1"))

    @pytest.mark.asyncio
    async def test_invalid_json_is_a_miss(self, mock_cache, mock_redis):
        mock_redis.get = AsyncMock(return_value="{not json")
        assert await mock_cache.get_json("k") is None

    @pytest.mark.asyncio
    async def test_redis_errors_are_swallowed(self, mock_cache, mock_redis):
        mock_redis.get = AsyncMock(side_effect=ConnectionError("down"))
        mock_redis.delete = AsyncMock(side_effect=ConnectionError("down"))
        assert await mock_cache.get_json("k") is None
        await mock_cache.invalidate_tenant("t1")

    @pytest.mark.asyncio
    async def test_invalidate_tenant_drops_both_keys(self, mock_cache, mock_redis):
        await mock_cache.invalidate_tenant("t1")
        mock_redis.delete.assert_awaited_once_with(
            scoring_config_key("t1"), pipeline_stages_key("t1")
        )


class TestRedisClientDependency:
    @pytest.mark.asyncio
    async def test_client_closed_after_request(self, mock_redis):
        mock_redis.aclose = AsyncMock()
        with patch("app.dependencies.Redis.from_url", return_value=mock_redis):
            dependency = get_redis_client()
            client = await dependency.__anext__()
            assert client is mock_redis
            mock_redis.aclose.assert_not_awaited()
            with pytest.raises(StopAsyncIteration):
                await dependency.__anext__()
        mock_redis.aclose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unreachable_redis_yields_none_and_closes(self, mock_redis):
        mock_redis.ping = AsyncMock(side_effect=ConnectionError("down"))
        mock_redis.aclose = AsyncMock()
        with patch("app.dependencies.Redis.from_url", return_value=mock_redis):
            dependency = get_redis_client()
            assert await dependency.__anext__() is None
            with pytest.raises(StopAsyncIteration):
                await dependency.__anext__()
        mock_redis.aclose.assert_awaited_once()
