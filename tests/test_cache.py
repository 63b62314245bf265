"""Tests for DisputeCache: JSON round trip, key prefix, and degraded Redis."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from arbiter.modules.cache.cache import DisputeCache


@pytest.fixture
def redis_client():
    return AsyncMock()


class TestDisputeCache:
    @pytest.mark.asyncio
    async def test_get_decodes_json_under_prefix(self, redis_client):
        redis_client.get.return_value = json.dumps({"status": "open"})
        cache = DisputeCache(redis_client)

        assert await cache.get("dispute:1") == {"status": "open"}
        redis_client.get.assert_awaited_once_with("arbiter:dispute:1")

    @pytest.mark.asyncio
    async def test_read_failure_is_a_miss(self, redis_client):
        redis_client.get.side_effect = RedisConnectionError("down")

        assert await DisputeCache(redis_client).get("dispute:1") is None

    @pytest.mark.asyncio
    async def test_undecodable_entry_is_a_miss(self, redis_client):
        redis_client.get.return_value = "{not json"

        assert await DisputeCache(redis_client).get("dispute:1") is None

    @pytest.mark.asyncio
    async def test_set_uses_ttl(self, redis_client):
        await DisputeCache(redis_client).set("stats:x", {"a": 1}, ttl=3600)

        redis_client.set.assert_awaited_once_with("arbiter:stats:x", '{"a": 1}', ex=3600)

    @pytest.mark.asyncio
    async def test_write_and_delete_failures_are_swallowed(self, redis_client):
        redis_client.set.side_effect = RedisConnectionError("down")
        redis_client.delete.side_effect = RedisConnectionError("down")
        cache = DisputeCache(redis_client)

        await cache.set("k", 1, ttl=10)
        await cache.delete("k")

    @pytest.mark.asyncio
    async def test_get_or_set_computes_once_on_miss(self, redis_client):
        redis_client.get.return_value = None
        factory = AsyncMock(return_value={"total": 2})

        value = await DisputeCache(redis_client).get_or_set("stats:y", factory, ttl=60)

        assert value == {"total": 2}
        factory.assert_awaited_once()
        redis_client.set.assert_awaited_once()
