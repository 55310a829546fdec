"""
QuickNotes Backend — Search Cache Unit Tests
==============================================

What:  SearchCache key layout, read/write, pattern invalidation and
       behaviour when Redis misbehaves.
How:   A MagicMock/AsyncMock stands in for the redis.asyncio client;
       scan_iter returns an async generator over canned keys.
"""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from quicknotes.cache import SearchCache


def _scan(keys):
    async def _gen(*args, **kwargs):
        for key in keys:
            yield key
    return MagicMock(side_effect=_gen)


@pytest.fixture
def redis_client():
    client = MagicMock()
    client.get = AsyncMock(return_value=None)
    client.set = AsyncMock(return_value=True)
    client.delete = AsyncMock(side_effect=lambda *keys: len(keys))
    client.ping = AsyncMock(return_value=True)
    client.aclose = AsyncMock()
    client.scan_iter = _scan([])
    return client


@pytest.fixture
def cache(redis_client):
    return SearchCache(url="redis://unused", ttl=300, client=redis_client)


class TestKeys:

    def test_key_is_per_user_and_sorted(self):
        assert SearchCache.build_key(7, ["work", "personal"]) == "notes:search:7:personal|work"
        assert SearchCache.build_key(7, ["personal", "work"]) == SearchCache.build_key(7, ["work", "personal"])
        assert SearchCache.build_key(8, ["work"]) != SearchCache.build_key(7, ["work"])

    def test_user_pattern(self):
        assert SearchCache.user_pattern(7) == "notes:search:7:*"


class TestGetSet:

    @pytest.mark.asyncio
    async def test_miss(self, cache):
        assert await cache.get("notes:search:1:a") is None

    @pytest.mark.asyncio
    async def test_hit_decodes_json(self, cache, redis_client):
        redis_client.get.return_value = json.dumps([{"id": 1}])
        assert await cache.get("notes:search:1:a") == [{"id": 1}]

    @pytest.mark.asyncio
    async def test_undecodable_entry_is_a_miss(self, cache, redis_client):
        redis_client.get.return_value = "{not json"
        assert await cache.get("notes:search:1:a") is None

    @pytest.mark.asyncio
    async def test_set_uses_default_ttl(self, cache, redis_client):
        assert await cache.set("k", [{"id": 1}]) is True
        redis_client.set.assert_awaited_once_with("k", json.dumps([{"id": 1}]), ex=300)

    @pytest.mark.asyncio
    async def test_set_with_explicit_ttl(self, cache, redis_client):
        await cache.set("k", [], ttl=10)
        assert redis_client.set.await_args.kwargs["ex"] == 10

    @pytest.mark.asyncio
    async def test_redis_errors_degrade(self, cache, redis_client):
        redis_client.get.side_effect = RedisConnectionError("gone")
        redis_client.set.side_effect = RedisConnectionError("gone")

        assert await cache.get("k") is None
        assert await cache.set("k", []) is False


class TestInvalidateUser:

    @pytest.mark.asyncio
    async def test_deletes_matching_keys(self, cache, redis_client):
        keys = ["notes:search:1:a", "notes:search:1:a|b"]
        redis_client.scan_iter = _scan(keys)

        assert await cache.invalidate_user(1) == 2
        redis_client.scan_iter.assert_called_once_with(match="notes:search:1:*", count=100)
        redis_client.delete.assert_awaited_once_with(*keys)

    @pytest.mark.asyncio
    async def test_no_keys_no_delete(self, cache, redis_client):
        assert await cache.invalidate_user(1) == 0
        redis_client.delete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_deletes_in_batches_of_1000(self, cache, redis_client):
        keys = [f"notes:search:1:t{i}" for i in range(2500)]
        redis_client.scan_iter = _scan(keys)

        assert await cache.invalidate_user(1) == 2500
        batch_sizes = [len(c.args) for c in redis_client.delete.await_args_list]
        assert batch_sizes == [1000, 1000, 500]

    @pytest.mark.asyncio
    async def test_failure_is_swallowed_and_logged(self, cache, redis_client):
        redis_client.scan_iter = MagicMock(side_effect=RedisConnectionError("gone"))
        assert await cache.invalidate_user(1) == 0


class TestConnection:

    @pytest.mark.asyncio
    async def test_ping(self, cache):
        assert await cache.ping() is True

    @pytest.mark.asyncio
    async def test_unreachable_redis_is_reported_not_raised(self):
        broken = MagicMock()
        broken.ping = AsyncMock(side_effect=RedisConnectionError("refused"))
        broken.aclose = AsyncMock()
        cache = SearchCache(url="redis://nowhere:6379/0", connect_attempts=2, retry_cooldown=30)

        with patch("quicknotes.cache.Redis.from_url", return_value=broken) as from_url:
            assert await cache.ping() is False
            assert await cache.get("k") is None
            assert await cache.set("k", []) is False
            assert await cache.invalidate_user(1) == 0

        # One connect cycle (2 attempts); later calls fall inside the cool-down
        assert from_url.call_count == 2
        assert cache.is_connected is False

    @pytest.mark.asyncio
    async def test_cooldown_skips_connect_until_it_expires(self, redis_client):
        broken = MagicMock()
        broken.ping = AsyncMock(side_effect=RedisConnectionError("refused"))
        broken.aclose = AsyncMock()
        cache = SearchCache(url="redis://localhost:6379/0", connect_attempts=1, retry_cooldown=30)

        with patch("quicknotes.cache.time.time", return_value=1000.0), \
             patch("quicknotes.cache.Redis.from_url", return_value=broken) as from_url:
            assert await cache.get("k") is None
            assert await cache.get("k") is None
        assert from_url.call_count == 1

        with patch("quicknotes.cache.time.time", return_value=1031.0), \
             patch("quicknotes.cache.Redis.from_url", return_value=redis_client) as from_url:
            assert await cache.set("k", []) is True
        from_url.assert_called_once()
        assert cache.is_connected is True

    @pytest.mark.asyncio
    async def test_lazy_connect_then_close(self, redis_client):
        cache = SearchCache(url="redis://localhost:6379/0", socket_timeout=0.5)
        with patch("quicknotes.cache.Redis.from_url", return_value=redis_client) as from_url:
            await cache.get("a")
            await cache.get("b")
        from_url.assert_called_once_with(
            "redis://localhost:6379/0",
            decode_responses=True,
            socket_connect_timeout=0.5,
            socket_timeout=0.5,
        )

        await cache.close()
        redis_client.aclose.assert_awaited_once()
        assert cache.is_connected is False
