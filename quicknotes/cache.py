"""
QuickNotes Backend — Tag Search Cache (Cache-Aside over Redis)
================================================================

What:  Caches the JSON result of GET /api/notes/search/by-tags per user and
       tag set, and drops a user's cached searches whenever they write.
How:   redis.asyncio client, connected lazily on first use with tenacity
       retries. Keys are derived from the user id and the sorted tag list.
Who:   NoteService (read-through on search, invalidate on create/update/delete)
       and the health check (ping).

Key layout:
    notes:search:{user_id}:{tag1|tag2|...}    (tags sorted, so order is irrelevant)

Invalidation:
    SCAN MATCH notes:search:{user_id}:* COUNT 100, DEL in batches of <= 1000.
    Only the writing user's keys are touched.

Failure behaviour:
    Redis being down never fails a request. A failed read is a miss; a
    failed write or invalidation is logged and left to expire via TTL.
    After a failed connect the cache is skipped for `redis_retry_cooldown`
    seconds, so an outage costs one connect cycle, not one per request.
"""

import asyncio
import json
import logging
import time
from typing import Any, Iterable, List, Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from quicknotes.config import settings
from quicknotes.exceptions import CacheError

logger = logging.getLogger(__name__)


class SearchCache:
    """
    Redis-backed cache for per-user tag search results.

    Args:
        url: Redis connection URL
        ttl: Default expiry (seconds) for cached results
        connect_attempts: tenacity attempts before a connect is given up
        socket_timeout: Connect and read timeout (seconds) per Redis call
        retry_cooldown: Seconds to skip Redis after a failed connect
        client: Pre-built client (tests); skips the lazy connect
    """

    KEY_PREFIX = "notes:search"
    SCAN_COUNT = 100
    DELETE_BATCH_SIZE = 1000

    def __init__(
        self,
        url: str,
        ttl: int = 300,
        connect_attempts: int = 3,
        socket_timeout: float = 1.0,
        retry_cooldown: int = 30,
        client: Optional[Redis] = None,
    ):
        self._url = url
        self._ttl = ttl
        self._connect_attempts = connect_attempts
        self._socket_timeout = socket_timeout
        self._retry_cooldown = retry_cooldown
        self._client: Optional[Redis] = client
        self._lock = asyncio.Lock()
        # time.time() before which no connect is attempted
        self._down_until = 0.0

    # ── Keys ──────────────────────────────────────────────────────────────

    @classmethod
    def build_key(cls, user_id: int, tags: Iterable[str]) -> str:
        return f"{cls.KEY_PREFIX}:{user_id}:{'|'.join(sorted(tags))}"

    @classmethod
    def user_pattern(cls, user_id: int) -> str:
        return f"{cls.KEY_PREFIX}:{user_id}:*"

    # ── Connection ────────────────────────────────────────────────────────

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    def _cooling_down(self) -> bool:
        return time.time() < self._down_until

    async def ensure_connected(self) -> Redis:
        """
        Return the shared client, connecting on first use.

        A failed connect is remembered for `retry_cooldown` seconds; calls in
        that window fail fast instead of retrying the connect.

        Raises:
            CacheError: Redis unreachable, or still inside the cool-down
        """
        if self._client is not None:
            return self._client
        if self._cooling_down():
            raise CacheError(context={"url": self._url, "reason": "cooldown"})
        async with self._lock:
            if self._client is None:
                if self._cooling_down():
                    raise CacheError(context={"url": self._url, "reason": "cooldown"})
                try:
                    self._client = await self._connect()
                except CacheError:
                    self._down_until = time.time() + self._retry_cooldown
                    raise
                self._down_until = 0.0
        return self._client

    async def _connect(self) -> Redis:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._connect_attempts),
            wait=wait_exponential(multiplier=0.2, max=2),
            retry=retry_if_exception_type(RedisError),
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    client = Redis.from_url(
                        self._url,
                        decode_responses=True,
                        socket_connect_timeout=self._socket_timeout,
                        socket_timeout=self._socket_timeout,
                    )
                    try:
                        await client.ping()
                    except RedisError:
                        await client.aclose()
                        raise
                    logger.info("Redis connected: %s", self._url)
                    return client
        except RedisError as e:
            logger.warning(
                "Redis connection failed after %d attempts, skipping cache for %ds: %s",
                self._connect_attempts, self._retry_cooldown, e,
            )
            raise CacheError(context={"url": self._url, "error": str(e)})
        raise CacheError(context={"url": self._url})

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.info("Redis connection closed")

    async def ping(self) -> bool:
        try:
            client = await self.ensure_connected()
            return bool(await client.ping())
        except (CacheError, RedisError):
            return False

    # ── Cache-aside operations ────────────────────────────────────────────

    async def get(self, key: str) -> Optional[List[Any]]:
        """Cached JSON list for `key`, or None on miss / Redis failure."""
        try:
            client = await self.ensure_connected()
            raw = await client.get(key)
        except (CacheError, RedisError) as e:
            logger.warning("Search cache GET failed for %s: %s", key, e)
            return None

        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("Discarding undecodable search cache entry %s", key)
            return None

    async def set(self, key: str, value: List[Any], ttl: Optional[int] = None) -> bool:
        """Store a JSON-serializable list with expiry. Returns False on failure."""
        try:
            client = await self.ensure_connected()
            await client.set(key, json.dumps(value), ex=ttl or self._ttl)
            return True
        except (CacheError, RedisError) as e:
            logger.warning("Search cache SET failed for %s: %s", key, e)
            return False

    async def invalidate_user(self, user_id: int) -> int:
        """
        Delete every cached search belonging to `user_id`.

        Returns:
            Number of keys deleted (0 when Redis is unavailable)
        """
        pattern = self.user_pattern(user_id)
        deleted = 0
        batch: List[str] = []
        try:
            client = await self.ensure_connected()
            async for key in client.scan_iter(match=pattern, count=self.SCAN_COUNT):
                batch.append(key)
                if len(batch) >= self.DELETE_BATCH_SIZE:
                    await client.delete(*batch)
                    deleted += len(batch)
                    batch = []
            if batch:
                await client.delete(*batch)
                deleted += len(batch)
        except (CacheError, RedisError) as e:
            logger.warning("Search cache invalidation failed for user %s: %s", user_id, e)
            return deleted

        if deleted:
            logger.debug("Invalidated %d search cache keys for user %s", deleted, user_id)
        return deleted


# ── Singleton Instance ────────────────────────────────────────────────────
search_cache = SearchCache(
    url=settings.redis_url,
    ttl=settings.search_cache_ttl,
    connect_attempts=settings.redis_connect_attempts,
    socket_timeout=settings.redis_socket_timeout,
    retry_cooldown=settings.redis_retry_cooldown,
)
