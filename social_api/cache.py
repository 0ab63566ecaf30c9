"""
Redis-backed read cache for posts.

Only the two expensive post reads are cached:

``posts:list:{digest}``
    One page of ``GET /posts`` (the feed included), with ``_count``.  The
    digest is a SHA-1 of the JSON-encoded page, limit and filters.
``posts:detail:{post_id}``
    The hydrated post returned by ``GET /posts/{id}``.

Entries are JSON strings.  Writes to posts, comments, likes and users purge
the affected keys through :meth:`PostCache.invalidate_post` and
:meth:`PostCache.invalidate_all_posts`.  When Redis cannot be reached the
cache degrades to a permanent miss and nothing is written.
"""
import hashlib
import json
import logging
from typing import Any

import redis.asyncio as redis
from redis.exceptions import RedisError

from social_api.config import settings

logger = logging.getLogger(__name__)

LIST_PREFIX = "posts:list"
DETAIL_PREFIX = "posts:detail"


def post_list_key(page: int, limit: int, author_id: int | None,
                  published: bool | None, search: str | None) -> str:
    # JSON keeps None distinct from the text "None".
    filters = json.dumps([page, limit, author_id, published, search])
    return f"{LIST_PREFIX}:{hashlib.sha1(filters.encode()).hexdigest()}"


def post_detail_key(post_id: int) -> str:
    return f"{DETAIL_PREFIX}:{post_id}"


class PostCache:
    def __init__(self) -> None:
        self._redis: redis.Redis | None = None
        self.hits = 0
        self.misses = 0

    @property
    def enabled(self) -> bool:
        return self._redis is not None

    async def connect(self) -> None:
        client = redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
        try:
            await client.ping()
        except (RedisError, OSError) as exc:
            logger.warning("Redis unreachable at %s, post cache disabled: %s", settings.REDIS_URL, exc)
            await client.aclose()
            return
        self._redis = client
        logger.info("Post cache connected to %s", settings.REDIS_URL)

    async def disconnect(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None

    async def get(self, key: str) -> Any | None:
        """The decoded value under *key*; None on a miss or a Redis error."""
        raw = None
        if self._redis is not None:
            try:
                raw = await self._redis.get(key)
            except RedisError as exc:
                logger.debug("Cache read failed for %r: %s", key, exc)

        if raw is None:
            self.misses += 1
            return None
        self.hits += 1
        return json.loads(raw)

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        if self._redis is None:
            return
        try:
            await self._redis.set(key, json.dumps(value, default=str), ex=ttl)
        except RedisError as exc:
            logger.debug("Cache write failed for %r: %s", key, exc)

    async def delete_pattern(self, pattern: str) -> None:
        """Drop every key matching *pattern*; SCAN keeps Redis responsive."""
        if self._redis is None:
            return
        try:
            keys = [key async for key in self._redis.scan_iter(match=pattern)]
            if keys:
                await self._redis.delete(*keys)
                logger.debug("Purged %d cache key(s) for %r", len(keys), pattern)
        except RedisError as exc:
            logger.debug("Cache purge failed for %r: %s", pattern, exc)

    async def invalidate_post(self, post_id: int | None = None) -> None:
        """
        Purge every list page and, when *post_id* is given, that post's
        detail entry.  Comment and like writes call this too, since both
        views show their counts.
        """
        await self.delete_pattern(f"{LIST_PREFIX}:*")
        if post_id is not None:
            await self.delete_pattern(post_detail_key(post_id))

    async def invalidate_all_posts(self) -> None:
        """Purge every post entry; user writes change the embedded author."""
        await self.delete_pattern("posts:*")

    @property
    def stats(self) -> dict:
        lookups = self.hits + self.misses
        return {
            "enabled": self.enabled,
            "hits": self.hits,
            "misses": self.misses,
            "hitRate": round(self.hits / lookups * 100, 1) if lookups else 0.0,
        }


cache = PostCache()
