import json
import logging

import redis.asyncio as redis

from app.config import settings

logger = logging.getLogger(__name__)

ARTICLE_LIST_KEY = "articles:list"


def article_detail_key(article_id: int) -> str:
    return f"articles:detail:{article_id}"


class CacheManager:
    """
    Cache-aside helper over Redis.

    Every method tolerates a missing or broken Redis: reads report a miss
    and writes are skipped, so callers never see a cache exception.
    """

    def __init__(self) -> None:
        self._redis: redis.Redis | None = None
        self._hits: int = 0
        self._misses: int = 0

    async def connect(self) -> None:
        self._redis = redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
        try:
            await self._redis.ping()
            logger.info("Redis connected: %s", settings.REDIS_URL)
        except Exception as exc:  # pragma: no cover
            logger.warning("Redis unreachable, article cache disabled: %s", exc)
            await self._redis.aclose()
            self._redis = None

    async def disconnect(self) -> None:
        if self._redis:
            await self._redis.aclose()
            self._redis = None

    async def get(self, key: str) -> dict | list | None:
        """Return the decoded value for *key*, or None on a miss or error."""
        if not self._redis:
            self._misses += 1
            return None
        try:
            raw = await self._redis.get(key)
        except Exception as exc:
            logger.debug("Cache GET failed for %r: %s", key, exc)
            self._misses += 1
            return None
        if raw is None:
            self._misses += 1
            return None
        self._hits += 1
        return json.loads(raw)

    async def set(self, key: str, value: dict | list, ttl: int | None = None) -> None:
        if not self._redis:
            return
        try:
            await self._redis.set(key, json.dumps(value, default=str), ex=ttl)
        except Exception as exc:
            logger.debug("Cache SET failed for %r: %s", key, exc)

    async def delete(self, *keys: str) -> None:
        if not self._redis or not keys:
            return
        try:
            await self._redis.delete(*keys)
        except Exception as exc:
            logger.debug("Cache DELETE failed for %r: %s", keys, exc)

    async def invalidate_articles(self, article_id: int | None = None) -> None:
        """
        Drop the article list entry, and the detail entry for *article_id*
        when given.  Called after every article write.
        """
        keys = [ARTICLE_LIST_KEY]
        if article_id is not None:
            keys.append(article_detail_key(article_id))
        await self.delete(*keys)

    @property
    def stats(self) -> dict:
        total = self._hits + self._misses
        return {
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(self._hits / total * 100, 1) if total > 0 else 0.0,
        }


cache = CacheManager()
