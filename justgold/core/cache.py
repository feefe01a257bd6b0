# justgold/core/cache.py
import logging
from functools import lru_cache

import redis

from justgold.core.config import get_settings

logger = logging.getLogger(__name__)


class CacheClient:
    """
    Process-scoped, best-effort Redis cache.

    Lifecycle:
      - connect() runs at most once; the first successful ping keeps the client.
      - Any connection failure flips a permanent `failed` flag. From then on
        every call is a no-op until the process restarts (no retry loop).
      - With no URL configured the cache is simply disabled.

    get/set never raise; callers treat a None from get() as a miss.
    """

    def __init__(self, url: str | None, connect_timeout: float = 2.0):
        self.url = url
        self.connect_timeout = connect_timeout
        self._client: redis.Redis | None = None
        self._failed = False

    @property
    def failed(self) -> bool:
        return self._failed

    @property
    def available(self) -> bool:
        return self.connect() is not None

    def connect(self) -> redis.Redis | None:
        if self._client is not None or self._failed:
            return self._client
        if not self.url:
            self._failed = True
            logger.info("Cache disabled (REDIS_URL not set)")
            return None

        try:
            client = redis.Redis.from_url(
                self.url,
                socket_connect_timeout=self.connect_timeout,
                socket_timeout=self.connect_timeout,
                decode_responses=True,
            )
            client.ping()
        except (redis.RedisError, OSError) as exc:
            self._disable(exc)
            return None

        self._client = client
        logger.info("Cache connected")
        return self._client

    def _disable(self, exc: Exception) -> None:
        self._failed = True
        self._client = None
        logger.warning("Cache disabled (connection error): %s", exc)

    def get(self, key: str) -> str | None:
        client = self.connect()
        if client is None:
            return None
        try:
            return client.get(key)
        except (redis.ConnectionError, redis.TimeoutError) as exc:
            self._disable(exc)
        except redis.RedisError as exc:
            logger.warning("Cache read failed for %s: %s", key, exc)
        return None

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        client = self.connect()
        if client is None:
            return
        try:
            client.set(key, value, ex=ttl_seconds)
        except (redis.ConnectionError, redis.TimeoutError) as exc:
            self._disable(exc)
        except redis.RedisError as exc:
            logger.warning("Cache write failed for %s: %s", key, exc)

    def invalidate_prefix(self, prefix: str) -> int:
        """
        Drop every key starting with `prefix`. Returns how many were removed.
        """
        client = self.connect()
        if client is None:
            return 0
        removed = 0
        try:
            for key in client.scan_iter(match=f"{prefix}*", count=200):
                removed += client.delete(key)
        except (redis.ConnectionError, redis.TimeoutError) as exc:
            self._disable(exc)
        except redis.RedisError as exc:
            logger.warning("Cache invalidation failed for %s*: %s", prefix, exc)
        return removed

    def close(self) -> None:
        if self._client is not None:
            try:
                self._client.close()
            except redis.RedisError as exc:
                logger.debug("Cache close failed: %s", exc)
            self._client = None


@lru_cache
def get_cache() -> CacheClient:
    """
    FastAPI dependency returning the process-wide cache client.
    Connection happens lazily (or eagerly from the app lifespan).
    """
    settings = get_settings()
    return CacheClient(settings.REDIS_URL, settings.CACHE_CONNECT_TIMEOUT)
