"""
Redis client for Stylish Type

Response cache for public GET payloads and path-based invalidation after
admin mutations. Every helper degrades to a no-op when REDIS_URL is not
configured or Redis is unreachable.
"""
import json
import logging
from typing import Iterable, Optional
import redis.asyncio as redis
from app.core.config import settings

logger = logging.getLogger(__name__)

# Global Redis client (initialized lazily)
_redis_client: Optional[redis.Redis] = None

PAGE_CACHE_PREFIX = "page:"


async def get_redis() -> Optional[redis.Redis]:
    """Get Redis client, initializing if needed.

    Returns None if REDIS_URL not configured (graceful degradation).
    """
    global _redis_client

    if not settings.REDIS_URL:
        return None

    if _redis_client is None:
        try:
            _redis_client = redis.from_url(
                settings.REDIS_URL,
                encoding="utf-8",
                decode_responses=True
            )
            await _redis_client.ping()
            logger.info("Redis connection established")
        except Exception as e:
            logger.warning(f"Redis connection failed: {e}. Caching disabled.")
            _redis_client = None

    return _redis_client


async def close_redis():
    """Close Redis connection on shutdown."""
    global _redis_client
    if _redis_client:
        await _redis_client.close()
        _redis_client = None


def page_cache_key(path: str, params: Optional[dict] = None) -> str:
    """Cache key for a path plus its (sorted) query parameters."""
    key = f"{PAGE_CACHE_PREFIX}{path}"
    if params:
        query = "&".join(f"{k}={params[k]}" for k in sorted(params) if params[k] is not None)
        if query:
            key = f"{key}?{query}"
    return key


async def get_cached(key: str) -> Optional[dict]:
    """Return the cached payload, or None on miss or when Redis is unavailable."""
    client = await get_redis()
    if not client:
        return None
    try:
        data = await client.get(key)
        if data:
            return json.loads(data)
    except Exception as e:
        logger.debug(f"Redis cache miss for {key}: {e}")
    return None


async def set_cached(key: str, data, ttl_seconds: int) -> bool:
    """Cache a JSON-serialisable payload for ttl_seconds."""
    client = await get_redis()
    if not client:
        return False
    try:
        await client.setex(key, ttl_seconds, json.dumps(data, default=str))
        return True
    except Exception as e:
        logger.debug(f"Redis cache set failed for {key}: {e}")
        return False


async def invalidate_paths(paths: Iterable[str]) -> int:
    """
    Drop every cached payload under the given path prefixes.

    invalidate_paths(["/api/homepage"]) clears "/api/homepage/banner-slides",
    "/api/homepage/featured-products" and so on. Returns the number of keys removed.
    """
    paths = list(paths)
    client = await get_redis()
    if not client:
        return 0
    removed = 0
    try:
        for path in paths:
            async for key in client.scan_iter(match=f"{PAGE_CACHE_PREFIX}{path}*"):
                removed += await client.delete(key)
    except Exception as e:
        logger.warning(f"Redis invalidation failed for {list(paths)}: {e}")
    if removed:
        logger.info(f"Invalidated {removed} cached pages")
    return removed
