"""
Redis caching service for listing index and search pages.

CACHING STRATEGY
================

What we cache:
  - Listing index responses (paginated, optionally filtered by category or
    a title/location search term), JSON-serialized
  - Key pattern: "listings:list:page={page}&size={size}&category={c}&q={q}"

Invalidation:
  - Any listing create/update/delete
  - Any inventory change (confirm, reject, expiry sweep), since the index
    shows rooms_available
  - TTL as a safety net (REDIS_CACHE_TTL)

  All keys share the "listings:list:" prefix, so invalidation is a SCAN +
  DELETE over a small keyspace.

What we do NOT cache:
  - Single listing pages: viewing one runs the expiry sweep, and the
    booking flow needs the real counter
  - Anything booking-related

Redis is optional. If it is disabled or unreachable every function here
degrades to a no-op and the database answers.
"""

import json
from typing import Optional
from urllib.parse import quote

import redis.asyncio as redis
from redis.exceptions import RedisError
from wanderlust.core.config import get_settings
from wanderlust.core.logging import get_logger
from wanderlust.core.metrics import record_cache_operation

logger = get_logger(__name__)
settings = get_settings()

LIST_KEY_PREFIX = "listings:list:"

_redis_client: Optional[redis.Redis] = None


async def get_redis() -> Optional[redis.Redis]:
    """Get or create the Redis connection. None if Redis is disabled or down."""
    global _redis_client

    if not settings.REDIS_ENABLED:
        return None

    if _redis_client is None:
        client = redis.from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            retry_on_timeout=True,
        )
        try:
            await client.ping()
        except RedisError as e:
            logger.error("redis_connection_failed", error=str(e))
            await client.aclose()
            return None
        _redis_client = client
        logger.info("redis_connected", url=settings.REDIS_URL)

    return _redis_client


async def close_redis() -> None:
    """Close Redis connection on shutdown."""
    global _redis_client
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None


def make_listing_list_key(
    page: int,
    page_size: int,
    category: Optional[str] = None,
    query: Optional[str] = None,
) -> str:
    return (
        f"{LIST_KEY_PREFIX}page={page}&size={page_size}"
        f"&category={quote(category or '')}&q={quote((query or '').lower())}"
    )


async def get_cached_listings(key: str) -> Optional[dict]:
    client = await get_redis()
    if not client:
        return None

    try:
        data = await client.get(key)
    except RedisError as e:
        logger.error("cache_get_error", key=key, error=str(e))
        return None

    record_cache_operation("get", hit=data is not None)
    if data:
        logger.debug("cache_hit", key=key)
        return json.loads(data)
    logger.debug("cache_miss", key=key)
    return None


async def set_cached_listings(key: str, data: dict) -> None:
    client = await get_redis()
    if not client:
        return

    try:
        await client.setex(key, settings.REDIS_CACHE_TTL, json.dumps(data, default=str))
        logger.debug("cache_set", key=key, ttl=settings.REDIS_CACHE_TTL)
    except RedisError as e:
        logger.error("cache_set_error", key=key, error=str(e))


async def invalidate_listing_cache() -> None:
    client = await get_redis()
    if not client:
        return

    try:
        deleted = 0
        async for key in client.scan_iter(match=f"{LIST_KEY_PREFIX}*", count=100):
            await client.delete(key)
            deleted += 1
        logger.info("cache_invalidated", keys_deleted=deleted)
    except RedisError as e:
        logger.error("cache_invalidation_error", error=str(e))


async def get_cache_stats() -> dict:
    """Redis cache statistics for the health endpoint."""
    client = await get_redis()
    if not client:
        return {"status": "disabled"}

    try:
        info = await client.info("stats")
        hits = info.get("keyspace_hits", 0)
        misses = info.get("keyspace_misses", 0)
        return {
            "status": "connected",
            "hits": hits,
            "misses": misses,
            "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
        }
    except RedisError as e:
        return {"status": "error", "error": str(e)}
