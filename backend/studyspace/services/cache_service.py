"""
Redis caching service for room occupancy views.

CACHING STRATEGY
================

What we cache:
  - Room occupancy for one calendar day (JSON-serialized response)
  - Key pattern: "occupancy:{library_id}:{room_id}:{YYYY-MM-DD}"

Invalidation strategy:
  - On booking created or cancelled: delete every cached day of that room
    ("occupancy:{library_id}:{room_id}:*"). A monthly or yearly booking
    touches many days, so per-day invalidation is not worth the bookkeeping.
  - TTL-based expiry as safety net.

What we never cache:
  - Anything the booking engine reads. Conflict detection always runs
    against the database inside the booking transaction; the cache only
    serves the seating screens.

Redis is advisory: when disabled or unreachable every call degrades to a
cache miss / no-op.
"""

import json
from datetime import date
from typing import Optional

import redis.asyncio as redis

from studyspace.core.config import get_settings
from studyspace.core.logging import get_logger
from studyspace.core.metrics import record_cache_operation

logger = get_logger(__name__)
settings = get_settings()

_redis_client: Optional[redis.Redis] = None


async def get_redis() -> Optional[redis.Redis]:
    """Get or create Redis connection. Returns None if Redis is disabled."""
    global _redis_client

    if not settings.REDIS_ENABLED:
        return None

    if _redis_client is None:
        try:
            _redis_client = redis.from_url(
                settings.REDIS_URL,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
            )
            await _redis_client.ping()
            logger.info("redis_connected", url=settings.REDIS_URL)
        except Exception as e:
            logger.error("redis_connection_failed", error=str(e))
            _redis_client = None
            return None

    return _redis_client


async def close_redis() -> None:
    """Close Redis connection on shutdown."""
    global _redis_client
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None


def make_occupancy_key(library_id: str, room_id: str, day: date) -> str:
    return f"occupancy:{library_id}:{room_id}:{day.isoformat()}"


async def get_cached_occupancy(library_id: str, room_id: str, day: date) -> Optional[dict]:
    client = await get_redis()
    if not client:
        return None

    key = make_occupancy_key(library_id, room_id, day)
    try:
        data = await client.get(key)
        record_cache_operation("get", hit=bool(data))
        if data:
            logger.debug("cache_hit", key=key)
            return json.loads(data)
        logger.debug("cache_miss", key=key)
    except Exception as e:
        logger.error("cache_get_error", key=key, error=str(e))

    return None


async def set_cached_occupancy(library_id: str, room_id: str, day: date, data: dict) -> None:
    client = await get_redis()
    if not client:
        return

    key = make_occupancy_key(library_id, room_id, day)
    try:
        await client.setex(key, settings.REDIS_CACHE_TTL, json.dumps(data, default=str))
        logger.debug("cache_set", key=key, ttl=settings.REDIS_CACHE_TTL)
    except Exception as e:
        logger.error("cache_set_error", key=key, error=str(e))


async def invalidate_room_occupancy(library_id: str, room_id: str) -> None:
    """Drop every cached day of one room."""
    client = await get_redis()
    if not client:
        return

    pattern = f"occupancy:{library_id}:{room_id}:*"
    try:
        deleted = 0
        async for key in client.scan_iter(match=pattern, count=100):
            await client.delete(key)
            deleted += 1
        logger.info("cache_invalidated", pattern=pattern, keys_deleted=deleted)
    except Exception as e:
        logger.error("cache_invalidation_error", pattern=pattern, error=str(e))


async def get_cache_stats() -> dict:
    """Get Redis cache statistics for monitoring."""
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
    except Exception as e:
        return {"status": "error", "error": str(e)}
