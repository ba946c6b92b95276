"""
Redis cache for the public listing of active events.

CACHING STRATEGY
================

What we cache:
  - The serialized response of GET /events/ (active events, soonest first)
  - Single key: "events:active"

Why:
  - The registration form loads it on every visit; it changes only when an
    operator edits an event

Invalidation:
  - Every event create/update/toggle/delete deletes the key
  - TTL-based expiry as safety net (REDIS_CACHE_TTL)

Not cached:
  - Registrations, attendance and reports; those are recomputed on read so
    check-in counts never drift from the store

Redis is optional. When it is disabled or unreachable every call degrades to
a cache miss and the database answers.
"""

import json
from typing import Optional

import redis.asyncio as redis
from app.core.config import get_settings
from app.core.logging import get_logger
from app.core.metrics import record_cache_operation

logger = get_logger(__name__)
settings = get_settings()

ACTIVE_EVENTS_KEY = "events:active"

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


async def get_cached_active_events() -> Optional[dict]:
    client = await get_redis()
    if not client:
        return None

    try:
        data = await client.get(ACTIVE_EVENTS_KEY)
        record_cache_operation("get", hit=bool(data))
        if data:
            return json.loads(data)
    except Exception as e:
        logger.error("cache_get_error", key=ACTIVE_EVENTS_KEY, error=str(e))

    return None


async def set_cached_active_events(data: dict) -> None:
    client = await get_redis()
    if not client:
        return

    try:
        await client.setex(ACTIVE_EVENTS_KEY, settings.REDIS_CACHE_TTL, json.dumps(data, default=str))
        logger.debug("cache_set", key=ACTIVE_EVENTS_KEY, ttl=settings.REDIS_CACHE_TTL)
    except Exception as e:
        logger.error("cache_set_error", key=ACTIVE_EVENTS_KEY, error=str(e))


async def invalidate_event_cache() -> None:
    client = await get_redis()
    if not client:
        return

    try:
        deleted = await client.delete(ACTIVE_EVENTS_KEY)
        logger.info("cache_invalidated", keys_deleted=deleted)
    except Exception as e:
        logger.error("cache_invalidation_error", error=str(e))


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
