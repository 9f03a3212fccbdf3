"""
Redis-backed flight search cache and token revocation list.

CACHING STRATEGY
================

What we cache:
  - Flight search responses per route (and optional date), JSON-serialized
  - Key pattern: "flights:search:{DEP}:{ARR}:{date|any}"

Invalidation:
  - Any seat change (booking, cancellation, reschedule) deletes every
    "flights:search:*" key, since cached seat counts would be stale
  - TTL expiry as a safety net

Single-flight reads (GET /api/flights/{id}) are never cached: booking needs
real-time seat counts.

Token revocation:
  - Logout stores "auth:revoked:{jti}" with a TTL equal to the token's
    remaining lifetime, so the list never grows beyond live tokens

Redis is advisory. Every helper fails open: when Redis is disabled or
unreachable the API keeps serving from the database and logout becomes a
client-side operation.
"""

import json
from typing import Optional

import redis.asyncio as redis
from falconair.core.config import get_settings
from falconair.core.logging import get_logger
from falconair.core.metrics import record_cache_operation, redis_connection_errors

logger = get_logger(__name__)
settings = get_settings()

SEARCH_KEY_PREFIX = "flights:search:"
REVOKED_KEY_PREFIX = "auth:revoked:"

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
            redis_connection_errors.inc()
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


def make_search_key(departure: str, arrival: str, date: Optional[str] = None) -> str:
    return f"{SEARCH_KEY_PREFIX}{departure.upper()}:{arrival.upper()}:{date or 'any'}"


async def get_cached_search(departure: str, arrival: str, date: Optional[str] = None) -> Optional[list]:
    """Retrieve a cached flight search result."""
    client = await get_redis()
    if not client:
        return None

    key = make_search_key(departure, arrival, date)
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


async def set_cached_search(departure: str, arrival: str, date: Optional[str], flights: list) -> None:
    """Cache a flight search result with TTL."""
    client = await get_redis()
    if not client:
        return

    key = make_search_key(departure, arrival, date)
    try:
        await client.setex(key, settings.REDIS_CACHE_TTL, json.dumps(flights, default=str))
        record_cache_operation("set", hit=False)
        logger.debug("cache_set", key=key, ttl=settings.REDIS_CACHE_TTL)
    except Exception as e:
        logger.error("cache_set_error", key=key, error=str(e))


async def invalidate_flight_cache() -> None:
    """Drop every cached search result (seat counts changed)."""
    client = await get_redis()
    if not client:
        return

    try:
        deleted = 0
        async for key in client.scan_iter(match=f"{SEARCH_KEY_PREFIX}*", count=100):
            await client.delete(key)
            deleted += 1
        logger.info("cache_invalidated", keys_deleted=deleted)
    except Exception as e:
        logger.error("cache_invalidation_error", error=str(e))


async def revoke_token(jti: Optional[str], ttl_seconds: int) -> bool:
    """Add a token id to the revocation list. Returns False when not stored."""
    client = await get_redis()
    if not client or not jti or ttl_seconds <= 0:
        return False

    try:
        await client.setex(f"{REVOKED_KEY_PREFIX}{jti}", ttl_seconds, "1")
        return True
    except Exception as e:
        logger.error("token_revoke_error", error=str(e))
        return False


async def is_token_revoked(jti: Optional[str]) -> bool:
    client = await get_redis()
    if not client or not jti:
        return False

    try:
        return bool(await client.exists(f"{REVOKED_KEY_PREFIX}{jti}"))
    except Exception as e:
        logger.error("token_revocation_check_error", error=str(e))
        return False


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
