"""Redis caching utilities.

Caches read-mostly master data (SKUs, storage units) per tenant. Redis
failures are logged and the call falls through to the database.
"""

import functools
import hashlib
import json
import logging
from datetime import date, datetime
from typing import Callable, Optional

import redis.asyncio as redis

from app.config import settings
from app.tenancy import get_current_tenant

logger = logging.getLogger(__name__)

_redis_client: Optional[redis.Redis] = None


async def get_redis() -> redis.Redis:
    """Get or create the shared Redis client."""
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=True,
            max_connections=50,
        )
    return _redis_client


async def close_redis():
    """Close Redis connection (call on app shutdown)."""
    global _redis_client
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None


def cache_key(**kwargs) -> str:
    """Deterministic hash of the simple keyword arguments of a call."""
    if not kwargs:
        return "default"
    key_data = json.dumps(kwargs, sort_keys=True)
    return hashlib.md5(key_data.encode()).hexdigest()


def build_key(prefix: str, func_name: str, kwargs: dict) -> str:
    """Cache key for a call; always namespaced by the current tenant."""
    cache_kwargs = {}
    for k, v in kwargs.items():
        if k.startswith("_"):
            continue
        if isinstance(v, (int, str, bool, float, type(None))):
            cache_kwargs[k] = v
        elif isinstance(v, (date, datetime)):
            cache_kwargs[k] = v.isoformat()
    key = f"{prefix}:{func_name}:{cache_key(**cache_kwargs)}"
    tenant = get_current_tenant()
    return f"t:{tenant}:{key}" if tenant else key


def _serialize(result):
    if hasattr(result, "model_dump"):
        return result.model_dump(mode="json")
    if isinstance(result, list) and result and hasattr(result[0], "model_dump"):
        return [item.model_dump(mode="json") for item in result]
    return result


def cached(ttl: int = 300, prefix: str = "cache"):
    """Decorator to cache an endpoint's JSON result in Redis.

    Only simple keyword arguments take part in the key; injected
    dependencies (sessions, AuthContext) are ignored.

    Example:
        @cached(ttl=300, prefix="skus")
        async def list_skus(search: str | None = None, db=..., ctx=...):
            ...

    Cache keys: t:{tenant}:{prefix}:{function_name}:{args_hash}
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            if not settings.cache_enabled:
                return await func(*args, **kwargs)

            key = build_key(prefix, func.__name__, kwargs)
            try:
                redis_client = await get_redis()
                cached_value = await redis_client.get(key)
                if cached_value:
                    logger.debug(f"Cache HIT: {key}")
                    return json.loads(cached_value)
                logger.debug(f"Cache MISS: {key}")
            except redis.RedisError as e:
                logger.warning(f"Redis error (falling back to uncached): {e}")
                return await func(*args, **kwargs)

            result = await func(*args, **kwargs)
            try:
                await redis_client.setex(key, ttl, json.dumps(_serialize(result)))
            except redis.RedisError as e:
                logger.warning(f"Failed to store cache entry {key}: {e}")
            return result

        return wrapper

    return decorator


async def invalidate_cache(pattern: str):
    """Invalidate the current tenant's cache keys matching a pattern.

    Example:
        await invalidate_cache("skus:*")
    """
    if not settings.cache_enabled:
        return
    try:
        tenant = get_current_tenant()
        scoped_pattern = f"t:{tenant}:{pattern}" if tenant else pattern

        redis_client = await get_redis()
        keys = [key async for key in redis_client.scan_iter(match=scoped_pattern)]
        if keys:
            await redis_client.delete(*keys)
            logger.info(f"Invalidated {len(keys)} cache keys matching {scoped_pattern}")
    except redis.RedisError as e:
        logger.warning(f"Failed to invalidate cache: {e}")
