import json
import redis
import structlog
from typing import Optional, Any
from ..config import settings
from .metrics import cache_hits_total, cache_misses_total

logger = structlog.get_logger()

_redis_client: Optional[redis.Redis] = None

def get_redis() -> redis.Redis:
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            retry_on_timeout=True
        )
    return _redis_client

def get_cache(key: str) -> Optional[Any]:
    """Cached value for ``key``; None on a miss or when Redis is unreachable."""
    if not settings.CACHE_ENABLED:
        return None
    try:
        value = get_redis().get(key)
    except redis.RedisError as e:
        logger.warning("cache_unavailable", op="get", key=key, error=str(e))
        return None
    if value is None:
        cache_misses_total.inc()
        return None
    cache_hits_total.inc()
    return json.loads(value)

def set_cache(key: str, value: Any, ttl: int = None) -> bool:
    if not settings.CACHE_ENABLED:
        return False
    try:
        get_redis().setex(key, ttl or settings.CACHE_TTL, json.dumps(value, ensure_ascii=False))
        return True
    except redis.RedisError as e:
        logger.warning("cache_unavailable", op="set", key=key, error=str(e))
        return False

def delete_cache_pattern(pattern: str) -> int:
    """Drop every key matching ``pattern``."""
    if not settings.CACHE_ENABLED:
        return 0
    try:
        client = get_redis()
        keys = list(client.scan_iter(match=pattern))
        if keys:
            return client.delete(*keys)
        return 0
    except redis.RedisError as e:
        logger.warning("cache_unavailable", op="delete", pattern=pattern, error=str(e))
        return 0
