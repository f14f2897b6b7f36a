"""
Redis caching utilities for the Admin service.

Analytics responses are expensive aggregate queries; they are cached for a
short TTL. Cache faults are logged and treated as misses.
"""
import json
import logging
from typing import Optional, Any
import redis

from .config import REDIS_URL, CACHE_ENABLED, ANALYTICS_CACHE_TTL

logger = logging.getLogger(__name__)

# Initialize Redis client (connections are opened lazily on first command)
redis_client = redis.from_url(REDIS_URL, decode_responses=True, socket_connect_timeout=1, socket_timeout=1)

INVENTORY_ANALYTICS_KEY = "analytics:inventory"
DASHBOARD_ANALYTICS_KEY = "analytics:dashboard"


def get_cache(key: str) -> Optional[Any]:
    """
    Get a value from Redis cache.
    
    Args:
        key: Cache key
    
    Returns:
        Cached value or None if not found, disabled or unreachable
    """
    if not CACHE_ENABLED:
        return None
    try:
        value = redis_client.get(key)
        if value:
            return json.loads(value)
        return None
    except (redis.RedisError, ValueError) as e:
        logger.warning(f"Cache get error for {key}: {e}")
        return None

def set_cache(key: str, value: Any, ttl: int = ANALYTICS_CACHE_TTL) -> bool:
    """
    Set a value in Redis cache with TTL.
    
    Args:
        key: Cache key
        value: JSON-compatible value to cache
        ttl: Time to live in seconds
    
    Returns:
        True if successful, False otherwise
    """
    if not CACHE_ENABLED:
        return False
    try:
        redis_client.setex(key, ttl, json.dumps(value))
        return True
    except (redis.RedisError, TypeError) as e:
        logger.warning(f"Cache set error for {key}: {e}")
        return False