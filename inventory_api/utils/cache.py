import json
import logging
import redis
from typing import Optional, Any

from inventory_api.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

# Create Redis client
redis_client = redis.from_url(
    settings.REDIS_URL,
    decode_responses=True,
    socket_connect_timeout=1,
    socket_timeout=1,
)


class CacheService:
    """
    Redis read cache for catalog payloads.

    The cache is disposable: every failure talking to Redis is logged and
    treated as a miss, so the database stays the only source of truth.
    """

    def __init__(self, client: redis.Redis = None, ttl: int = None):
        self.client = client or redis_client
        self.ttl = ttl or settings.CACHE_TTL

    def _make_key(self, prefix: str, key: str) -> str:
        """Create a namespaced cache key."""
        return f"inventory:{prefix}:{key}"

    def get(self, prefix: str, key: str) -> Optional[Any]:
        """Return the cached JSON value or None on miss or error."""
        cache_key = self._make_key(prefix, key)
        try:
            value = self.client.get(cache_key)
        except redis.RedisError as e:
            logger.warning(f"Cache read failed for {cache_key}: {e}")
            return None
        if not value:
            return None
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return None

    def set(self, prefix: str, key: str, value: Any, ttl: int = None) -> bool:
        """Store ``value`` as JSON with a TTL. Returns False if it could not be cached."""
        cache_key = self._make_key(prefix, key)
        try:
            self.client.setex(cache_key, ttl or self.ttl, json.dumps(value, default=str))
            return True
        except (redis.RedisError, TypeError) as e:
            logger.warning(f"Cache write failed for {cache_key}: {e}")
            return False

    def delete(self, prefix: str, *keys: str) -> bool:
        """Invalidate one or more keys under ``prefix``."""
        if not keys:
            return True
        cache_keys = [self._make_key(prefix, key) for key in keys]
        try:
            self.client.delete(*cache_keys)
            return True
        except redis.RedisError as e:
            logger.warning(f"Cache invalidation failed for {cache_keys}: {e}")
            return False

    def ping(self) -> bool:
        return bool(self.client.ping())


# Singleton cache service instance
cache_service = CacheService()
