import logging
from django.conf import settings
from django.core.cache import cache
from django_redis import get_redis_connection

from .cache_key_manager import CacheKeyManager

logger = logging.getLogger(__name__)


def _redis_backed() -> bool:
    backend = settings.CACHES["default"].get("BACKEND", "")
    return backend.startswith("django_redis")


class CacheManager:
    """
    Centralized invalidation of cache keys/patterns per resource,
    driven by settings.CACHE_KEY_TEMPLATES.

    Cache failures are logged and never propagated: a stale read is
    preferable to failing the write that triggered the invalidation.
    """

    @staticmethod
    def get(resource_name: str, key_name: str, **kwargs):
        try:
            return cache.get(CacheKeyManager.make_key(resource_name, key_name, **kwargs))
        except Exception as e:
            logger.warning(f"Cache read failed for {resource_name}:{key_name} - {e}")
            return None

    @staticmethod
    def set(resource_name: str, key_name: str, value, timeout=None, **kwargs):
        try:
            cache.set(
                CacheKeyManager.make_key(resource_name, key_name, **kwargs),
                value,
                timeout,
            )
        except Exception as e:
            logger.warning(f"Cache write failed for {resource_name}:{key_name} - {e}")

    @staticmethod
    def invalidate_key(resource_name: str, key_name: str, **kwargs):
        """
        Invalidate a specific cache key.

        Example:
            CacheManager.invalidate_key("quote", "stats", scope="global", user_id="all")
        """
        try:
            cache_key = CacheKeyManager.make_key(resource_name, key_name, **kwargs)
            cache.delete(cache_key)
            logger.debug(f"Invalidated cache key: {cache_key}")
        except Exception as e:
            logger.error(f"Failed to invalidate key {resource_name}:{key_name} - {e}")

    @staticmethod
    def invalidate_pattern(resource_name: str, key_name: str, **kwargs):
        """
        Invalidate cache keys matching a wildcard template.

        Only Redis-backed caches can be scanned; on other backends the
        whole cache is cleared instead.
        """
        try:
            if not _redis_backed():
                cache.clear()
                return
            pattern = CacheKeyManager.make_pattern(resource_name, key_name, **kwargs)
            redis_conn = get_redis_connection("default")
            keys = list(redis_conn.scan_iter(match=f"*{pattern}"))
            if keys:
                redis_conn.delete(*keys)
                logger.debug(
                    f"Invalidated {len(keys)} keys matching pattern: {pattern}"
                )
        except Exception as e:
            logger.error(
                f"Failed to invalidate pattern {resource_name}:{key_name} - {e}"
            )
