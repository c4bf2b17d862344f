"""
Caching utilities for catalog lookups and report aggregates
Uses Redis (django-redis) when configured, Django's local memory cache otherwise
"""
from django.core.cache import cache
from functools import wraps
import hashlib
import logging

logger = logging.getLogger(__name__)

# Cache TTLs (in seconds)
PRODUCT_CONFIG_CACHE_TTL = 600  # 10 minutes
REPORTS_CACHE_TTL = 300  # 5 minutes

PRODUCT_CONFIG_CACHE_KEY = 'product_config:grouped'
REPORTS_CACHE_PREFIX = 'reports'


def make_cache_key(prefix, *args, **kwargs):
    """Generate a unique cache key from arguments"""
    key_data = f"{prefix}:{args}:{sorted(kwargs.items())}"
    # Hash it to keep key length reasonable
    key_hash = hashlib.md5(key_data.encode()).hexdigest()
    return f"{prefix}:{key_hash}"


def cached_query(cache_ttl=60, key_prefix="query"):
    """
    Decorator to cache expensive queries

    Usage:
        @cached_query(cache_ttl=REPORTS_CACHE_TTL, key_prefix=REPORTS_CACHE_PREFIX)
        def sales_analytics(agent_id=None):
            return {...}
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            cache_key = make_cache_key(f"{key_prefix}:{func.__name__}", *args, **kwargs)

            cached_data = cache.get(cache_key)
            if cached_data is not None:
                logger.debug(f"Cache HIT for {key_prefix}: {cache_key}")
                return cached_data

            logger.debug(f"Cache MISS for {key_prefix}: {cache_key}")
            result = func(*args, **kwargs)
            cache.set(cache_key, result, cache_ttl)
            return result
        return wrapper
    return decorator


def invalidate_cache_pattern(pattern):
    """
    Invalidate all cache keys matching a pattern.
    django-redis supports pattern deletes; other backends are cleared whole.
    """
    if hasattr(cache, 'delete_pattern'):
        deleted = cache.delete_pattern(f"*{pattern}*")
        logger.debug(f"Invalidated {deleted} cache keys matching pattern: {pattern}")
    else:
        cache.clear()
        logger.debug(f"Cache cleared for pattern: {pattern}")


def invalidate_product_config_cache():
    cache.delete(PRODUCT_CONFIG_CACHE_KEY)
    logger.debug("Invalidated product configuration cache")


def invalidate_reports_cache():
    invalidate_cache_pattern(REPORTS_CACHE_PREFIX)
