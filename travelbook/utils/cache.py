"""
Cache utilities for Travelbook.

Provides Redis-backed caching with graceful fallback to simple in-memory caching.
Uses Flask-Caching for integration with Flask app.

Usage:
    from travelbook.utils.cache import cache

    cache.set('key', value, timeout=300)
    value = cache.get('key')
    cache.delete('key')

Environment Variables:
    REDIS_URL: Redis connection URL (e.g., redis://localhost:6379/0)
              Falls back to simple cache if not set or unavailable.
"""
import os
import logging
import redis
from flask_caching import Cache

logger = logging.getLogger(__name__)

# Global cache instance - initialized in init_cache()
cache = Cache()

DEFAULT_TIMEOUT = 300  # 5 minutes


def init_cache(app):
    """
    Initialize Flask-Caching with Redis or fallback to simple cache.

    A CACHE_TYPE already set on the app config (e.g. NullCache for tests)
    is respected as-is.

    Args:
        app: Flask application instance

    Returns:
        bool: True if Redis connected, False otherwise
    """
    if app.config.get('CACHE_TYPE'):
        cache.init_app(app)
        logger.info('[Travelbook] Using configured cache: %s', app.config['CACHE_TYPE'])
        return False

    redis_url = os.getenv('REDIS_URL')

    if redis_url:
        try:
            # Test Redis connection before configuring
            r = redis.from_url(redis_url, socket_connect_timeout=2)
            r.ping()

            app.config['CACHE_TYPE'] = 'RedisCache'
            app.config['CACHE_REDIS_URL'] = redis_url
            app.config['CACHE_DEFAULT_TIMEOUT'] = DEFAULT_TIMEOUT
            app.config['CACHE_KEY_PREFIX'] = 'travelbook:'

            cache.init_app(app)
            logger.info('[Travelbook] Redis cache connected: %s', redis_url.split('@')[-1])
            return True

        except (redis.RedisError, ValueError) as e:
            logger.warning('[Travelbook] Redis unavailable (%s), using simple cache', str(e))

    app.config['CACHE_TYPE'] = 'SimpleCache'
    app.config['CACHE_DEFAULT_TIMEOUT'] = DEFAULT_TIMEOUT

    cache.init_app(app)
    logger.info('[Travelbook] Using simple in-memory cache (no Redis)')
    return False


# Backends every worker process sees; anything else is private to one process
SHARED_CACHE_TYPES = (
    'RedisCache',
    'RedisSentinelCache',
    'RedisClusterCache',
    'MemcachedCache',
    'SASLMemcachedCache',
)


def is_shared_cache(app) -> bool:
    """
    Whether the configured backend is shared across worker processes.

    A per-process cache (SimpleCache) is not invalidated by a write that
    another gunicorn worker handled.
    """
    return app.config.get('CACHE_TYPE') in SHARED_CACHE_TYPES
