"""
Redis cache for read-mostly listings (currently the stock levels).

Keys look like `{prefix}:{module}:{key}`. Memoized values carry the module
version in the key, e.g. `inventory:stock:v3:levels`.
Every Redis failure degrades to a cache miss; a request never fails because
of the cache.
"""
import json
import logging
from typing import Any, Callable, Optional

import redis
from redis.exceptions import RedisError
from flask import Flask, current_app

logger = logging.getLogger(__name__)

EXTENSION_KEY = 'cache'


class CacheService:
    """JSON values in Redis with a per-module namespace."""

    def __init__(self, app: Optional[Flask] = None):
        self.client: Optional[redis.Redis] = None
        self.prefix = 'inventory'
        self.default_ttl = 30

        if app:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        """Connect using REDIS_URL unless CACHE_ENABLED is off."""
        self.prefix = app.config.get('CACHE_KEY_PREFIX', self.prefix)
        self.default_ttl = app.config.get('CACHE_STOCK_TTL', self.default_ttl)

        if not app.config.get('CACHE_ENABLED', True):
            logger.info("[CACHE] disabled by configuration")
            return

        redis_url = app.config.get('REDIS_URL', 'redis://localhost:6379/0')
        client = redis.from_url(
            redis_url,
            decode_responses=True,
            socket_connect_timeout=3,
            socket_timeout=3,
            health_check_interval=30,
        )
        try:
            client.ping()
        except RedisError as e:
            logger.warning(f"[CACHE] {redis_url} unreachable ({e}); running without cache")
            return

        self.client = client
        logger.info(f"[CACHE] connected to {redis_url}")

    @property
    def enabled(self) -> bool:
        return self.client is not None

    def _build_key(self, module: str, key: str) -> str:
        return f"{self.prefix}:{module}:{key}"

    def get(self, module: str, key: str) -> Optional[Any]:
        if not self.enabled:
            return None
        try:
            raw = self.client.get(self._build_key(module, key))
            return None if raw is None else json.loads(raw)
        except (RedisError, ValueError) as e:
            logger.warning(f"[CACHE] read of {module}:{key} failed: {e}")
            return None

    def set(self, module: str, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """Store a JSON-serializable value; returns False when not cached."""
        if not self.enabled:
            return False
        try:
            self.client.setex(self._build_key(module, key), ttl or self.default_ttl, json.dumps(value))
        except RedisError as e:
            logger.warning(f"[CACHE] write of {module}:{key} failed: {e}")
            return False
        return True

    def _version_key(self, module: str) -> str:
        return self._build_key(module, 'version')

    def _current_version(self, module: str) -> int:
        raw = self.client.get(self._version_key(module))
        return int(raw) if raw else 0

    def invalidate_module(self, module: str) -> int:
        """
        Bump the module version and drop its cached values.

        Values are stored under the version current when their load started,
        so a load that overlaps an invalidation can only write an old-version
        key that is never read again.
        """
        if not self.enabled:
            return 0
        version_key = self._version_key(module)
        pattern = self._build_key(module, '*')
        try:
            self.client.incr(version_key)
            keys = [k for k in self.client.scan_iter(match=pattern, count=100) if k != version_key]
            deleted = self.client.delete(*keys) if keys else 0
        except RedisError as e:
            logger.warning(f"[CACHE] invalidation of {pattern} failed: {e}")
            return 0
        logger.debug(f"[CACHE] invalidated {pattern} ({deleted} keys)")
        return deleted

    def memoize(self, module: str, key: str, loader_fn: Callable[[], Any], ttl: Optional[int] = None) -> Any:
        """Return the cached value, or call loader_fn and cache its result."""
        if not self.enabled:
            return loader_fn()
        try:
            versioned_key = f"v{self._current_version(module)}:{key}"
        except (RedisError, ValueError) as e:
            logger.warning(f"[CACHE] version read of {module} failed: {e}")
            return loader_fn()

        cached = self.get(module, versioned_key)
        if cached is not None:
            return cached
        value = loader_fn()
        self.set(module, versioned_key, value, ttl)
        return value


def init_cache(app: Flask) -> CacheService:
    cache = CacheService(app)
    app.extensions[EXTENSION_KEY] = cache
    return cache


def get_cache() -> CacheService:
    """Cache of the current app; RuntimeError outside an app context."""
    try:
        return current_app.extensions[EXTENSION_KEY]
    except KeyError:
        raise RuntimeError("Cache not initialized.")
