"""Pick the forecast cache backend at startup."""

from __future__ import annotations

import redis

from weathercache import config
from weathercache.cache_store.base import ForecastCacheStore
from weathercache.cache_store.memory import InMemoryForecastCache
from weathercache.cache_store.redis import RedisForecastCache
from utils.logging_utils import get_tagged_logger, mask_url_secrets

logger = get_tagged_logger(__name__, tag="cache_store/factory")

DEFAULT_BACKEND_NAME = "memory"


def build_cache_store(settings: config.Settings | None = None) -> ForecastCacheStore:
    """Instantiate the configured forecast cache backend."""
    settings = settings or config.settings
    backend = (settings.cache_backend or DEFAULT_BACKEND_NAME).lower()

    if backend == "memory":
        logger.info("Using in-memory forecast cache")
        return InMemoryForecastCache()

    if backend == "redis":
        url = settings.cache_redis_url
        if not url:
            raise ValueError("cache_redis_url must be set for the Redis forecast cache")
        logger.info("Using Redis forecast cache", extra={"redis_url": mask_url_secrets(url)})
        client = redis.Redis.from_url(url)
        return RedisForecastCache(client, prefix=settings.cache_key_prefix or "")

    raise ValueError(f"Unknown cache backend '{backend}'")
