"""Forecast cache backends."""

from .base import CACHE_KEY_PREFIX, ForecastCacheStore, forecast_cache_key
from .factory import build_cache_store
from .memory import InMemoryForecastCache
from .redis import RedisForecastCache

__all__ = [
    "CACHE_KEY_PREFIX",
    "ForecastCacheStore",
    "forecast_cache_key",
    "build_cache_store",
    "InMemoryForecastCache",
    "RedisForecastCache",
]
