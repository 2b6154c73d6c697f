"""In-process forecast cache with lazy TTL expiry."""

import threading
import time
from typing import Callable, Optional

from weathercache.cache_store.base import ForecastCacheStore
from weathercache.domain import ForecastPayload
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="cache_store/in_memory_forecast_cache")


class InMemoryForecastCache(ForecastCacheStore):
    """Thread-safe dict of (expires_at, payload); stale entries are dropped on read."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        """``clock`` returns seconds; tests pass a controllable one to move time forward."""
        logger.debug("Initializing InMemoryForecastCache")
        self._clock = clock
        self._entries: dict[str, tuple[float, ForecastPayload]] = {}
        self._lock = threading.Lock()

    def read(self, key: str) -> Optional[ForecastPayload]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if self._clock() >= expires_at:
                self._entries.pop(key, None)
                logger.debug("Forecast cache entry expired", extra={"key": key})
                return None
            return value

    def write(self, key: str, value: ForecastPayload, ttl_seconds: int) -> None:
        with self._lock:
            self._entries[key] = (self._clock() + ttl_seconds, value)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
