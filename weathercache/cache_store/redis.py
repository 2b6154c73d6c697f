"""Redis-backed forecast cache; payloads are stored as JSON with SETEX."""

import json
from typing import Optional

from weathercache.cache_store.base import ForecastCacheStore
from weathercache.domain import ForecastPayload
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="cache_store/redis_forecast_cache")


class RedisForecastCache(ForecastCacheStore):
    """
    Forecast cache on a Redis client (anything with get/setex/delete/scan_iter).

    Expiry is delegated to Redis. Connection errors propagate to the caller;
    a payload that cannot be decoded is logged and treated as a miss.
    """

    def __init__(self, client, prefix: str = "") -> None:
        logger.debug("Initializing RedisForecastCache")
        self.client = client
        self.prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    @staticmethod
    def _dump(value: ForecastPayload) -> bytes:
        return json.dumps(value.to_dict()).encode("utf-8")

    @staticmethod
    def _load(raw: bytes | str) -> Optional[ForecastPayload]:
        try:
            if isinstance(raw, bytes):
                raw = raw.decode("utf-8")
            return ForecastPayload.from_dict(json.loads(raw))
        except (ValueError, KeyError, TypeError) as exc:
            logger.error("Failed to deserialize cached forecast: %s", exc)
            return None

    def read(self, key: str) -> Optional[ForecastPayload]:
        raw = self.client.get(self._key(key))
        if not raw:
            return None
        return self._load(raw)

    def write(self, key: str, value: ForecastPayload, ttl_seconds: int) -> None:
        self.client.setex(self._key(key), int(ttl_seconds), self._dump(value))

    def delete(self, key: str) -> None:
        self.client.delete(self._key(key))

    def clear(self) -> None:
        """Delete every forecast key under the configured prefix."""
        for key in self.client.scan_iter(f"{self.prefix}forecast_*"):
            self.client.delete(key)
