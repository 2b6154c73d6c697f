"""Shared protocol for forecast cache backends."""

from typing import Optional, Protocol

from weathercache.domain import ForecastPayload

CACHE_KEY_PREFIX = "forecast_"


def forecast_cache_key(postal_code: str) -> str:
    """Return the cache key for a postal code, e.g. ``forecast_90210``."""
    return f"{CACHE_KEY_PREFIX}{postal_code}"


class ForecastCacheStore(Protocol):
    """Key/value store with a per-entry TTL."""

    def read(self, key: str) -> Optional[ForecastPayload]:
        """Return the stored payload, or None if missing or expired."""

    def write(self, key: str, value: ForecastPayload, ttl_seconds: int) -> None:
        """Store ``value`` under ``key`` until ``ttl_seconds`` from now."""

    def delete(self, key: str) -> None:
        """Remove an entry without raising if it is absent."""

    def clear(self) -> None:
        """Remove every entry owned by this store."""
