"""Resolve an address, serve the cached forecast for its postal code, or fetch and cache a fresh one."""
from __future__ import annotations

import dataclasses
import logging
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Optional, Tuple, Union

from weathercache.cache_store import ForecastCacheStore, forecast_cache_key
from weathercache.config import FORECAST_CACHE_TTL_SECONDS
from weathercache.domain import (
    CurrentConditions,
    DailyForecast,
    FailureCause,
    ForecastError,
    ForecastErrorReason,
    ForecastPayload,
    ForecastResult,
    GeocodeFailure,
    GeocodeFailureKind,
    Location,
    WeatherEndpoint,
    WeatherFailureKind,
    WeatherFetchFailure,
)
from weathercache.providers import Geocoder, WeatherSource
from utils.logging_utils import get_tagged_logger

BLANK_ADDRESS_MESSAGE = "Please enter an address."
LOCATION_NOT_FOUND_TEMPLATE = "Could not find location for '{address}'."
WEATHER_UNAVAILABLE_TEMPLATE = "Could not retrieve weather data for '{address}'."


def location_not_found(address: str, cause: Optional[FailureCause] = None) -> ForecastError:
    return ForecastError(
        error=LOCATION_NOT_FOUND_TEMPLATE.format(address=address),
        reason=ForecastErrorReason.LOCATION_NOT_FOUND,
        causes=(cause,) if cause else (),
    )


def weather_unavailable(address: str, causes: Tuple[FailureCause, ...] = ()) -> ForecastError:
    return ForecastError(
        error=WEATHER_UNAVAILABLE_TEMPLATE.format(address=address),
        reason=ForecastErrorReason.WEATHER_UNAVAILABLE,
        causes=causes,
    )


class ForecastCacheService:
    """
    Address → forecast pipeline with a postal-code keyed cache.

    Every call geocodes the address first. A live cache entry for the postal
    code is returned as is (tagged ``from_cache=True``); otherwise current
    conditions and the daily forecast are fetched concurrently and, only if
    both succeed, merged, cached for ``ttl_seconds`` and returned. Expected
    failures come back as ``ForecastError``; nothing here raises for them.

    Two addresses sharing a postal code share one entry, and the stored
    ``address`` is whichever caller wrote last.
    """

    def __init__(
        self,
        geocoder: Geocoder,
        weather_source: WeatherSource,
        cache_store: ForecastCacheStore,
        *,
        ttl_seconds: int = FORECAST_CACHE_TTL_SECONDS,
        logger: Union[logging.Logger, logging.LoggerAdapter, None] = None,
        executor: Optional[Executor] = None,
    ) -> None:
        self.geocoder = geocoder
        self.weather_source = weather_source
        self.cache_store = cache_store
        self.ttl_seconds = ttl_seconds
        self.logger = logger or get_tagged_logger(__name__, tag="forecast_service")
        # None: a short-lived two-worker pool per fetch.
        self.executor = executor

    def get_forecast(self, address: Optional[str]) -> ForecastResult:
        """Return the forecast payload for ``address`` or a single user-facing error."""
        if address is None or not address.strip():
            self.logger.info("Rejected blank address")
            return ForecastError(error=BLANK_ADDRESS_MESSAGE, reason=ForecastErrorReason.BLANK_ADDRESS)

        location = self._resolve(address)
        if not isinstance(location, Location):
            return location_not_found(address, location)

        key = forecast_cache_key(location.postal_code)
        cached = self._read_cache(key)
        if cached is not None:
            self.logger.info(f"Weather data for {location.postal_code} pulled from cache.")
            return dataclasses.replace(cached, from_cache=True)

        current, extended = self._fetch_weather(location)
        causes = tuple(
            self._as_failure(endpoint, result)
            for endpoint, result in (
                (WeatherEndpoint.CURRENT, current),
                (WeatherEndpoint.FORECAST, extended),
            )
            if not self._succeeded(endpoint, result)
        )
        if causes:
            self.logger.warning(
                "Weather fetch failed; nothing cached",
                extra={
                    "postal_code": location.postal_code,
                    "causes": [f"{c.endpoint.value}:{c.kind.value}" for c in causes],
                },
            )
            return weather_unavailable(address, causes)

        payload = ForecastPayload(
            current=current,
            extended=tuple(extended),
            address=address,
            postal_code=location.postal_code,
            from_cache=False,
        )
        self._write_cache(key, payload)
        self.logger.info(f"Weather data for {location.postal_code} fetched from API and cached.")
        return payload

    def _resolve(self, address: str) -> Union[Location, GeocodeFailure]:
        try:
            result = self.geocoder.resolve(address)
        except Exception as exc:
            self.logger.error(f"Geocoding error for address '{address}': {exc}")
            return GeocodeFailure(kind=GeocodeFailureKind.UNKNOWN, detail=str(exc))
        if result is None:
            return GeocodeFailure(kind=GeocodeFailureKind.NOT_FOUND)
        if isinstance(result, Location) and not result.postal_code:
            self.logger.error(f"Geocoding error for address '{address}': result has no postal code")
            return GeocodeFailure(kind=GeocodeFailureKind.UNKNOWN, detail="result has no postal code")
        return result

    def _read_cache(self, key: str) -> Optional[ForecastPayload]:
        try:
            return self.cache_store.read(key)
        except Exception as exc:
            self.logger.warning("Forecast cache read failed; treating as miss", extra={"key": key, "error": str(exc)})
            return None

    def _write_cache(self, key: str, payload: ForecastPayload) -> None:
        try:
            self.cache_store.write(key, payload, self.ttl_seconds)
        except Exception as exc:
            self.logger.warning("Forecast cache write failed", extra={"key": key, "error": str(exc)})

    def _fetch_weather(self, location: Location):
        """Run both weather calls concurrently and wait for both before returning."""
        if self.executor is not None:
            return self._join(self.executor, location)
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="weather-fetch") as pool:
            return self._join(pool, location)

    def _join(self, pool: Executor, location: Location):
        current_future: Future = pool.submit(
            self.weather_source.fetch_current, location.latitude, location.longitude
        )
        extended_future: Future = pool.submit(
            self.weather_source.fetch_extended, location.latitude, location.longitude
        )
        return (
            self._outcome(WeatherEndpoint.CURRENT, current_future),
            self._outcome(WeatherEndpoint.FORECAST, extended_future),
        )

    def _outcome(self, endpoint: WeatherEndpoint, future: Future):
        try:
            return future.result()
        except Exception as exc:
            self.logger.error(f"An unexpected error occurred during {endpoint.value} weather fetch: {exc}")
            return WeatherFetchFailure(endpoint=endpoint, kind=WeatherFailureKind.UNKNOWN, detail=str(exc))

    @staticmethod
    def _succeeded(endpoint: WeatherEndpoint, result) -> bool:
        if endpoint is WeatherEndpoint.CURRENT:
            return isinstance(result, CurrentConditions)
        return isinstance(result, (tuple, list)) and all(isinstance(day, DailyForecast) for day in result)

    @staticmethod
    def _as_failure(endpoint: WeatherEndpoint, result) -> WeatherFetchFailure:
        if isinstance(result, WeatherFetchFailure):
            return result
        return WeatherFetchFailure(endpoint=endpoint, kind=WeatherFailureKind.UNKNOWN, detail="no data returned")


def main():
    """Manual test helper: look up one address against the configured providers."""
    import json
    import sys

    from weathercache.config import settings
    from weathercache.cache_store import build_cache_store
    from weathercache.providers import build_geocoder, build_weather_client
    from utils.logging_utils import setup_logging

    setup_logging(level=settings.log_level, job_name="weathercache-cli")
    service = ForecastCacheService(
        build_geocoder(settings),
        build_weather_client(settings),
        build_cache_store(settings),
        ttl_seconds=settings.forecast_cache_ttl_seconds,
    )
    address = " ".join(sys.argv[1:]) or "1600 Amphitheatre Parkway, Mountain View, CA"
    for _ in range(2):
        print(json.dumps(service.get_forecast(address).to_dict(), indent=2))


if __name__ == "__main__":
    main()
