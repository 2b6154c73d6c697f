"""Helpers for fetching current conditions and the 5 day / 3 hour forecast from OpenWeatherMap."""
from __future__ import annotations

import datetime as dt
from typing import Any, Dict, List, Optional, Tuple, Union

import requests

from weathercache.domain import (
    CurrentConditions,
    DailyForecast,
    WeatherEndpoint,
    WeatherFailureKind,
    WeatherFetchFailure,
)
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="providers/openweather")

OPENWEATHER_BASE_URL = "https://api.openweathermap.org/data/2.5"
DEFAULT_TIMEOUT_SECONDS = 10.0

# Always Celsius, whatever the account default is.
UNITS = "metric"

SAMPLES_PER_DAY = 8  # 3-hour steps
MAX_FORECAST_DAYS = 5
DATE_LABEL_FORMAT = "%A, %b %d"

_ENDPOINT_PATHS = {
    WeatherEndpoint.CURRENT: "/weather",
    WeatherEndpoint.FORECAST: "/forecast",
}

_ENDPOINT_LABELS = {
    WeatherEndpoint.CURRENT: "OpenWeatherMap",
    WeatherEndpoint.FORECAST: "OpenWeatherMap Forecast",
}


class WeatherFetchError(Exception):
    """Raised inside the client when a request cannot produce a JSON payload."""

    def __init__(self, failure: WeatherFetchFailure) -> None:
        super().__init__(failure.detail)
        self.failure = failure


def parse_current_conditions(data: Dict[str, Any]) -> CurrentConditions:
    """Map a current-weather payload onto CurrentConditions."""
    main = data["main"]
    weather = data["weather"][0]
    return CurrentConditions(
        temperature=float(main["temp"]),
        feels_like=float(main["feels_like"]),
        temp_min=float(main["temp_min"]),
        temp_max=float(main["temp_max"]),
        description=str(weather["description"]),
        city_name=str(data.get("name") or ""),
    )


def format_day_label(timestamp: int, utc_offset_seconds: int = 0) -> str:
    """Render a unix timestamp as e.g. "Monday, Jan 01" in the given UTC offset."""
    tz = dt.timezone(dt.timedelta(seconds=utc_offset_seconds))
    return dt.datetime.fromtimestamp(int(timestamp), tz=tz).strftime(DATE_LABEL_FORMAT)


def bucket_daily_forecasts(
    samples: List[Optional[Dict[str, Any]]],
    *,
    utc_offset_seconds: int = 0,
    samples_per_day: int = SAMPLES_PER_DAY,
    max_days: int = MAX_FORECAST_DAYS,
) -> Tuple[DailyForecast, ...]:
    """
    Collapse chronological 3-hour samples into day entries.

    The list is cut into consecutive groups of ``samples_per_day``; each group
    becomes one day whose min/max are taken over the group's ``main.temp``
    readings and whose label and description come from the group's first
    sample. A group without a first sample is skipped. At most ``max_days``
    entries are returned.
    """
    days: List[DailyForecast] = []
    for start in range(0, len(samples), samples_per_day):
        group = samples[start:start + samples_per_day]
        first = group[0]
        if not first:
            continue
        temps = [float(sample["main"]["temp"]) for sample in group if sample]
        days.append(
            DailyForecast(
                date=format_day_label(first["dt"], utc_offset_seconds),
                temp_min=min(temps),
                temp_max=max(temps),
                description=str(first["weather"][0]["description"]),
            )
        )
        if len(days) >= max_days:
            break
    return tuple(days)


def parse_extended_forecast(data: Dict[str, Any]) -> Tuple[DailyForecast, ...]:
    """Map a 5 day / 3 hour payload onto at most five DailyForecast entries."""
    city = data.get("city") or {}
    offset = int(city.get("timezone") or 0)
    return bucket_daily_forecasts(data["list"], utc_offset_seconds=offset)


class OpenWeatherClient:
    """
    Two independent OpenWeatherMap calls for one coordinate pair.

    Neither method raises: network, HTTP and payload faults are logged with
    their cause and returned as a ``WeatherFetchFailure``.
    """

    def __init__(
        self,
        api_key: Optional[str],
        *,
        base_url: str = OPENWEATHER_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _get_json(self, endpoint: WeatherEndpoint, latitude: float, longitude: float) -> Dict[str, Any]:
        """GET one endpoint and return the decoded JSON body."""
        label = _ENDPOINT_LABELS[endpoint]
        params = {
            "lat": latitude,
            "lon": longitude,
            "appid": self.api_key,
            "units": UNITS,
        }
        url = f"{self.base_url}{_ENDPOINT_PATHS[endpoint]}"
        logger.debug(
            f"Requesting {label}",
            extra={"url": url, "latitude": latitude, "longitude": longitude},
        )

        try:
            resp = self.session.get(url, params=params, timeout=self.timeout)
        except requests.Timeout as exc:
            logger.error(f"Request to {label} timed out after {self.timeout}s: {exc}")
            raise WeatherFetchError(
                WeatherFetchFailure(endpoint=endpoint, kind=WeatherFailureKind.TIMEOUT, detail=str(exc))
            )
        except requests.ConnectionError as exc:
            logger.error(f"Connection to OpenWeatherMap failed: {exc}")
            raise WeatherFetchError(
                WeatherFetchFailure(endpoint=endpoint, kind=WeatherFailureKind.CONNECTION, detail=str(exc))
            )
        except requests.RequestException as exc:
            logger.error(f"An unexpected error occurred during {label} fetch: {exc}")
            raise WeatherFetchError(
                WeatherFetchFailure(endpoint=endpoint, kind=WeatherFailureKind.UNKNOWN, detail=str(exc))
            )

        if not resp.ok:
            body = resp.text[:500]
            logger.error(f"{label} API error: {resp.status_code} - {body}")
            raise WeatherFetchError(
                WeatherFetchFailure(
                    endpoint=endpoint,
                    kind=WeatherFailureKind.HTTP_STATUS,
                    detail=body,
                    status_code=resp.status_code,
                )
            )

        try:
            return resp.json()
        except ValueError as exc:
            logger.error(f"Failed to parse OpenWeatherMap response: {exc}")
            raise WeatherFetchError(
                WeatherFetchFailure(endpoint=endpoint, kind=WeatherFailureKind.PARSE, detail=str(exc))
            )

    def _parse_failure(self, endpoint: WeatherEndpoint, exc: Exception) -> WeatherFetchFailure:
        logger.error(f"Failed to parse OpenWeatherMap response: {exc!r}", extra={"endpoint": endpoint.value})
        return WeatherFetchFailure(endpoint=endpoint, kind=WeatherFailureKind.PARSE, detail=repr(exc))

    def fetch_current(self, latitude: float, longitude: float) -> Union[CurrentConditions, WeatherFetchFailure]:
        """Fetch the current snapshot for the given coordinates."""
        try:
            data = self._get_json(WeatherEndpoint.CURRENT, latitude, longitude)
            current = parse_current_conditions(data)
        except WeatherFetchError as exc:
            return exc.failure
        except (KeyError, IndexError, TypeError, ValueError, AttributeError) as exc:
            return self._parse_failure(WeatherEndpoint.CURRENT, exc)
        logger.info(
            "Fetched current conditions",
            extra={"city_name": current.city_name, "temperature": current.temperature},
        )
        return current

    def fetch_extended(
        self, latitude: float, longitude: float
    ) -> Union[Tuple[DailyForecast, ...], WeatherFetchFailure]:
        """Fetch the 3-hour forecast and bucket it into at most five days."""
        try:
            data = self._get_json(WeatherEndpoint.FORECAST, latitude, longitude)
            days = parse_extended_forecast(data)
        except WeatherFetchError as exc:
            return exc.failure
        except (KeyError, IndexError, TypeError, ValueError, AttributeError) as exc:
            return self._parse_failure(WeatherEndpoint.FORECAST, exc)
        logger.info("Fetched extended forecast", extra={"days": len(days)})
        return days
