"""Value types shared by the provider clients, the cache stores and the forecast service."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union


@dataclass(frozen=True)
class Location:
    """First geocoding match for an address."""
    latitude: float
    longitude: float
    postal_code: str


@dataclass(frozen=True)
class CurrentConditions:
    """Single current-weather snapshot, temperatures in °C."""
    temperature: float
    feels_like: float
    temp_min: float
    temp_max: float
    description: str
    city_name: str


@dataclass(frozen=True)
class DailyForecast:
    """One day bucket of the 3-hour forecast."""
    date: str  # e.g. "Monday, Jan 01"
    temp_min: float
    temp_max: float
    description: str


class GeocodeFailureKind(str, Enum):
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class GeocodeFailure:
    """Why an address did not resolve. Only ever logged, never shown to callers."""
    kind: GeocodeFailureKind
    detail: str = ""


class WeatherEndpoint(str, Enum):
    CURRENT = "current"
    FORECAST = "forecast"


class WeatherFailureKind(str, Enum):
    HTTP_STATUS = "http_status"
    CONNECTION = "connection"
    TIMEOUT = "timeout"
    PARSE = "parse"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class WeatherFetchFailure:
    """Why one weather endpoint call produced no data."""
    endpoint: WeatherEndpoint
    kind: WeatherFailureKind
    detail: str = ""
    status_code: Optional[int] = None


FailureCause = Union[GeocodeFailure, WeatherFetchFailure]


class ForecastErrorReason(str, Enum):
    BLANK_ADDRESS = "blank_address"
    LOCATION_NOT_FOUND = "location_not_found"
    WEATHER_UNAVAILABLE = "weather_unavailable"


@dataclass(frozen=True)
class ForecastPayload:
    """Successful forecast lookup. ``from_cache`` is set per read, not per write."""
    current: CurrentConditions
    extended: Tuple[DailyForecast, ...]
    address: str
    postal_code: str
    from_cache: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Return the public mapping served to callers and stored by external caches."""
        return {
            "current": asdict(self.current),
            "extended": [asdict(day) for day in self.extended],
            "address": self.address,
            "postal_code": self.postal_code,
            "from_cache": self.from_cache,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ForecastPayload":
        """Rebuild a payload from ``to_dict()`` output."""
        return cls(
            current=CurrentConditions(**data["current"]),
            extended=tuple(DailyForecast(**day) for day in data.get("extended") or []),
            address=data["address"],
            postal_code=data["postal_code"],
            from_cache=bool(data.get("from_cache", False)),
        )


@dataclass(frozen=True)
class ForecastError:
    """Failed forecast lookup: one user-facing message plus the internal causes."""
    error: str
    reason: ForecastErrorReason
    causes: Tuple[FailureCause, ...] = field(default=(), compare=False)

    def to_dict(self) -> Dict[str, str]:
        return {"error": self.error}


ForecastResult = Union[ForecastPayload, ForecastError]
