"""Interfaces and helpers for the geocoding and weather collaborators."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Protocol, Tuple, Union

from weathercache.domain import (
    CurrentConditions,
    DailyForecast,
    GeocodeFailure,
    Location,
    WeatherFetchFailure,
)

CurrentResult = Union[CurrentConditions, WeatherFetchFailure, None]
ExtendedResult = Union[Tuple[DailyForecast, ...], WeatherFetchFailure, None]


class Geocoder(Protocol):
    """Anything that can turn a free-text address into a Location."""

    def resolve(self, address: str) -> Union[Location, GeocodeFailure, None]:
        """Return the first match, or a failure (``None`` is read as not found)."""
        ...


class WeatherSource(Protocol):
    """Anything that can provide current conditions and a daily forecast."""

    def fetch_current(self, latitude: float, longitude: float) -> CurrentResult:
        """Return the current snapshot, or a failure / ``None``."""
        ...

    def fetch_extended(self, latitude: float, longitude: float) -> ExtendedResult:
        """Return up to five daily entries, or a failure / ``None``."""
        ...


@dataclass
class CallableGeocoder(Geocoder):
    """Wrap a plain function so it can stand in for a geocoding client."""

    resolver: Callable[[str], Union[Location, GeocodeFailure, None]]

    def resolve(self, address: str) -> Union[Location, GeocodeFailure, None]:
        return self.resolver(address)


@dataclass
class CallableWeatherSource(WeatherSource):
    """Wrap two callables so they can be swapped for different backends."""

    current: Callable[[float, float], CurrentResult]
    extended: Callable[[float, float], ExtendedResult]

    def fetch_current(self, latitude: float, longitude: float) -> CurrentResult:
        """Delegate to the configured current-conditions callable."""
        return self.current(latitude, longitude)

    def fetch_extended(self, latitude: float, longitude: float) -> ExtendedResult:
        """Delegate to the configured daily-forecast callable."""
        return self.extended(latitude, longitude)
