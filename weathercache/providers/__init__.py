"""Geocoding and weather provider clients."""

from .base import CallableGeocoder, CallableWeatherSource, Geocoder, WeatherSource
from .factory import build_geocoder, build_weather_client
from .geoapify_client import GeoapifyGeocoder
from .openweather_client import (
    OpenWeatherClient,
    bucket_daily_forecasts,
    parse_current_conditions,
    parse_extended_forecast,
)

__all__ = [
    "build_geocoder",
    "build_weather_client",
    "CallableGeocoder",
    "CallableWeatherSource",
    "Geocoder",
    "WeatherSource",
    "GeoapifyGeocoder",
    "OpenWeatherClient",
    "bucket_daily_forecasts",
    "parse_current_conditions",
    "parse_extended_forecast",
]
