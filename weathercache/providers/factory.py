"""Factory helpers for building the provider clients at startup."""

from __future__ import annotations

import requests

from weathercache import config
from weathercache.providers.geoapify_client import GeoapifyGeocoder
from weathercache.providers.openweather_client import OpenWeatherClient
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="providers/factory")


def build_geocoder(settings: config.Settings | None = None, session: requests.Session | None = None) -> GeoapifyGeocoder:
    """Instantiate the geocoding client from configuration."""
    settings = settings or config.settings
    if not settings.geoapify_api_key:
        logger.warning("geoapify_api_key is not set; geocoding requests will be rejected upstream")
    return GeoapifyGeocoder(
        settings.geoapify_api_key,
        base_url=settings.geoapify_base_url,
        timeout=settings.geocoder_timeout_seconds,
        session=session,
    )


def build_weather_client(settings: config.Settings | None = None,
                         session: requests.Session | None = None) -> OpenWeatherClient:
    """Instantiate the OpenWeatherMap client from configuration."""
    settings = settings or config.settings
    if not settings.openweather_api_key:
        logger.warning("openweather_api_key is not set; weather requests will be rejected upstream")
    return OpenWeatherClient(
        settings.openweather_api_key,
        base_url=settings.openweather_base_url,
        timeout=settings.weather_timeout_seconds,
        session=session,
    )
