"""Resolve free-text addresses to coordinates and postal codes through the Geoapify API."""
from __future__ import annotations

from typing import Any, Optional, Union

import requests

from weathercache.domain import GeocodeFailure, GeocodeFailureKind, Location
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="providers/geoapify")

GEOAPIFY_BASE_URL = "https://api.geoapify.com/v1"
DEFAULT_TIMEOUT_SECONDS = 5.0


class GeoapifyGeocoder:
    """
    Single-attempt address lookup.

    The first search result wins; there is no ranking or disambiguation and no
    retry. Every fault is logged here and handed back as a ``GeocodeFailure``.
    """

    def __init__(
        self,
        api_key: Optional[str],
        *,
        base_url: str = GEOAPIFY_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _fail(self, address: str, detail: str) -> GeocodeFailure:
        logger.error(f"Geocoding error for address '{address}': {detail}")
        return GeocodeFailure(kind=GeocodeFailureKind.UNKNOWN, detail=detail)

    def resolve(self, address: str) -> Union[Location, GeocodeFailure]:
        """Return the first match for ``address`` or the reason there is none."""
        params = {
            "text": address,
            "format": "json",
            "limit": 1,
            "apiKey": self.api_key,
        }
        url = f"{self.base_url}/geocode/search"
        logger.debug("Geocoding address", extra={"address": address})

        try:
            resp = self.session.get(url, params=params, timeout=self.timeout)
        except requests.Timeout as exc:
            return self._fail(address, f"timed out after {self.timeout}s ({exc})")
        except requests.RequestException as exc:
            return self._fail(address, str(exc))

        if resp.status_code == 429:
            logger.error("Geocoder API rate limit exceeded.")
            return GeocodeFailure(kind=GeocodeFailureKind.RATE_LIMITED, detail=resp.text[:200])
        if not resp.ok:
            return self._fail(address, f"HTTP {resp.status_code}: {resp.text[:200]}")

        try:
            data: Any = resp.json()
            results = data.get("results") or []
        except (ValueError, AttributeError) as exc:
            return self._fail(address, f"malformed response ({exc})")

        if not results:
            logger.info("No geocoding results for address", extra={"address": address})
            return GeocodeFailure(kind=GeocodeFailureKind.NOT_FOUND)

        first = results[0]
        try:
            latitude = float(first["lat"])
            longitude = float(first["lon"])
        except (KeyError, TypeError, ValueError) as exc:
            return self._fail(address, f"result missing coordinates ({exc})")

        postal_code = first.get("postcode")
        if not postal_code:
            return self._fail(address, "result has no postal code")

        location = Location(latitude=latitude, longitude=longitude, postal_code=str(postal_code))
        logger.info(
            "Resolved address",
            extra={"postal_code": location.postal_code, "latitude": latitude, "longitude": longitude},
        )
        return location
