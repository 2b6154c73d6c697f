"""HTTP API for address-based forecast lookups."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .cache_store import build_cache_store
from .config import settings
from .domain import ForecastError, ForecastErrorReason
from .forecast_service import ForecastCacheService
from .providers import build_geocoder, build_weather_client
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="api")

_STATUS_BY_REASON = {
    ForecastErrorReason.BLANK_ADDRESS: 400,
    ForecastErrorReason.LOCATION_NOT_FOUND: 404,
    ForecastErrorReason.WEATHER_UNAVAILABLE: 502,
}


class CurrentConditionsModel(BaseModel):
    """Current snapshot as served to callers (°C)."""
    temperature: float
    feels_like: float
    temp_min: float
    temp_max: float
    description: str
    city_name: str


class DailyForecastModel(BaseModel):
    """One forecast day."""
    date: str
    temp_min: float
    temp_max: float
    description: str


class ForecastResponse(BaseModel):
    """Successful lookup."""
    current: CurrentConditionsModel
    extended: list[DailyForecastModel]
    address: str
    postal_code: str
    from_cache: bool


class ErrorResponse(BaseModel):
    """Failed lookup; one human-readable message."""
    error: str


def _build_service() -> ForecastCacheService:
    """Wire the configured providers and cache backend into one service."""
    return ForecastCacheService(
        build_geocoder(settings),
        build_weather_client(settings),
        build_cache_store(settings),
        ttl_seconds=settings.forecast_cache_ttl_seconds,
    )


FORECAST_SERVICE = _build_service()


def get_forecast_service() -> ForecastCacheService:
    """FastAPI dependency returning the process-wide service."""
    return FORECAST_SERVICE


router = APIRouter()


@router.get(
    "/forecast",
    response_model=ForecastResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
def get_forecast(
    address: Optional[str] = Query(None, description="Free-text street address"),
    service: ForecastCacheService = Depends(get_forecast_service),
):
    """Return the (possibly cached) forecast for an address."""
    result = service.get_forecast(address)
    if isinstance(result, ForecastError):
        status_code = _STATUS_BY_REASON.get(result.reason, 502)
        logger.info("Forecast lookup failed", extra={"reason": result.reason.value, "status_code": status_code})
        return JSONResponse(status_code=status_code, content=result.to_dict())
    return ForecastResponse(**result.to_dict())
