"""Application configuration pulled from environment variables via pydantic."""
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag="config")

FORECAST_CACHE_TTL_SECONDS = 30 * 60


class Settings(BaseSettings):
    """Environment-driven configuration for the weathercache service."""
    model_config = SettingsConfigDict(env_prefix="WEATHERCACHE_", extra="ignore")

    openweather_api_key: str | None = None
    openweather_base_url: str = "https://api.openweathermap.org/data/2.5"
    weather_timeout_seconds: float = 10.0
    geoapify_api_key: str | None = None
    geoapify_base_url: str = "https://api.geoapify.com/v1"
    geocoder_timeout_seconds: float = 5.0
    forecast_cache_ttl_seconds: int = FORECAST_CACHE_TTL_SECONDS
    cache_backend: str = "memory"  # options: memory, redis
    cache_redis_url: str | None = None
    cache_key_prefix: str = ""
    log_level: str = "INFO"

    @field_validator("openweather_base_url", "geoapify_base_url", mode="after")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize base URLs to avoid double slashes."""
        return str(v).rstrip("/")


settings = Settings()


if __name__ == "__main__":
    logger.logger.setLevel("DEBUG")
    logger.debug(f"Loaded settings: {settings.model_dump_json(indent=4, exclude={'openweather_api_key', 'geoapify_api_key'})}")
