from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class TransitConfig(BaseSettings):
    """Configuration for the transit data service and the live map engine.

    Automatically loads from environment variables and .env file.
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

    backend_url: str = Field(default="http://localhost:8080", alias="TRANSIT_BACKEND_URL")
    api_key: str | None = Field(default=None, alias="TRANSIT_API_KEY")
    request_timeout_seconds: float = Field(default=30.0, alias="TRANSIT_REQUEST_TIMEOUT")

    # viewport
    min_zoom_for_stops: float = Field(default=16, alias="TRANSIT_MIN_ZOOM")
    bbox_precision: int = Field(default=5, alias="TRANSIT_BBOX_PRECISION")

    # live positions
    poll_interval_seconds: float = Field(default=5.0, alias="TRANSIT_POLL_INTERVAL")
    route_freshness_seconds: int = Field(default=84600, alias="TRANSIT_ROUTE_FRESHNESS")
    poll_freshness_seconds: int = Field(default=60, alias="TRANSIT_POLL_FRESHNESS")

    # cache eviction (unset = keep everything for the process lifetime)
    cache_max_entries: int | None = Field(default=None, alias="TRANSIT_CACHE_MAX_ENTRIES")
    cache_ttl_seconds: float | None = Field(default=None, alias="TRANSIT_CACHE_TTL")


@lru_cache
def get_transit_config() -> TransitConfig:
    """Get transit configuration (cached singleton).

    Returns:
        TransitConfig with values from .env file or environment variables.
    """
    return TransitConfig()
