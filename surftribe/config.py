"""Service configuration pulled from environment variables via pydantic."""
from typing import List

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from surftribe.domain import SurfLocation
from utils.logging_utils import get_tagged_logger, mask_secret
logger = get_tagged_logger(__name__, tag="config")


class Settings(BaseSettings):
    """Environment-driven configuration for the SurfTribe forecast service."""
    model_config = SettingsConfigDict(env_prefix="SURF_", extra="ignore", populate_by_name=True)

    stormglass_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("STORMGLASS_API_KEY", "SURF_STORMGLASS_API_KEY"),
    )
    stormglass_base_url: str = "https://api.stormglass.io/v2"
    spitcast_base_url: str = "https://api.spitcast.com/api"
    request_timeout_seconds: float | None = None  # None: no client-side timeout
    spot_cache_ttl_seconds: int = 24 * 60 * 60
    spot_match_max_distance_deg: float = 0.1
    spitcast_forecast_days: int = 7
    stormglass_forecast_days: int = 14
    stormglass_daily_request_limit: int = 50
    free_forecast_days: int = 3
    premium_forecast_days: int = 14
    stale_report_hours: int = 24
    # JSON list, e.g. SURF_LOCATIONS='[{"location_id": 1, "latitude": 33.38, "longitude": -117.59}]'
    locations: List[SurfLocation] = Field(default_factory=list)
    forecast_source: str = "stormglass"  # options: stormglass, spitcast
    api_key: str | None = None
    internal_token: str | None = None

    @field_validator("stormglass_base_url", "spitcast_base_url", mode="after")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize base URLs to avoid double slashes."""
        return str(v).rstrip("/")


settings = Settings()


if __name__ == "__main__":
    logger.setLevel("DEBUG")
    dumped = settings.model_dump()
    dumped["stormglass_api_key"] = mask_secret(settings.stormglass_api_key)
    dumped["api_key"] = mask_secret(settings.api_key)
    dumped["internal_token"] = mask_secret(settings.internal_token)
    logger.debug(f"Loaded settings: {dumped}")
