"""Domain vocabulary and schemas for surf spots and daily forecast summaries.

Both provider adapters (Spitcast, Stormglass) reduce their raw payloads to
`DailyForecastSummary` values; the HTTP layer and the report store only ever
see these models. No provider-specific interpretation lives here.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field


class _StrictBaseModel(BaseModel):
    """Immutable base model with strict extra handling."""

    model_config = ConfigDict(extra="forbid", frozen=True)


class Rating(str, Enum):
    """Coarse surf quality for a day, ordered worst to best."""
    POOR = "poor"
    FAIR = "fair"
    GOOD = "good"
    EPIC = "epic"


class ShapeLabel(str, Enum):
    """Descriptive label for Spitcast's averaged shape score."""
    POOR = "Poor"
    FAIR = "Fair"
    GOOD = "Good"
    EPIC = "Epic"


class CompassPoint(str, Enum):
    """8-point compass labels for wind and swell direction."""
    N = "N"
    NE = "NE"
    E = "E"
    SE = "SE"
    S = "S"
    SW = "SW"
    W = "W"
    NW = "NW"


class ForecastSource(str, Enum):
    """Provider that produced a summary."""
    SPITCAST = "spitcast"
    STORMGLASS = "stormglass"


class SurfSpot(_StrictBaseModel):
    """A surf break listed in the Spitcast directory."""
    spot_id: int
    code: str
    name: str
    county_id: int | None = None
    longitude: float
    latitude: float
    street_address: str | None = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "SurfSpot":
        """Build a spot from a directory row; coordinates arrive as [lng, lat]."""
        lng, lat = payload["coordinates"][:2]
        return cls(
            spot_id=int(payload["_id"]),
            code=str(payload.get("spot_id_char") or ""),
            name=str(payload["spot_name"]),
            county_id=payload.get("county_id"),
            longitude=float(lng),
            latitude=float(lat),
            street_address=payload.get("street_address"),
        )


class DailyForecastSummary(_StrictBaseModel):
    """One calendar day of surf forecast, in the provider's date framing."""
    date: str = Field(pattern=r"^\d{4}-\d{2}-\d{2}$")
    wave_height_min: int = Field(ge=1)  # feet
    wave_height_max: int = Field(ge=1)  # feet
    rating: Rating
    wind_direction: CompassPoint | None = None
    wind_speed: int | None = None  # knots
    swell_period_sec: int | None = None
    swell_direction: CompassPoint | None = None
    source: ForecastSource
    shape: ShapeLabel | None = None
    spot_name: str | None = None
    spot_id: int | None = None


class SurfLocation(_StrictBaseModel):
    """A location whose stored reports are kept fresh from Stormglass."""
    location_id: int
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    name: str | None = None
