"""Stormglass adapter: multi-model hourly series reduced to daily surf summaries.

Unlike the Spitcast path, failures here raise `StormglassError`; the whole
range is one request, so there is no partial result to fall back to.
"""
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

import requests

from surftribe import config
from surftribe.data_sources.base import HttpSession
from surftribe.domain import CompassPoint, DailyForecastSummary, ForecastSource, Rating
from surftribe.units import compass_label, meters_to_feet, mps_to_knots, round_half_up
from utils.logging_utils import get_tagged_logger, mask_secret

logger = get_tagged_logger(__name__, tag="stormglass_client")

FORECAST_PARAMS = (
    "waveHeight",
    "wavePeriod",
    "waveDirection",
    "windSpeed",
    "windDirection",
    "swellHeight",
    "swellPeriod",
    "swellDirection",
)

# Upstream models in the order we trust them.
SOURCE_PRIORITY = ("noaa", "sg", "icon", "meteo")

DEFAULT_DAILY_QUOTA = 50


class StormglassError(Exception):
    """Stormglass could not produce a forecast."""

    def __init__(self, message: str, *, status_code: int | None = None, body: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class StormglassConfigError(StormglassError):
    """The Stormglass API key is not configured."""


@dataclass
class ApiUsage:
    """Quota metadata reported alongside every Stormglass response."""
    request_count: int
    daily_quota: int


@dataclass
class _DayBucket:
    """Per-date accumulator of hourly values."""
    wave_heights: List[float] = field(default_factory=list)
    swell_periods: List[float] = field(default_factory=list)
    swell_directions: List[float] = field(default_factory=list)
    wind_speeds: List[float] = field(default_factory=list)
    wind_directions: List[float] = field(default_factory=list)


def best_source_value(data: Optional[Mapping[str, Any]]) -> Optional[float]:
    """Pick one value from a {model: value} mapping by source priority.

    Falls back to the first value in the mapping when no preferred model
    reported; returns None for a missing or empty mapping.
    """
    if not data:
        return None
    for source in SOURCE_PRIORITY:
        if data.get(source) is not None:
            return data[source]
    for value in data.values():
        if value is not None:
            return value
    return None


def calculate_rating(wave_height_feet: float, swell_period: float) -> Rating:
    """Rate a day from its max wave height (feet) and mean swell period (s)."""
    if wave_height_feet >= 6 and swell_period >= 12:
        return Rating.EPIC
    if wave_height_feet >= 4 and swell_period >= 10:
        return Rating.GOOD
    if wave_height_feet >= 2 and swell_period >= 7:
        return Rating.FAIR
    return Rating.POOR


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _first_of(*values: Optional[float]) -> Optional[float]:
    for value in values:
        if value is not None:
            return value
    return None


def bucket_hours_by_date(hours: Sequence[Mapping[str, Any]]) -> Dict[str, _DayBucket]:
    """Group hourly rows by the date part of their timestamp (no tz conversion)."""
    days: Dict[str, _DayBucket] = {}
    for hour in hours:
        date = str(hour["time"]).split("T")[0]
        day = days.setdefault(date, _DayBucket())

        wave_height = _first_of(best_source_value(hour.get("swellHeight")), best_source_value(hour.get("waveHeight")))
        swell_period = _first_of(best_source_value(hour.get("swellPeriod")), best_source_value(hour.get("wavePeriod")))
        swell_direction = _first_of(
            best_source_value(hour.get("swellDirection")), best_source_value(hour.get("waveDirection"))
        )
        wind_speed = best_source_value(hour.get("windSpeed"))
        wind_direction = best_source_value(hour.get("windDirection"))

        if wave_height is not None:
            day.wave_heights.append(wave_height)
        if swell_period is not None:
            day.swell_periods.append(swell_period)
        if swell_direction is not None:
            day.swell_directions.append(swell_direction)
        if wind_speed is not None:
            day.wind_speeds.append(wind_speed)
        if wind_direction is not None:
            day.wind_directions.append(wind_direction)
    return days


def summarize_day(date: str, day: _DayBucket) -> DailyForecastSummary:
    """Reduce one date bucket to a summary; empty fields average to 0."""
    mean_height_ft = meters_to_feet(_mean(day.wave_heights))
    max_height_ft = meters_to_feet(max(day.wave_heights) if day.wave_heights else 0.0)
    swell_period = _mean(day.swell_periods)

    return DailyForecastSummary(
        date=date,
        wave_height_min=max(1, mean_height_ft),
        wave_height_max=max(1, max_height_ft),
        rating=calculate_rating(max_height_ft, swell_period),
        wind_direction=CompassPoint(compass_label(_mean(day.wind_directions))),
        wind_speed=mps_to_knots(_mean(day.wind_speeds)),
        swell_period_sec=round_half_up(swell_period),
        swell_direction=CompassPoint(compass_label(_mean(day.swell_directions))),
        source=ForecastSource.STORMGLASS,
    )


class StormglassClient:
    """Point forecasts from the Stormglass weather API."""

    def __init__(
        self,
        *,
        session: HttpSession | None = None,
        clock: Callable[[], dt.datetime] | None = None,
        settings: config.Settings | None = None,
    ) -> None:
        """Bind the HTTP session and clock; both are injectable for tests."""
        self.settings = settings or config.settings
        self.session = session or requests.Session()
        self._clock = clock or (lambda: dt.datetime.now(dt.timezone.utc))

    @property
    def api_key(self) -> str | None:
        return self.settings.stormglass_api_key

    def _point_url(self) -> str:
        return f"{self.settings.stormglass_base_url}/weather/point"

    def fetch_forecast(self, latitude: float, longitude: float, days: int | None = None) -> List[DailyForecastSummary]:
        """
        Fetch `days` of hourly data for a point and return one summary per date.

        Raises StormglassConfigError without an API key and StormglassError for
        any transport failure or non-success response.
        """
        if not self.api_key:
            raise StormglassConfigError("STORMGLASS_API_KEY not configured")
        days = self.settings.stormglass_forecast_days if days is None else days

        start = self._clock()
        end = start + dt.timedelta(days=days)
        params = {
            "lat": latitude,
            "lng": longitude,
            "params": ",".join(FORECAST_PARAMS),
            "start": start.isoformat(),
            "end": end.isoformat(),
        }

        logger.info(
            "Fetching Stormglass forecast",
            extra={"latitude": latitude, "longitude": longitude, "days": days, "api_key": mask_secret(self.api_key)},
        )
        try:
            resp = self.session.get(
                self._point_url(),
                params=params,
                headers={"Authorization": self.api_key},
                timeout=self.settings.request_timeout_seconds,
            )
        except requests.RequestException as exc:
            raise StormglassError(f"Stormglass request failed: {exc}") from exc

        if not resp.ok:
            body = resp.text
            raise StormglassError(
                f"Stormglass API error: {resp.status_code} - {body}",
                status_code=resp.status_code,
                body=body,
            )

        try:
            data = resp.json()
            hours = data["hours"]
            reports = [summarize_day(date, day) for date, day in bucket_hours_by_date(hours).items()]
        except (ValueError, KeyError, TypeError) as exc:
            raise StormglassError(f"Malformed Stormglass response: {exc}", status_code=resp.status_code) from exc

        logger.info(
            "Computed Stormglass daily summaries",
            extra={"hours": len(hours), "reports": len(reports), "meta": data.get("meta")},
        )
        return reports

    def get_api_usage(self) -> Optional[ApiUsage]:
        """
        Read request count and daily quota with a one-parameter probe.

        Consumes one unit of quota. Returns None without a key or on any failure.
        """
        if not self.api_key:
            return None

        now = self._clock().isoformat()
        params = {"lat": 0, "lng": 0, "params": "waveHeight", "start": now, "end": now}
        try:
            resp = self.session.get(
                self._point_url(),
                params=params,
                headers={"Authorization": self.api_key},
                timeout=self.settings.request_timeout_seconds,
            )
            resp.raise_for_status()
            payload = resp.json()
            if not isinstance(payload, Mapping):
                raise ValueError(f"response is a {type(payload).__name__}, expected an object")
            meta = payload.get("meta") or {}
            if not isinstance(meta, Mapping):
                raise ValueError(f"meta is a {type(meta).__name__}, expected an object")
            usage = ApiUsage(
                request_count=int(meta.get("requestCount") or 0),
                daily_quota=int(meta.get("dailyQuota") or DEFAULT_DAILY_QUOTA),
            )
        except (requests.RequestException, ValueError, TypeError) as exc:
            logger.warning("Stormglass usage probe failed", extra={"error": str(exc)})
            return None

        return usage
