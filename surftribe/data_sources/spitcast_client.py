"""Spitcast adapter: cached spot directory, spot lookup and per-day forecast reduction.

Every upstream failure on this path degrades to "no data" (an empty list or
None) and is logged; nothing here raises for a bad response.
"""
from __future__ import annotations

import datetime as dt
import math
import re
from typing import Any, Callable, Iterable, List, Mapping, Optional

import requests

from surftribe import config
from surftribe.app_types import SpotCache
from surftribe.data_sources.base import HttpSession
from surftribe.domain import DailyForecastSummary, ForecastSource, Rating, ShapeLabel, SurfSpot
from surftribe.units import round_half_up
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="spitcast_client")

DEFAULT_SHAPE_SCORE = 0.5
_WORD_SPLIT = re.compile(r"[\s,]+")


def classify_rating(mean_size_ft: float, shape_value: float) -> Rating:
    """Rate a day from its mean wave size and averaged shape score."""
    if mean_size_ft >= 5 and shape_value >= 1.0:
        return Rating.EPIC
    if mean_size_ft >= 4 and shape_value >= 0.8:
        return Rating.GOOD
    if mean_size_ft >= 2 or shape_value >= 0.5:
        return Rating.FAIR
    return Rating.POOR


def classify_shape(shape_value: float) -> ShapeLabel:
    """Label the averaged shape score on its own scale (independent of the rating)."""
    if shape_value >= 1.2:
        return ShapeLabel.EPIC
    if shape_value >= 0.8:
        return ShapeLabel.GOOD
    if shape_value >= 0.5:
        return ShapeLabel.FAIR
    return ShapeLabel.POOR


def _size_ft(row: Mapping[str, Any]) -> float:
    """Read `size_ft`, treating missing or non-numeric values as 0."""
    value = row.get("size_ft")
    if isinstance(value, bool) or value is None:
        return 0.0
    try:
        size = float(value)
    except (TypeError, ValueError):
        return 0.0
    return 0.0 if math.isnan(size) else size


def _shape_score(value: Any) -> float:
    """Coerce an hourly shape value to a float; unparseable values score 0.5."""
    if isinstance(value, bool):
        return DEFAULT_SHAPE_SCORE
    try:
        score = float(value)
    except (TypeError, ValueError):
        return DEFAULT_SHAPE_SCORE
    return DEFAULT_SHAPE_SCORE if math.isnan(score) else score


def summarize_spitcast_day(date: str, rows: Iterable[Any]) -> Optional[DailyForecastSummary]:
    """
    Reduce one day of hourly Spitcast rows to a summary.

    Returns None when no hour reports a positive wave size.
    """
    hours = [row for row in rows if isinstance(row, Mapping)]
    sizes = [s for s in (_size_ft(h) for h in hours) if s > 0]
    if not sizes:
        return None

    mean_size = sum(sizes) / len(sizes)
    shapes = [h["shape"] for h in hours if h.get("shape") is not None]
    if shapes:
        shape_value = sum(_shape_score(s) for s in shapes) / len(shapes)
    else:
        shape_value = DEFAULT_SHAPE_SCORE

    return DailyForecastSummary(
        date=date,
        wave_height_min=max(1, round_half_up(min(sizes))),
        wave_height_max=max(1, round_half_up(max(sizes))),
        rating=classify_rating(mean_size, shape_value),
        shape=classify_shape(shape_value),
        source=ForecastSource.SPITCAST,
    )


class SpitcastClient:
    """Spitcast directory and forecast access with a 24h spot cache."""

    def __init__(
        self,
        *,
        session: HttpSession | None = None,
        cache: SpotCache | None = None,
        clock: Callable[[], dt.datetime] | None = None,
        settings: config.Settings | None = None,
    ) -> None:
        """Bind the HTTP session, spot cache and clock; all are injectable for tests."""
        self.settings = settings or config.settings
        self.session = session or requests.Session()
        self.cache = cache if cache is not None else SpotCache()
        self._clock = clock or dt.datetime.now

    @property
    def base_url(self) -> str:
        return self.settings.spitcast_base_url

    def get_spots(self) -> List[SurfSpot]:
        """Return the spot directory, refetching it when the cache is empty or expired."""
        now = self._clock()
        if self.cache.is_fresh(now, self.settings.spot_cache_ttl_seconds):
            logger.debug("Spot directory cache hit", extra={"spots": len(self.cache.data)})
            return list(self.cache.data)

        url = f"{self.base_url}/spot"
        logger.info("Fetching Spitcast spot directory", extra={"url": url})
        try:
            resp = self.session.get(url, timeout=self.settings.request_timeout_seconds)
            if not resp.ok:
                logger.warning(
                    "Spitcast spot directory request failed",
                    extra={"status_code": resp.status_code},
                )
                return []
            payload = resp.json()
        except (requests.RequestException, ValueError) as exc:
            logger.error("Error fetching Spitcast spots: %s", exc)
            return []

        if not isinstance(payload, list):
            logger.warning("Unexpected Spitcast spot directory payload", extra={"type": type(payload).__name__})
            return []

        spots = self._parse_spots(payload)
        self.cache.replace(spots, now)
        logger.info("Cached Spitcast spot directory", extra={"spots": len(spots)})
        return list(spots)

    @staticmethod
    def _parse_spots(payload: List[Any]) -> List[SurfSpot]:
        """Convert directory rows, skipping any that cannot be parsed."""
        spots: List[SurfSpot] = []
        for row in payload:
            try:
                spots.append(SurfSpot.from_payload(row))
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping malformed Spitcast spot", extra={"error": str(exc)})
        return spots

    def find_spot_by_coords(self, latitude: float, longitude: float) -> Optional[SurfSpot]:
        """Return the closest spot within the match radius (planar degrees), or None."""
        max_distance = self.settings.spot_match_max_distance_deg
        closest: Optional[SurfSpot] = None
        min_distance = math.inf

        for spot in self.get_spots():
            distance = math.hypot(spot.latitude - latitude, spot.longitude - longitude)
            if distance < max_distance and distance < min_distance:
                min_distance = distance
                closest = spot

        return closest

    def find_spot_by_name(self, name: str) -> Optional[SurfSpot]:
        """
        Resolve a free-text location name to a spot.

        Stages, first hit wins:
        1. exact (case-insensitive) name match;
        2. name starts with the query, or contains the query followed by a space;
        3. name starts with any query word of 4+ letters (directory order);
        4. longest query word of 5+ letters found anywhere in a name.
        """
        query = (name or "").lower().strip()
        if not query:
            return None
        spots = self.get_spots()

        for spot in spots:
            if spot.name.lower() == query:
                return spot

        for spot in spots:
            spot_name = spot.name.lower()
            if spot_name.startswith(query) or f"{query} " in spot_name:
                return spot

        key_words = [w for w in _WORD_SPLIT.split(query) if len(w) > 2]

        for spot in spots:
            spot_name = spot.name.lower()
            for word in key_words:
                if len(word) >= 4 and spot_name.startswith(word):
                    return spot

        best_match: Optional[SurfSpot] = None
        best_score = 0
        for spot in spots:
            spot_name = spot.name.lower()
            for word in key_words:
                if len(word) >= 5 and word in spot_name and len(word) > best_score:
                    best_score = len(word)
                    best_match = spot

        return best_match if best_score >= 5 else None

    def get_forecast(self, spot_id: int, days: int | None = None) -> List[DailyForecastSummary]:
        """
        Fetch and reduce one summary per day, starting today.

        Days with a failed request, an empty payload or no positive wave sizes
        are skipped, so the result may be shorter than `days`.
        """
        days = self.settings.spitcast_forecast_days if days is None else days
        today = self._clock().date()
        forecasts: List[DailyForecastSummary] = []

        for offset in range(days):
            day = today + dt.timedelta(days=offset)
            date_str = day.isoformat()
            url = f"{self.base_url}/spot_forecast/{spot_id}/{day.year}/{day.month}/{day.day}"
            try:
                resp = self.session.get(url, timeout=self.settings.request_timeout_seconds)
                if not resp.ok:
                    logger.warning(
                        f"Spitcast forecast failed for spot {spot_id} on {date_str}",
                        extra={"status_code": resp.status_code},
                    )
                    continue
                rows = resp.json()
            except (requests.RequestException, ValueError) as exc:
                logger.error("Error fetching Spitcast forecast for day %s: %s", offset, exc)
                continue

            if not isinstance(rows, list) or not rows:
                logger.debug("Empty Spitcast forecast", extra={"spot_id": spot_id, "date": date_str})
                continue

            summary = summarize_spitcast_day(date_str, rows)
            if summary is None:
                logger.debug("No positive wave sizes", extra={"spot_id": spot_id, "date": date_str})
                continue
            forecasts.append(summary)

        return forecasts

    def _forecast_for_spot(self, spot: SurfSpot) -> List[DailyForecastSummary]:
        """Fetch a spot's forecast and stamp each day with the spot's identity."""
        return [
            f.model_copy(update={"spot_name": spot.name, "spot_id": spot.spot_id})
            for f in self.get_forecast(spot.spot_id)
        ]

    def get_forecast_by_coords(self, latitude: float, longitude: float) -> Optional[List[DailyForecastSummary]]:
        """Forecast for the nearest spot, or None when no spot is within range."""
        spot = self.find_spot_by_coords(latitude, longitude)
        if spot is None:
            logger.info("No Spitcast spot near coordinates", extra={"latitude": latitude, "longitude": longitude})
            return None
        return self._forecast_for_spot(spot)

    def get_forecast_by_name(self, name: str) -> Optional[List[DailyForecastSummary]]:
        """Forecast for the spot matching `name`, or None when nothing matches."""
        spot = self.find_spot_by_name(name)
        if spot is None:
            logger.info(f"No Spitcast spot found for name: {name}")
            return None
        logger.info(f'Found Spitcast spot for "{name}": {spot.name} (ID: {spot.spot_id})')
        return self._forecast_for_spot(spot)
