"""Refresh stored surf reports and shape them for callers."""
from __future__ import annotations

import datetime as dt
import threading
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional

from surftribe import config
from surftribe.data_sources.base import PointForecastSource, SpotForecastSource
from surftribe.data_sources.stormglass_client import StormglassError
from surftribe.domain import DailyForecastSummary, SurfLocation
from surftribe.report_store.base import ReportStore
from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag="forecast_service")


class StormglassQuota:
    """Per-process count of Stormglass requests, reset when the calendar day changes."""

    def __init__(self, limit: int, clock: Callable[[], dt.datetime] | None = None) -> None:
        self.limit = limit
        self._clock = clock or dt.datetime.now
        self._count = 0
        self._day = self._clock().date()
        self._lock = threading.Lock()

    def _roll_over(self) -> None:
        today = self._clock().date()
        if today != self._day:
            logger.info("Resetting Stormglass request count", extra={"previous_count": self._count})
            self._day = today
            self._count = 0

    @property
    def used(self) -> int:
        with self._lock:
            self._roll_over()
            return self._count

    def remaining(self) -> int:
        with self._lock:
            self._roll_over()
            return max(0, self.limit - self._count)

    def exhausted(self) -> bool:
        return self.remaining() == 0

    def record(self) -> int:
        """Count one request and return today's total."""
        with self._lock:
            self._roll_over()
            self._count += 1
            return self._count


@dataclass
class RefreshResult:
    """Outcome of a stale-location refresh pass."""
    refreshed: int
    stale: int
    requests_today: int

    @property
    def message(self) -> str:
        if self.stale == 0:
            return "All locations have fresh data"
        return f"Refreshed {self.refreshed} of {self.stale} stale locations"


def register_locations(store: ReportStore, locations: Iterable[SurfLocation]) -> int:
    """Make locations known to the store so refresh passes pick them up; returns the count."""
    count = 0
    for location in locations:
        store.register_location(location.location_id, location.latitude, location.longitude)
        count += 1
    if count:
        logger.info(f"Registered {count} surf location(s) for refresh")
    return count


def refresh_location_reports(
    location_id: int,
    latitude: float,
    longitude: float,
    *,
    client: PointForecastSource,
    store: ReportStore,
    quota: StormglassQuota,
    days: int | None = None,
) -> bool:
    """Fetch a fresh forecast for one location and store it; False when skipped or failed."""
    if quota.exhausted():
        logger.info("Stormglass daily limit reached, skipping refresh", extra={"location_id": location_id})
        return False

    days = config.settings.stormglass_forecast_days if days is None else days
    try:
        reports = client.fetch_forecast(latitude, longitude, days)
    except StormglassError as exc:
        logger.error(f"Failed to refresh surf data for location {location_id}: {exc}")
        return False

    store.upsert_reports(location_id, reports)
    used = quota.record()
    logger.info(f"Refreshed surf data for location {location_id}, API calls today: {used}/{quota.limit}")
    return True


def refresh_stale_locations(
    *,
    client: PointForecastSource,
    store: ReportStore,
    quota: StormglassQuota,
    max_age_hours: float | None = None,
    days: int | None = None,
) -> RefreshResult:
    """Refresh every stale location until done or the daily quota runs out."""
    max_age_hours = config.settings.stale_report_hours if max_age_hours is None else max_age_hours
    stale_ids = store.stale_location_ids(max_age_hours)
    refreshed = 0

    for location_id in stale_ids:
        coords = store.location_coords(location_id)
        if coords is None:
            logger.warning("Stale location has no coordinates", extra={"location_id": location_id})
            continue
        if refresh_location_reports(
            location_id, coords[0], coords[1], client=client, store=store, quota=quota, days=days
        ):
            refreshed += 1
        if quota.exhausted():
            break

    return RefreshResult(refreshed=refreshed, stale=len(stale_ids), requests_today=quota.used)


def visible_reports(
    reports: Iterable[DailyForecastSummary],
    *,
    is_premium: bool,
    today: dt.date | None = None,
    free_days: int | None = None,
    premium_days: int | None = None,
) -> List[DailyForecastSummary]:
    """Keep reports dated within the caller's plan window, starting today."""
    free_days = config.settings.free_forecast_days if free_days is None else free_days
    premium_days = config.settings.premium_forecast_days if premium_days is None else premium_days
    max_days = premium_days if is_premium else free_days
    today = today or dt.date.today()

    out: List[DailyForecastSummary] = []
    for report in reports:
        try:
            report_date = dt.date.fromisoformat(report.date)
        except ValueError:
            logger.debug("Dropping report with unparseable date", extra={"date": report.date})
            continue
        if 0 <= (report_date - today).days < max_days:
            out.append(report)
    return out


def spitcast_forecast_for(
    client: SpotForecastSource,
    *,
    name: str | None = None,
    latitude: float | None = None,
    longitude: float | None = None,
) -> Optional[List[DailyForecastSummary]]:
    """Resolve by name when given, otherwise by coordinates; None when neither resolves."""
    if name:
        return client.get_forecast_by_name(name)
    if latitude is not None and longitude is not None:
        return client.get_forecast_by_coords(latitude, longitude)
    return None
