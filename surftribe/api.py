"""HTTP API for surf forecasts."""

import hmac
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .config import settings
from .data_sources import SpitcastClient, StormglassClient, StormglassError, build_data_source
from .domain import DailyForecastSummary, SurfLocation, SurfSpot
from .forecast_service import (
    StormglassQuota,
    refresh_stale_locations,
    register_locations,
    spitcast_forecast_for,
    visible_reports,
)
from .report_store import InMemoryReportStore, ReportStore
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="api")


def require_api_key(x_api_key: str | None = Header(default=None)):
    """Validate the X-API-Key header against the static api_key setting."""
    if not settings.api_key:
        logger.debug("No API key configured; allowing all requests")
        return

    if not x_api_key:
        logger.debug("No API key provided")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing API key")

    if hmac.compare_digest(str(x_api_key), str(settings.api_key)):
        return

    logger.debug("Invalid API key provided")
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")


def require_internal_token(x_internal_token: str | None = Header(default=None)):
    """Gate internal jobs behind X-Internal-Token; refuse everything when no token is configured."""
    if (
        not settings.internal_token
        or not x_internal_token
        or not hmac.compare_digest(str(x_internal_token), str(settings.internal_token))
    ):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Unauthorized")


router = APIRouter(dependencies=[Depends(require_api_key)])
SPITCAST: SpitcastClient = build_data_source("spitcast", settings)
STORMGLASS: StormglassClient = build_data_source("stormglass", settings)
REPORT_STORE: ReportStore = InMemoryReportStore()
register_locations(REPORT_STORE, settings.locations)
QUOTA = StormglassQuota(settings.stormglass_daily_request_limit)

SPITCAST_NOT_FOUND = {
    "error": "No Spitcast data available for this location",
    "message": "Spitcast only covers California surf spots",
}


class UsageResponse(BaseModel):
    """Stormglass quota metadata."""
    request_count: int
    daily_quota: int


class RefreshResponse(BaseModel):
    """Result of an internal refresh pass."""
    message: str
    refreshed: int
    api_calls_today: int


@router.get("/health")
def health():
    """Liveness probe."""
    return {"status": "ok"}


@router.get("/surf/spitcast/spots", response_model=List[SurfSpot])
def list_spitcast_spots():
    """Return the Spitcast directory; empty while the upstream is unavailable."""
    return SPITCAST.get_spots()


@router.get("/surf/spitcast/forecast", response_model=List[DailyForecastSummary])
def spitcast_forecast(
    name: Optional[str] = None,
    lat: Optional[float] = None,
    lng: Optional[float] = None,
):
    """
    Forecast for a Spitcast spot resolved by name or by coordinates.

    A non-empty `name` wins over `lat`/`lng`. A whitespace-only name matches
    no spot and gets the 404 body without querying Spitcast.
    """
    forecast = spitcast_forecast_for(SPITCAST, name=name, latitude=lat, longitude=lng)
    if forecast is None:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content=SPITCAST_NOT_FOUND)
    return forecast


@router.get("/surf/stormglass/forecast", response_model=List[DailyForecastSummary])
def stormglass_forecast(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    days: int = Query(default=settings.stormglass_forecast_days, ge=1, le=14),
):
    """Daily summaries aggregated from Stormglass for a point."""
    try:
        return STORMGLASS.fetch_forecast(lat, lng, days)
    except StormglassError as exc:
        logger.error("Stormglass forecast failed", extra={"error": str(exc), "status_code": exc.status_code})
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Forecast service unavailable")


@router.get("/surf/stormglass/usage", response_model=UsageResponse)
def stormglass_usage():
    """Report Stormglass quota usage (spends one request)."""
    usage = STORMGLASS.get_api_usage()
    if usage is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Usage unavailable")
    return UsageResponse(request_count=usage.request_count, daily_quota=usage.daily_quota)


@router.post(
    "/internal/refresh-surf-data",
    response_model=RefreshResponse,
    dependencies=[Depends(require_internal_token)],
)
def refresh_surf_data():
    """Refresh stored reports for every stale location within the daily quota."""
    result = refresh_stale_locations(client=STORMGLASS, store=REPORT_STORE, quota=QUOTA)
    return RefreshResponse(message=result.message, refreshed=result.refreshed, api_calls_today=result.requests_today)


@router.post(
    "/locations",
    status_code=status.HTTP_201_CREATED,
    response_model=SurfLocation,
    dependencies=[Depends(require_internal_token)],
)
def add_location(location: SurfLocation):
    """Track a location; its reports are filled in by the next refresh pass."""
    register_locations(REPORT_STORE, [location])
    return location


@router.get("/locations/{location_id}/reports", response_model=List[DailyForecastSummary])
def location_reports(location_id: int, premium: bool = False):
    """Stored reports for a location, limited to the caller's plan window."""
    if REPORT_STORE.location_coords(location_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Unknown location")
    return visible_reports(REPORT_STORE.get_reports(location_id), is_premium=premium)
