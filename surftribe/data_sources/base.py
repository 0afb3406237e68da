"""Interfaces shared by the surf forecast providers."""

from __future__ import annotations

from typing import Any, List, Mapping, Optional, Protocol

from surftribe.domain import DailyForecastSummary, SurfSpot


class HttpSession(Protocol):
    """The slice of `requests.Session` the provider clients rely on."""

    def get(
        self,
        url: str,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """Issue a GET and return a response exposing ok/status_code/json()/text."""
        ...


class SpotForecastSource(Protocol):
    """
    Spot-based provider that degrades instead of raising.

    Upstream failures surface as an empty list (directory, forecast days) or
    None (spot resolution), never as an exception.
    """

    def get_spots(self) -> List[SurfSpot]:
        """Return the spot directory, or [] when it is temporarily unknown."""
        ...

    def get_forecast_by_coords(self, latitude: float, longitude: float) -> Optional[List[DailyForecastSummary]]:
        """Return daily summaries for the nearest spot, or None when none is close enough."""
        ...

    def get_forecast_by_name(self, name: str) -> Optional[List[DailyForecastSummary]]:
        """Return daily summaries for a spot matched by name, or None."""
        ...


class PointForecastSource(Protocol):
    """Point-based provider that raises on any failure."""

    def fetch_forecast(self, latitude: float, longitude: float, days: int = 14) -> List[DailyForecastSummary]:
        """Return one summary per calendar date in the requested range."""
        ...
