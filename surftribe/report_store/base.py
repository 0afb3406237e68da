"""Shared protocol for surf report storage backends."""

from datetime import datetime
from typing import List, Optional, Protocol, Sequence

from surftribe.domain import DailyForecastSummary


class ReportStore(Protocol):
    """Protocol for storing daily surf summaries per location."""

    def register_location(self, location_id: int, latitude: float, longitude: float) -> None:
        """Make a location known so it can be refreshed."""

    def location_coords(self, location_id: int) -> Optional[tuple[float, float]]:
        """Return (latitude, longitude) for a registered location."""

    def upsert_reports(self, location_id: int, reports: Sequence[DailyForecastSummary]) -> None:
        """Replace reports for the given dates and stamp the refresh time."""

    def get_reports(self, location_id: int) -> List[DailyForecastSummary]:
        """Return stored reports ordered by date (empty if none)."""

    def last_updated_at(self, location_id: int) -> Optional[datetime]:
        """Return when reports for the location were last written."""

    def stale_location_ids(self, max_age_hours: float) -> List[int]:
        """Return registered locations never refreshed or older than the window."""

    def clear(self) -> None:
        """Drop all locations and reports."""
