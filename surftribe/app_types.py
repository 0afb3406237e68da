"""Shared dataclasses and lightweight types used across modules."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from surftribe.domain import DailyForecastSummary, SurfSpot


@dataclass
class SpotCache:
    """Spot directory payload with the timestamp it was fetched."""
    data: Optional[List[SurfSpot]] = None
    fetched_at: Optional[datetime] = None

    def is_fresh(self, now: datetime, ttl_seconds: float) -> bool:
        """Return True when a fetched directory is still inside the TTL window."""
        if self.data is None or self.fetched_at is None:
            return False
        return (now - self.fetched_at).total_seconds() < ttl_seconds

    def replace(self, spots: List[SurfSpot], now: datetime) -> None:
        """Swap in a freshly fetched directory wholesale."""
        self.data = list(spots)
        self.fetched_at = now


@dataclass
class StoredReports:
    """Daily summaries held for one location with the time they were written."""
    location_id: int
    reports: List[DailyForecastSummary] = field(default_factory=list)
    last_updated_at: Optional[datetime] = None
