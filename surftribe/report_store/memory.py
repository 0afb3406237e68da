"""In-memory surf report store, intended for development and tests."""

import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional, Sequence

from surftribe.app_types import StoredReports
from surftribe.domain import DailyForecastSummary
from surftribe.report_store.base import ReportStore

from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="report_store/in_memory_report_store")


class InMemoryReportStore(ReportStore):
    """Thread-safe in-memory report store (dev/test)."""

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        logger.debug("Initializing InMemoryReportStore")
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._locations: Dict[int, tuple[float, float]] = {}
        self._reports: Dict[int, StoredReports] = {}
        self._lock = threading.Lock()

    def register_location(self, location_id: int, latitude: float, longitude: float) -> None:
        with self._lock:
            self._locations[location_id] = (latitude, longitude)

    def location_coords(self, location_id: int) -> Optional[tuple[float, float]]:
        with self._lock:
            return self._locations.get(location_id)

    def upsert_reports(self, location_id: int, reports: Sequence[DailyForecastSummary]) -> None:
        """Merge by date: incoming reports win, other stored dates are kept."""
        with self._lock:
            stored = self._reports.get(location_id) or StoredReports(location_id=location_id)
            by_date = {r.date: r for r in stored.reports}
            for report in reports:
                by_date[report.date] = report
            stored.reports = [by_date[d] for d in sorted(by_date)]
            stored.last_updated_at = self._clock()
            self._reports[location_id] = stored
            logger.debug("Upserted reports", extra={"location_id": location_id, "count": len(reports)})

    def get_reports(self, location_id: int) -> List[DailyForecastSummary]:
        with self._lock:
            stored = self._reports.get(location_id)
            return list(stored.reports) if stored else []

    def last_updated_at(self, location_id: int) -> Optional[datetime]:
        with self._lock:
            stored = self._reports.get(location_id)
            return stored.last_updated_at if stored else None

    def stale_location_ids(self, max_age_hours: float) -> List[int]:
        cutoff = self._clock() - timedelta(hours=max_age_hours)
        with self._lock:
            stale = []
            for location_id in self._locations:
                stored = self._reports.get(location_id)
                if stored is None or stored.last_updated_at is None or stored.last_updated_at < cutoff:
                    stale.append(location_id)
            return stale

    def clear(self) -> None:
        with self._lock:
            self._locations.clear()
            self._reports.clear()
