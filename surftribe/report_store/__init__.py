"""Report storage backends."""

from .base import ReportStore
from .memory import InMemoryReportStore

__all__ = ["ReportStore", "InMemoryReportStore"]
