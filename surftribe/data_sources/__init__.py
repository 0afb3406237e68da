"""Surf forecast providers and the factory that wires them up."""

from .base import HttpSession, PointForecastSource, SpotForecastSource
from .factory import build_data_source, build_session
from .spitcast_client import SpitcastClient, classify_rating, classify_shape, summarize_spitcast_day
from .stormglass_client import (
    ApiUsage,
    StormglassClient,
    StormglassConfigError,
    StormglassError,
    best_source_value,
    calculate_rating,
)

__all__ = [
    "build_data_source",
    "build_session",
    "HttpSession",
    "PointForecastSource",
    "SpotForecastSource",
    "SpitcastClient",
    "StormglassClient",
    "StormglassError",
    "StormglassConfigError",
    "ApiUsage",
    "best_source_value",
    "calculate_rating",
    "classify_rating",
    "classify_shape",
    "summarize_spitcast_day",
]
