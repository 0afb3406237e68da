"""Unit and bearing conversions shared by the forecast adapters."""
from __future__ import annotations

import math

COMPASS_POINTS = ("N", "NE", "E", "SE", "S", "SW", "W", "NW")
FEET_PER_METER = 3.28
KNOTS_PER_MPS = 1.944


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (not banker's rounding)."""
    return int(math.floor(value + 0.5))


def compass_label(degrees: float) -> str:
    """Map a bearing in degrees onto the 8-point compass."""
    index = round_half_up(degrees / 45) % 8
    return COMPASS_POINTS[index]


def meters_to_feet(meters: float) -> int:
    """Convert meters to whole feet."""
    return round_half_up(meters * FEET_PER_METER)


def mps_to_knots(speed: float) -> int:
    """Convert a speed in m/s to whole knots."""
    return round_half_up(speed * KNOTS_PER_MPS)
