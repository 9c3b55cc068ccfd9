"""
Distance math over already-resolved business coordinates.
Range filtering and distance reporting are decoupled: the closest distance is
always reported, whether or not a range cutoff is active.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional, Tuple

from .config import DISTANCE_OPTIONS_MILES, EARTH_RADIUS_MILES
from .models import Business

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class RangeResult:
    closest_distance: Optional[float]
    closest_location_label: Optional[str]
    is_within_range: bool


def haversine_distance(
    lat1: float,
    lon1: float,
    lat2: float,
    lon2: float,
    radius: float = EARTH_RADIUS_MILES,
) -> float:
    """
    Calculate the great circle distance between two points on Earth.

    Args:
        lat1, lon1: First point coordinates
        lat2, lon2: Second point coordinates
        radius: Sphere radius; miles by default

    Returns:
        Distance in the unit of ``radius``
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    a = (math.sin(delta_lat / 2) ** 2 +
         math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(delta_lon / 2) ** 2)
    # Rounding can push ``a`` a hair past 1 for antipodal points.
    c = 2 * math.asin(math.sqrt(min(1.0, a)))

    return c * radius


def resolve_range(max_range_miles: Optional[float]) -> float:
    """None (no filter selected) becomes an unbounded range."""
    if max_range_miles is None:
        return math.inf
    if max_range_miles < 0 or math.isnan(max_range_miles):
        raise ValueError(f"max_range_miles must be a non-negative number, got {max_range_miles!r}")
    return float(max_range_miles)


def evaluate(
    business: Business,
    origin_lat: float,
    origin_lng: float,
    max_range_miles: Optional[float] = None,
) -> RangeResult:
    """
    Find the business location closest to the origin and test it against the range.

    Args:
        business: Business with zero or more locations
        origin_lat, origin_lng: The user's position
        max_range_miles: Range cutoff; None for no cutoff

    Returns:
        RangeResult. A business without usable coordinates reports no distance
        and is never within range.
    """
    limit = resolve_range(max_range_miles)
    closest: Optional[Tuple[float, str]] = None
    for location in business.locations:
        if not location.has_coordinates:
            continue
        dist = haversine_distance(origin_lat, origin_lng, location.lat, location.lng)
        if closest is None or dist < closest[0]:
            closest = (dist, location.address or business.name)

    if closest is None:
        LOGGER.debug("Business %s has no located addresses", business.id)
        return RangeResult(closest_distance=None, closest_location_label=None, is_within_range=False)

    distance, label = closest
    return RangeResult(
        closest_distance=distance,
        closest_location_label=label,
        is_within_range=distance <= limit,
    )



def is_supported_range(max_range_miles: Optional[float]) -> bool:
    return max_range_miles is None or max_range_miles in DISTANCE_OPTIONS_MILES
