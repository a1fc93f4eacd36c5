"""
Great-Circle Geometry
=====================

Pure spatial queries on circular regions - NO state, NO side effects.

Design:
- Haversine on a spherical earth (mean radius), vectorised with numpy
- Good to well under 0.5% for geofence-sized radii
"""

from typing import Sequence

import numpy as np

from geotify_region.descriptor import Coordinate
from geotify_region.translator import MonitoringRegion

EARTH_RADIUS_M = 6_371_008.8


def haversine_distance(center: Coordinate, points: Sequence[Coordinate]) -> np.ndarray:
    """
    Distance in meters from center to each point.

    Args:
        center: Reference coordinate
        points: Coordinates to measure

    Returns:
        1-D float array, one distance per point
    """
    if len(points) == 0:
        return np.array([], dtype=float)

    lat = np.radians([p.latitude for p in points])
    lon = np.radians([p.longitude for p in points])
    lat0 = np.radians(center.latitude)
    lon0 = np.radians(center.longitude)

    a = (
        np.sin((lat - lat0) / 2.0) ** 2
        + np.cos(lat0) * np.cos(lat) * np.sin((lon - lon0) / 2.0) ** 2
    )
    return 2.0 * EARTH_RADIUS_M * np.arcsin(np.sqrt(np.clip(a, 0.0, 1.0)))


def contains(region: MonitoringRegion, coordinate: Coordinate) -> bool:
    """Check if coordinate lies inside (or on the edge of) the region."""
    distance = haversine_distance(region.center, [coordinate])[0]
    return bool(distance <= region.radius)
