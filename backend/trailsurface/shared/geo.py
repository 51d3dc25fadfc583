"""
Geographic utility functions.

This is the SINGLE SOURCE OF TRUTH for geographic calculations.
DO NOT duplicate these functions elsewhere.
"""
import math
from typing import Iterable, Optional, Tuple

# Earth radius in kilometers
EARTH_RADIUS_KM = 6371.0

# (longitude, latitude), GeoJSON order
Coordinate = Tuple[float, float]


def haversine(
    lat1: float, lon1: float,
    lat2: float, lon2: float
) -> float:
    """
    Calculate great-circle distance between two points.

    Args:
        lat1, lon1: First point coordinates (degrees)
        lat2, lon2: Second point coordinates (degrees)

    Returns:
        Distance in kilometers
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    a = (
        math.sin(delta_lat / 2) ** 2 +
        math.cos(lat1_rad) * math.cos(lat2_rad) *
        math.sin(delta_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def nearest_vertex_distance_m(
    lat: float,
    lon: float,
    vertices: Iterable[Tuple[float, float]]
) -> Optional[float]:
    """
    Distance from a point to the closest vertex of a line.

    Args:
        lat, lon: Point coordinates (degrees)
        vertices: (lat, lon) pairs of the line geometry

    Returns:
        Distance in meters, or None if the line has no vertices
    """
    best = None
    for v_lat, v_lon in vertices:
        d = haversine(lat, lon, v_lat, v_lon) * 1000
        if best is None or d < best:
            best = d
    return best


def round_coordinate(coordinate: Coordinate, precision: Optional[int]) -> Coordinate:
    """Round a (lon, lat) pair to `precision` decimals; None keeps it exact."""
    if precision is None:
        return coordinate
    lon, lat = coordinate
    return (round(lon, precision), round(lat, precision))
