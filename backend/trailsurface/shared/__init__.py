"""
Shared utilities (NOT business logic).

Usage:
    from trailsurface.shared import haversine, Coordinate
"""
from .geo import (
    haversine,
    nearest_vertex_distance_m,
    round_coordinate,
    Coordinate,
    EARTH_RADIUS_KM,
)

__all__ = [
    "haversine",
    "nearest_vertex_distance_m",
    "round_coordinate",
    "Coordinate",
    "EARTH_RADIUS_KM",
]
