"""
Tests for shared geographic functions.

Tests the haversine distance, nearest vertex search and key rounding.
"""

import pytest

from trailsurface.shared.geo import (
    haversine,
    nearest_vertex_distance_m,
    round_coordinate,
    EARTH_RADIUS_KM,
)


# =============================================================================
# Test Haversine Distance
# =============================================================================

class TestHaversine:
    """Tests for haversine function."""

    def test_same_point(self):
        """Distance between same point should be 0."""
        assert haversine(-42.88, 147.32, -42.88, 147.32) == 0.0

    def test_small_distance(self):
        """0.001 degree latitude is about 111 meters."""
        dist = haversine(43.0, 76.0, 43.001, 76.0)
        assert 0.1 < dist < 0.15

    def test_symmetry(self):
        """Distance A->B should equal B->A."""
        dist_ab = haversine(43.0, 76.0, 44.0, 77.0)
        dist_ba = haversine(44.0, 77.0, 43.0, 76.0)
        assert dist_ab == pytest.approx(dist_ba, rel=0.0001)

    def test_negative_coordinates(self):
        """Sydney to Melbourne is roughly 714 km."""
        dist = haversine(-33.8688, 151.2093, -37.8136, 144.9631)
        assert 700 < dist < 750

    def test_earth_radius_constant(self):
        assert EARTH_RADIUS_KM == 6371.0


# =============================================================================
# Test Nearest Vertex
# =============================================================================

class TestNearestVertexDistance:
    """Tests for nearest_vertex_distance_m function."""

    def test_no_vertices(self):
        assert nearest_vertex_distance_m(43.0, 76.0, []) is None

    def test_picks_closest_vertex(self):
        vertices = [(43.01, 76.0), (43.001, 76.0), (43.1, 76.0)]
        dist = nearest_vertex_distance_m(43.0, 76.0, vertices)
        assert 100 < dist < 120

    def test_point_on_vertex(self):
        assert nearest_vertex_distance_m(43.0, 76.0, [(43.0, 76.0)]) == 0.0


# =============================================================================
# Test Rounding
# =============================================================================

class TestRoundCoordinate:
    """Tests for round_coordinate function."""

    def test_none_keeps_exact(self):
        coord = (147.123456789, -42.987654321)
        assert round_coordinate(coord, None) == coord

    def test_rounds_both_axes(self):
        assert round_coordinate((147.123456, -42.987654), 3) == (147.123, -42.988)
