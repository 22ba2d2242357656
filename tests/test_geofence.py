"""Tests for point-in-polygon and polygon helpers."""

import pytest

from zonecart.domain import geofence
from zonecart.domain.errors import ValidationError

SQUARE = [(0.0, 0.0), (0.0, 10.0), (10.0, 10.0), (10.0, 0.0)]
# wklesly "C"
CONCAVE = [(0.0, 0.0), (0.0, 10.0), (3.0, 10.0), (3.0, 3.0), (7.0, 3.0), (7.0, 10.0), (10.0, 10.0), (10.0, 0.0)]


class TestContains:
    def test_point_inside(self):
        assert geofence.contains((5.0, 5.0), SQUARE) is True

    def test_point_outside(self):
        assert geofence.contains((15.0, 5.0), SQUARE) is False
        assert geofence.contains((-1.0, -1.0), SQUARE) is False

    def test_concave_notch_is_outside(self):
        assert geofence.contains((5.0, 6.0), CONCAVE) is False
        assert geofence.contains((5.0, 1.0), CONCAVE) is True
        assert geofence.contains((1.0, 8.0), CONCAVE) is True

    @pytest.mark.parametrize("shift", range(4))
    def test_rotation_of_vertices_does_not_change_result(self, shift):
        rotated = SQUARE[shift:] + SQUARE[:shift]
        for point in [(5.0, 5.0), (15.0, 5.0), (0.0, 5.0), (10.0, 10.0)]:
            assert geofence.contains(point, rotated) == geofence.contains(point, SQUARE)

    def test_reversed_orientation_same_result(self):
        for point in [(5.0, 5.0), (15.0, 5.0), (1.0, 8.0), (5.0, 6.0)]:
            assert geofence.contains(point, list(reversed(CONCAVE))) == geofence.contains(point, CONCAVE)

    def test_boundary_is_deterministic(self):
        first = [geofence.contains((0.0, 5.0), SQUARE) for _ in range(5)]
        assert len(set(first)) == 1

    @pytest.mark.parametrize("polygon", [[], [(0.0, 0.0)], [(0.0, 0.0), (1.0, 1.0)], None])
    def test_degenerate_polygon_has_no_coverage(self, polygon):
        assert geofence.has_coverage(polygon) is False
        assert geofence.contains((0.0, 0.0), polygon) is False


class TestArea:
    def test_square_area(self):
        assert geofence.polygon_area(SQUARE) == pytest.approx(100.0)

    def test_area_independent_of_orientation(self):
        assert geofence.polygon_area(list(reversed(CONCAVE))) == pytest.approx(geofence.polygon_area(CONCAVE))

    def test_degenerate_area_is_zero(self):
        assert geofence.polygon_area([(0.0, 0.0), (1.0, 1.0)]) == 0.0


class TestNormalizePolygon:
    def test_accepts_dicts_and_pairs(self):
        raw = [{"lat": 1, "lng": 2}, [3, 4], ("5.5", "6.5")]
        assert geofence.normalize_polygon(raw) == [(1.0, 2.0), (3.0, 4.0), (5.5, 6.5)]

    def test_none_is_empty(self):
        assert geofence.normalize_polygon(None) == []

    def test_rejects_missing_key(self):
        with pytest.raises(ValidationError):
            geofence.normalize_polygon([{"lat": 1}])

    def test_rejects_non_numeric(self):
        with pytest.raises(ValidationError):
            geofence.normalize_polygon([{"lat": "north", "lng": 2}])

    def test_rejects_out_of_range(self):
        with pytest.raises(ValidationError):
            geofence.normalize_polygon([{"lat": 91, "lng": 0}])
        with pytest.raises(ValidationError):
            geofence.normalize_polygon([{"lat": 0, "lng": -181}])

    def test_to_coordinates(self):
        assert geofence.to_coordinates([(1.0, 2.0)]) == [{"lat": 1.0, "lng": 2.0}]
