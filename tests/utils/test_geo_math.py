"""
Unit tests for great-circle helpers.
"""

import math

import pytest

from pickup_geo.core.exceptions import InvalidInputError
from pickup_geo.schemas.geo import Coordinates
from pickup_geo.utils.geo_math import (
    bounding_box,
    distance_km,
    format_distance,
    initial_bearing_deg,
)

GAINESVILLE = Coordinates(latitude=29.6516, longitude=-82.3248)
ORLANDO = Coordinates(latitude=28.5383, longitude=-81.3792)


def test_distance_to_self_is_zero():
    assert distance_km(GAINESVILLE, GAINESVILLE) == 0.0


def test_distance_is_symmetric():
    assert distance_km(GAINESVILLE, ORLANDO) == pytest.approx(distance_km(ORLANDO, GAINESVILLE))


def test_distance_gainesville_to_orlando():
    # roughly 150 km as the crow flies
    assert distance_km(GAINESVILLE, ORLANDO) == pytest.approx(153, abs=5)


def test_distance_one_degree_latitude():
    a = Coordinates(latitude=0.0, longitude=0.0)
    b = Coordinates(latitude=1.0, longitude=0.0)
    assert distance_km(a, b) == pytest.approx(111.19, abs=0.1)


def test_distance_across_antimeridian_is_short():
    west = Coordinates(latitude=0.0, longitude=179.9)
    east = Coordinates(latitude=0.0, longitude=-179.9)
    assert distance_km(west, east) == pytest.approx(22.2, abs=0.2)


def test_distance_pole_to_pole():
    north = Coordinates(latitude=90.0, longitude=0.0)
    south = Coordinates(latitude=-90.0, longitude=45.0)
    assert distance_km(north, south) == pytest.approx(math.pi * 6371.0, rel=1e-6)


def test_distance_antipodes_does_not_fail():
    a = Coordinates(latitude=0.0, longitude=0.0)
    b = Coordinates(latitude=0.0, longitude=180.0)
    assert distance_km(a, b) == pytest.approx(math.pi * 6371.0, rel=1e-6)


def test_initial_bearing_due_north_and_east():
    origin = Coordinates(latitude=0.0, longitude=0.0)
    assert initial_bearing_deg(origin, Coordinates(latitude=1.0, longitude=0.0)) == pytest.approx(0.0)
    assert initial_bearing_deg(origin, Coordinates(latitude=0.0, longitude=1.0)) == pytest.approx(90.0)


class TestFormatDistance:
    """Tests for distance display formatting."""

    def test_short_distance_in_metres(self):
        assert format_distance(0.85) == "850 m"

    def test_metres_round_to_nearest_ten(self):
        assert format_distance(0.123) == "120 m"

    def test_halfway_metres_round_up(self):
        # 125 m sits exactly between 120 m and 130 m
        assert format_distance(0.125) == "130 m"
        assert format_distance(0.375) == "380 m"

    def test_zero(self):
        assert format_distance(0) == "0 m"

    def test_just_below_one_km_rolls_over(self):
        assert format_distance(0.996) == "1.0 km"

    def test_kilometres_with_one_decimal(self):
        assert format_distance(2.345) == "2.3 km"
        assert format_distance(12) == "12.0 km"

    def test_miles(self):
        assert format_distance(3.0, unit="mi") == "1.9 mi"

    def test_short_distance_in_feet(self):
        # 0.1 km = 328 ft
        assert format_distance(0.1, unit="mi") == "330 ft"

    @pytest.mark.parametrize("value", [None, "2", True, -1.0, float("nan"), float("inf")])
    def test_invalid_distance_rejected(self, value):
        with pytest.raises(InvalidInputError):
            format_distance(value)

    def test_unknown_unit_rejected(self):
        with pytest.raises(InvalidInputError):
            format_distance(1.0, unit="furlong")


class TestBoundingBox:
    """Tests for the venue pre-filter box."""

    def test_box_contains_center(self):
        min_lat, max_lat, min_lon, max_lon = bounding_box(GAINESVILLE, 10)
        assert min_lat < GAINESVILLE.latitude < max_lat
        assert min_lon < GAINESVILLE.longitude < max_lon

    def test_latitude_span_matches_radius(self):
        min_lat, max_lat, _, _ = bounding_box(GAINESVILLE, 111)
        assert max_lat - min_lat == pytest.approx(2.0)

    def test_longitude_span_widens_away_from_equator(self):
        _, _, min_lon, max_lon = bounding_box(GAINESVILLE, 111)
        assert max_lon - min_lon > 2.0

    def test_zero_radius(self):
        assert bounding_box(GAINESVILLE, 0) == (
            GAINESVILLE.latitude,
            GAINESVILLE.latitude,
            GAINESVILLE.longitude,
            GAINESVILLE.longitude,
        )

    def test_near_pole_covers_all_longitudes(self):
        near_pole = Coordinates(latitude=89.95, longitude=10.0)
        min_lat, max_lat, min_lon, max_lon = bounding_box(near_pole, 50)
        assert max_lat == 90.0
        assert (min_lon, max_lon) == (-180.0, 180.0)

    @pytest.mark.parametrize("radius", [-1.0, float("nan")])
    def test_invalid_radius_rejected(self, radius):
        with pytest.raises(InvalidInputError):
            bounding_box(GAINESVILLE, radius)
