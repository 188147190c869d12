"""
VIA Backend — Haversine Distance Tests
========================================

What we test:
    ✅ Known campus distance between two fixes
    ✅ Zero for coincident points, symmetry
    ✅ Antipodal points stay finite (half the circumference)
    ✅ total_distance sums consecutive pairs in the given order
"""

import math
from types import SimpleNamespace

import pytest

from via_api.services.geo import EARTH_RADIUS_METERS, distance_meters, total_distance


def point(lat, lng):
    return SimpleNamespace(lat=lat, lng=lng)


class TestDistanceMeters:

    def test_campus_segment(self):
        d = distance_meters(point(30.2849, -97.7341), point(30.2855, -97.7335))
        assert d == pytest.approx(88.15, abs=0.5)

    def test_coincident_points_are_zero(self):
        p = point(30.2849, -97.7341)
        assert distance_meters(p, p) == 0.0

    def test_symmetric(self):
        a, b = point(30.2849, -97.7341), point(40.7128, -74.0060)
        assert distance_meters(a, b) == pytest.approx(distance_meters(b, a))

    def test_one_degree_of_latitude(self):
        d = distance_meters(point(0.0, 0.0), point(1.0, 0.0))
        assert d == pytest.approx(EARTH_RADIUS_METERS * math.radians(1.0))

    def test_antipodal_points(self):
        d = distance_meters(point(0.0, 0.0), point(0.0, 180.0))
        assert math.isfinite(d)
        assert d == pytest.approx(math.pi * EARTH_RADIUS_METERS)


class TestTotalDistance:

    def test_empty_and_single_point(self):
        assert total_distance([]) == 0.0
        assert total_distance([point(30.0, -97.0)]) == 0.0

    def test_sums_consecutive_segments(self):
        trace = [point(30.2849, -97.7341), point(30.2855, -97.7335), point(30.2861, -97.7329)]
        expected = distance_meters(trace[0], trace[1]) + distance_meters(trace[1], trace[2])
        assert total_distance(trace) == pytest.approx(expected)
        assert total_distance(trace) == pytest.approx(176.3, abs=1.0)

    def test_order_matters(self):
        a, b, c = point(30.2849, -97.7341), point(30.2855, -97.7335), point(30.2861, -97.7329)
        assert total_distance([c, a, b]) > total_distance([a, b, c])

    def test_accepts_generators(self):
        trace = (point(0.0, lng) for lng in (0.0, 1.0, 2.0))
        assert total_distance(trace) == pytest.approx(
            2 * EARTH_RADIUS_METERS * math.radians(1.0)
        )

    def test_reversal_invariant(self):
        trace = [point(30.2849, -97.7341), point(30.2855, -97.7335), point(30.2861, -97.7329)]
        assert total_distance(list(reversed(trace))) == pytest.approx(total_distance(trace))
