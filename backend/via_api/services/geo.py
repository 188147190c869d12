"""
VIA Backend — Geodesic Distance Calculator
============================================

What:  Great-circle distance between GPS fixes using the Haversine formula.
Why:   Route length is derived server-side from the submitted trace rather
       than trusted from the client.
How:   Spherical Earth, R = 6 371 000 m. Inputs are degrees and are converted
       to radians before use.

    a = sin²(Δlat/2) + cos(lat1)·cos(lat2)·sin²(Δlng/2)
    c = 2·atan2(√a, √(1−a))
    d = R·c

Pure functions, no I/O, no error cases: coincident points yield 0.
"""

import math
from typing import Iterable, Protocol

EARTH_RADIUS_METERS = 6_371_000.0


class LatLng(Protocol):
    lat: float
    lng: float


def distance_meters(p1: LatLng, p2: LatLng) -> float:
    """Haversine distance in meters between two objects exposing `lat`/`lng` in degrees."""
    lat1 = math.radians(p1.lat)
    lat2 = math.radians(p2.lat)
    dlat = lat2 - lat1
    dlng = math.radians(p2.lng - p1.lng)

    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(dlng / 2) ** 2
    )
    # Floating point can push `a` a hair above 1 for antipodal points
    a = min(1.0, a)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_METERS * c


def total_distance(points: Iterable[LatLng]) -> float:
    """
    Sum of pairwise distances over consecutive points.

    The caller is responsible for ordering (by sequence). Fewer than two
    points yields 0.
    """
    total = 0.0
    previous = None
    for point in points:
        if previous is not None:
            total += distance_meters(previous, point)
        previous = point
    return total
