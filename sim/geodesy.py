#!/usr/bin/env python3
"""
sim/geodesy.py
==============
Great-circle helpers on a spherical Earth.

Pure functions, no state.  Scalar versions use :mod:`math`; the
nearest-waypoint search needs distances from one point to a whole path,
which :func:`haversine_to_many` computes with numpy in one pass.
"""

from __future__ import annotations

import math
from typing import Tuple

import numpy as np

EARTH_RADIUS_M: float = 6_371_000.0


def haversine_m(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in metres between two WGS-84 points."""
    p1, p2 = math.radians(lat1), math.radians(lat2)
    dlat = p2 - p1
    dlng = math.radians(lng2 - lng1)
    a = math.sin(dlat / 2) ** 2 + math.cos(p1) * math.cos(p2) * math.sin(dlng / 2) ** 2
    return EARTH_RADIUS_M * 2.0 * math.asin(math.sqrt(min(1.0, a)))


def haversine_to_many(
    lat: float, lng: float, lats: np.ndarray, lngs: np.ndarray,
) -> np.ndarray:
    """Distances (m) from one point to every point of two parallel arrays."""
    p1 = math.radians(lat)
    p2 = np.radians(lats)
    dlat = p2 - p1
    dlng = np.radians(lngs - lng)
    a = np.sin(dlat / 2) ** 2 + math.cos(p1) * np.cos(p2) * np.sin(dlng / 2) ** 2
    return EARTH_RADIUS_M * 2.0 * np.arcsin(np.sqrt(np.minimum(1.0, a)))


def bearing_deg(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Initial bearing from point 1 to point 2.

    Returns
    -------
    float
        Degrees clockwise from true north, in ``(-180, 180]``.
    """
    p1, p2 = math.radians(lat1), math.radians(lat2)
    dlng = math.radians(lng2 - lng1)
    y = math.sin(dlng) * math.cos(p2)
    x = math.cos(p1) * math.sin(p2) - math.sin(p1) * math.cos(p2) * math.cos(dlng)
    return math.degrees(math.atan2(y, x))


def bearing_difference(a: float, b: float) -> float:
    """Absolute angle between two bearings, normalised to ``[0, 180]``."""
    diff = abs(a - b) % 360.0
    return min(diff, 360.0 - diff)


def destination_point(
    lat: float, lng: float, bearing: float, distance_m: float,
) -> Tuple[float, float]:
    """Point reached after travelling *distance_m* on an initial *bearing*.

    Parameters
    ----------
    lat, lng : float
        Start point in degrees.
    bearing : float
        Initial bearing in degrees clockwise from north.
    distance_m : float
        Great-circle distance to travel, in metres.

    Returns
    -------
    (float, float)
        ``(lat, lng)`` of the destination, longitude wrapped to ``[-180, 180)``.
    """
    delta = distance_m / EARTH_RADIUS_M
    theta = math.radians(bearing)
    p1 = math.radians(lat)
    l1 = math.radians(lng)

    p2 = math.asin(
        math.sin(p1) * math.cos(delta)
        + math.cos(p1) * math.sin(delta) * math.cos(theta)
    )
    l2 = l1 + math.atan2(
        math.sin(theta) * math.sin(delta) * math.cos(p1),
        math.cos(delta) - math.sin(p1) * math.sin(p2),
    )
    lng2 = (math.degrees(l2) + 540.0) % 360.0 - 180.0
    return math.degrees(p2), lng2
