#!/usr/bin/env python3
"""
sim/route.py
============
Path model shared by the vehicle and signal agents.

A path is an ordered list of :class:`Waypoint` whose
``cumulative_distance`` starts at zero and grows by the great-circle
length of every segment.
"""

from __future__ import annotations

from bisect import bisect_left
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Sequence, Tuple

from sim.geodesy import haversine_m


@dataclass(frozen=True)
class Waypoint:
    """A point on a route.

    Attributes
    ----------
    lat, lng : float
        Position in degrees.
    cumulative_distance : float
        Metres travelled from the route start to this point.
    """

    lat: float
    lng: float
    cumulative_distance: float

    def as_dict(self) -> Dict[str, float]:
        return {
            "lat": self.lat,
            "lng": self.lng,
            "cumulative_distance": self.cumulative_distance,
        }


def build_path(coords: Iterable[Tuple[float, float]]) -> List[Waypoint]:
    """Turn ``(lat, lng)`` pairs into a path with running distances."""
    path: List[Waypoint] = []
    total = 0.0
    prev = None
    for lat, lng in coords:
        if prev is not None:
            total += haversine_m(prev[0], prev[1], lat, lng)
        path.append(Waypoint(float(lat), float(lng), total))
        prev = (lat, lng)
    return path


def path_from_models(points: Iterable[Any]) -> List[Waypoint]:
    """Rebuild a path from validated ``WaypointModel`` instances."""
    return [Waypoint(p.lat, p.lng, p.cumulative_distance) for p in points]


def path_length(path: Sequence[Waypoint]) -> float:
    """Total length of *path* in metres (0 for an empty path)."""
    return path[-1].cumulative_distance if path else 0.0


def locate(path: Sequence[Waypoint], distance: float) -> Tuple[int, float, float]:
    """Position reached after *distance* metres along *path*.

    Interpolates linearly between the two waypoints bracketing the
    distance.

    Returns
    -------
    (int, float, float)
        ``(index, lat, lng)`` where *index* is the lower waypoint of the
        bracketing segment.
    """
    if len(path) < 2:
        p = path[0]
        return 0, p.lat, p.lng

    cums = [p.cumulative_distance for p in path]
    idx = min(len(path) - 2, max(0, bisect_left(cums, distance) - 1))
    a, b = path[idx], path[idx + 1]
    span = b.cumulative_distance - a.cumulative_distance
    r = (distance - a.cumulative_distance) / span if span > 0 else 0.0
    r = min(1.0, max(0.0, r))
    return (
        idx,
        a.lat + (b.lat - a.lat) * r,
        a.lng + (b.lng - a.lng) * r,
    )
