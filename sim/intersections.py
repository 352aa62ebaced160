#!/usr/bin/env python3
"""
sim/intersections.py
====================
Intersection model and the geometry behind route scanning.

The signal agent walks its path in chunks, asks the map-data service for
signal nodes near each chunk, and turns the nodes that actually sit on
the route into :class:`Intersection` records:

* :func:`chunk_path`: split a path into overlapping chunks by distance.
* :func:`chunk_bbox`: padded bounding box of one chunk.
* :class:`PathIndex`: brute-force nearest waypoint (numpy).
* :func:`select_cross_road`: the way most perpendicular to the route.
* :func:`match_signals`: accept, deduplicate and annotate signal nodes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from services.base import BoundingBox, LatLngPair, NodeId, RoadWay, SignalNode
from sim.coordination_policy import CoordinationPolicy
from sim.geodesy import (
    bearing_deg,
    bearing_difference,
    destination_point,
    haversine_m,
    haversine_to_many,
)
from sim.route import Waypoint

log = logging.getLogger("signal_agent")


class SignalState(str, Enum):
    """Colour shown to traffic travelling along the route."""
    RED = "RED"
    GREEN = "GREEN"


@dataclass
class Intersection:
    """A signalised intersection on the active path.

    Attributes
    ----------
    id : int or str
        Map node id of the signal.
    lat, lng : float
        Signal position.
    path_index : int
        Index of the nearest waypoint of the active path.
    cross_road : list of (lat, lng)
        Geometry of the perpendicular road, empty when none qualifies.
    state : SignalState
        Current colour; starts RED.
    volume : float
        Latest simulated traffic volume in ``[0, 1]``.
    cleared : bool
        Fixed mode only: the vehicle already waited here.
    """

    id: NodeId
    lat: float
    lng: float
    path_index: int
    cross_road: List[LatLngPair] = field(default_factory=list)
    state: SignalState = SignalState.RED
    volume: float = 0.0
    cleared: bool = False

    def as_dict(self) -> Dict[str, Any]:
        return {
            "id":         self.id,
            "lat":        self.lat,
            "lng":        self.lng,
            "path_index": self.path_index,
            "state":      self.state.value,
            "cross_road": [list(p) for p in self.cross_road],
            "volume":     self.volume,
        }


# ── Chunking ──────────────────────────────────────────────────────────────────

def chunk_path(path: Sequence[Waypoint], chunk_distance_m: float) -> List[List[Waypoint]]:
    """Split *path* into consecutive chunks of roughly *chunk_distance_m*.

    A chunk closes on the first waypoint that lies more than the chunk
    distance past the previous boundary, or on the last waypoint.  The
    closing waypoint also opens the next chunk so that nodes on the
    boundary are covered by both queries.
    """
    chunks: List[List[Waypoint]] = []
    current: List[Waypoint] = []
    last_boundary = 0.0
    last = len(path) - 1
    for i, wp in enumerate(path):
        current.append(wp)
        if wp.cumulative_distance - last_boundary > chunk_distance_m or i == last:
            chunks.append(current)
            current = [wp] if i < last else []
            last_boundary = wp.cumulative_distance
    return chunks


def chunk_bbox(points: Sequence[Waypoint], margin_m: float) -> BoundingBox:
    """Bounding box of *points*, padded by *margin_m* on every side."""
    lats = [p.lat for p in points]
    lngs = [p.lng for p in points]
    south, north = min(lats), max(lats)
    west, east = min(lngs), max(lngs)
    mid_lat = (south + north) / 2.0

    if margin_m > 0:
        south = destination_point(south, west, 180.0, margin_m)[0]
        north = destination_point(north, west, 0.0, margin_m)[0]
        west = destination_point(mid_lat, west, 270.0, margin_m)[1]
        east = destination_point(mid_lat, east, 90.0, margin_m)[1]

    return BoundingBox(
        south=max(-90.0, south),
        west=west,
        north=min(90.0, north),
        east=east,
    )


# ── Nearest waypoint ──────────────────────────────────────────────────────────

class PathIndex:
    """Brute-force nearest-waypoint lookup over one path."""

    def __init__(self, path: Sequence[Waypoint]) -> None:
        self.path = list(path)
        self._lats = np.array([p.lat for p in self.path], dtype=float)
        self._lngs = np.array([p.lng for p in self.path], dtype=float)

    def __len__(self) -> int:
        return len(self.path)

    def nearest(self, lat: float, lng: float) -> Tuple[int, float]:
        """``(index, distance_m)`` of the waypoint closest to the point.

        Returns ``(-1, inf)`` for an empty path.
        """
        if not self.path:
            return -1, float("inf")
        dists = haversine_to_many(lat, lng, self._lats, self._lngs)
        idx = int(np.argmin(dists))
        return idx, float(dists[idx])


# ── Cross-road selection ──────────────────────────────────────────────────────

def route_bearing_at(path: Sequence[Waypoint], idx: int) -> float:
    """Bearing of the route through waypoint *idx* (previous → next)."""
    a = path[max(0, idx - 1)]
    b = path[min(len(path) - 1, idx + 1)]
    if (a.lat, a.lng) == (b.lat, b.lng):
        return 0.0
    return bearing_deg(a.lat, a.lng, b.lat, b.lng)


def way_bearing_at(way: RoadWay, node_id: NodeId) -> Optional[float]:
    """Bearing of *way* where it passes through *node_id*.

    Uses the segment leaving the node, or the one arriving at it when the
    node ends the way.  ``None`` when the way has no usable geometry there.
    """
    try:
        n = way.node_ids.index(node_id)
    except ValueError:
        return None
    geom = way.geometry
    if n < len(geom) - 1:
        a, b = geom[n], geom[n + 1]
    elif 0 < n < len(geom):
        a, b = geom[n - 1], geom[n]
    else:
        return None
    return bearing_deg(a[0], a[1], b[0], b[1])


def perpendicularity(route_bearing: float, way_bearing: float) -> float:
    """Score in ``[0, 90]``; 90 means the way crosses the route at right angles."""
    diff = bearing_difference(route_bearing, way_bearing)
    return 90.0 - abs(90.0 - diff)


def select_cross_road(
    route_bearing: float,
    ways: Iterable[RoadWay],
    node_id: NodeId,
    floor_deg: float,
) -> List[LatLngPair]:
    """Geometry of the way through *node_id* most perpendicular to the route.

    Returns an empty list when no way scores above *floor_deg*.
    """
    best: Optional[RoadWay] = None
    best_score = -1.0
    for way in ways:
        if not way.geometry:
            continue
        wb = way_bearing_at(way, node_id)
        if wb is None:
            continue
        score = perpendicularity(route_bearing, wb)
        if score > best_score:
            best, best_score = way, score

    if best is not None and best_score > floor_deg:
        return list(best.geometry)
    return []


# ── Node matching ─────────────────────────────────────────────────────────────

def is_duplicate(
    lat: float, lng: float, existing: Iterable[Intersection], threshold_m: float,
) -> bool:
    """True if any intersection in *existing* lies within *threshold_m*."""
    return any(haversine_m(i.lat, i.lng, lat, lng) < threshold_m for i in existing)


def ways_by_node(ways: Iterable[RoadWay]) -> Dict[NodeId, List[RoadWay]]:
    index: Dict[NodeId, List[RoadWay]] = {}
    for way in ways:
        for nid in way.node_ids:
            index.setdefault(nid, []).append(way)
    return index


def match_signals(
    nodes: Sequence[SignalNode],
    ways: Sequence[RoadWay],
    path_index: PathIndex,
    known: Sequence[Intersection],
    policy: CoordinationPolicy,
) -> List[Intersection]:
    """Turn raw signal nodes into new intersections on the route.

    A node is kept when its nearest waypoint is closer than
    ``policy.match_threshold_m`` and no known or already-accepted
    intersection lies within ``policy.dedup_threshold_m``.

    Returns
    -------
    list of Intersection
        The new intersections only, in node order.
    """
    by_node = ways_by_node(ways)
    path = path_index.path
    fresh: List[Intersection] = []

    for node in nodes:
        idx, dist = path_index.nearest(node.lat, node.lng)
        if idx < 0 or dist >= policy.match_threshold_m:
            continue
        if is_duplicate(node.lat, node.lng, known, policy.dedup_threshold_m) or is_duplicate(
            node.lat, node.lng, fresh, policy.dedup_threshold_m
        ):
            log.debug("node %s folded into a nearby intersection", node.id)
            continue

        cross = select_cross_road(
            route_bearing_at(path, idx),
            by_node.get(node.id, ()),
            node.id,
            policy.perpendicular_floor_deg,
        )
        fresh.append(
            Intersection(
                id=node.id,
                lat=node.lat,
                lng=node.lng,
                path_index=idx,
                cross_road=cross,
            )
        )
    return fresh


def merge_batch(known: List[Intersection], fresh: Iterable[Intersection]) -> None:
    """Append *fresh* to *known* in place and keep it stably sorted by path index."""
    known.extend(fresh)
    known.sort(key=lambda i: i.path_index)
