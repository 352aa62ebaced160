from __future__ import annotations

from typing import Iterable, List, Optional

from services.base import (
    BoundingBox,
    LatLngPair,
    MapDataService,
    MapQueryResult,
    RoadWay,
    RoutingService,
    SignalNode,
)


class StraightLineRoutingService(RoutingService):
    """
    Deterministic fake routes so the agents run end-to-end without APIs.
    Returns the straight segment from start to end split into equal steps.
    """

    def __init__(self, steps: int = 20) -> None:
        self.steps = max(1, steps)
        self.calls: List[tuple] = []

    def route(self, start: LatLngPair, end: LatLngPair) -> List[LatLngPair]:
        self.calls.append((start, end))
        return [
            (
                start[0] + (end[0] - start[0]) * i / self.steps,
                start[1] + (end[1] - start[1]) * i / self.steps,
            )
            for i in range(self.steps + 1)
        ]


class StaticMapService(MapDataService):
    """
    Serves a fixed set of signals and ways, filtered by bounding box the
    way a real map query would be.
    """

    def __init__(
        self,
        nodes: Optional[Iterable[SignalNode]] = None,
        ways: Optional[Iterable[RoadWay]] = None,
    ) -> None:
        self.nodes = list(nodes or ())
        self.ways = list(ways or ())
        self.calls: List[BoundingBox] = []

    def signals_in_bbox(self, bbox: BoundingBox) -> MapQueryResult:
        self.calls.append(bbox)
        inside = [n for n in self.nodes if bbox.contains(n.lat, n.lng)]
        ids = {n.id for n in inside}
        touching = [w for w in self.ways if ids.intersection(w.node_ids)]
        return MapQueryResult(nodes=inside, ways=touching)
