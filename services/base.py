from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Tuple, Union

NodeId = Union[int, str]
LatLngPair = Tuple[float, float]


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned box in degrees (south, west, north, east)."""
    south: float
    west: float
    north: float
    east: float

    def contains(self, lat: float, lng: float) -> bool:
        return self.south <= lat <= self.north and self.west <= lng <= self.east


@dataclass(frozen=True)
class SignalNode:
    """A map node tagged as a traffic signal."""
    id: NodeId
    lat: float
    lng: float


@dataclass(frozen=True)
class RoadWay:
    """A road segment passing through one or more signal nodes.

    ``geometry[i]`` is the position of ``node_ids[i]``.
    """
    id: NodeId
    node_ids: Tuple[NodeId, ...]
    geometry: Tuple[LatLngPair, ...]


@dataclass
class MapQueryResult:
    nodes: List[SignalNode] = field(default_factory=list)
    ways: List[RoadWay] = field(default_factory=list)


class RoutingService(ABC):
    """Compute a drivable route between two points."""

    @abstractmethod
    def route(self, start: LatLngPair, end: LatLngPair) -> List[LatLngPair]:
        """Ordered ``(lat, lng)`` coordinates from *start* to *end*.

        Raises :class:`~services.errors.ServiceError` on failure.
        """
        raise NotImplementedError


class MapDataService(ABC):
    """Look up traffic signals and the roads touching them."""

    @abstractmethod
    def signals_in_bbox(self, bbox: BoundingBox) -> MapQueryResult:
        """Signal nodes inside *bbox* plus every way through them.

        Raises :class:`~services.errors.ServiceError` on failure.
        """
        raise NotImplementedError
