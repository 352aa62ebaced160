"""
services — Clients for the external routing and map-data services
==================================================================

Modules
-------
base
    Service contracts (:class:`RoutingService`, :class:`MapDataService`)
    and the value types they exchange.
errors
    :class:`ServiceError` with a status classification.
http
    :class:`HTTPClient` over :mod:`requests`.
routing
    :class:`OSRMRoutingService`.
mapdata
    :class:`OverpassMapService`.
mock
    Offline stand-ins for demos and tests.
"""

from .base import (
    BoundingBox,
    MapDataService,
    MapQueryResult,
    RoadWay,
    RoutingService,
    SignalNode,
)
from .errors import ServiceError

__all__ = [
    "BoundingBox",
    "MapDataService",
    "MapQueryResult",
    "RoadWay",
    "RoutingService",
    "SignalNode",
    "ServiceError",
]
