from __future__ import annotations

import logging
from typing import Any, Dict, List

from services.base import BoundingBox, MapDataService, MapQueryResult, RoadWay, SignalNode
from services.errors import ServiceError
from services.http import HTTPClient

log = logging.getLogger("services.mapdata")


def build_signal_query(bbox: BoundingBox, timeout_s: int = 150) -> str:
    """Overpass QL: traffic-signal nodes in *bbox* and the ways through them."""
    box = f"{bbox.south},{bbox.west},{bbox.north},{bbox.east}"
    return (
        f"[out:json][timeout:{timeout_s}];"
        f'(node["highway"="traffic_signals"]({box});)->.signals;'
        ".signals out;"
        "way(bn.signals);out geom;"
    )


def parse_elements(elements: List[Dict[str, Any]]) -> MapQueryResult:
    """Split raw Overpass elements into signal nodes and road ways.

    Ways without inline geometry are kept with an empty geometry; the
    cross-road selection skips them.
    """
    result = MapQueryResult()
    for el in elements:
        kind = el.get("type")
        if kind == "node" and "lat" in el and "lon" in el:
            result.nodes.append(SignalNode(el["id"], float(el["lat"]), float(el["lon"])))
        elif kind == "way":
            geometry = tuple(
                (float(g["lat"]), float(g["lon"])) for g in el.get("geometry") or ()
            )
            result.ways.append(RoadWay(el["id"], tuple(el.get("nodes", ())), geometry))
    return result


class OverpassMapService(MapDataService):
    """Traffic signals from an Overpass API interpreter endpoint."""

    def __init__(self, url: str, http: HTTPClient, query_timeout_s: int = 150) -> None:
        self.url = url
        self.http = http
        self.query_timeout_s = query_timeout_s

    def signals_in_bbox(self, bbox: BoundingBox) -> MapQueryResult:
        query = build_signal_query(bbox, self.query_timeout_s)
        data = self.http.get_json(self.url, params={"data": query})
        try:
            result = parse_elements(data["elements"])
        except (KeyError, TypeError, ValueError) as e:
            raise ServiceError(f"malformed map-data response: {e}", 502) from e
        log.debug("bbox=%s nodes=%d ways=%d", bbox, len(result.nodes), len(result.ways))
        return result
