from __future__ import annotations

import logging
from typing import List

from services.base import LatLngPair, RoutingService
from services.errors import ServiceError
from services.http import HTTPClient

log = logging.getLogger("services.routing")


class OSRMRoutingService(RoutingService):
    """Driving routes from an OSRM ``/route/v1`` endpoint.

    OSRM speaks GeoJSON, so coordinates arrive as ``[lng, lat]`` and are
    flipped to ``(lat, lng)`` here.
    """

    def __init__(self, base_url: str, http: HTTPClient) -> None:
        self.base_url = base_url.rstrip("/")
        self.http = http

    def route(self, start: LatLngPair, end: LatLngPair) -> List[LatLngPair]:
        url = (
            f"{self.base_url}/route/v1/driving/"
            f"{start[1]},{start[0]};{end[1]},{end[0]}"
        )
        data = self.http.get_json(url, params={"overview": "full", "geometries": "geojson"})

        code = data.get("code", "Ok") if isinstance(data, dict) else None
        if code is None:
            raise ServiceError("routing response is not an object", 502)
        if code != "Ok":
            status = 404 if code in ("NoRoute", "NoSegment") else 502
            raise ServiceError(f"routing failed: {code}", status)

        try:
            coords = data["routes"][0]["geometry"]["coordinates"]
            route = [(float(c[1]), float(c[0])) for c in coords]
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise ServiceError(f"malformed routing response: {e}", 502) from e

        log.info("route computed points=%d", len(route))
        return route
