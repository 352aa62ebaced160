"""
bus/schemas.py
==============
Pydantic payload schemas, one per topic.

Agents validate every payload they receive with :func:`parse_payload`;
anything that does not match its topic's schema is dropped at the
receive boundary instead of propagating into agent state.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Literal, Optional, Tuple, Type, Union

from pydantic import BaseModel, Field, ValidationError

from . import topics

log = logging.getLogger(__name__)

IntersectionId = Union[int, str]
SignalColour = Literal["RED", "GREEN"]
VehicleStatusName = Literal["MOVING", "CLEARING", "ARRIVED", "IDLE"]


# ── Building blocks ──────────────────────────────────────────────────────────


class LatLng(BaseModel):
    """A WGS-84 coordinate."""
    lat: float = Field(ge=-90.0, le=90.0)
    lng: float = Field(ge=-180.0, le=180.0)


class WaypointModel(LatLng):
    """A path point with its distance from the route start (metres)."""
    cumulative_distance: float = Field(ge=0.0)


class IntersectionModel(LatLng):
    """A signalised intersection discovered along the active path."""
    id: IntersectionId
    path_index: int = Field(ge=0)
    state: SignalColour = "RED"
    cross_road: List[Tuple[float, float]] = Field(default_factory=list)
    volume: float = Field(default=0.0, ge=0.0, le=1.0)


# ── Topic payloads ───────────────────────────────────────────────────────────


class RouteRequest(BaseModel):
    start: LatLng
    end: LatLng
    mode: str = "EMERGENCY"


class RoutePath(BaseModel):
    path: List[WaypointModel]
    intersections: List[IntersectionModel] = Field(default_factory=list)


class IntersectionBatch(BaseModel):
    intersections: List[IntersectionModel]


class VehicleInit(BaseModel):
    path: List[WaypointModel]
    speed_limit: Optional[float] = None


class SpeedOverride(BaseModel):
    speed: float


class Telemetry(LatLng):
    speed: float = Field(ge=0.0)
    path_index: int = Field(ge=0)
    status: VehicleStatusName


class SignalStateUpdate(BaseModel):
    id: IntersectionId
    state: SignalColour


class VolumeReading(BaseModel):
    id: IntersectionId
    volume: float = Field(ge=0.0, le=1.0)


class ModeToggle(BaseModel):
    enabled: bool


class ErrorEvent(BaseModel):
    message: str
    status_code: int


SCHEMAS: Dict[str, Type[BaseModel]] = {
    topics.ROUTE_REQUEST: RouteRequest,
    topics.ROUTE_PATH: RoutePath,
    topics.ROUTE_INTERSECTIONS: IntersectionBatch,
    topics.VEHICLE_INIT: VehicleInit,
    topics.VEHICLE_SPEED: SpeedOverride,
    topics.VEHICLE_TELEMETRY: Telemetry,
    topics.SIGNAL_STATE: SignalStateUpdate,
    topics.VOLUME_DATA: VolumeReading,
    topics.CONFIG_PREEMPTION: ModeToggle,
    topics.CONFIG_TRAFFIC: ModeToggle,
    topics.ERROR: ErrorEvent,
}


def parse_payload(topic: str, payload: object) -> Optional[BaseModel]:
    """Validate *payload* against the schema registered for *topic*.

    Returns
    -------
    BaseModel or None
        The parsed model, or ``None`` when the topic is unknown or the
        payload does not match.
    """
    schema = SCHEMAS.get(topic)
    if schema is None:
        log.warning("no schema for topic=%s", topic)
        return None
    try:
        return schema.model_validate(payload)
    except ValidationError as exc:
        log.warning("malformed payload topic=%s errors=%d", topic, exc.error_count())
        return None
