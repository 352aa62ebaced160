"""
gateway/monitor.py
==================
Read-only observer that caches the latest state seen on the bus, for the
gateway's ``/snapshot`` endpoint.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from bus import topics
from bus.schemas import (
    ErrorEvent,
    IntersectionBatch,
    RoutePath,
    SignalStateUpdate,
    Telemetry,
    VolumeReading,
)
from bus.v2x_bus import V2XBus
from sim.agent import BusAgent

log = logging.getLogger("gateway")


class BusMonitor(BusAgent):
    """Keeps the most recent telemetry, signal colours, volumes and error."""

    def __init__(self, bus: V2XBus, name: str = "gateway") -> None:
        super().__init__(bus, name)
        self.waypoints = 0
        self.telemetry: Optional[Dict[str, Any]] = None
        self.signals: Dict[str, str] = {}
        self.volumes: Dict[str, float] = {}
        self.last_error: Optional[Dict[str, Any]] = None

        self.on(topics.ROUTE_PATH, self._on_route)
        self.on(topics.ROUTE_INTERSECTIONS, self._on_batch)
        self.on(topics.VEHICLE_TELEMETRY, self._on_telemetry)
        self.on(topics.SIGNAL_STATE, self._on_signal)
        self.on(topics.VOLUME_DATA, self._on_volume)
        self.on(topics.ERROR, self._on_error)

    def snapshot(self) -> Dict[str, Any]:
        return {
            "waypoints":  self.waypoints,
            "telemetry":  self.telemetry,
            "signals":    dict(self.signals),
            "volumes":    dict(self.volumes),
            "last_error": self.last_error,
        }

    # JSON object keys are strings, so intersection ids are normalised here.

    def _on_route(self, msg: RoutePath) -> None:
        self.waypoints = len(msg.path)
        self.signals = {str(i.id): i.state for i in msg.intersections}
        self.volumes = {}
        self.last_error = None

    def _on_batch(self, msg: IntersectionBatch) -> None:
        for inter in msg.intersections:
            self.signals.setdefault(str(inter.id), inter.state)

    def _on_telemetry(self, msg: Telemetry) -> None:
        self.telemetry = msg.model_dump()

    def _on_signal(self, msg: SignalStateUpdate) -> None:
        self.signals[str(msg.id)] = msg.state

    def _on_volume(self, msg: VolumeReading) -> None:
        self.volumes[str(msg.id)] = msg.volume

    def _on_error(self, msg: ErrorEvent) -> None:
        self.last_error = msg.model_dump()
        log.warning("error event status=%d: %s", msg.status_code, msg.message)
