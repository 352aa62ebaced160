"""
sim/vehicle_agent.py
====================
The emergency vehicle. The agent:
  - owns its path / position / speed / status
  - follows its path at a fixed tick rate, easing toward its speed limit
  - obeys ``vehicle.init`` and ``vehicle.speedOverride`` commands
  - publishes ``vehicle.telemetry`` after every tick that moved it
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from bus import topics
from bus.schemas import SpeedOverride, VehicleInit
from bus.v2x_bus import V2XBus
from sim.agent import BusAgent
from sim.coordination_policy import CoordinationPolicy
from sim.physics import step_toward
from sim.route import Waypoint, locate, path_from_models, path_length

log = logging.getLogger("vehicle_agent")


class VehicleStatus(str, Enum):
    """Reported motion state of the vehicle."""
    IDLE = "IDLE"
    MOVING = "MOVING"
    CLEARING = "CLEARING"
    ARRIVED = "ARRIVED"


@dataclass
class VehicleState:
    """Everything the vehicle agent knows about itself.

    Only :meth:`VehicleAgent.tick`, :meth:`VehicleAgent.start_run` and
    :meth:`VehicleAgent.set_speed_limit` mutate it.
    """

    path: List[Waypoint] = field(default_factory=list)
    lat: float = 0.0
    lng: float = 0.0
    speed: float = 0.0              # m/s
    max_speed: float = 0.0          # m/s, target cruising speed
    distance: float = 0.0           # metres along the path
    path_index: int = 0
    active: bool = False
    status: VehicleStatus = VehicleStatus.IDLE


class VehicleAgent(BusAgent):
    """
    Vehicle physics agent.

    Parameters
    ----------
    bus : V2XBus
        Shared transport.
    policy : CoordinationPolicy or None
        Acceleration, default speed and clearing threshold.
    tick_rate_hz : float
        Physics ticks per second.
    name : str
        Sender id on the bus.
    """

    def __init__(
        self,
        bus: V2XBus,
        policy: Optional[CoordinationPolicy] = None,
        tick_rate_hz: float = 20.0,
        name: str = "vehicle",
    ) -> None:
        super().__init__(bus, name)
        self.policy = policy or CoordinationPolicy()
        self.tick_rate_hz = tick_rate_hz
        self.state = VehicleState()

        self.on(topics.VEHICLE_INIT, self._on_init)
        self.on(topics.VEHICLE_SPEED, self._on_speed)
        self.every(1.0 / tick_rate_hz, self._tick_and_publish)

    # ── Commands ──────────────────────────────────────────────────────────────

    def start_run(self, path: Sequence[Waypoint], speed_limit: Optional[float] = None) -> bool:
        """Begin driving *path* from its first waypoint.

        Returns ``False`` (and changes nothing) for paths shorter than two
        waypoints.
        """
        if len(path) < 2:
            log.warning("Ignoring run with %d waypoint(s)", len(path))
            return False

        s = self.state
        s.path = list(path)
        s.distance = 0.0
        s.speed = 0.0
        s.path_index = 0
        s.lat, s.lng = s.path[0].lat, s.path[0].lng
        s.max_speed = (
            float(speed_limit)
            if speed_limit is not None and speed_limit > 0
            else self.policy.default_max_speed_mps
        )
        s.active = True
        s.status = VehicleStatus.MOVING
        log.info(
            "Starting run waypoints=%d length=%.0fm limit=%.1fm/s",
            len(s.path), path_length(s.path), s.max_speed,
        )
        return True

    def set_speed_limit(self, limit: float) -> None:
        """Change the target speed without touching position; 0 means stop."""
        self.state.max_speed = max(0.0, float(limit))
        log.debug("speed limit → %.1f m/s", self.state.max_speed)

    # ── Physics ───────────────────────────────────────────────────────────────

    def tick(self, dt: float) -> Optional[Dict[str, Any]]:
        """Advance the vehicle by *dt* seconds.

        Returns the telemetry payload, or ``None`` when there is no active
        run (never started, or already arrived).
        """
        s = self.state
        if not s.active:
            return None

        s.speed = step_toward(s.speed, s.max_speed, self.policy.accel_mps2, dt)
        s.distance += s.speed * max(0.0, dt)

        total = path_length(s.path)
        if s.distance >= total:
            s.distance = total
            s.speed = 0.0
            s.active = False
            log.info("Arrived at destination after %.0f m", total)

        s.path_index, s.lat, s.lng = locate(s.path, s.distance)
        s.status = self._derive_status()
        return self.telemetry()

    def _derive_status(self) -> VehicleStatus:
        s = self.state
        if not s.active:
            return VehicleStatus.ARRIVED if s.path else VehicleStatus.IDLE
        if s.max_speed == 0.0 and s.speed < self.policy.clearing_speed_threshold_mps:
            return VehicleStatus.CLEARING
        return VehicleStatus.MOVING

    # ── Serialisation ─────────────────────────────────────────────────────────

    def telemetry(self) -> Dict[str, Any]:
        """Payload for ``vehicle.telemetry``."""
        s = self.state
        return {
            "lat":        s.lat,
            "lng":        s.lng,
            "speed":      s.speed,
            "path_index": s.path_index,
            "status":     s.status.value,
        }

    def snapshot(self) -> Dict[str, Any]:
        """Telemetry plus the internal progress counters."""
        s = self.state
        return {
            **self.telemetry(),
            "distance":    s.distance,
            "max_speed":   s.max_speed,
            "path_length": path_length(s.path),
            "active":      s.active,
        }

    # ── Bus handlers ──────────────────────────────────────────────────────────

    def _on_init(self, msg: VehicleInit) -> None:
        self.start_run(path_from_models(msg.path), msg.speed_limit)

    def _on_speed(self, msg: SpeedOverride) -> None:
        self.set_speed_limit(msg.speed)

    def _tick_and_publish(self) -> None:
        payload = self.tick(1.0 / self.tick_rate_hz)
        if payload is not None:
            self.publish(topics.VEHICLE_TELEMETRY, payload)
