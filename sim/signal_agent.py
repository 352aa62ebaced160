#!/usr/bin/env python3
"""
sim/signal_agent.py
===================
Signal coordination agent: owns the route lifecycle and decides when the
signals along the route change.

Lifecycle per route request
---------------------------
1. **Requested**: :meth:`SignalAgent.begin_epoch` bumps the epoch, drops
   the previous path, intersections and volumes, and cancels any clearing
   timer.
2. **Computed**: the routing service returns coordinates; the path is
   published on ``route.path`` followed by ``vehicle.init``.
3. **Scanned**: the path is walked in chunks; each chunk's signal nodes
   are matched to the route and published on
   ``route.intersections.batch``.
4. **Driven**: every ``vehicle.telemetry`` message is checked against
   the intersections ahead: adaptive mode turns them green inside a
   volume-scaled ETA window, fixed mode stops the vehicle at each red
   light for a random wait.

Every awaited step carries the epoch it was started for and re-checks it
before any side effect, so work belonging to a superseded request is
discarded silently.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from bus import topics
from bus.schemas import ModeToggle, RouteRequest, Telemetry, VolumeReading
from bus.v2x_bus import V2XBus
from services.base import MapDataService, NodeId, RoutingService
from services.errors import DEFAULT_FAULT_CODE, ServiceError
from sim.agent import BusAgent
from sim.coordination_policy import (
    CoordinationPolicy,
    cruise_speed_for_mode,
    lookahead_window_s,
)
from sim.intersections import (
    Intersection,
    PathIndex,
    SignalState,
    chunk_bbox,
    chunk_path,
    match_signals,
    merge_batch,
)
from sim.physics import braking_distance
from sim.route import Waypoint, build_path, path_length

log = logging.getLogger("signal_agent")


@dataclass
class SignalContext:
    """Mutable state of one :class:`SignalAgent`.

    Created with the agent and touched only by its handlers and the tasks
    they spawn.
    """

    epoch: int = 0
    path: List[Waypoint] = field(default_factory=list)
    intersections: List[Intersection] = field(default_factory=list)
    volumes: Dict[NodeId, float] = field(default_factory=dict)
    preemption_enabled: bool = True
    cruise_speed: float = 0.0

    # Fixed-mode clearing lock and its resume timer
    clearing_id: Optional[NodeId] = None
    clearing_task: Optional[asyncio.Task] = None

    # In-flight work of the current (or a superseded) epoch
    route_task: Optional[asyncio.Task] = None
    scan_task: Optional[asyncio.Task] = None


class SignalAgent(BusAgent):
    """
    Route, discovery and preemption agent.

    Parameters
    ----------
    bus : V2XBus
        Shared transport.
    routing : RoutingService
        Computes the path between a request's start and end.
    mapdata : MapDataService
        Supplies signal nodes and road ways per bounding box.
    policy : CoordinationPolicy or None
        Thresholds, windows and timings.
    random_seed : int or None
        Seed for the clearing wait, for reproducible runs.
    name : str
        Sender id on the bus.
    """

    def __init__(
        self,
        bus: V2XBus,
        routing: RoutingService,
        mapdata: MapDataService,
        policy: Optional[CoordinationPolicy] = None,
        random_seed: Optional[int] = None,
        name: str = "signal_agent",
    ) -> None:
        super().__init__(bus, name)
        self.routing = routing
        self.mapdata = mapdata
        self.policy = policy or CoordinationPolicy()
        self.ctx = SignalContext()
        self._rng = random.Random(random_seed)

        self.on(topics.ROUTE_REQUEST, self._on_route_request)
        self.on(topics.VEHICLE_TELEMETRY, self.handle_telemetry)
        self.on(topics.VOLUME_DATA, self.handle_volume)
        self.on(topics.CONFIG_PREEMPTION, self._on_preemption)

    # ── Epochs ────────────────────────────────────────────────────────────────

    def is_current(self, epoch: int) -> bool:
        return epoch == self.ctx.epoch

    def begin_epoch(self) -> int:
        """Start a new route epoch and forget everything about the old one."""
        ctx = self.ctx
        ctx.epoch += 1
        if ctx.clearing_task is not None and not ctx.clearing_task.done():
            ctx.clearing_task.cancel()
        ctx.clearing_task = None
        ctx.clearing_id = None
        ctx.path = []
        ctx.intersections = []
        ctx.volumes = {}
        log.debug("epoch %d started", ctx.epoch)
        return ctx.epoch

    # ── Route computation ─────────────────────────────────────────────────────

    def _on_route_request(self, req: RouteRequest) -> None:
        epoch = self.begin_epoch()
        self.ctx.route_task = asyncio.create_task(
            self._compute_route(req, epoch), name=f"route:{epoch}"
        )

    async def handle_route_request(self, req: RouteRequest) -> int:
        """Start a new epoch for *req* and compute its route in-line.

        The scan continues in :attr:`SignalContext.scan_task`.

        Returns
        -------
        int
            The epoch assigned to the request.
        """
        epoch = self.begin_epoch()
        await self._compute_route(req, epoch)
        return epoch

    async def _compute_route(self, req: RouteRequest, epoch: int) -> None:
        start = (req.start.lat, req.start.lng)
        end = (req.end.lat, req.end.lng)
        log.info("Calculating route epoch=%d mode=%s %s → %s", epoch, req.mode, start, end)
        try:
            coords = await asyncio.to_thread(self.routing.route, start, end)
            if len(coords) < 2:
                raise ServiceError("route has fewer than two points", 404)
        except ServiceError as exc:
            self._fail(epoch, exc.message, exc.status_code)
            return
        except Exception as exc:
            log.exception("routing client error")
            self._fail(epoch, str(exc) or type(exc).__name__, DEFAULT_FAULT_CODE)
            return

        if not self.is_current(epoch):
            log.debug("route for epoch %d superseded, discarding", epoch)
            return

        ctx = self.ctx
        ctx.path = build_path(coords)
        ctx.cruise_speed = cruise_speed_for_mode(req.mode, self.policy)
        path_payload = [wp.as_dict() for wp in ctx.path]

        self.publish(topics.ROUTE_PATH, {"path": path_payload, "intersections": []})
        self.publish(
            topics.VEHICLE_INIT,
            {"path": path_payload, "speed_limit": ctx.cruise_speed},
        )
        log.info(
            "Route ready epoch=%d waypoints=%d length=%.0fm speed=%.1fm/s",
            epoch, len(ctx.path), path_length(ctx.path), ctx.cruise_speed,
        )

        ctx.scan_task = asyncio.create_task(
            self.scan_route(ctx.path, epoch), name=f"scan:{epoch}"
        )

    def _fail(self, epoch: int, message: str, status_code: int) -> None:
        if not self.is_current(epoch):
            log.debug("failure of superseded epoch %d ignored: %s", epoch, message)
            return
        log.error("Service error epoch=%d status=%d: %s", epoch, status_code, message)
        self.publish(topics.ERROR, {"message": message, "status_code": status_code})

    # ── Incremental scan ──────────────────────────────────────────────────────

    async def scan_route(self, path: List[Waypoint], epoch: int) -> None:
        """Discover the intersections of *path* chunk by chunk.

        Returns early, without publishing, as soon as *epoch* is no longer
        current.  A map-data failure publishes one error and abandons the
        remaining chunks.
        """
        index = PathIndex(path)
        chunks = chunk_path(path, self.policy.chunk_distance_m)
        found = 0

        for n, chunk in enumerate(chunks, start=1):
            if not self.is_current(epoch):
                log.debug("scan epoch=%d aborted before chunk %d/%d", epoch, n, len(chunks))
                return

            bbox = chunk_bbox(chunk, self.policy.bbox_margin_m)
            try:
                result = await asyncio.to_thread(self.mapdata.signals_in_bbox, bbox)
            except ServiceError as exc:
                self._fail(epoch, exc.message, exc.status_code)
                return
            except Exception as exc:
                log.exception("map-data client error")
                self._fail(epoch, str(exc) or type(exc).__name__, DEFAULT_FAULT_CODE)
                return

            if not self.is_current(epoch):
                log.debug("scan epoch=%d aborted after chunk %d/%d", epoch, n, len(chunks))
                return

            fresh = match_signals(
                result.nodes, result.ways, index, self.ctx.intersections, self.policy,
            )
            log.debug(
                "chunk %d/%d epoch=%d nodes=%d accepted=%d",
                n, len(chunks), epoch, len(result.nodes), len(fresh),
            )
            if not fresh:
                continue

            for inter in fresh:
                inter.volume = self.ctx.volumes.get(inter.id, 0.0)
            merge_batch(self.ctx.intersections, fresh)
            found += len(fresh)
            log.info("Scanned chunk %d/%d: found %d new lights", n, len(chunks), len(fresh))
            self.publish(
                topics.ROUTE_INTERSECTIONS,
                {"intersections": [i.as_dict() for i in fresh]},
            )

        log.info("Scan complete epoch=%d intersections=%d", epoch, found)

    # ── Telemetry / preemption ────────────────────────────────────────────────

    def handle_telemetry(self, t: Telemetry) -> None:
        """Preempt or hold for the intersections ahead of the vehicle."""
        path = self.ctx.path
        if not path or t.path_index >= len(path):
            return

        here = path[t.path_index].cumulative_distance
        speed = max(self.policy.min_eta_speed_mps, t.speed)

        for inter in list(self.ctx.intersections):
            if inter.path_index <= t.path_index or inter.path_index >= len(path):
                continue
            remaining = path[inter.path_index].cumulative_distance - here
            if self.ctx.preemption_enabled:
                self._preempt(inter, remaining / speed)
            else:
                self._maybe_hold(inter, remaining, speed)

    def _preempt(self, inter: Intersection, eta: float) -> None:
        volume = self.ctx.volumes.get(inter.id, 0.0)
        window = lookahead_window_s(volume, self.policy)
        if eta < window and inter.state is not SignalState.GREEN:
            inter.state = SignalState.GREEN
            log.info(
                "Triggering GREEN for %s (eta=%.1fs window=%.1fs vol=%.2f)",
                inter.id, eta, window, volume,
            )
            self._publish_state(inter)

    def _maybe_hold(self, inter: Intersection, remaining: float, speed: float) -> None:
        if inter.cleared or self.ctx.clearing_id is not None:
            return
        stop_zone = braking_distance(speed, self.policy.stop_decel_mps2) + self.policy.stop_margin_m
        if remaining > stop_zone:
            return

        ctx = self.ctx
        ctx.clearing_id = inter.id
        wait = self._rng.uniform(self.policy.clearing_min_s, self.policy.clearing_max_s)
        log.info("Vehicle stopping for red light at %s (wait %.1fs)", inter.id, wait)
        self.publish(topics.VEHICLE_SPEED, {"speed": 0.0})
        ctx.clearing_task = asyncio.create_task(
            self._finish_clearing(inter, wait, ctx.epoch), name=f"clear:{inter.id}"
        )

    async def _finish_clearing(self, inter: Intersection, wait: float, epoch: int) -> None:
        await asyncio.sleep(wait)
        if not self.is_current(epoch):
            return
        ctx = self.ctx
        inter.cleared = True
        ctx.clearing_id = None
        ctx.clearing_task = None
        log.info("Vehicle cleared light at %s, resuming", inter.id)
        self.publish(topics.VEHICLE_SPEED, {"speed": self.policy.emergency_speed_mps})
        inter.state = SignalState.GREEN
        self._publish_state(inter)

    def _publish_state(self, inter: Intersection) -> None:
        self.publish(topics.SIGNAL_STATE, {"id": inter.id, "state": inter.state.value})

    # ── Volume / config ───────────────────────────────────────────────────────

    def handle_volume(self, reading: VolumeReading) -> None:
        self.ctx.volumes[reading.id] = reading.volume
        for inter in self.ctx.intersections:
            if inter.id == reading.id:
                inter.volume = reading.volume

    def set_preemption(self, enabled: bool) -> None:
        self.ctx.preemption_enabled = bool(enabled)
        log.info("Preemption: %s", "ON" if enabled else "OFF")

    def _on_preemption(self, msg: ModeToggle) -> None:
        self.set_preemption(msg.enabled)

    # ── Introspection / lifecycle ─────────────────────────────────────────────

    def snapshot(self) -> Dict[str, Any]:
        ctx = self.ctx
        return {
            "epoch":              ctx.epoch,
            "waypoints":          len(ctx.path),
            "preemption_enabled": ctx.preemption_enabled,
            "clearing_id":        ctx.clearing_id,
            "intersections":      [i.as_dict() for i in ctx.intersections],
        }

    async def on_stop(self) -> None:
        ctx = self.ctx
        pending = [
            t for t in (ctx.route_task, ctx.scan_task, ctx.clearing_task)
            if t is not None and not t.done()
        ]
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
