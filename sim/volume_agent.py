"""
sim/volume_agent.py
===================
Simulated traffic load per intersection.

The agent only knows the intersection ids it has been told about: a new
``route.path`` replaces its watch list, while intersection batches and
signal changes extend it.  Every period it publishes one ``volume.data``
reading per watched id; forced-high mode emulates gridlock.
"""

from __future__ import annotations

import logging
import random
from typing import Dict, Iterable, List, Optional

from bus import topics
from bus.schemas import IntersectionBatch, ModeToggle, RoutePath, SignalStateUpdate
from bus.v2x_bus import V2XBus
from services.base import NodeId
from sim.agent import BusAgent
from sim.coordination_policy import CoordinationPolicy

log = logging.getLogger("volume_agent")


class VolumeAgent(BusAgent):
    """
    Traffic volume agent.

    Parameters
    ----------
    bus : V2XBus
        Shared transport.
    policy : CoordinationPolicy or None
        Broadcast period and forced-high floor.
    random_seed : int or None
        Seed for reproducible volumes.
    name : str
        Sender id on the bus.
    """

    def __init__(
        self,
        bus: V2XBus,
        policy: Optional[CoordinationPolicy] = None,
        random_seed: Optional[int] = None,
        name: str = "volume_agent",
    ) -> None:
        super().__init__(bus, name)
        self.policy = policy or CoordinationPolicy()
        self.max_traffic = False
        self._watched: Dict[NodeId, None] = {}   # insertion-ordered set
        self._rng = random.Random(random_seed)

        self.on(topics.ROUTE_PATH, self._on_route)
        self.on(topics.ROUTE_INTERSECTIONS, self._on_batch)
        self.on(topics.SIGNAL_STATE, self._on_signal)
        self.on(topics.CONFIG_TRAFFIC, self._on_traffic_mode)
        self.every(self.policy.volume_period_s, self.publish_volumes)

    @property
    def watched(self) -> List[NodeId]:
        return list(self._watched)

    def watch(self, ids: Iterable[NodeId]) -> int:
        """Add unseen *ids* to the watch list; returns how many were new."""
        added = 0
        for nid in ids:
            if nid not in self._watched:
                self._watched[nid] = None
                added += 1
        return added

    def reset(self, ids: Iterable[NodeId] = ()) -> None:
        """Replace the watch list."""
        self._watched = dict.fromkeys(ids)

    def set_max_traffic(self, enabled: bool) -> None:
        self.max_traffic = bool(enabled)
        log.info("Max Traffic Mode: %s", "ON" if self.max_traffic else "OFF")

    def sample(self) -> float:
        """One simulated volume reading in ``[0, 1]``."""
        if self.max_traffic:
            return self._rng.uniform(self.policy.high_volume_floor, 1.0)
        return self._rng.random()

    def publish_volumes(self) -> int:
        """Publish a reading for every watched id; returns the count."""
        for nid in self._watched:
            self.publish(topics.VOLUME_DATA, {"id": nid, "volume": self.sample()})
        return len(self._watched)

    # ── Bus handlers ──────────────────────────────────────────────────────────

    def _on_route(self, msg: RoutePath) -> None:
        self.reset(i.id for i in msg.intersections)
        log.info("Monitoring %d intersections", len(self._watched))

    def _on_batch(self, msg: IntersectionBatch) -> None:
        added = self.watch(i.id for i in msg.intersections)
        log.info("Added %d intersections to monitor", added)

    def _on_signal(self, msg: SignalStateUpdate) -> None:
        self.watch([msg.id])

    def _on_traffic_mode(self, msg: ModeToggle) -> None:
        self.set_max_traffic(msg.enabled)
