#!/usr/bin/env python3
"""
Tests for the volume agent's watch list and readings.
"""

from __future__ import annotations

import unittest

from bus import topics
from bus.v2x_bus import V2XBus
from sim.coordination_policy import CoordinationPolicy
from sim.volume_agent import VolumeAgent


def intersection(nid, path_index: int = 0) -> dict:
    return {"id": nid, "lat": 0.0, "lng": 0.0, "path_index": path_index}


def route_path(*ids) -> dict:
    path = [
        {"lat": 0.0, "lng": 0.0, "cumulative_distance": 0.0},
        {"lat": 0.0, "lng": 0.001, "cumulative_distance": 111.2},
    ]
    return {"path": path, "intersections": [intersection(i) for i in ids]}


class VolumeAgentTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.bus = V2XBus()
        self.sub = self.bus.subscribe(topics.VOLUME_DATA)
        self.agent = VolumeAgent(self.bus, CoordinationPolicy(), random_seed=3)

    async def test_new_route_replaces_watch_list(self) -> None:
        self.agent.watch([100, 101])
        await self.agent.deliver(topics.ROUTE_PATH, route_path(1, 2))
        self.assertEqual(self.agent.watched, [1, 2])

        await self.agent.deliver(topics.ROUTE_PATH, route_path())
        self.assertEqual(self.agent.watched, [])

    async def test_batches_and_signal_changes_extend(self) -> None:
        await self.agent.deliver(topics.ROUTE_PATH, route_path(1))
        await self.agent.deliver(
            topics.ROUTE_INTERSECTIONS,
            {"intersections": [intersection(1), intersection(2), intersection("x")]},
        )
        await self.agent.deliver(topics.SIGNAL_STATE, {"id": 9, "state": "GREEN"})
        await self.agent.deliver(topics.SIGNAL_STATE, {"id": 2, "state": "GREEN"})
        self.assertEqual(self.agent.watched, [1, 2, "x", 9])

    async def test_one_reading_per_watched_id(self) -> None:
        self.agent.watch([1, 2, 3])
        self.assertEqual(self.agent.publish_volumes(), 3)

        readings = [m.payload for m in self.sub.drain()]
        self.assertEqual([r["id"] for r in readings], [1, 2, 3])
        for r in readings:
            self.assertGreaterEqual(r["volume"], 0.0)
            self.assertLessEqual(r["volume"], 1.0)

    async def test_max_traffic_forces_high_volumes(self) -> None:
        await self.agent.deliver(topics.CONFIG_TRAFFIC, {"enabled": True})
        self.assertTrue(self.agent.max_traffic)
        for _ in range(200):
            v = self.agent.sample()
            self.assertGreaterEqual(v, self.agent.policy.high_volume_floor)
            self.assertLessEqual(v, 1.0)

        await self.agent.deliver(topics.CONFIG_TRAFFIC, {"enabled": False})
        self.assertFalse(self.agent.max_traffic)

    async def test_nothing_watched_nothing_published(self) -> None:
        self.assertEqual(self.agent.publish_volumes(), 0)
        self.assertEqual(self.sub.drain(), [])

    async def test_seeded_readings_repeat(self) -> None:
        other = VolumeAgent(V2XBus(), random_seed=3)
        self.assertEqual(
            [self.agent.sample() for _ in range(5)],
            [other.sample() for _ in range(5)],
        )

    async def test_timer_broadcasts_periodically(self) -> None:
        agent = VolumeAgent(self.bus, CoordinationPolicy(volume_period_s=0.02), random_seed=3)
        agent.watch([5])
        agent.start()
        try:
            first = await self.sub.get()
            second = await self.sub.get()
        finally:
            await agent.stop()
        self.assertEqual((first.payload["id"], second.payload["id"]), (5, 5))
        self.assertEqual(first.sender, "volume_agent")


if __name__ == "__main__":
    unittest.main()
