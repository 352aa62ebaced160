#!/usr/bin/env python3
"""
Tests for the HTTP gateway and the bus monitor behind ``/snapshot``.
"""

from __future__ import annotations

import unittest

from fastapi.testclient import TestClient

from bus import topics
from bus.v2x_bus import V2XBus
from gateway.api import create_app
from gateway.monitor import BusMonitor

ROUTE = {"start": {"lat": 45.42, "lng": -75.70}, "end": {"lat": 45.43, "lng": -75.69}}


class GatewayTests(unittest.TestCase):
    def setUp(self) -> None:
        self.bus = V2XBus()
        self.sub = self.bus.subscribe(
            topics.ROUTE_REQUEST, topics.CONFIG_PREEMPTION, topics.CONFIG_TRAFFIC
        )

    def test_route_request_is_published(self) -> None:
        with TestClient(create_app(self.bus)) as client:
            r = client.post("/route", json={**ROUTE, "mode": "ROAMING"})

        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["status"], "queued")
        (msg,) = self.sub.drain()
        self.assertEqual(msg.id, r.json()["id"])
        self.assertEqual(msg.topic, topics.ROUTE_REQUEST)
        self.assertEqual(msg.sender, "gateway")
        self.assertEqual(msg.payload["mode"], "ROAMING")
        self.assertEqual(msg.payload["start"], {"lat": 45.42, "lng": -75.70})

    def test_invalid_route_is_refused(self) -> None:
        with TestClient(create_app(self.bus)) as client:
            r = client.post("/route", json={"start": {"lat": 200.0, "lng": 0.0}, "end": ROUTE["end"]})
        self.assertEqual(r.status_code, 422)
        self.assertEqual(self.sub.drain(), [])

    def test_mode_toggles(self) -> None:
        with TestClient(create_app(self.bus)) as client:
            self.assertEqual(client.post("/config/preemption", json={"enabled": False}).status_code, 200)
            self.assertEqual(client.post("/config/traffic", json={"enabled": True}).status_code, 200)

        msgs = self.sub.drain()
        self.assertEqual(
            [(m.topic, m.payload) for m in msgs],
            [
                (topics.CONFIG_PREEMPTION, {"enabled": False}),
                (topics.CONFIG_TRAFFIC, {"enabled": True}),
            ],
        )

    def test_dropped_publish_is_unavailable(self) -> None:
        bus = V2XBus(drop_rate=1.0)
        with TestClient(create_app(bus)) as client:
            r = client.post("/route", json=ROUTE)
        self.assertEqual(r.status_code, 503)
        self.assertEqual(bus.metrics.dropped, 1)

    def test_metrics_and_snapshot(self) -> None:
        with TestClient(create_app(self.bus)) as client:
            client.post("/config/traffic", json={"enabled": True})
            metrics = client.get("/metrics").json()
            snapshot = client.get("/snapshot").json()
            root = client.get("/").json()

        self.assertEqual(metrics["published"], 1)
        self.assertEqual(set(metrics), {"published", "dropped", "delivered", "rejected"})
        self.assertEqual(snapshot["waypoints"], 0)
        self.assertIsNone(snapshot["telemetry"])
        self.assertEqual(root["agents"], [])

    def test_lifespan_starts_and_stops_monitor(self) -> None:
        monitor = BusMonitor(self.bus)
        app = create_app(self.bus, monitor=monitor)
        with TestClient(app):
            self.assertTrue(monitor.running)
            self.assertEqual(self.bus.subscriber_count(topics.VEHICLE_TELEMETRY), 1)
        self.assertFalse(monitor.running)
        self.assertEqual(self.bus.subscriber_count(topics.VEHICLE_TELEMETRY), 0)


class BusMonitorTests(unittest.IsolatedAsyncioTestCase):
    async def test_tracks_latest_state(self) -> None:
        monitor = BusMonitor(V2XBus())
        path = [
            {"lat": 0.0, "lng": 0.0, "cumulative_distance": 0.0},
            {"lat": 0.0, "lng": 0.001, "cumulative_distance": 111.2},
        ]
        await monitor.deliver(topics.ROUTE_PATH, {"path": path, "intersections": []})
        await monitor.deliver(
            topics.ROUTE_INTERSECTIONS,
            {"intersections": [{"id": 4, "lat": 0.0, "lng": 0.0005, "path_index": 0}]},
        )
        await monitor.deliver(topics.SIGNAL_STATE, {"id": 4, "state": "GREEN"})
        await monitor.deliver(topics.VOLUME_DATA, {"id": 4, "volume": 0.25})
        await monitor.deliver(
            topics.VEHICLE_TELEMETRY,
            {"lat": 0.0, "lng": 0.0002, "speed": 5.0, "path_index": 0, "status": "MOVING"},
        )
        await monitor.deliver(topics.ERROR, {"message": "map query failed", "status_code": 429})

        snap = monitor.snapshot()
        self.assertEqual(snap["waypoints"], 2)
        self.assertEqual(snap["signals"], {"4": "GREEN"})
        self.assertEqual(snap["volumes"], {"4": 0.25})
        self.assertEqual(snap["telemetry"]["status"], "MOVING")
        self.assertEqual(snap["last_error"], {"message": "map query failed", "status_code": 429})

        await monitor.deliver(topics.ROUTE_PATH, {"path": path})
        snap = monitor.snapshot()
        self.assertEqual(snap["signals"], {})
        self.assertEqual(snap["volumes"], {})
        self.assertIsNone(snap["last_error"])


if __name__ == "__main__":
    unittest.main()
