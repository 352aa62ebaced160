#!/usr/bin/env python3
"""
Tests for the V2X bus: fan-out, ordering, fault injection and payload
validation.
"""

import asyncio
import time
import unittest

from bus import topics
from bus.schemas import RouteRequest, Telemetry, parse_payload
from bus.utils import maybe_drop
from bus.v2x_bus import V2XBus


class V2XBusTests(unittest.IsolatedAsyncioTestCase):
    async def test_fanout_to_every_subscriber(self) -> None:
        bus = V2XBus()
        a = bus.subscribe(topics.SIGNAL_STATE)
        b = bus.subscribe(topics.SIGNAL_STATE)
        other = bus.subscribe(topics.VOLUME_DATA)

        msg_id = bus.publish(topics.SIGNAL_STATE, "signal_agent", {"id": 1, "state": "GREEN"})

        self.assertIsNotNone(msg_id)
        got_a, got_b = await a.get(), await b.get()
        self.assertEqual(got_a.id, msg_id)
        self.assertEqual(got_b.payload, {"id": 1, "state": "GREEN"})
        self.assertEqual(got_a.sender, "signal_agent")
        self.assertEqual(other.pending(), 0)
        self.assertEqual(bus.metrics.report(), {"published": 1, "dropped": 0, "delivered": 2, "rejected": 0})

    async def test_multi_topic_subscription_keeps_publish_order(self) -> None:
        bus = V2XBus()
        sub = bus.subscribe(topics.ROUTE_PATH, topics.ROUTE_INTERSECTIONS, topics.ROUTE_PATH)
        self.assertEqual(sub.topics, (topics.ROUTE_PATH, topics.ROUTE_INTERSECTIONS))

        bus.publish(topics.ROUTE_PATH, "s", {"n": 1})
        bus.publish(topics.ROUTE_INTERSECTIONS, "s", {"n": 2})
        bus.publish(topics.ROUTE_PATH, "s", {"n": 3})

        received = [(await sub.get()).payload["n"] for _ in range(3)]
        self.assertEqual(received, [1, 2, 3])

    async def test_late_subscriber_misses_earlier_messages(self) -> None:
        bus = V2XBus()
        bus.publish(topics.ERROR, "s", {"message": "x", "status_code": 500})
        sub = bus.subscribe(topics.ERROR)
        self.assertEqual(sub.drain(), [])
        self.assertEqual(bus.metrics.delivered, 0)

    async def test_payload_is_copied_on_publish(self) -> None:
        bus = V2XBus()
        sub = bus.subscribe(topics.ROUTE_INTERSECTIONS)
        payload = {"intersections": [{"id": 1}]}
        bus.publish(topics.ROUTE_INTERSECTIONS, "s", payload)
        payload["intersections"].append({"id": 2})

        (msg,) = sub.drain()
        self.assertEqual(msg.payload, {"intersections": [{"id": 1}]})

    async def test_full_drop_rate(self) -> None:
        bus = V2XBus(drop_rate=1.0, seed=4)
        sub = bus.subscribe(topics.VEHICLE_SPEED)
        self.assertIsNone(bus.publish(topics.VEHICLE_SPEED, "s", {"speed": 0.0}))
        self.assertEqual(sub.pending(), 0)
        self.assertEqual(bus.metrics.dropped, 1)
        self.assertEqual(bus.metrics.published, 0)

    async def test_latency_delays_delivery(self) -> None:
        bus = V2XBus(latency_ms=40)
        sub = bus.subscribe(topics.VEHICLE_SPEED)
        t0 = time.monotonic()
        bus.publish(topics.VEHICLE_SPEED, "s", {"speed": 1.0})
        msg = await asyncio.wait_for(sub.get(), 1.0)
        self.assertGreaterEqual(time.monotonic() - t0, 0.035)
        self.assertAlmostEqual(msg.deliver_at - msg.ts, 0.04)

    async def test_unsubscribe(self) -> None:
        bus = V2XBus()
        sub = bus.subscribe(topics.SIGNAL_STATE, topics.VOLUME_DATA)
        self.assertEqual(bus.subscriber_count(topics.VOLUME_DATA), 1)
        sub.close()
        self.assertEqual(bus.subscriber_count(topics.SIGNAL_STATE), 0)
        self.assertEqual(bus.subscriber_count(topics.VOLUME_DATA), 0)
        bus.publish(topics.VOLUME_DATA, "s", {"id": 1, "volume": 0.5})
        self.assertEqual(sub.pending(), 0)

    async def test_report_rejected(self) -> None:
        bus = V2XBus()
        bus.report_rejected(topics.VEHICLE_TELEMETRY)
        self.assertEqual(bus.metrics.rejected, 1)


class MaybeDropTests(unittest.TestCase):
    def test_bounds(self) -> None:
        self.assertFalse(maybe_drop(0.0))
        self.assertTrue(maybe_drop(1.0))

    def test_seeded(self) -> None:
        import random

        a = [maybe_drop(0.5, random.Random(9)) for _ in range(3)]
        b = [maybe_drop(0.5, random.Random(9)) for _ in range(3)]
        self.assertEqual(a, b)


class SchemaTests(unittest.TestCase):
    def test_valid_payload(self) -> None:
        req = parse_payload(topics.ROUTE_REQUEST, {"start": {"lat": 45.4, "lng": -75.7}, "end": {"lat": 45.5, "lng": -75.6}})
        self.assertIsInstance(req, RouteRequest)
        self.assertEqual(req.mode, "EMERGENCY")

    def test_out_of_range_and_missing_fields(self) -> None:
        self.assertIsNone(parse_payload(topics.VEHICLE_TELEMETRY, {"lat": 95.0, "lng": 0.0, "speed": 1.0, "path_index": 0, "status": "MOVING"}))
        self.assertIsNone(parse_payload(topics.VEHICLE_TELEMETRY, {"lat": 0.0, "lng": 0.0, "speed": -1.0, "path_index": 0, "status": "MOVING"}))
        self.assertIsNone(parse_payload(topics.SIGNAL_STATE, {"id": 1, "state": "AMBER"}))
        self.assertIsNone(parse_payload(topics.VOLUME_DATA, {"id": 1, "volume": 1.5}))
        self.assertIsNone(parse_payload(topics.ERROR, {"message": "x"}))
        self.assertIsNone(parse_payload(topics.VEHICLE_INIT, None))

    def test_unknown_topic(self) -> None:
        self.assertIsNone(parse_payload("no.such.topic", {}))

    def test_telemetry_statuses(self) -> None:
        for status in ("MOVING", "CLEARING", "ARRIVED", "IDLE"):
            t = parse_payload(topics.VEHICLE_TELEMETRY, {"lat": 0.0, "lng": 0.0, "speed": 0.0, "path_index": 0, "status": status})
            self.assertIsInstance(t, Telemetry)

    def test_intersection_ids_keep_their_type(self) -> None:
        batch = parse_payload(topics.ROUTE_INTERSECTIONS, {"intersections": [
            {"id": 12, "lat": 0.0, "lng": 0.0, "path_index": 3},
            {"id": "n-7", "lat": 0.0, "lng": 0.0, "path_index": 4},
        ]})
        self.assertEqual([i.id for i in batch.intersections], [12, "n-7"])
        self.assertEqual(batch.intersections[0].state, "RED")


if __name__ == "__main__":
    unittest.main()
