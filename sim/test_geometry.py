#!/usr/bin/env python3
"""
Tests for the geodesy, route and physics helpers.
"""

from __future__ import annotations

import unittest

import numpy as np

from sim.geodesy import (
    bearing_deg,
    bearing_difference,
    destination_point,
    haversine_m,
    haversine_to_many,
)
from sim.physics import braking_distance, kmh_to_mps, mps_to_kmh, step_toward
from sim.route import Waypoint, build_path, locate, path_length

_ONE_DEGREE_M = 111_194.93


class GeodesyTests(unittest.TestCase):
    def test_one_degree_along_equator(self) -> None:
        self.assertAlmostEqual(haversine_m(0.0, 0.0, 0.0, 1.0), _ONE_DEGREE_M, delta=0.05)
        self.assertAlmostEqual(haversine_m(0.0, 0.0, 1.0, 0.0), _ONE_DEGREE_M, delta=0.05)
        self.assertEqual(haversine_m(45.4, -75.7, 45.4, -75.7), 0.0)

    def test_vectorised_distance_matches_scalar(self) -> None:
        lats = np.array([0.0, 0.001, 45.0, -10.0])
        lngs = np.array([0.0, 0.002, 7.0, 120.0])
        many = haversine_to_many(0.5, 0.5, lats, lngs)
        for i in range(len(lats)):
            self.assertAlmostEqual(many[i], haversine_m(0.5, 0.5, lats[i], lngs[i]), places=6)

    def test_cardinal_bearings(self) -> None:
        self.assertAlmostEqual(bearing_deg(0, 0, 1, 0), 0.0, places=6)
        self.assertAlmostEqual(bearing_deg(0, 0, 0, 1), 90.0, places=6)
        self.assertAlmostEqual(bearing_deg(0, 0, -1, 0), 180.0, places=6)
        self.assertAlmostEqual(bearing_deg(0, 0, 0, -1), -90.0, places=6)

    def test_bearing_difference_is_normalised(self) -> None:
        self.assertAlmostEqual(bearing_difference(350.0, 10.0), 20.0)
        self.assertAlmostEqual(bearing_difference(-90.0, 90.0), 180.0)
        self.assertAlmostEqual(bearing_difference(0.0, 170.0), 170.0)
        self.assertAlmostEqual(bearing_difference(-170.0, 170.0), 20.0)

    def test_destination_point_round_trip(self) -> None:
        lat, lng = destination_point(45.42, -75.70, 60.0, 1500.0)
        self.assertAlmostEqual(haversine_m(45.42, -75.70, lat, lng), 1500.0, delta=1e-6)
        self.assertAlmostEqual(bearing_deg(45.42, -75.70, lat, lng), 60.0, places=4)

    def test_destination_point_wraps_longitude(self) -> None:
        _, lng = destination_point(0.0, 179.9995, 90.0, 1000.0)
        self.assertLess(lng, -179.99)


class RouteTests(unittest.TestCase):
    def test_collinear_path_distances(self) -> None:
        coords = [(0.0, 0.0), (0.0, 0.005), (0.0, 0.01)]
        path = build_path(coords)
        d1 = haversine_m(0.0, 0.0, 0.0, 0.005)
        d2 = haversine_m(0.0, 0.005, 0.0, 0.01)

        self.assertEqual(len(path), 3)
        self.assertEqual(path[0].cumulative_distance, 0.0)
        self.assertAlmostEqual(path[1].cumulative_distance, d1, places=6)
        self.assertAlmostEqual(path[2].cumulative_distance, d1 + d2, places=6)

    def test_cumulative_distance_is_running_sum(self) -> None:
        coords = [(45.0 + 0.001 * i, -75.0 + 0.0007 * (i % 3)) for i in range(12)]
        path = build_path(coords)
        running = 0.0
        for prev, cur in zip(path, path[1:]):
            running += haversine_m(prev.lat, prev.lng, cur.lat, cur.lng)
            self.assertGreaterEqual(cur.cumulative_distance, prev.cumulative_distance)
            self.assertAlmostEqual(cur.cumulative_distance, running, places=6)

    def test_locate_interpolates_within_segment(self) -> None:
        path = [Waypoint(0.0, 0.0, 0.0), Waypoint(0.0, 1.0, 100.0), Waypoint(1.0, 1.0, 300.0)]
        idx, lat, lng = locate(path, 50.0)
        self.assertEqual(idx, 0)
        self.assertAlmostEqual(lng, 0.5)

        idx, lat, lng = locate(path, 200.0)
        self.assertEqual(idx, 1)
        self.assertAlmostEqual(lat, 0.5)

        idx, lat, lng = locate(path, 300.0)
        self.assertEqual(idx, 1)
        self.assertEqual((lat, lng), (1.0, 1.0))
        self.assertEqual(path_length(path), 300.0)
        self.assertEqual(path_length([]), 0.0)


class PhysicsTests(unittest.TestCase):
    def test_step_toward_never_overshoots(self) -> None:
        self.assertEqual(step_toward(9.5, 10.0, 15.0, 0.05), 10.0)
        self.assertEqual(step_toward(10.4, 10.0, 15.0, 0.05), 10.0)
        self.assertAlmostEqual(step_toward(0.0, 10.0, 15.0, 0.05), 0.75)
        self.assertEqual(step_toward(0.3, 0.0, 15.0, 0.05), 0.0)
        self.assertEqual(step_toward(5.0, 10.0, 15.0, 0.0), 5.0)

    def test_braking_distance(self) -> None:
        self.assertAlmostEqual(braking_distance(20.0, 15.0), 20 * 20 / (2 * 15))
        self.assertAlmostEqual(braking_distance(20.0, 15.0), 13.333, places=3)
        self.assertEqual(braking_distance(0.0, 15.0), 0.0)

    def test_unit_conversion(self) -> None:
        self.assertAlmostEqual(kmh_to_mps(36.0), 10.0)
        self.assertAlmostEqual(mps_to_kmh(10.0), 36.0)
        self.assertEqual(kmh_to_mps(-5.0), 0.0)


if __name__ == "__main__":
    unittest.main()
