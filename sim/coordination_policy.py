#!/usr/bin/env python3
"""
sim/coordination_policy.py
==========================
Tunable physics, discovery and preemption parameters for the agents.
Every constant lives in the frozen :class:`CoordinationPolicy` dataclass
so that experiments can swap policies without touching code.

Also provides two stateless helpers:

* :func:`cruise_speed_for_mode`: speed limit for a route request mode.
* :func:`lookahead_window_s`: volume-scaled preemption window.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CoordinationPolicy:
    """Immutable bag of every tunable agent parameter.

    Groups: vehicle kinematics, route modes, intersection discovery,
    adaptive preemption, fixed-mode clearing, traffic volume.
    """

    # ── Vehicle kinematics ────────────────────────────────────────────────
    accel_mps2: float = 15.0
    """Acceleration and deceleration magnitude of the vehicle."""

    default_max_speed_mps: float = 60.0
    """Cruising speed used when a run starts without a speed limit."""

    clearing_speed_threshold_mps: float = 1.0
    """Below this speed a vehicle told to stop reports CLEARING."""

    # ── Route modes ───────────────────────────────────────────────────────
    roaming_speed_mps: float = 13.9
    """Cruising speed for ``ROAMING`` requests (≈ 50 km/h)."""

    emergency_speed_mps: float = 33.3
    """Cruising speed for ``EMERGENCY`` requests and after a clearing (≈ 120 km/h)."""

    # ── Intersection discovery ────────────────────────────────────────────
    chunk_distance_m: float = 1000.0
    """Path length covered by one map-data query."""

    bbox_margin_m: float = 220.0
    """Padding added on every side of a chunk's bounding box."""

    match_threshold_m: float = 12.0
    """A signal node further than this from the path is not on the route."""

    dedup_threshold_m: float = 20.0
    """Signal nodes closer than this belong to the same intersection."""

    perpendicular_floor_deg: float = 45.0
    """Minimum perpendicularity score for a way to count as the cross road."""

    # ── Adaptive preemption ───────────────────────────────────────────────
    lookahead_base_s: float = 10.0
    """ETA window below which a signal is turned green (empty road)."""

    lookahead_volume_s: float = 5.0
    """Extra window per unit of traffic volume. ``0`` gives a fixed window."""

    min_eta_speed_mps: float = 1.0
    """Speed floor used when computing ETAs and braking distances."""

    # ── Fixed-mode clearing ───────────────────────────────────────────────
    stop_decel_mps2: float = 15.0
    """Deceleration assumed for the braking-distance check."""

    stop_margin_m: float = 30.0
    """Extra distance ahead of the braking distance that triggers a stop."""

    clearing_min_s: float = 2.0
    """Shortest wait at a red light before resuming."""

    clearing_max_s: float = 7.0
    """Longest wait at a red light before resuming."""

    # ── Traffic volume ────────────────────────────────────────────────────
    volume_period_s: float = 2.0
    """Interval between volume broadcasts."""

    high_volume_floor: float = 0.8
    """Lower bound of simulated volume in forced-high mode."""


MODE_ROAMING = "ROAMING"
MODE_EMERGENCY = "EMERGENCY"


def cruise_speed_for_mode(mode: str, policy: CoordinationPolicy) -> float:
    """Speed limit sent with ``vehicle.init`` for a request *mode*.

    Unknown modes are treated as emergencies.
    """
    if str(mode).upper() == MODE_ROAMING:
        return policy.roaming_speed_mps
    return policy.emergency_speed_mps


def lookahead_window_s(volume: float, policy: CoordinationPolicy) -> float:
    """Preemption window for an intersection with traffic *volume*.

    Heavier queues take longer to dissipate, so the light must turn green
    earlier.
    """
    vol = min(1.0, max(0.0, float(volume)))
    return policy.lookahead_base_s + vol * policy.lookahead_volume_s
