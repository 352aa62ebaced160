#!/usr/bin/env python3
"""
sim/physics.py
==============
Low-level kinematics helpers used by :mod:`sim.vehicle_agent` and
:mod:`sim.signal_agent`.

Every speed here is in metres per second.
"""

from __future__ import annotations


def kmh_to_mps(speed_kmh: float) -> float:
    """Convert km/h to m/s, clamping negatives to zero."""
    return max(0.0, float(speed_kmh)) / 3.6


def mps_to_kmh(speed_mps: float) -> float:
    """Convert m/s to km/h."""
    return max(0.0, float(speed_mps)) * 3.6


def step_toward(current: float, target: float, accel: float, dt: float) -> float:
    """Move *current* toward *target* by at most ``accel * dt``.

    The result never overshoots the target and never goes negative.

    Parameters
    ----------
    current : float
        Present speed.
    target : float
        Speed to converge to.
    accel : float
        Magnitude of the acceleration / deceleration (m/s²).
    dt : float
        Time step in seconds.
    """
    target = max(0.0, target)
    step = abs(accel) * max(0.0, dt)
    if current < target:
        return min(target, current + step)
    if current > target:
        return max(target, current - step)
    return current


def braking_distance(speed_mps: float, decel_mps2: float) -> float:
    """Stopping distance assuming constant deceleration.

    Parameters
    ----------
    speed_mps : float
        Current speed in m/s.
    decel_mps2 : float
        Deceleration rate in m/s².

    Returns
    -------
    float
        Distance in metres needed to reach zero speed.
    """
    v = max(0.0, float(speed_mps))
    a = max(0.1, decel_mps2)
    return (v * v) / (2.0 * a)
