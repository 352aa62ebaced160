"""
sim — Agents and the geometry they share
========================================

Modules
-------
geodesy
    Great-circle distance, bearing and destination point.
physics
    Speed stepping and braking-distance helpers.
coordination_policy
    :class:`CoordinationPolicy` tunable constants.
route
    :class:`Waypoint` path model.
intersections
    :class:`Intersection` model and route-scan geometry.
agent
    :class:`BusAgent` lifecycle shared by the agents.
vehicle_agent
    :class:`VehicleAgent` vehicle physics.
signal_agent
    :class:`SignalAgent` route lifecycle and preemption.
volume_agent
    :class:`VolumeAgent` simulated traffic load.
"""
