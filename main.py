#!/usr/bin/env python3
"""
main.py
=======
Boots the bus, the three agents and the HTTP gateway in one process.

Every value in :mod:`config` can be overridden through an environment
variable of the same name prefixed with ``GREENWAVE_``, e.g.::

    GREENWAVE_OSRM_URL=http://osrm:5000 GREENWAVE_API_PORT=9000 python main.py

``GREENWAVE_OFFLINE=1`` swaps the routing and map-data services for the
straight-line / empty stand-ins in :mod:`services.mock`.
"""

import os
import logging

import uvicorn

import config
from logging_setup import setup_logging
from bus.v2x_bus import V2XBus
from gateway.api import create_app
from services.base import MapDataService, RoutingService
from services.http import HTTPClient
from services.mapdata import OverpassMapService
from services.mock import StaticMapService, StraightLineRoutingService
from services.routing import OSRMRoutingService
from sim.coordination_policy import CoordinationPolicy
from sim.signal_agent import SignalAgent
from sim.vehicle_agent import VehicleAgent
from sim.volume_agent import VolumeAgent


def _env(name: str, default, cast=str):
    raw = os.environ.get(f"GREENWAVE_{name}")
    if raw is None or raw == "":
        return default
    if cast is bool:
        return raw.strip().lower() in ("1", "true", "yes", "on")
    return cast(raw)


def build_services(offline: bool):
    """Routing and map-data clients, real or offline."""
    if offline:
        routing: RoutingService = StraightLineRoutingService()
        mapdata: MapDataService = StaticMapService()
        return routing, mapdata

    http = HTTPClient(
        user_agent=_env("HTTP_USER_AGENT", config.HTTP_USER_AGENT),
        timeout_s=_env("HTTP_TIMEOUT_S", config.HTTP_TIMEOUT_S, int),
    )
    routing = OSRMRoutingService(_env("OSRM_URL", config.OSRM_URL), http)
    mapdata = OverpassMapService(_env("OVERPASS_URL", config.OVERPASS_URL), http)
    return routing, mapdata


def main():
    level_name = _env("LOG_LEVEL", config.LOG_LEVEL).upper()
    setup_logging(getattr(logging, level_name, logging.INFO))
    log = logging.getLogger("main")

    seed = _env("RANDOM_SEED", config.DEFAULT_RANDOM_SEED, int) or None
    offline = _env("OFFLINE", False, bool)
    policy = CoordinationPolicy(
        volume_period_s=_env("VOLUME_PERIOD_S", config.DEFAULT_VOLUME_PERIOD_S, float),
    )

    bus = V2XBus(
        drop_rate=_env("DROP_RATE", config.DEFAULT_DROP_RATE, float),
        latency_ms=_env("LATENCY_MS", config.DEFAULT_LATENCY_MS, int),
        seed=seed,
    )
    routing, mapdata = build_services(offline)

    agents = [
        VehicleAgent(bus, policy, tick_rate_hz=_env("TICK_RATE_HZ", config.DEFAULT_TICK_RATE_HZ, float)),
        SignalAgent(bus, routing, mapdata, policy, random_seed=seed),
        VolumeAgent(bus, policy, random_seed=seed),
    ]
    app = create_app(bus, agents)

    host = _env("API_HOST", config.API_HOST)
    port = _env("API_PORT", config.API_PORT, int)
    log.info("Starting greenwave on http://%s:%d (offline=%s)", host, port, offline)
    uvicorn.run(app, host=host, port=port, log_config=None)


if __name__ == "__main__":
    main()
