"""
gateway/api.py
==============
FastAPI server through which external actors drive the agents.

Start it with :mod:`main`, or build an app around an existing bus::

    app = create_app(bus, agents=[vehicle, signal, volume])

Endpoints
---------
``POST /route``               publish a ``route.request``
``POST /config/preemption``   toggle adaptive preemption
``POST /config/traffic``      toggle forced-high traffic volume
``GET  /snapshot``            latest telemetry, signals, volumes, error
``GET  /metrics``             bus flow counters

The gateway never touches agent state: it only publishes commands and
reads what :class:`~gateway.monitor.BusMonitor` has observed.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Iterable, Optional

from fastapi import FastAPI, HTTPException

from bus import topics
from bus.schemas import ModeToggle, RouteRequest
from bus.v2x_bus import V2XBus
from gateway.monitor import BusMonitor
from sim.agent import BusAgent

log = logging.getLogger("gateway")


def create_app(
    bus: V2XBus,
    agents: Iterable[BusAgent] = (),
    monitor: Optional[BusMonitor] = None,
) -> FastAPI:
    """Build the gateway app.

    The *agents* and the monitor are started with the app and stopped on
    shutdown, so they share uvicorn's event loop.
    """
    monitor = monitor or BusMonitor(bus)
    agents = list(agents)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        monitor.start()
        for agent in agents:
            agent.start()
        log.info("Gateway up with %d agent(s)", len(agents))
        yield
        for agent in reversed(agents):
            await agent.stop()
        await monitor.stop()

    app = FastAPI(
        title="greenwave",
        description="Emergency-vehicle signal preemption simulator.",
        version="0.1",
        lifespan=lifespan,
    )
    app.state.bus = bus
    app.state.monitor = monitor

    def _publish(topic: str, payload: dict) -> dict:
        msg_id = bus.publish(topic, "gateway", payload)
        if msg_id is None:
            raise HTTPException(status_code=503, detail="message dropped by bus")
        return {"status": "queued", "id": msg_id}

    @app.post("/route")
    async def request_route(req: RouteRequest):
        """Ask the signal agent to route the vehicle."""
        return _publish(topics.ROUTE_REQUEST, req.model_dump())

    @app.post("/config/preemption")
    async def toggle_preemption(toggle: ModeToggle):
        """Switch between adaptive preemption and fixed red-light stops."""
        return _publish(topics.CONFIG_PREEMPTION, toggle.model_dump())

    @app.post("/config/traffic")
    async def toggle_traffic(toggle: ModeToggle):
        """Force simulated volumes into the gridlock range."""
        return _publish(topics.CONFIG_TRAFFIC, toggle.model_dump())

    @app.get("/snapshot")
    def snapshot():
        return monitor.snapshot()

    @app.get("/metrics")
    def metrics():
        return bus.metrics.report()

    @app.get("/")
    def read_root():
        return {"status": "greenwave gateway running", "agents": [a.name for a in agents]}

    return app
