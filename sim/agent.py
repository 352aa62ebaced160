#!/usr/bin/env python3
"""
sim/agent.py
============
Common lifecycle for the bus-connected agents.

Each agent owns one :class:`~bus.v2x_bus.Subscription` covering every
topic it consumes, a single dispatcher task that validates and routes
incoming payloads, and any number of fixed-period timer tasks.  Message
arrival and timers are the only suspension points, so an agent's state is
only ever touched by its own handlers.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

from bus.schemas import parse_payload
from bus.v2x_bus import Subscription, V2XBus

log = logging.getLogger("agent")

Handler = Callable[[Any], Any]


class BusAgent:
    """Base class wiring handlers and timers to a :class:`V2XBus`.

    Subclasses register handlers with :meth:`on` and timers with
    :meth:`every` in their constructor, then the owner calls
    :meth:`start` from inside a running event loop.

    Parameters
    ----------
    bus : V2XBus
        Shared transport.
    name : str
        Sender id used for every publish.
    """

    def __init__(self, bus: V2XBus, name: str) -> None:
        self.bus = bus
        self.name = name
        self._handlers: Dict[str, Handler] = {}
        self._timers: List[Tuple[float, Callable[[], Any]]] = []
        self._sub: Optional[Subscription] = None
        self._tasks: List[asyncio.Task] = []
        self._running = False

    # ── Registration ──────────────────────────────────────────────────────────

    def on(self, topic: str, handler: Handler) -> None:
        """Route validated payloads of *topic* to *handler*."""
        self._handlers[topic] = handler

    def every(self, period_s: float, fn: Callable[[], Any]) -> None:
        """Call *fn* every *period_s* seconds while running."""
        self._timers.append((period_s, fn))

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        """Subscribe and spawn the dispatcher and timer tasks."""
        if self._running:
            return
        self._running = True
        if self._handlers:
            self._sub = self.bus.subscribe(*self._handlers)
            self._tasks.append(
                asyncio.create_task(self._dispatch(self._sub), name=f"{self.name}:inbox")
            )
        for period_s, fn in self._timers:
            self._tasks.append(
                asyncio.create_task(self._periodic(period_s, fn), name=f"{self.name}:timer")
            )
        log.info("%s started topics=%d timers=%d", self.name, len(self._handlers), len(self._timers))

    async def stop(self) -> None:
        """Cancel every task and detach from the bus."""
        self._running = False
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()
        if self._sub is not None:
            self._sub.close()
            self._sub = None
        await self.on_stop()
        log.info("%s stopped", self.name)

    async def on_stop(self) -> None:
        """Hook for subclasses owning extra tasks."""

    # ── Messaging ─────────────────────────────────────────────────────────────

    def publish(self, topic: str, payload: dict) -> Optional[str]:
        return self.bus.publish(topic, self.name, payload)

    async def deliver(self, topic: str, payload: Any) -> bool:
        """Validate *payload* for *topic* and run its handler.

        Malformed payloads are counted on the bus and dropped.

        Returns
        -------
        bool
            ``True`` when a handler ran.
        """
        handler = self._handlers.get(topic)
        if handler is None:
            return False
        model = parse_payload(topic, payload)
        if model is None:
            self.bus.report_rejected(topic)
            return False
        result = handler(model)
        if inspect.isawaitable(result):
            await result
        return True

    # ── Background loops ──────────────────────────────────────────────────────

    async def _dispatch(self, sub: Subscription) -> None:
        while True:
            msg = await sub.get()
            try:
                await self.deliver(msg.topic, msg.payload)
            except Exception:
                log.exception("%s handler error topic=%s", self.name, msg.topic)

    async def _periodic(self, period_s: float, fn: Callable[[], Any]) -> None:
        while True:
            t0 = time.perf_counter()
            try:
                result = fn()
                if inspect.isawaitable(result):
                    await result
            except Exception:
                log.exception("%s timer error", self.name)
            await asyncio.sleep(max(0.0, period_s - (time.perf_counter() - t0)))
