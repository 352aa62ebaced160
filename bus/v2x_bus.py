"""
V2XBus: In-memory pub/sub system connecting the vehicle, signal and volume agents.

Supports:
    - Topic-based messaging with any number of subscribers per topic
    - One subscription may cover several topics; it then receives them
      interleaved in global publish order
    - Packet drop and latency simulation
    - Logging of events and flow metrics

Intended usage:
    - Each agent subscribes once to every topic it consumes and awaits
      :meth:`Subscription.get` from its own dispatcher task
    - Agents publish plain dict payloads; receivers validate them
      against :mod:`bus.schemas`
"""

import asyncio
import copy
import random
import time
import logging
from typing import Dict, List, Optional, Tuple

from .message import V2XMessage
from .metrics import BusMetrics
from .utils import maybe_drop, new_msg_id, wait_until

log = logging.getLogger(__name__)


class Subscription:
    """
    Receiving end of one or more topics for one consumer.

    Messages are queued in publish order; :meth:`get` additionally waits
    for each message's simulated latency to elapse.
    """

    def __init__(self, bus: "V2XBus", topics: Tuple[str, ...]):
        self.topics = topics
        self._bus = bus
        self._queue: "asyncio.Queue[V2XMessage]" = asyncio.Queue()

    def _deliver(self, msg: V2XMessage):
        self._queue.put_nowait(msg)

    async def get(self) -> V2XMessage:
        """
        Wait for the next message on any subscribed topic.

        Returns:
            V2XMessage: The oldest undelivered message.
        """
        msg = await self._queue.get()
        await wait_until(msg.deliver_at)
        return msg

    def drain(self) -> List[V2XMessage]:
        """
        Retrieve and clear every queued message without waiting.

        Simulated latency is ignored; this is meant for inspection and tests.

        Returns:
            List[V2XMessage]: Messages in publish order.
        """
        msgs = []
        while not self._queue.empty():
            msgs.append(self._queue.get_nowait())
        return msgs

    def pending(self) -> int:
        """Number of messages queued and not yet consumed."""
        return self._queue.qsize()

    def close(self):
        """Detach from the bus; no further messages are queued."""
        self._bus.unsubscribe(self)


class V2XBus:
    """
    Transport layer for vehicle-to-infrastructure messages.

    Attributes:
        drop_rate (float): Probability of randomly dropping a published message.
        latency_ms (int): Simulated latency in milliseconds.
        metrics (BusMetrics): Flow counters.
    """

    def __init__(self, drop_rate: float = 0.0, latency_ms: int = 0, seed: Optional[int] = None):
        """
        Initialize a V2XBus instance.

        Args:
            drop_rate (float): Chance of randomly dropping a message (0.0 to 1.0).
            latency_ms (int): Optional simulated latency in milliseconds for published messages.
            seed (int, optional): Seed for the drop decision, for reproducible runs.
        """
        self._subscriptions: Dict[str, List[Subscription]] = {}
        self._rng = random.Random(seed)
        self.drop_rate = drop_rate
        self.latency_ms = latency_ms
        self.metrics = BusMetrics()

    def subscribe(self, topic: str, *more_topics: str) -> Subscription:
        """
        Register a new consumer for one or more topics.

        Only messages published after this call are delivered to it.

        Args:
            topic (str): The topic name (e.g., 'vehicle.telemetry').
            *more_topics (str): Further topics sharing the same queue.

        Returns:
            Subscription: The receiving end for this consumer.
        """
        topics = tuple(dict.fromkeys((topic,) + more_topics))
        sub = Subscription(self, topics)
        for t in topics:
            self._subscriptions.setdefault(t, []).append(sub)
        log.debug("subscribe topics=%s", ",".join(topics))
        return sub

    def unsubscribe(self, sub: Subscription):
        """
        Remove a subscription from every topic it covers.

        Args:
            sub (Subscription): Subscription previously returned by :meth:`subscribe`.
        """
        for t in sub.topics:
            subs = self._subscriptions.get(t, [])
            if sub in subs:
                subs.remove(sub)

    def publish(self, topic: str, sender: str, payload: dict) -> Optional[str]:
        """
        Publish a message to a specific topic.

        The payload is copied once, so later mutation by the publisher is
        never observed by receivers.

        Args:
            topic (str): The topic name (e.g., 'route.path', 'signal.state').
            sender (str): ID of the sender (e.g., 'vehicle', 'signal_agent').
            payload (dict): JSON-compatible dictionary representing the message contents.

        Returns:
            Optional[str]: The unique message ID if successfully published, or None if dropped.
        """
        if maybe_drop(self.drop_rate, self._rng):
            self.metrics.dropped += 1
            log.warning("packet_dropped topic=%s sender=%s", topic, sender)
            return None

        ts = time.monotonic()
        msg = V2XMessage(
            id=new_msg_id(),
            topic=topic,
            sender=sender,
            payload=copy.deepcopy(payload),
            ts=ts,
            deliver_at=ts + self.latency_ms / 1000.0,
        )
        subs = list(self._subscriptions.get(topic, ()))
        for sub in subs:
            sub._deliver(msg)
        self.metrics.published += 1
        self.metrics.delivered += len(subs)

        log.debug("publish topic=%s sender=%s id=%s fanout=%d", topic, sender, msg.id, len(subs))
        return msg.id

    def report_rejected(self, topic: str):
        """
        Count a payload on *topic* that a consumer discarded as malformed.

        Args:
            topic (str): Topic the malformed payload arrived on.
        """
        self.metrics.rejected += 1
        log.debug("payload_rejected topic=%s", topic)

    def subscriber_count(self, topic: str) -> int:
        """Number of live subscriptions on *topic*."""
        return len(self._subscriptions.get(topic, ()))
