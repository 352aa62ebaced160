"""
bus — In-memory V2X messaging infrastructure
=============================================

Provides a lightweight asyncio pub/sub transport layer with optional
packet-loss and latency simulation, used by every agent in place of a
real broker.

Modules
-------
message
    :class:`V2XMessage` dataclass.
v2x_bus
    :class:`V2XBus` publish / subscribe transport and :class:`Subscription`.
metrics
    :class:`BusMetrics` counter snapshot.
topics
    Topic name constants.
schemas
    Pydantic payload models and :func:`parse_payload`.
utils
    ID generation, latency wait, fault injection.
"""

from .message import V2XMessage
from .v2x_bus import V2XBus, Subscription
from .metrics import BusMetrics
from .schemas import parse_payload
from .utils   import new_msg_id, wait_until, maybe_drop

__all__ = [
    "V2XMessage",
    "V2XBus",
    "Subscription",
    "BusMetrics",
    "parse_payload",
    "new_msg_id",
    "wait_until",
    "maybe_drop",
]
