"""
Utility functions for V2XBus:
    - ID generation
    - latency simulation
    - fault injection (packet drop)
"""

import asyncio
import random
import time
import uuid
import logging
from typing import Optional

log = logging.getLogger(__name__)


# ---------- ID Helpers ----------
def new_msg_id() -> str:
    """
    Generate a globally unique message ID.

    Returns:
        str: UUID string for a new message.
    """
    return str(uuid.uuid4())


# ---------- Latency / Timing ----------
async def wait_until(deliver_at: float):
    """
    Sleep until the monotonic clock reaches *deliver_at*.

    Used by subscribers to honour a message's simulated latency without
    delaying the messages queued behind it any further.

    Args:
        deliver_at (float): Target value of :func:`time.monotonic`.
    """
    remaining = deliver_at - time.monotonic()
    if remaining > 0:
        await asyncio.sleep(remaining)


# ---------- Fault / Packet Helpers ----------
def maybe_drop(drop_rate: float, rng: Optional[random.Random] = None) -> bool:
    """
    Decide whether to randomly drop a packet based on the drop rate.

    Args:
        drop_rate (float): Probability (0.0–1.0) that the packet will be dropped.
        rng (random.Random, optional): Source of randomness, for seeded runs.

    Returns:
        bool: True if the packet should be dropped, False otherwise.
    """
    if drop_rate <= 0.0:
        return False
    result = (rng or random).random() < drop_rate
    if result:
        log.debug("Packet dropped by utils.maybe_drop")
    return result
