"""
V2XMessage: Data structure representing a message transmitted over the V2XBus.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class V2XMessage:
    """
    Represents a single message sent via the V2XBus.

    Attributes:
        id (str): Unique identifier for the message.
        topic (str): The topic of the message (e.g., 'vehicle.telemetry', 'signal.state').
        sender (str): ID of the sender (e.g., 'vehicle', 'signal_agent').
        payload (dict): Plain JSON-compatible dictionary with the message contents.
        ts (float): Monotonic timestamp (in seconds) when the message was published.
        deliver_at (float): Monotonic time before which receivers must not see the
            message (``ts`` plus the bus' simulated latency).
    """
    id: str
    topic: str
    sender: str
    payload: dict
    ts: float
    deliver_at: float
