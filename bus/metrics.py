"""
BusMetrics: Tracks simple statistics for V2XBus message flow.
"""


class BusMetrics:
    """
    Tracks metrics for published, dropped, delivered and rejected messages.

    Attributes:
        published (int): Total number of messages accepted by ``publish``.
        dropped (int): Number of messages dropped due to simulated faults.
        delivered (int): Number of per-subscriber deliveries (one publish
            fans out to every subscription of its topic).
        rejected (int): Number of received payloads that failed schema
            validation and were discarded by the consuming agent.
    """

    def __init__(self):
        """Initialize all counters to zero."""
        self.published = 0
        self.dropped = 0
        self.delivered = 0
        self.rejected = 0

    def report(self) -> dict:
        """
        Return a snapshot of current metrics.

        Returns:
            dict: Dictionary containing 'published', 'dropped', 'delivered'
            and 'rejected' counters.
        """
        return {
            "published": self.published,
            "dropped": self.dropped,
            "delivered": self.delivered,
            "rejected": self.rejected,
        }
