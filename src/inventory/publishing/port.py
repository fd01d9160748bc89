"""Event publisher port (abstract interface).

Outbound integration events (``inventory.reserved``, ``inventory.low_stock``
and friends) leave the inventory context through this port. Envelopes are
plain dicts so any transport can carry them.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import UTC, datetime


class InventoryEventType:
    RESERVED = "inventory.reserved"
    RELEASED = "inventory.released"
    FULFILLED = "inventory.fulfilled"
    ADJUSTED = "inventory.adjusted"
    TRANSFERRED = "inventory.transferred"
    LOW_STOCK = "inventory.low_stock"


@dataclass(frozen=True)
class EventEnvelope:
    """What goes on the wire for every outbound event."""

    event_type: str
    data: dict
    service: str = "inventory"
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict:
        return {
            "event_type": self.event_type,
            "data": self.data,
            "timestamp": self.timestamp.isoformat(),
            "service": self.service,
        }


class EventPublisher(ABC):
    """Abstract outbound event publisher."""

    def connect(self) -> None:  # noqa: B027
        """Open the transport. Optional for in-process publishers."""

    def close(self) -> None:  # noqa: B027
        """Close the transport. Optional for in-process publishers."""

    @abstractmethod
    def publish(self, envelope: EventEnvelope) -> None:
        """Send one event. May raise on transport failure."""
        ...
