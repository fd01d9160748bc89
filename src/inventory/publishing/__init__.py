"""Outbound event publishing.

``build_publisher()`` picks the adapter from ``EVENT_PUBLISHER``;
``publish_event()`` is the fire-and-forget entry point used by the ledger,
reservation manager and low-stock monitor.
"""

import structlog

from inventory import settings
from inventory.publishing.memory_adapter import InMemoryEventPublisher
from inventory.publishing.port import EventEnvelope, EventPublisher, InventoryEventType

logger = structlog.get_logger(__name__)

__all__ = [
    "EventEnvelope",
    "EventPublisher",
    "InMemoryEventPublisher",
    "InventoryEventType",
    "build_publisher",
    "publish_event",
]


def build_publisher() -> EventPublisher:
    """Construct the configured publisher. The caller owns connect/close."""
    backend = settings.event_publisher_backend()
    if backend == "memory":
        return InMemoryEventPublisher()
    if backend == "redis":
        from inventory.publishing.redis_adapter import RedisEventPublisher

        return RedisEventPublisher(url=settings.redis_url(), channel=settings.event_channel())
    raise ValueError(f"Unknown event publisher: {backend}")


def publish_event(publisher: EventPublisher | None, event_type: str, **data) -> None:
    """Publish an event without letting transport failures reach the caller."""
    if publisher is None:
        return
    envelope = EventEnvelope(event_type=event_type, data=data)
    try:
        publisher.publish(envelope)
    except Exception as exc:
        logger.error("Event publish failed", event_type=event_type, error=str(exc))
