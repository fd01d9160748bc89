"""Cross-domain event contracts for Ordering domain events.

These classes define the event shape for consumption by other domains
(the Inventory domain reserves, releases and fulfils stock in reaction to
them). They are registered as external events via
domain.register_external_event() with matching __type__ strings so
Protean's stream deserialization works correctly.

The source-of-truth events are in src/ordering/order/events.py.
"""

from protean.core.event import BaseEvent
from protean.fields import DateTime, Identifier, String, Text


class OrderCreated(BaseEvent):
    """A new order was placed.

    Consumed by the Inventory domain to reserve stock for each line item.
    """

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    line_items = Text(required=True)  # JSON list of {variant_id, quantity, preferred_location_id}
    created_at = DateTime(required=True)


class OrderCancelled(BaseEvent):
    """An order was cancelled; its reservations should be released."""

    __version__ = 1

    order_id = Identifier(required=True)
    reason = String()
    cancelled_at = DateTime(required=True)


class OrderFulfilled(BaseEvent):
    """An order shipped in full; its reservations become permanent departures."""

    __version__ = 1

    order_id = Identifier(required=True)
    fulfilled_at = DateTime(required=True)
