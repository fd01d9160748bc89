"""Domain events for the Order aggregate.

OrderCreated, OrderCancelled and OrderFulfilled share their shape with the
cross-domain contracts in shared/events/ordering.py; the Inventory domain
consumes them from the ``ordering::order`` stream.
"""

from protean.fields import DateTime, Float, Identifier, String, Text

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderCreated:
    """A new order was placed."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    line_items = Text(required=True)  # JSON: list of {variant_id, quantity, preferred_location_id}
    created_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderStatusChanged:
    """Financial and/or fulfillment status changed."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_financial_status = String(required=True)
    new_financial_status = String(required=True)
    previous_fulfillment_status = String(required=True)
    new_fulfillment_status = String(required=True)
    comment = Text()
    changed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderCancelled:
    """The order was cancelled (voided or refunded)."""

    __version__ = 1

    order_id = Identifier(required=True)
    reason = String()
    cancelled_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderFulfilled:
    """All items shipped."""

    __version__ = 1

    order_id = Identifier(required=True)
    fulfilled_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderRefunded:
    """Money was returned to the customer."""

    __version__ = 1

    order_id = Identifier(required=True)
    amount = Float(required=True)
    refunded_total = Float(required=True)
    reason = String()
    refunded_at = DateTime(required=True)
