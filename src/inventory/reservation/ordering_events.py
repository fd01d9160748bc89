"""Inbound cross-domain event handler — Inventory reacts to Ordering events.

- OrderCreated → reserve every line item; on shortage release whatever
  subset was reserved so the order holds nothing
- OrderCancelled → release the order's ACTIVE reservations
- OrderFulfilled → fulfil the order's ACTIVE reservations

Cross-domain events are imported from shared.events.ordering and registered
as external events via inventory.register_external_event().
"""

import json

import structlog
from protean.utils.mixins import handle
from shared.events.ordering import OrderCancelled, OrderCreated, OrderFulfilled

from inventory.domain import inventory
from inventory.errors import InsufficientStock
from inventory.reservation.reservation import InventoryReservation
from inventory.runtime import current_runtime

logger = structlog.get_logger(__name__)

# Register external events so Protean can deserialize them
inventory.register_external_event(OrderCreated, "Ordering.OrderCreated.v1")
inventory.register_external_event(OrderCancelled, "Ordering.OrderCancelled.v1")
inventory.register_external_event(OrderFulfilled, "Ordering.OrderFulfilled.v1")


@inventory.event_handler(part_of=InventoryReservation, stream_category="ordering::order")
class OrderingReservationEventHandler:
    """Keeps reservations in step with the order lifecycle."""

    @handle(OrderCreated)
    def on_order_created(self, event: OrderCreated) -> None:
        items = json.loads(event.line_items) if isinstance(event.line_items, str) else event.line_items
        if not items:
            logger.info("Order has no line items to reserve", order_id=str(event.order_id))
            return

        reservations = current_runtime().reservations
        try:
            reservations.reserve_for_order(event.order_id, items)
        except InsufficientStock as exc:
            reservations.release_for_order(event.order_id)
            logger.error(
                "Could not reserve inventory for order",
                order_id=str(event.order_id),
                variant_id=exc.variant_id,
                requested=exc.requested,
            )

    @handle(OrderCancelled)
    def on_order_cancelled(self, event: OrderCancelled) -> None:
        logger.info(
            "Releasing reservations for cancelled order",
            order_id=str(event.order_id),
            reason=event.reason,
        )
        current_runtime().reservations.release_for_order(event.order_id)

    @handle(OrderFulfilled)
    def on_order_fulfilled(self, event: OrderFulfilled) -> None:
        result = current_runtime().reservations.fulfill_for_order(event.order_id)
        logger.info("Fulfilled reservations for order", order_id=str(event.order_id), status=result.status)
