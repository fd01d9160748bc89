"""InventoryReservation aggregate (CQRS) — a claim on committed stock.

One reservation ties one order to one (variant, location) pair. It leaves
ACTIVE exactly once, either RELEASED (cancellation) or FULFILLED (shipment).
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String

from inventory.domain import inventory


class ReservationStatus(Enum):
    ACTIVE = "ACTIVE"
    RELEASED = "RELEASED"
    FULFILLED = "FULFILLED"


@inventory.aggregate
class InventoryReservation:
    order_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    location_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    status = String(choices=ReservationStatus, default=ReservationStatus.ACTIVE.value)
    created_at = DateTime()
    released_at = DateTime()
    fulfilled_at = DateTime()

    @classmethod
    def create(cls, order_id, variant_id, location_id, quantity):
        return cls(
            order_id=str(order_id),
            variant_id=str(variant_id),
            location_id=str(location_id),
            quantity=quantity,
            status=ReservationStatus.ACTIVE.value,
            created_at=datetime.now(UTC),
        )

    @property
    def is_active(self) -> bool:
        return self.status == ReservationStatus.ACTIVE.value

    def _assert_active(self):
        if not self.is_active:
            raise ValidationError({"status": [f"Reservation is already {self.status}"]})

    def release(self):
        self._assert_active()
        self.status = ReservationStatus.RELEASED.value
        self.released_at = datetime.now(UTC)

    def fulfill(self):
        self._assert_active()
        self.status = ReservationStatus.FULFILLED.value
        self.fulfilled_at = datetime.now(UTC)

    def summary(self) -> dict:
        return {
            "reservation_id": str(self.id),
            "order_id": str(self.order_id),
            "variant_id": str(self.variant_id),
            "location_id": str(self.location_id),
            "quantity": self.quantity,
            "status": self.status,
        }
