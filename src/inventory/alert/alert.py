"""LowStockAlert aggregate (CQRS) — raised when available stock runs low.

ACTIVE alerts are resolved by the monitor once stock recovers, or dismissed
by an operator. Both end states are terminal.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String

from inventory.domain import inventory


class AlertStatus(Enum):
    ACTIVE = "ACTIVE"
    RESOLVED = "RESOLVED"
    DISMISSED = "DISMISSED"


@inventory.aggregate
class LowStockAlert:
    store_id = Identifier()
    variant_id = Identifier(required=True)
    location_id = Identifier(required=True)
    current_stock = Integer(default=0)
    threshold = Integer(default=0)
    status = String(choices=AlertStatus, default=AlertStatus.ACTIVE.value)
    created_at = DateTime()
    resolved_at = DateTime()

    @classmethod
    def raise_for(cls, variant_id, location_id, current_stock, threshold, store_id=None):
        return cls(
            store_id=store_id,
            variant_id=str(variant_id),
            location_id=str(location_id),
            current_stock=current_stock,
            threshold=threshold,
            status=AlertStatus.ACTIVE.value,
            created_at=datetime.now(UTC),
        )

    def _close(self, status):
        if self.status != AlertStatus.ACTIVE.value:
            raise ValidationError({"status": [f"Alert is already {self.status}"]})
        self.status = status.value
        self.resolved_at = datetime.now(UTC)

    def resolve(self, current_stock=None):
        if current_stock is not None:
            self.current_stock = current_stock
        self._close(AlertStatus.RESOLVED)

    def dismiss(self):
        self._close(AlertStatus.DISMISSED)
