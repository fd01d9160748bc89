"""Inventory error taxonomy.

Errors extend protean's exceptions so the FastAPI exception handlers map
them to 400 (validation) and 404 (not found) without extra wiring.
"""

from protean.exceptions import ObjectNotFoundError, ValidationError


class InsufficientStock(ValidationError):
    """No candidate location holds enough available stock."""

    def __init__(self, variant_id, location_id=None, requested=0, available=0):
        self.variant_id = str(variant_id)
        self.location_id = str(location_id) if location_id is not None else None
        self.requested = requested
        self.available = available
        super().__init__({"quantity": [f"Insufficient inventory for variant {self.variant_id}"]})

    def __str__(self):
        return f"Insufficient inventory for variant {self.variant_id}"


class StockItemNotFound(ObjectNotFoundError):
    """No stock row exists for the (variant, location) pair."""

    def __init__(self, variant_id, location_id):
        self.variant_id = str(variant_id)
        self.location_id = str(location_id)
        super().__init__(
            {"inventory_item": [f"No inventory for variant {self.variant_id} at location {self.location_id}"]}
        )

    def __str__(self):
        return f"No inventory for variant {self.variant_id} at location {self.location_id}"
