"""InventoryLedger — the only writer of stock counters and adjustments.

Invariants:
- ``available`` never drops below zero
- ``committed`` never drops below zero; release/fulfil clamp and log
- every change to ``available`` outside reservations leaves an adjustment row
- a transfer applies both legs or neither
"""

import structlog
from protean.exceptions import ValidationError

from inventory.errors import InsufficientStock, StockItemNotFound
from inventory.ledger.port import (
    AdjustmentReason,
    AdjustmentRequest,
    StockRecord,
    StockStore,
)
from inventory.publishing import EventPublisher, InventoryEventType, publish_event

logger = structlog.get_logger(__name__)

DEFAULT_PAGE_SIZE = 50


def _require_positive(quantity, field="quantity"):
    if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity <= 0:
        raise ValidationError({field: ["Quantity must be a positive integer"]})


def paginate(items, page=1, limit=DEFAULT_PAGE_SIZE):
    """Slice a list into a page and describe it."""
    page = max(1, int(page or 1))
    limit = max(1, int(limit or DEFAULT_PAGE_SIZE))
    start = (page - 1) * limit
    return {
        "items": items[start : start + limit],
        "total": len(items),
        "page": page,
        "limit": limit,
    }


class InventoryLedger:
    def __init__(self, store: StockStore, publisher: EventPublisher | None = None) -> None:
        self.store = store
        self.publisher = publisher

    # ------------------------------------------------------------------
    # Reservation primitives
    # ------------------------------------------------------------------
    def reserve(self, variant_id, location_id, quantity) -> StockRecord:
        """Move stock from available to committed, or raise InsufficientStock."""
        _require_positive(quantity)
        record = self.store.try_reserve(variant_id, location_id, quantity)
        if record is None:
            current = self.store.get(variant_id, location_id)
            raise InsufficientStock(
                variant_id,
                location_id,
                requested=quantity,
                available=current.available if current else 0,
            )
        logger.debug(
            "Stock reserved",
            variant_id=str(variant_id),
            location_id=str(location_id),
            quantity=quantity,
            available=record.available,
            committed=record.committed,
        )
        return record

    def release(self, variant_id, location_id, quantity) -> StockRecord:
        """Return committed stock to available."""
        _require_positive(quantity)
        outcome = self.store.release(variant_id, location_id, quantity)
        if outcome is None:
            raise StockItemNotFound(variant_id, location_id)
        if outcome.clamped:
            logger.warning(
                "Release exceeded committed stock; clamped",
                variant_id=str(variant_id),
                location_id=str(location_id),
                requested=outcome.requested,
                applied=outcome.applied,
            )
        return outcome.record

    def fulfill(self, variant_id, location_id, quantity) -> StockRecord:
        """Remove committed stock permanently (it has shipped)."""
        _require_positive(quantity)
        outcome = self.store.fulfill(variant_id, location_id, quantity)
        if outcome is None:
            raise StockItemNotFound(variant_id, location_id)
        if outcome.clamped:
            logger.warning(
                "Fulfilment exceeded committed stock; clamped",
                variant_id=str(variant_id),
                location_id=str(location_id),
                requested=outcome.requested,
                applied=outcome.applied,
            )
        return outcome.record

    # ------------------------------------------------------------------
    # Adjustments
    # ------------------------------------------------------------------
    def adjust(self, variant_id, location_id, delta, reason, notes=None, created_by=None):
        """Apply a signed change to available and record why."""
        return self._adjust(variant_id, location_id, delta, reason, notes=notes, created_by=created_by)

    def _adjust(self, variant_id, location_id, delta, reason, notes=None, created_by=None, incoming_delta=0):
        if not isinstance(delta, int) or isinstance(delta, bool) or delta == 0:
            raise ValidationError({"quantity": ["Adjustment must be a non-zero integer"]})
        if not reason:
            raise ValidationError({"reason": ["Reason is required"]})

        records = self.store.apply_adjustments(
            [
                AdjustmentRequest(
                    variant_id=str(variant_id),
                    location_id=str(location_id),
                    quantity=delta,
                    reason=reason,
                    notes=notes,
                    created_by=created_by,
                    incoming_delta=incoming_delta,
                )
            ]
        )
        if records is None:
            current = self.store.get(variant_id, location_id)
            raise InsufficientStock(
                variant_id,
                location_id,
                requested=-delta,
                available=current.available if current else 0,
            )

        record = self.store.get(variant_id, location_id)
        logger.info(
            "Inventory adjusted",
            variant_id=str(variant_id),
            location_id=str(location_id),
            delta=delta,
            reason=reason,
            available=record.available,
        )
        publish_event(
            self.publisher,
            InventoryEventType.ADJUSTED,
            variant_id=str(variant_id),
            location_id=str(location_id),
            quantity=delta,
            reason=reason,
            available=record.available,
        )
        return records[0]

    def transfer(self, variant_id, from_location_id, to_location_id, quantity, notes=None, created_by=None):
        """Move available stock between locations in one transaction."""
        _require_positive(quantity)
        if str(from_location_id) == str(to_location_id):
            raise ValidationError({"to_location_id": ["Source and destination must differ"]})

        records = self.store.apply_adjustments(
            [
                AdjustmentRequest(
                    variant_id=str(variant_id),
                    location_id=str(from_location_id),
                    quantity=-quantity,
                    reason=AdjustmentReason.TRANSFER_OUT.value,
                    notes=notes or f"Transfer to {to_location_id}",
                    created_by=created_by,
                ),
                AdjustmentRequest(
                    variant_id=str(variant_id),
                    location_id=str(to_location_id),
                    quantity=quantity,
                    reason=AdjustmentReason.TRANSFER_IN.value,
                    notes=notes or f"Transfer from {from_location_id}",
                    created_by=created_by,
                ),
            ]
        )
        if records is None:
            current = self.store.get(variant_id, from_location_id)
            raise InsufficientStock(
                variant_id,
                from_location_id,
                requested=quantity,
                available=current.available if current else 0,
            )

        logger.info(
            "Inventory transferred",
            variant_id=str(variant_id),
            from_location_id=str(from_location_id),
            to_location_id=str(to_location_id),
            quantity=quantity,
        )
        publish_event(
            self.publisher,
            InventoryEventType.TRANSFERRED,
            variant_id=str(variant_id),
            from_location_id=str(from_location_id),
            to_location_id=str(to_location_id),
            quantity=quantity,
        )
        return records

    # ------------------------------------------------------------------
    # Restock tracking
    # ------------------------------------------------------------------
    def expect_restock(self, variant_id, location_id, quantity) -> StockRecord:
        """Record stock that is on its way (``incoming``)."""
        _require_positive(quantity)
        return self.store.add_incoming(variant_id, location_id, quantity)

    def receive_restock(self, variant_id, location_id, quantity, notes=None, created_by=None) -> StockRecord:
        """Make received stock available and drain it from ``incoming``."""
        _require_positive(quantity)
        self._adjust(
            variant_id,
            location_id,
            quantity,
            AdjustmentReason.RESTOCK.value,
            notes=notes,
            created_by=created_by,
            incoming_delta=-quantity,
        )
        return self.store.get(variant_id, location_id)

    def update_threshold(self, variant_id, location_id, threshold) -> StockRecord:
        if threshold is not None and (not isinstance(threshold, int) or threshold < 0):
            raise ValidationError({"threshold": ["Threshold must be a non-negative integer"]})
        record = self.store.set_threshold(variant_id, location_id, threshold)
        if record is None:
            raise StockItemNotFound(variant_id, location_id)
        logger.info(
            "Low-stock threshold updated",
            variant_id=str(variant_id),
            location_id=str(location_id),
            threshold=threshold,
        )
        return record

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def get(self, variant_id, location_id) -> StockRecord:
        record = self.store.get(variant_id, location_id)
        if record is None:
            raise StockItemNotFound(variant_id, location_id)
        return record

    def find(self, variant_id, location_id) -> StockRecord | None:
        return self.store.get(variant_id, location_id)

    def all_items(self) -> list[StockRecord]:
        return self.store.list_items()

    def get_by_variant(self, variant_id) -> dict:
        """Per-location rows for a variant plus totals across locations."""
        items = self.store.list_items(variant_id=variant_id)
        return {
            "variant_id": str(variant_id),
            "locations": items,
            "total_available": sum(i.available for i in items),
            "total_committed": sum(i.committed for i in items),
            "total_incoming": sum(i.incoming for i in items),
        }

    def items_at(self, location_id) -> list[StockRecord]:
        return self.store.list_items(location_id=location_id)

    def get_by_location(self, location_id, page=1, limit=DEFAULT_PAGE_SIZE) -> dict:
        return paginate(self.items_at(location_id), page, limit)

    def adjustment_history(self, variant_id=None, location_id=None, page=1, limit=DEFAULT_PAGE_SIZE) -> dict:
        return paginate(self.store.adjustments(variant_id=variant_id, location_id=location_id), page, limit)
