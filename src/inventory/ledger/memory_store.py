"""In-process stock store for development and testing.

Rows live in a dict keyed by (variant_id, location_id). A single lock guards
every conditional update, which gives the same first-committer-wins
behaviour as the SQL store's ``UPDATE ... WHERE available >= :q``.
"""

import threading
from dataclasses import replace
from datetime import UTC, datetime
from uuid import uuid4

from inventory.ledger.port import (
    AdjustmentRecord,
    AdjustmentRequest,
    ReleaseOutcome,
    StockRecord,
    StockStore,
)


class MemoryStockStore(StockStore):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._rows: dict[tuple[str, str], StockRecord] = {}
        self._adjustments: list[AdjustmentRecord] = []

    def reset(self) -> None:
        with self._lock:
            self._rows.clear()
            self._adjustments.clear()

    def get(self, variant_id, location_id):
        return self._rows.get((str(variant_id), str(location_id)))

    def list_items(self, variant_id=None, location_id=None):
        rows = list(self._rows.values())
        if variant_id is not None:
            rows = [r for r in rows if r.variant_id == str(variant_id)]
        if location_id is not None:
            rows = [r for r in rows if r.location_id == str(location_id)]
        return sorted(rows, key=lambda r: (r.variant_id, r.location_id))

    def try_reserve(self, variant_id, location_id, quantity):
        key = (str(variant_id), str(location_id))
        with self._lock:
            row = self._rows.get(key)
            if row is None or row.available < quantity:
                return None
            row = replace(
                row,
                available=row.available - quantity,
                committed=row.committed + quantity,
                updated_at=datetime.now(UTC),
            )
            self._rows[key] = row
            return row

    def release(self, variant_id, location_id, quantity):
        key = (str(variant_id), str(location_id))
        with self._lock:
            row = self._rows.get(key)
            if row is None:
                return None
            applied = min(quantity, row.committed)
            row = replace(
                row,
                available=row.available + applied,
                committed=row.committed - applied,
                updated_at=datetime.now(UTC),
            )
            self._rows[key] = row
            return ReleaseOutcome(record=row, requested=quantity, applied=applied)

    def fulfill(self, variant_id, location_id, quantity):
        key = (str(variant_id), str(location_id))
        with self._lock:
            row = self._rows.get(key)
            if row is None:
                return None
            applied = min(quantity, row.committed)
            row = replace(row, committed=row.committed - applied, updated_at=datetime.now(UTC))
            self._rows[key] = row
            return ReleaseOutcome(record=row, requested=quantity, applied=applied)

    def apply_adjustments(self, adjustments: list[AdjustmentRequest]):
        now = datetime.now(UTC)
        with self._lock:
            # Stage every leg first so a failing guard leaves nothing applied
            staged = dict(self._rows)
            for adj in adjustments:
                key = (str(adj.variant_id), str(adj.location_id))
                row = staged.get(key) or StockRecord(variant_id=key[0], location_id=key[1])
                if row.available + adj.quantity < 0:
                    return None
                staged[key] = replace(
                    row,
                    available=row.available + adj.quantity,
                    incoming=max(0, row.incoming + adj.incoming_delta),
                    updated_at=now,
                )

            records = [
                AdjustmentRecord(
                    id=str(uuid4()),
                    variant_id=str(adj.variant_id),
                    location_id=str(adj.location_id),
                    quantity=adj.quantity,
                    reason=adj.reason,
                    notes=adj.notes,
                    created_by=adj.created_by,
                    created_at=now,
                )
                for adj in adjustments
            ]
            self._rows = staged
            self._adjustments.extend(records)
            return records

    def adjustments(self, variant_id=None, location_id=None):
        records = list(self._adjustments)
        if variant_id is not None:
            records = [r for r in records if r.variant_id == str(variant_id)]
        if location_id is not None:
            records = [r for r in records if r.location_id == str(location_id)]
        return list(reversed(records))

    def set_threshold(self, variant_id, location_id, threshold):
        key = (str(variant_id), str(location_id))
        with self._lock:
            row = self._rows.get(key)
            if row is None:
                return None
            row = replace(row, low_stock_threshold=threshold, updated_at=datetime.now(UTC))
            self._rows[key] = row
            return row

    def add_incoming(self, variant_id, location_id, delta):
        key = (str(variant_id), str(location_id))
        with self._lock:
            row = self._rows.get(key) or StockRecord(variant_id=key[0], location_id=key[1])
            row = replace(row, incoming=max(0, row.incoming + delta), updated_at=datetime.now(UTC))
            self._rows[key] = row
            return row
