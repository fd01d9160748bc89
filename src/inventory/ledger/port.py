"""Stock store port (abstract interface).

The store owns the per (variant, location) counters and the adjustment
audit trail. Every mutating primitive is a single conditional update: the
store either applies the whole change or reports that the guard failed,
so concurrent callers never lose updates or oversell.

Adapters:
- MemoryStockStore for development and tests
- SqlStockStore (SQLAlchemy Core) for shared databases
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class AdjustmentReason(Enum):
    RESTOCK = "restock"
    SHRINKAGE = "shrinkage"
    CORRECTION = "correction"
    DAMAGE = "damage"
    RETURN = "return"
    TRANSFER_OUT = "transfer_out"
    TRANSFER_IN = "transfer_in"


@dataclass(frozen=True)
class StockRecord:
    """Snapshot of one (variant, location) row."""

    variant_id: str
    location_id: str
    available: int = 0
    committed: int = 0
    incoming: int = 0
    low_stock_threshold: int | None = None
    updated_at: datetime | None = None

    def to_dict(self) -> dict:
        return {
            "variant_id": self.variant_id,
            "location_id": self.location_id,
            "available": self.available,
            "committed": self.committed,
            "incoming": self.incoming,
            "low_stock_threshold": self.low_stock_threshold,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass(frozen=True)
class AdjustmentRecord:
    """Immutable audit entry for a change to ``available``."""

    id: str
    variant_id: str
    location_id: str
    quantity: int
    reason: str
    notes: str | None = None
    created_by: str | None = None
    created_at: datetime | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "variant_id": self.variant_id,
            "location_id": self.location_id,
            "quantity": self.quantity,
            "reason": self.reason,
            "notes": self.notes,
            "created_by": self.created_by,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class AdjustmentRequest:
    """One leg of an adjustment batch applied atomically by the store."""

    variant_id: str
    location_id: str
    quantity: int
    reason: str
    notes: str | None = None
    created_by: str | None = None
    # Change to ``incoming`` applied with the same leg, clamped at zero
    incoming_delta: int = 0


@dataclass(frozen=True)
class ReleaseOutcome:
    """Result of a release/fulfil; ``applied`` may be less than requested."""

    record: StockRecord
    requested: int
    applied: int

    @property
    def clamped(self) -> bool:
        return self.applied < self.requested


class StockStore(ABC):
    """Abstract stock store interface."""

    def connect(self) -> None:  # noqa: B027
        """Open connections / create schema. Optional for in-process stores."""

    def close(self) -> None:  # noqa: B027
        """Release connections. Optional for in-process stores."""

    @abstractmethod
    def get(self, variant_id: str, location_id: str) -> StockRecord | None:
        """Return the row for the pair, or None."""
        ...

    @abstractmethod
    def list_items(
        self,
        variant_id: str | None = None,
        location_id: str | None = None,
    ) -> list[StockRecord]:
        """Return rows filtered by variant and/or location, ordered by key."""
        ...

    @abstractmethod
    def try_reserve(self, variant_id: str, location_id: str, quantity: int) -> StockRecord | None:
        """Move ``quantity`` from available to committed if ``available >= quantity``.

        Returns the updated row, or None when the guard failed (or no row).
        """
        ...

    @abstractmethod
    def release(self, variant_id: str, location_id: str, quantity: int) -> ReleaseOutcome | None:
        """Move up to ``quantity`` from committed back to available.

        Never takes committed below zero. Returns None when no row exists.
        """
        ...

    @abstractmethod
    def fulfill(self, variant_id: str, location_id: str, quantity: int) -> ReleaseOutcome | None:
        """Remove up to ``quantity`` from committed. Returns None when no row exists."""
        ...

    @abstractmethod
    def apply_adjustments(self, adjustments: list[AdjustmentRequest]) -> list[AdjustmentRecord] | None:
        """Apply signed changes to available and append audit rows, all or nothing.

        Rows are created on demand. Returns None (and changes nothing) if any
        leg would take available below zero.
        """
        ...

    @abstractmethod
    def adjustments(
        self,
        variant_id: str | None = None,
        location_id: str | None = None,
    ) -> list[AdjustmentRecord]:
        """Return adjustment records, newest first."""
        ...

    @abstractmethod
    def set_threshold(self, variant_id: str, location_id: str, threshold: int | None) -> StockRecord | None:
        ...

    @abstractmethod
    def add_incoming(self, variant_id: str, location_id: str, delta: int) -> StockRecord:
        """Change ``incoming`` by ``delta`` (clamped at zero), creating the row if needed."""
        ...
