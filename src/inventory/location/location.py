"""Location aggregate (CQRS) — a place that holds stock for a store.

Higher ``priority`` locations are tried first when reserving. Inactive
locations keep their stock rows but are skipped by candidate search.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, Integer, String

from inventory.domain import inventory
from inventory.location.events import (
    LocationActivated,
    LocationCreated,
    LocationDeactivated,
    LocationUpdated,
)


@inventory.aggregate
class Location:
    """A warehouse, store or drop-ship source that holds inventory."""

    store_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    priority = Integer(default=0)
    is_active = Boolean(default=True)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, store_id, name, priority=0, location_id=None):
        """Create a new location."""
        now = datetime.now(UTC)
        kwargs = {"id": location_id} if location_id else {}
        location = cls(
            store_id=store_id,
            name=name,
            priority=priority or 0,
            created_at=now,
            updated_at=now,
            **kwargs,
        )
        location.raise_(
            LocationCreated(
                location_id=str(location.id),
                store_id=str(store_id),
                name=name,
                priority=str(location.priority),
                created_at=now,
            )
        )
        return location

    def update_details(self, name=None, priority=None):
        """Update location name and/or priority."""
        if name is not None:
            self.name = name
        if priority is not None:
            self.priority = priority
        self.updated_at = datetime.now(UTC)
        self.raise_(
            LocationUpdated(
                location_id=str(self.id),
                name=self.name,
                priority=str(self.priority),
                updated_at=self.updated_at,
            )
        )

    def deactivate(self):
        if not self.is_active:
            raise ValidationError({"location": ["Location is already inactive"]})
        self.is_active = False
        self.updated_at = datetime.now(UTC)
        self.raise_(LocationDeactivated(location_id=str(self.id), deactivated_at=self.updated_at))

    def activate(self):
        if self.is_active:
            raise ValidationError({"location": ["Location is already active"]})
        self.is_active = True
        self.updated_at = datetime.now(UTC)
        self.raise_(LocationActivated(location_id=str(self.id), activated_at=self.updated_at))

