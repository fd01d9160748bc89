"""Domain events for the Location aggregate."""

from protean.fields import DateTime, Identifier, String

from inventory.domain import inventory


@inventory.event(part_of="Location")
class LocationCreated:
    """A new stock-holding location was created."""

    __version__ = 1

    location_id = Identifier(required=True)
    store_id = Identifier(required=True)
    name = String(required=True)
    priority = Identifier(required=True)  # Stored as string to avoid Integer(0) issue
    created_at = DateTime(required=True)


@inventory.event(part_of="Location")
class LocationUpdated:
    """Location name or priority changed."""

    __version__ = 1

    location_id = Identifier(required=True)
    name = String(required=True)
    priority = Identifier(required=True)
    updated_at = DateTime(required=True)


@inventory.event(part_of="Location")
class LocationDeactivated:
    """Location no longer takes part in reservation candidate search."""

    __version__ = 1

    location_id = Identifier(required=True)
    deactivated_at = DateTime(required=True)


@inventory.event(part_of="Location")
class LocationActivated:
    """Location is back in reservation candidate search."""

    __version__ = 1

    location_id = Identifier(required=True)
    activated_at = DateTime(required=True)

