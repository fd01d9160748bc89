"""Location management — commands and handler."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from inventory.domain import inventory
from inventory.location.location import Location
from inventory.runtime import current_runtime


@inventory.command(part_of="Location")
class CreateLocation:
    """Create a new stock-holding location."""

    store_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    priority = Integer(default=0)
    location_id = Identifier()


@inventory.command(part_of="Location")
class UpdateLocation:
    """Update location name and/or priority."""

    location_id = Identifier(required=True)
    name = String(max_length=255)
    priority = Integer()


@inventory.command(part_of="Location")
class DeactivateLocation:
    location_id = Identifier(required=True)


@inventory.command(part_of="Location")
class ActivateLocation:
    location_id = Identifier(required=True)


@inventory.command(part_of="Location")
class DeleteLocation:
    """Delete a location. Only allowed when it holds no stock."""

    location_id = Identifier(required=True)


@inventory.command_handler(part_of=Location)
class LocationManagementHandler:
    @handle(CreateLocation)
    def create_location(self, command):
        location = Location.create(
            store_id=command.store_id,
            name=command.name,
            priority=command.priority or 0,
            location_id=command.location_id,
        )
        current_domain.repository_for(Location).add(location)
        return str(location.id)

    @handle(UpdateLocation)
    def update_location(self, command):
        repo = current_domain.repository_for(Location)
        location = repo.get(command.location_id)
        location.update_details(name=command.name, priority=command.priority)
        repo.add(location)

    @handle(DeactivateLocation)
    def deactivate_location(self, command):
        repo = current_domain.repository_for(Location)
        location = repo.get(command.location_id)
        location.deactivate()
        repo.add(location)

    @handle(ActivateLocation)
    def activate_location(self, command):
        repo = current_domain.repository_for(Location)
        location = repo.get(command.location_id)
        location.activate()
        repo.add(location)

    @handle(DeleteLocation)
    def delete_location(self, command):
        repo = current_domain.repository_for(Location)
        location = repo.get(command.location_id)

        stocked = [
            item
            for item in current_runtime().ledger.items_at(location.id)
            if item.available or item.committed or item.incoming
        ]
        if stocked:
            raise ValidationError({"location": ["Cannot delete a location that still holds inventory"]})

        repo._dao.delete(location)

