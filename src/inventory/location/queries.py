"""Location lookups shared by reservation and the API."""

from protean.utils.globals import current_domain

from inventory.location.location import Location


def _by_priority(locations):
    return sorted(locations, key=lambda loc: (-(loc.priority or 0), loc.name))


def active_locations(store_id=None) -> list[Location]:
    """Active locations, highest priority first, then by name."""
    filters = {"is_active": True}
    if store_id is not None:
        filters["store_id"] = str(store_id)
    repo = current_domain.repository_for(Location)
    return _by_priority(repo._dao.query.filter(**filters).limit(None).all().items)


def list_locations(store_id) -> list[Location]:
    """All locations of a store, highest priority first, then by name."""
    repo = current_domain.repository_for(Location)
    return _by_priority(repo._dao.query.filter(store_id=str(store_id)).limit(None).all().items)
