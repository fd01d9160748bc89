"""InventoryPort adapter backed by the Inventory domain's ReservationManager.

Each call runs inside the inventory domain context so the manager's
repositories resolve against the inventory providers, then hands plain
dicts back to the ordering side.
"""

from ordering.gateways.port import InventoryPort


class InventoryClient(InventoryPort):
    def __init__(self, domain, reservations) -> None:
        self.domain = domain
        self.reservations = reservations

    def reserve_for_order(self, order_id, items):
        with self.domain.domain_context():
            reserved = self.reservations.reserve_for_order(str(order_id), items)
            return [r.summary() for r in reserved]

    def release_for_order(self, order_id):
        with self.domain.domain_context():
            return len(self.reservations.release_for_order(str(order_id)))

    def fulfill_for_order(self, order_id):
        with self.domain.domain_context():
            return self.reservations.fulfill_for_order(str(order_id)).status
