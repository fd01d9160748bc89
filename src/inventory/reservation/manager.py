"""ReservationManager — order-level reservation lifecycle on top of the ledger.

Each line item is reserved at a single location picked by
``rank_locations``. Items commit independently: when a later item cannot be
satisfied the earlier ones stay reserved and ``InsufficientStock`` is
raised. Callers that need all-or-nothing (the order creation saga) release
the order afterwards.

All three operations are safe to repeat:
- reserving again reuses the order's ACTIVE/FULFILLED reservation per variant
- releasing or fulfilling only touches ACTIVE reservations
"""

from dataclasses import dataclass, field

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from inventory.errors import InsufficientStock
from inventory.ledger.ledger import InventoryLedger
from inventory.location.queries import active_locations
from inventory.publishing import EventPublisher, InventoryEventType, publish_event
from inventory.reservation.reservation import InventoryReservation, ReservationStatus
from inventory.reservation.selection import Candidate, rank_locations

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ReservationItem:
    """One line item to reserve."""

    variant_id: str
    quantity: int
    preferred_location_id: str | None = None

    @classmethod
    def from_value(cls, value) -> "ReservationItem":
        if isinstance(value, cls):
            return value
        return cls(
            variant_id=str(value["variant_id"]),
            quantity=value["quantity"],
            preferred_location_id=value.get("preferred_location_id") or value.get("location_id"),
        )


@dataclass(frozen=True)
class FulfillmentResult:
    order_id: str
    fulfilled: list = field(default_factory=list)
    already_fulfilled: bool = False

    @property
    def status(self) -> str:
        return "already_fulfilled" if self.already_fulfilled else "fulfilled"


def _merge_items(items) -> list[ReservationItem]:
    """Normalise line items, folding repeated variants into one line."""
    merged: dict[str, ReservationItem] = {}
    for raw in items:
        item = ReservationItem.from_value(raw)
        if not isinstance(item.quantity, int) or item.quantity <= 0:
            raise ValidationError({"quantity": [f"Quantity for variant {item.variant_id} must be positive"]})
        if item.variant_id in merged:
            first = merged[item.variant_id]
            merged[item.variant_id] = ReservationItem(
                variant_id=item.variant_id,
                quantity=first.quantity + item.quantity,
                preferred_location_id=first.preferred_location_id or item.preferred_location_id,
            )
        else:
            merged[item.variant_id] = item
    return list(merged.values())


def _describe(reservations) -> list[dict]:
    return [
        {
            "reservation_id": str(r.id),
            "variant_id": str(r.variant_id),
            "location_id": str(r.location_id),
            "quantity": r.quantity,
        }
        for r in reservations
    ]


class ReservationManager:
    def __init__(self, ledger: InventoryLedger, publisher: EventPublisher | None = None) -> None:
        self.ledger = ledger
        self.publisher = publisher

    @staticmethod
    def _repo():
        return current_domain.repository_for(InventoryReservation)

    def reservations_for_order(self, order_id, status=None) -> list[InventoryReservation]:
        filters = {"order_id": str(order_id)}
        if status is not None:
            filters["status"] = status
        reservations = self._repo()._dao.query.filter(**filters).limit(None).all().items
        return sorted(reservations, key=lambda r: r.created_at)

    def candidates_for(self, variant_id) -> list[Candidate]:
        """Stock rows for the variant at currently active locations."""
        locations = {str(loc.id): loc for loc in active_locations()}
        return [
            Candidate(
                location_id=record.location_id,
                available=record.available,
                priority=locations[record.location_id].priority or 0,
                name=locations[record.location_id].name,
            )
            for record in self.ledger.get_by_variant(variant_id)["locations"]
            if record.location_id in locations
        ]

    # ------------------------------------------------------------------
    # Reserve
    # ------------------------------------------------------------------
    def reserve_for_order(self, order_id, items) -> list[InventoryReservation]:
        items = _merge_items(items)
        if not items:
            raise ValidationError({"items": ["At least one line item is required"]})

        held = {
            str(r.variant_id): r
            for r in self.reservations_for_order(order_id)
            if r.status in (ReservationStatus.ACTIVE.value, ReservationStatus.FULFILLED.value)
        }

        reservations = []
        created = []
        try:
            for item in items:
                if item.variant_id in held:
                    reservations.append(held[item.variant_id])
                    continue
                reservation = self._reserve_item(order_id, item)
                reservations.append(reservation)
                created.append(reservation)
        finally:
            if created:
                publish_event(
                    self.publisher,
                    InventoryEventType.RESERVED,
                    order_id=str(order_id),
                    reservations=_describe(created),
                )

        logger.info(
            "Inventory reserved for order",
            order_id=str(order_id),
            reserved=len(created),
            reused=len(reservations) - len(created),
        )
        return reservations

    def _reserve_item(self, order_id, item: ReservationItem) -> InventoryReservation:
        candidates = self.candidates_for(item.variant_id)
        for location_id in rank_locations(candidates, item.quantity, item.preferred_location_id):
            try:
                self.ledger.reserve(item.variant_id, location_id, item.quantity)
            except InsufficientStock:
                # Another order took the stock after ranking; try the next location
                logger.info(
                    "Candidate location depleted concurrently",
                    order_id=str(order_id),
                    variant_id=item.variant_id,
                    location_id=location_id,
                )
                continue

            reservation = InventoryReservation.create(
                order_id=order_id,
                variant_id=item.variant_id,
                location_id=location_id,
                quantity=item.quantity,
            )
            try:
                self._repo().add(reservation)
            except Exception:
                self.ledger.release(item.variant_id, location_id, item.quantity)
                raise
            return reservation

        logger.warning(
            "No location can satisfy line item",
            order_id=str(order_id),
            variant_id=item.variant_id,
            quantity=item.quantity,
        )
        raise InsufficientStock(
            item.variant_id,
            requested=item.quantity,
            available=max((c.available for c in candidates), default=0),
        )

    # ------------------------------------------------------------------
    # Release / fulfil
    # ------------------------------------------------------------------
    def release_for_order(self, order_id) -> list[InventoryReservation]:
        """Release every ACTIVE reservation of the order. No-op when none."""
        active = self.reservations_for_order(order_id, status=ReservationStatus.ACTIVE.value)
        if not active:
            logger.info("No active reservations to release", order_id=str(order_id))
            return []

        repo = self._repo()
        for reservation in active:
            # Persist first: a stale snapshot fails the version check before stock moves
            reservation.release()
            repo.add(reservation)
            self.ledger.release(reservation.variant_id, reservation.location_id, reservation.quantity)

        logger.info("Inventory released for order", order_id=str(order_id), released=len(active))
        publish_event(
            self.publisher,
            InventoryEventType.RELEASED,
            order_id=str(order_id),
            reservations=_describe(active),
        )
        return active

    def fulfill_for_order(self, order_id) -> FulfillmentResult:
        """Fulfil every ACTIVE reservation; reports ``already_fulfilled`` when none are left."""
        active = self.reservations_for_order(order_id, status=ReservationStatus.ACTIVE.value)
        if not active:
            logger.info("Order already fulfilled", order_id=str(order_id))
            return FulfillmentResult(order_id=str(order_id), already_fulfilled=True)

        repo = self._repo()
        for reservation in active:
            reservation.fulfill()
            repo.add(reservation)
            self.ledger.fulfill(reservation.variant_id, reservation.location_id, reservation.quantity)

        logger.info("Inventory fulfilled for order", order_id=str(order_id), fulfilled=len(active))
        publish_event(
            self.publisher,
            InventoryEventType.FULFILLED,
            order_id=str(order_id),
            reservations=_describe(active),
        )
        return FulfillmentResult(order_id=str(order_id), fulfilled=active)
