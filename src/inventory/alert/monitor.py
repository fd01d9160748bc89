"""LowStockMonitor — read-only observer of the ledger.

For every stock row the effective threshold is the row's own
``low_stock_threshold`` or the store-wide default. At or below it an ACTIVE
alert is opened (once); above it any ACTIVE alert is resolved. The monitor
never changes stock counters.
"""

from dataclasses import dataclass

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from inventory.alert.alert import AlertStatus, LowStockAlert
from inventory.ledger.ledger import DEFAULT_PAGE_SIZE, InventoryLedger, paginate
from inventory.location.location import Location
from inventory.publishing import EventPublisher, InventoryEventType, publish_event

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CheckSummary:
    checked: int = 0
    raised: int = 0
    resolved: int = 0


class LowStockMonitor:
    def __init__(
        self,
        ledger: InventoryLedger,
        default_threshold: int,
        publisher: EventPublisher | None = None,
    ) -> None:
        self.ledger = ledger
        self.default_threshold = default_threshold
        self.publisher = publisher

    @staticmethod
    def _repo():
        return current_domain.repository_for(LowStockAlert)

    def threshold_for(self, record) -> int:
        if record.low_stock_threshold is not None:
            return record.low_stock_threshold
        return self.default_threshold

    def _store_of(self, location_id):
        try:
            location = current_domain.repository_for(Location).get(location_id)
        except ObjectNotFoundError:
            return None
        return str(location.store_id)

    def active_alert(self, variant_id, location_id) -> LowStockAlert | None:
        alerts = (
            self._repo()
            ._dao.query.filter(
                variant_id=str(variant_id),
                location_id=str(location_id),
                status=AlertStatus.ACTIVE.value,
            )
            .limit(None)
            .all()
            .items
        )
        return alerts[0] if alerts else None

    def check(self) -> CheckSummary:
        repo = self._repo()
        checked = raised = resolved = 0

        for record in self.ledger.all_items():
            checked += 1
            threshold = self.threshold_for(record)
            alert = self.active_alert(record.variant_id, record.location_id)

            if record.available <= threshold:
                if alert is not None:
                    continue
                alert = LowStockAlert.raise_for(
                    variant_id=record.variant_id,
                    location_id=record.location_id,
                    current_stock=record.available,
                    threshold=threshold,
                    store_id=self._store_of(record.location_id),
                )
                repo.add(alert)
                raised += 1
                logger.warning(
                    "Low stock detected",
                    variant_id=record.variant_id,
                    location_id=record.location_id,
                    available=record.available,
                    threshold=threshold,
                )
                publish_event(
                    self.publisher,
                    InventoryEventType.LOW_STOCK,
                    alert_id=str(alert.id),
                    variant_id=record.variant_id,
                    location_id=record.location_id,
                    quantity=record.available,
                    threshold=threshold,
                )
            elif alert is not None:
                alert.resolve(current_stock=record.available)
                repo.add(alert)
                resolved += 1
                logger.info(
                    "Low stock alert resolved",
                    alert_id=str(alert.id),
                    variant_id=record.variant_id,
                    location_id=record.location_id,
                    available=record.available,
                )

        logger.info("Low stock check complete", checked=checked, raised=raised, resolved=resolved)
        return CheckSummary(checked=checked, raised=raised, resolved=resolved)

    # ------------------------------------------------------------------
    # Operator actions and queries
    # ------------------------------------------------------------------
    def dismiss(self, alert_id) -> LowStockAlert:
        repo = self._repo()
        alert = repo.get(alert_id)
        alert.dismiss()
        repo.add(alert)
        logger.info("Low stock alert dismissed", alert_id=str(alert_id))
        return alert

    def update_threshold(self, variant_id, location_id, threshold):
        return self.ledger.update_threshold(variant_id, location_id, threshold)

    def active_alerts(self, store_id=None) -> list[LowStockAlert]:
        filters = {"status": AlertStatus.ACTIVE.value}
        if store_id is not None:
            filters["store_id"] = str(store_id)
        alerts = self._repo()._dao.query.filter(**filters).limit(None).all().items
        return sorted(alerts, key=lambda a: a.created_at, reverse=True)

    def alert_history(self, store_id=None, page=1, limit=DEFAULT_PAGE_SIZE) -> dict:
        repo = self._repo()
        if store_id is not None:
            alerts = repo._dao.query.filter(store_id=str(store_id)).limit(None).all().items
        else:
            alerts = repo._dao.query.limit(None).all().items
        alerts = sorted(alerts, key=lambda a: a.created_at, reverse=True)
        return paginate(alerts, page, limit)
