"""Inventory runtime — the explicitly constructed collaborators of the context.

The owning process builds one ``InventoryRuntime`` at start-up, connects it,
binds it, and closes it on shutdown. Command and event handlers look it up
with ``current_runtime()``; nothing is created lazily on first use.
"""

from dataclasses import dataclass

import structlog

from inventory import settings
from inventory.alert.monitor import LowStockMonitor
from inventory.ledger import build_stock_store
from inventory.ledger.ledger import InventoryLedger
from inventory.ledger.port import StockStore
from inventory.publishing import EventPublisher, build_publisher
from inventory.reservation.manager import ReservationManager

logger = structlog.get_logger(__name__)


@dataclass
class InventoryRuntime:
    store: StockStore
    publisher: EventPublisher
    ledger: InventoryLedger
    reservations: ReservationManager
    monitor: LowStockMonitor

    @classmethod
    def build(cls, store=None, publisher=None, default_threshold=None) -> "InventoryRuntime":
        store = store if store is not None else build_stock_store()
        publisher = publisher if publisher is not None else build_publisher()
        if default_threshold is None:
            default_threshold = settings.low_stock_threshold()

        ledger = InventoryLedger(store, publisher)
        return cls(
            store=store,
            publisher=publisher,
            ledger=ledger,
            reservations=ReservationManager(ledger, publisher),
            monitor=LowStockMonitor(ledger, default_threshold, publisher),
        )

    def connect(self) -> None:
        self.store.connect()
        self.publisher.connect()
        logger.info("Inventory runtime connected", store=type(self.store).__name__)

    def close(self) -> None:
        self.publisher.close()
        self.store.close()
        logger.info("Inventory runtime closed")


_runtime: InventoryRuntime | None = None


def bind_runtime(runtime: InventoryRuntime) -> None:
    global _runtime
    _runtime = runtime


def unbind_runtime() -> None:
    global _runtime
    _runtime = None


def current_runtime() -> InventoryRuntime:
    if _runtime is None:
        raise RuntimeError("Inventory runtime is not bound; call bind_runtime() at start-up")
    return _runtime
