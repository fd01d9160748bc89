"""Process start-up wiring for the inventory and ordering runtimes.

Both contexts run in one process: the ordering sagas reach inventory through
``InventoryClient``, which enters the inventory domain context around each
call. ``build_runtimes()`` constructs, connects and binds both runtimes;
``shutdown_runtimes()`` is its counterpart.
"""

import structlog

from inventory.domain import inventory
from inventory.runtime import InventoryRuntime
from inventory.runtime import bind_runtime as bind_inventory_runtime
from inventory.runtime import unbind_runtime as unbind_inventory_runtime
from ordering.domain import ordering
from ordering.gateways.inventory_adapter import InventoryClient
from ordering.runtime import OrderingRuntime
from ordering.runtime import bind_runtime as bind_ordering_runtime
from ordering.runtime import unbind_runtime as unbind_ordering_runtime

logger = structlog.get_logger(__name__)


def init_domains() -> None:
    inventory.init()
    ordering.init()


def build_runtimes(store=None, publisher=None, payments=None) -> tuple[InventoryRuntime, OrderingRuntime]:
    """Build, connect and bind both runtimes. Domains must be initialised first."""
    inventory_runtime = InventoryRuntime.build(store=store, publisher=publisher)
    inventory_runtime.connect()
    bind_inventory_runtime(inventory_runtime)

    ordering_runtime = OrderingRuntime.build(
        inventory=InventoryClient(inventory, inventory_runtime.reservations),
        payments=payments,
    )
    bind_ordering_runtime(ordering_runtime)

    logger.info("Runtimes ready")
    return inventory_runtime, ordering_runtime


def shutdown_runtimes(inventory_runtime: InventoryRuntime) -> None:
    unbind_ordering_runtime()
    unbind_inventory_runtime()
    inventory_runtime.close()
    logger.info("Runtimes shut down")
