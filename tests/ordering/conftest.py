import pytest
from inventory.ledger.memory_store import MemoryStockStore
from inventory.location.management import CreateLocation
from inventory.publishing import InMemoryEventPublisher
from inventory.runtime import InventoryRuntime
from inventory.runtime import bind_runtime as bind_inventory_runtime
from inventory.runtime import unbind_runtime as unbind_inventory_runtime
from ordering.gateways.fake_adapter import FakePaymentGateway, FlatRateShipping, FlatRateTax
from ordering.gateways.inventory_adapter import InventoryClient
from ordering.order.service import OrderService
from ordering.runtime import OrderingRuntime, bind_runtime, unbind_runtime
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def ordering_bed():
    from ordering.domain import ordering

    bed = DomainFixture(ordering)
    bed.setup()
    yield bed
    bed.teardown()


def _reset(domain):
    for _, provider in domain.providers.items():
        provider._data_reset()
    domain.event_store.store._data_reset()


@pytest.fixture(autouse=True)
def _ctx(ordering_bed, inventory_bed):
    from inventory.domain import inventory
    from ordering.domain import ordering

    with ordering_bed.domain_context():
        yield

        _reset(ordering)
        with inventory.domain_context():
            _reset(inventory)


@pytest.fixture
def payments():
    return FakePaymentGateway()


@pytest.fixture
def shipping():
    return FlatRateShipping(base_rate=5.0, per_unit=0.5)


@pytest.fixture
def tax():
    return FlatRateTax(rate=0.1)


@pytest.fixture
def inventory_runtime(_ctx):
    rt = InventoryRuntime.build(store=MemoryStockStore(), publisher=InMemoryEventPublisher(), default_threshold=5)
    rt.connect()
    bind_inventory_runtime(rt)
    yield rt
    unbind_inventory_runtime()
    rt.close()


@pytest.fixture(autouse=True)
def runtime(inventory_runtime, payments, shipping, tax):
    from inventory.domain import inventory

    rt = OrderingRuntime(
        inventory=InventoryClient(inventory, inventory_runtime.reservations),
        shipping=shipping,
        tax=tax,
        payments=payments,
    )
    bind_runtime(rt)
    yield rt
    unbind_runtime()


@pytest.fixture
def service(runtime):
    return OrderService(runtime)


@pytest.fixture
def stock(inventory_runtime):
    """Seed stock: ``stock("var-001", 10, location_id="loc-001", priority=1)``."""
    from inventory.domain import inventory

    created = set()

    def _stock(variant_id, quantity, location_id="loc-001", priority=1):
        with inventory.domain_context():
            if location_id not in created:
                inventory.process(
                    CreateLocation(location_id=location_id, store_id="store-1", name=location_id, priority=priority),
                    asynchronous=False,
                )
                created.add(location_id)
            inventory_runtime.ledger.adjust(variant_id, location_id, quantity, "restock")

    return _stock


@pytest.fixture
def counters(inventory_runtime):
    """Read ``(available, committed)`` for a variant at a location."""

    def _counters(variant_id, location_id="loc-001"):
        record = inventory_runtime.ledger.get(variant_id, location_id)
        return record.available, record.committed

    return _counters
