import pytest
from inventory.ledger.memory_store import MemoryStockStore
from inventory.publishing import InMemoryEventPublisher
from inventory.runtime import InventoryRuntime, bind_runtime, unbind_runtime
from protean.utils.globals import current_domain


@pytest.fixture(autouse=True)
def _ctx(inventory_bed):
    with inventory_bed.domain_context():
        yield

        for _, provider in current_domain.providers.items():
            provider._data_reset()
        current_domain.event_store.store._data_reset()


@pytest.fixture
def store():
    return MemoryStockStore()


@pytest.fixture
def publisher():
    return InMemoryEventPublisher()


@pytest.fixture(autouse=True)
def runtime(_ctx, store, publisher):
    """A fresh, bound inventory runtime over an in-memory store."""
    rt = InventoryRuntime.build(store=store, publisher=publisher, default_threshold=10)
    rt.connect()
    bind_runtime(rt)
    yield rt
    unbind_runtime()
    rt.close()


@pytest.fixture
def ledger(runtime):
    return runtime.ledger


@pytest.fixture
def reservations(runtime):
    return runtime.reservations


@pytest.fixture
def monitor(runtime):
    return runtime.monitor
