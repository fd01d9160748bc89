"""Concurrency tests for the in-memory stock store — no oversell, no lost updates."""

import threading
from concurrent.futures import ThreadPoolExecutor

from inventory.errors import InsufficientStock
from inventory.ledger.ledger import InventoryLedger
from inventory.ledger.memory_store import MemoryStockStore


def _ledger_with(available):
    ledger = InventoryLedger(MemoryStockStore())
    ledger.adjust("var-001", "loc-001", available, "restock")
    return ledger


def _race(ledger, quantities):
    """Fire one reserve per quantity at the same time; return the outcomes."""
    barrier = threading.Barrier(len(quantities))

    def attempt(quantity):
        barrier.wait()
        try:
            ledger.reserve("var-001", "loc-001", quantity)
        except InsufficientStock:
            return 0
        return quantity

    with ThreadPoolExecutor(max_workers=len(quantities)) as pool:
        return list(pool.map(attempt, quantities))


class TestNoOversell:
    def test_two_reserves_of_six_against_ten(self):
        ledger = _ledger_with(10)

        outcomes = _race(ledger, [6, 6])

        assert sorted(outcomes) == [0, 6]
        record = ledger.get("var-001", "loc-001")
        assert record.available == 4
        assert record.committed == 6

    def test_many_single_unit_reserves(self):
        ledger = _ledger_with(50)

        outcomes = _race(ledger, [1] * 80)

        assert sum(outcomes) == 50
        record = ledger.get("var-001", "loc-001")
        assert record.available == 0
        assert record.committed == 50

    def test_mixed_quantities_never_exceed_available(self):
        ledger = _ledger_with(30)

        outcomes = _race(ledger, [7, 5, 9, 3, 8, 6, 4, 2])

        record = ledger.get("var-001", "loc-001")
        assert sum(outcomes) <= 30
        assert record.available == 30 - sum(outcomes)
        assert record.committed == sum(outcomes)


class TestNoLostUpdates:
    def test_concurrent_reserve_and_release_keep_counters_consistent(self):
        ledger = _ledger_with(100)
        for _ in range(20):
            ledger.reserve("var-001", "loc-001", 1)

        barrier = threading.Barrier(40)

        def reserve():
            barrier.wait()
            ledger.reserve("var-001", "loc-001", 1)

        def release():
            barrier.wait()
            ledger.release("var-001", "loc-001", 1)

        with ThreadPoolExecutor(max_workers=40) as pool:
            futures = [pool.submit(reserve) for _ in range(20)] + [pool.submit(release) for _ in range(20)]
            for future in futures:
                future.result()

        record = ledger.get("var-001", "loc-001")
        assert record.committed == 20
        assert record.available == 80
        assert record.available + record.committed == 100
