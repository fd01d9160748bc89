"""Tests for SqlStockStore against a file-backed SQLite database."""

import pytest
from inventory.errors import InsufficientStock
from inventory.ledger.ledger import InventoryLedger
from inventory.ledger.port import AdjustmentRequest
from inventory.ledger.sql_store import SqlStockStore


@pytest.fixture
def sql_store(tmp_path):
    store = SqlStockStore(database_uri=f"sqlite:///{tmp_path / 'stock.db'}")
    store.connect()
    yield store
    store.close()


@pytest.fixture
def sql_ledger(sql_store):
    ledger = InventoryLedger(sql_store)
    ledger.adjust("var-001", "loc-001", 10, "restock")
    return ledger


class TestGuardedUpdates:
    def test_reserve_then_release(self, sql_ledger):
        record = sql_ledger.reserve("var-001", "loc-001", 5)
        assert (record.available, record.committed) == (5, 5)

        record = sql_ledger.release("var-001", "loc-001", 5)
        assert (record.available, record.committed) == (10, 0)

    def test_second_reserve_sees_depleted_stock(self, sql_ledger):
        sql_ledger.reserve("var-001", "loc-001", 6)

        with pytest.raises(InsufficientStock):
            sql_ledger.reserve("var-001", "loc-001", 6)

        record = sql_ledger.get("var-001", "loc-001")
        assert (record.available, record.committed) == (4, 6)

    def test_release_and_fulfill_are_clamped(self, sql_ledger):
        sql_ledger.reserve("var-001", "loc-001", 2)

        record = sql_ledger.fulfill("var-001", "loc-001", 5)
        assert (record.available, record.committed) == (8, 0)

        record = sql_ledger.release("var-001", "loc-001", 1)
        assert (record.available, record.committed) == (8, 0)

    def test_missing_row_reports_none(self, sql_store):
        assert sql_store.try_reserve("var-404", "loc-001", 1) is None
        assert sql_store.release("var-404", "loc-001", 1) is None
        assert sql_store.set_threshold("var-404", "loc-001", 1) is None


class TestAtomicAdjustments:
    def test_failed_batch_rolls_back_every_leg(self, sql_store, sql_ledger):
        result = sql_store.apply_adjustments(
            [
                AdjustmentRequest("var-001", "loc-002", 5, "transfer_in"),
                AdjustmentRequest("var-001", "loc-001", -11, "transfer_out"),
            ]
        )

        assert result is None
        assert sql_store.get("var-001", "loc-002") is None
        assert sql_store.get("var-001", "loc-001").available == 10
        assert len(sql_store.adjustments(variant_id="var-001")) == 1

    def test_transfer(self, sql_ledger):
        sql_ledger.transfer("var-001", "loc-001", "loc-002", 4)

        assert sql_ledger.get("var-001", "loc-001").available == 6
        assert sql_ledger.get("var-001", "loc-002").available == 4
        reasons = [a.reason for a in sql_ledger.adjustment_history("var-001")["items"]]
        assert reasons == ["transfer_in", "transfer_out", "restock"]


class TestBookkeeping:
    def test_incoming_never_negative(self, sql_ledger):
        sql_ledger.expect_restock("var-001", "loc-001", 3)
        record = sql_ledger.receive_restock("var-001", "loc-001", 5)

        assert record.incoming == 0
        assert record.available == 15

    def test_threshold_and_listing(self, sql_ledger):
        sql_ledger.adjust("var-002", "loc-001", 1, "restock")
        sql_ledger.update_threshold("var-001", "loc-001", 4)

        items = sql_ledger.all_items()

        assert [(i.variant_id, i.low_stock_threshold) for i in items] == [("var-001", 4), ("var-002", None)]
        assert [i.variant_id for i in sql_ledger.items_at("loc-001")] == ["var-001", "var-002"]
