"""Stock ledger — counters, adjustments and the store that holds them.

``build_stock_store()`` picks the store from ``STOCK_STORE``:
- ``memory``: MemoryStockStore (development and tests)
- ``sql``: SqlStockStore against ``STOCK_DATABASE_URI``
"""

from inventory import settings
from inventory.ledger.memory_store import MemoryStockStore
from inventory.ledger.port import StockStore


def build_stock_store() -> StockStore:
    """Construct the configured stock store. The caller owns connect/close."""
    backend = settings.stock_store_backend()
    if backend == "memory":
        return MemoryStockStore()
    if backend == "sql":
        from inventory.ledger.sql_store import SqlStockStore

        return SqlStockStore(database_uri=settings.stock_database_uri())
    raise ValueError(f"Unknown stock store: {backend}")
