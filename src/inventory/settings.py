"""Environment-driven settings for the inventory runtime.

Protean reads provider configuration from ``domain.toml``; the ledger store,
event publisher and low-stock defaults are plain environment variables so
they can be swapped per deployment without touching domain config.
"""

import os

DEFAULT_LOW_STOCK_THRESHOLD = 10
DEFAULT_LOW_STOCK_CHECK_INTERVAL_SECONDS = 3600


def stock_store_backend() -> str:
    """Ledger backend: ``memory`` (default) or ``sql``."""
    return os.environ.get("STOCK_STORE", "memory").lower()


def stock_database_uri() -> str:
    return os.environ.get("STOCK_DATABASE_URI", "sqlite:///inventory_stock.db")


def event_publisher_backend() -> str:
    """Outbound publisher: ``memory`` (default) or ``redis``."""
    return os.environ.get("EVENT_PUBLISHER", "memory").lower()


def redis_url() -> str:
    return os.environ.get("REDIS_URL", "redis://localhost:6379/0")


def event_channel() -> str:
    return os.environ.get("INVENTORY_EVENT_CHANNEL", "inventory_events")


def low_stock_threshold() -> int:
    """Store-wide default threshold used when an item has none of its own."""
    return int(os.environ.get("LOW_STOCK_THRESHOLD", DEFAULT_LOW_STOCK_THRESHOLD))


def low_stock_check_interval() -> float:
    return float(os.environ.get("LOW_STOCK_CHECK_INTERVAL_SECONDS", DEFAULT_LOW_STOCK_CHECK_INTERVAL_SECONDS))
