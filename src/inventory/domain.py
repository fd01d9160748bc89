"""Inventory bounded context — multi-location stock ledger and reservations.

Tracks per (variant, location) stock counters, reserves stock against orders,
manages fulfilment locations and watches for low stock.
"""

import structlog
from protean.domain import Domain

inventory = Domain(name="inventory")

logger = structlog.get_logger(__name__)
