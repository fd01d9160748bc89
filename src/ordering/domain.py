"""Ordering bounded context — order lifecycle and order sagas.

Owns the Order aggregate with its financial/fulfillment state machine and
status history, and the saga orchestrator that coordinates inventory,
shipping, tax and payment side effects when orders are created or cancelled.
"""

import structlog
from protean.domain import Domain

ordering = Domain(name="ordering")

logger = structlog.get_logger(__name__)
