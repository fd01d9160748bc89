"""Low-stock alert commands — periodic check and operator dismissal.

``RunLowStockCheck`` is dispatched by the background scheduler in
``server.py`` (hourly by default) and by the maintenance endpoint.
"""

import asyncio

import structlog
from protean.fields import DateTime, Identifier
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from inventory.alert.alert import LowStockAlert
from inventory.domain import inventory
from inventory.runtime import current_runtime

logger = structlog.get_logger(__name__)


@inventory.command(part_of="LowStockAlert")
class RunLowStockCheck:
    """Request a pass of the low-stock monitor over every stock row."""

    requested_at = DateTime()


@inventory.command(part_of="LowStockAlert")
class DismissAlert:
    alert_id = Identifier(required=True)


@inventory.command_handler(part_of=LowStockAlert)
class LowStockAlertHandler:
    @handle(RunLowStockCheck)
    def run_check(self, command: RunLowStockCheck):
        summary = current_runtime().monitor.check()
        return {"checked": summary.checked, "raised": summary.raised, "resolved": summary.resolved}

    @handle(DismissAlert)
    def dismiss_alert(self, command: DismissAlert):
        current_runtime().monitor.dismiss(command.alert_id)


class LowStockScheduler:
    """Runs ``RunLowStockCheck`` on a fixed interval inside the domain context.

    A failed pass is logged and the loop keeps going.
    """

    def __init__(self, domain, interval_seconds: float) -> None:
        self.domain = domain
        self.interval_seconds = interval_seconds
        self.runs = 0

    def run_once(self):
        with self.domain.domain_context():
            try:
                result = current_domain.process(RunLowStockCheck(), asynchronous=False)
            except Exception as exc:
                logger.error("Low stock check failed", error=str(exc))
                return None
        self.runs += 1
        return result

    async def run_forever(self, stop_event=None):
        logger.info("Low stock scheduler started", interval_seconds=self.interval_seconds)
        while stop_event is None or not stop_event.is_set():
            await asyncio.to_thread(self.run_once)
            if stop_event is None:
                await asyncio.sleep(self.interval_seconds)
                continue
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self.interval_seconds)
            except TimeoutError:
                continue
        logger.info("Low stock scheduler stopped")
