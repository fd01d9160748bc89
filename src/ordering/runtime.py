"""Ordering runtime — saga collaborators constructed at start-up.

Saga steps reach the inventory, shipping, tax and payment ports through the
runtime passed to the orchestrator. The owning process builds it once and
binds it; ``current_runtime()`` fails loudly when nothing is bound.
"""

from dataclasses import dataclass, field

import structlog

from ordering.gateways import build_payment_gateway, build_shipping_calculator, build_tax_calculator
from ordering.gateways.port import InventoryPort, PaymentGateway, ShippingCalculator, TaxCalculator
from ordering.saga.orchestrator import SagaOrchestrator
from ordering.saga.steps import saga_registry

logger = structlog.get_logger(__name__)


@dataclass
class OrderingRuntime:
    inventory: InventoryPort
    shipping: ShippingCalculator
    tax: TaxCalculator
    payments: PaymentGateway
    orchestrator: SagaOrchestrator = field(init=False)

    def __post_init__(self) -> None:
        self.orchestrator = SagaOrchestrator(saga_registry, services=self)

    @classmethod
    def build(cls, inventory: InventoryPort, shipping=None, tax=None, payments=None) -> "OrderingRuntime":
        return cls(
            inventory=inventory,
            shipping=shipping if shipping is not None else build_shipping_calculator(),
            tax=tax if tax is not None else build_tax_calculator(),
            payments=payments if payments is not None else build_payment_gateway(),
        )


_runtime: OrderingRuntime | None = None


def bind_runtime(runtime: OrderingRuntime) -> None:
    global _runtime
    _runtime = runtime
    logger.info(
        "Ordering runtime bound",
        inventory=type(runtime.inventory).__name__,
        payments=type(runtime.payments).__name__,
    )


def unbind_runtime() -> None:
    global _runtime
    _runtime = None


def current_runtime() -> OrderingRuntime:
    if _runtime is None:
        raise RuntimeError("Ordering runtime is not bound; call bind_runtime() at start-up")
    return _runtime
