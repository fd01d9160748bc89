"""Collaborator ports used by the order sagas.

Inventory, shipping, tax and payment are external to the Ordering domain.
Saga steps talk to them only through these interfaces, so fakes can stand
in during development and tests.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class PaymentIntentResult:
    """Result of creating, capturing or cancelling a payment intent."""

    success: bool
    intent_id: str | None = None
    status: str | None = None
    amount: float = 0.0
    failure_reason: str | None = None


@dataclass(frozen=True)
class RefundResult:
    """Result of a refund attempt."""

    success: bool
    refund_id: str | None = None
    amount: float = 0.0
    failure_reason: str | None = None


class InventoryPort(ABC):
    """Order-level reservation operations of the Inventory domain."""

    @abstractmethod
    def reserve_for_order(self, order_id: str, items: list[dict]) -> list[dict]:
        """Reserve every line item. Raises InsufficientStock on shortage."""
        ...

    @abstractmethod
    def release_for_order(self, order_id: str) -> int:
        """Release the order's ACTIVE reservations. Returns how many were released."""
        ...

    @abstractmethod
    def fulfill_for_order(self, order_id: str) -> str:
        """Fulfil the order's ACTIVE reservations. Returns ``fulfilled`` or ``already_fulfilled``."""
        ...


class ShippingCalculator(ABC):
    @abstractmethod
    def calculate(self, line_items: list[dict], destination: dict | None = None) -> float:
        ...


class TaxCalculator(ABC):
    @abstractmethod
    def calculate(self, subtotal: float, shipping: float, destination: dict | None = None) -> float:
        ...


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def create_intent(self, amount: float, currency: str, idempotency_key: str) -> PaymentIntentResult:
        """Authorise ``amount``; repeated calls with the same key return the same intent."""
        ...

    @abstractmethod
    def capture_intent(self, intent_id: str) -> PaymentIntentResult:
        ...

    @abstractmethod
    def cancel_intent(self, intent_id: str) -> PaymentIntentResult:
        """Void an authorised intent. Cancelling twice succeeds."""
        ...

    @abstractmethod
    def refund(self, intent_id: str, amount: float, reason: str, idempotency_key: str) -> RefundResult:
        ...
