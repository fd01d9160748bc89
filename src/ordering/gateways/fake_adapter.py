"""Configurable fakes for the saga collaborators.

These adapters simulate shipping, tax and payment providers without any
external calls. Each records its ``calls`` and can be configured at runtime
to fail, which is how tests drive saga failure and compensation paths.
"""

from uuid import uuid4

from ordering.gateways.port import (
    InventoryPort,
    PaymentGateway,
    PaymentIntentResult,
    RefundResult,
    ShippingCalculator,
    TaxCalculator,
)


class FlatRateShipping(ShippingCalculator):
    """Base rate per order plus a per-unit charge."""

    def __init__(self, base_rate: float = 5.0, per_unit: float = 0.5) -> None:
        self.base_rate = base_rate
        self.per_unit = per_unit
        self.should_fail: bool = False
        self.failure_reason: str = "Shipping service unavailable"
        self.calls: list[dict] = []

    def configure(self, should_fail: bool, failure_reason: str = "Shipping service unavailable") -> None:
        self.should_fail = should_fail
        self.failure_reason = failure_reason

    def calculate(self, line_items, destination=None):
        self.calls.append({"method": "calculate", "line_items": line_items, "destination": destination})
        if self.should_fail:
            raise RuntimeError(self.failure_reason)
        units = sum(item["quantity"] for item in line_items)
        return round(self.base_rate + self.per_unit * units, 2)


class FlatRateTax(TaxCalculator):
    def __init__(self, rate: float = 0.08) -> None:
        self.rate = rate
        self.should_fail: bool = False
        self.failure_reason: str = "Tax service unavailable"
        self.calls: list[dict] = []

    def configure(self, should_fail: bool, failure_reason: str = "Tax service unavailable") -> None:
        self.should_fail = should_fail
        self.failure_reason = failure_reason

    def calculate(self, subtotal, shipping, destination=None):
        self.calls.append({"method": "calculate", "subtotal": subtotal, "shipping": shipping})
        if self.should_fail:
            raise RuntimeError(self.failure_reason)
        return round((subtotal + shipping) * self.rate, 2)


class FakePaymentGateway(PaymentGateway):
    """Configurable fake payment gateway.

    ``configure`` toggles intent creation/capture; refunds and cancellations
    have their own switches so compensation failures can be simulated.
    """

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Card declined"
        self.refunds_succeed: bool = True
        self.cancels_succeed: bool = True
        self.intents: dict[str, dict] = {}
        self._by_key: dict[str, str] = {}
        self._refunds_by_key: dict[str, RefundResult] = {}
        self.calls: list[dict] = []

    def configure(
        self,
        should_succeed: bool = True,
        failure_reason: str = "Card declined",
        refunds_succeed: bool = True,
        cancels_succeed: bool = True,
    ) -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.refunds_succeed = refunds_succeed
        self.cancels_succeed = cancels_succeed

    def create_intent(self, amount, currency, idempotency_key):
        self.calls.append(
            {"method": "create_intent", "amount": amount, "currency": currency, "idempotency_key": idempotency_key}
        )
        if idempotency_key in self._by_key:
            intent = self.intents[self._by_key[idempotency_key]]
            return PaymentIntentResult(
                success=True, intent_id=intent["id"], status=intent["status"], amount=intent["amount"]
            )
        if not self.should_succeed:
            return PaymentIntentResult(success=False, status="failed", failure_reason=self.failure_reason)

        intent_id = f"fake_pi_{uuid4().hex[:12]}"
        self.intents[intent_id] = {"id": intent_id, "amount": amount, "currency": currency, "status": "authorized"}
        self._by_key[idempotency_key] = intent_id
        return PaymentIntentResult(success=True, intent_id=intent_id, status="authorized", amount=amount)

    def capture_intent(self, intent_id):
        self.calls.append({"method": "capture_intent", "intent_id": intent_id})
        intent = self.intents.get(intent_id)
        if intent is None or not self.should_succeed:
            return PaymentIntentResult(success=False, intent_id=intent_id, failure_reason=self.failure_reason)
        intent["status"] = "captured"
        return PaymentIntentResult(success=True, intent_id=intent_id, status="captured", amount=intent["amount"])

    def cancel_intent(self, intent_id):
        self.calls.append({"method": "cancel_intent", "intent_id": intent_id})
        if not self.cancels_succeed:
            return PaymentIntentResult(success=False, intent_id=intent_id, failure_reason="Cancellation rejected")
        intent = self.intents.get(intent_id)
        if intent is not None:
            intent["status"] = "cancelled"
        return PaymentIntentResult(success=True, intent_id=intent_id, status="cancelled")

    def refund(self, intent_id, amount, reason, idempotency_key):
        self.calls.append(
            {
                "method": "refund",
                "intent_id": intent_id,
                "amount": amount,
                "reason": reason,
                "idempotency_key": idempotency_key,
            }
        )
        if idempotency_key in self._refunds_by_key:
            return self._refunds_by_key[idempotency_key]
        if not self.refunds_succeed:
            return RefundResult(success=False, failure_reason="Refund rejected by gateway")
        result = RefundResult(success=True, refund_id=f"fake_re_{uuid4().hex[:12]}", amount=amount)
        self._refunds_by_key[idempotency_key] = result
        return result

    def calls_to(self, method: str) -> list[dict]:
        return [c for c in self.calls if c["method"] == method]


class FakeInventory(InventoryPort):
    """Stand-in for the Inventory domain when ordering is tested on its own."""

    def __init__(self) -> None:
        self.reserved: dict[str, list[dict]] = {}
        self.released: list[str] = []
        self.fulfilled: list[str] = []
        self.fail_reserve_with: Exception | None = None
        self.calls: list[dict] = []

    def reserve_for_order(self, order_id, items):
        self.calls.append({"method": "reserve_for_order", "order_id": str(order_id)})
        if self.fail_reserve_with is not None:
            raise self.fail_reserve_with
        self.reserved.setdefault(str(order_id), [dict(item) for item in items])
        return self.reserved[str(order_id)]

    def release_for_order(self, order_id):
        self.calls.append({"method": "release_for_order", "order_id": str(order_id)})
        if self.reserved.pop(str(order_id), None) is None:
            return 0
        self.released.append(str(order_id))
        return 1

    def fulfill_for_order(self, order_id):
        self.calls.append({"method": "fulfill_for_order", "order_id": str(order_id)})
        if str(order_id) in self.fulfilled:
            return "already_fulfilled"
        self.fulfilled.append(str(order_id))
        return "fulfilled"

    def calls_to(self, method: str) -> list[dict]:
        return [c for c in self.calls if c["method"] == method]
