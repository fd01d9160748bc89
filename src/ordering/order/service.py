"""OrderService — order lifecycle operations that span sagas and collaborators.

Creation and cancellation run through the saga orchestrator; the resulting
status change is applied afterwards through ``Order.transition``, so every
change lands in the order's status history. Failures re-raise the error that
caused them.
"""

from uuid import uuid4

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from ordering.errors import PaymentGatewayError
from ordering.order.order import Order
from ordering.order.state_machine import FinancialStatus, FulfillmentStatus, validate_transition
from ordering.saga.steps import ORDER_CANCELLATION, ORDER_CREATION

logger = structlog.get_logger(__name__)

PAID_STATUSES = (FinancialStatus.PAID.value, FinancialStatus.PARTIALLY_REFUNDED.value)


class OrderService:
    def __init__(self, runtime) -> None:
        self.runtime = runtime

    @staticmethod
    def _repo():
        return current_domain.repository_for(Order)

    def get_order(self, order_id) -> Order:
        return self._repo().get(str(order_id))

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------
    def create_order(
        self,
        customer_id,
        line_items,
        order_id=None,
        currency="USD",
        shipping_address=None,
    ) -> Order:
        order_id = str(order_id or uuid4())
        repo = self._repo()

        try:
            existing = repo.get(order_id)
        except ObjectNotFoundError:
            existing = None
        if existing is not None and existing.financial_status != FinancialStatus.PENDING.value:
            logger.info("Order already created", order_id=order_id, financial_status=existing.financial_status)
            return existing

        context = {
            "order_id": order_id,
            "customer_id": str(customer_id),
            "line_items": [dict(item) for item in line_items],
            "currency": currency,
            "shipping_address": shipping_address,
        }
        try:
            execution = self.runtime.orchestrator.run(ORDER_CREATION, context, correlation_id=order_id)
        except Exception as exc:
            self._void_failed_order(order_id, exc)
            raise

        results = execution.completed_results()
        payment = results["create_payment_intent"]
        order = repo.get(order_id)
        order.record_pricing(
            results["calculate_shipping"]["shipping_total"],
            results["calculate_tax"]["tax_total"],
        )
        order.record_payment_intent(payment["payment_intent_id"])
        if payment.get("status") == "authorized":
            order.transition(financial_status=FinancialStatus.AUTHORIZED.value, comment="Payment authorized")
        repo.add(order)

        logger.info(
            "Order created",
            order_id=order_id,
            customer_id=str(customer_id),
            grand_total=order.grand_total,
            saga_id=str(execution.id),
        )
        return order

    def _void_failed_order(self, order_id, error) -> None:
        repo = self._repo()
        try:
            order = repo.get(order_id)
        except ObjectNotFoundError:
            return
        if order.financial_status != FinancialStatus.PENDING.value:
            return
        order.void_failed_creation(f"Order creation failed: {error}")
        repo.add(order)
        logger.warning("Order voided after failed creation", order_id=order_id, error=str(error))

    # ------------------------------------------------------------------
    # Cancellation
    # ------------------------------------------------------------------
    def cancel_order(self, order_id, reason=None) -> Order:
        order = self.get_order(order_id)
        if not order.can_cancel:
            raise ValidationError(
                {"financial_status": [f"Order cannot be cancelled in {order.financial_status} status"]}
            )

        context = {"order_id": str(order.id), "reason": reason or "Cancelled by request"}
        execution = self.runtime.orchestrator.run(ORDER_CANCELLATION, context, correlation_id=str(order.id))

        status_at_cancel = execution.completed_results()["cancel_order"]["financial_status"]
        target = FinancialStatus.REFUNDED.value if status_at_cancel in PAID_STATUSES else FinancialStatus.VOIDED.value

        order = self.get_order(order_id)
        order.confirm_cancellation(target)
        self._repo().add(order)

        logger.info("Order cancelled", order_id=str(order.id), financial_status=target, saga_id=str(execution.id))
        return order

    # ------------------------------------------------------------------
    # Payment
    # ------------------------------------------------------------------
    def capture_payment(self, order_id) -> Order:
        order = self.get_order(order_id)
        validate_transition(
            order.financial_status,
            order.fulfillment_status,
            new_financial_status=FinancialStatus.PAID.value,
        )
        if order.financial_status == FinancialStatus.PAID.value:
            return order

        captured = self.runtime.payments.capture_intent(order.payment_intent_id)
        if not captured.success:
            raise PaymentGatewayError("capture", captured.failure_reason)

        order.transition(financial_status=FinancialStatus.PAID.value, comment="Payment captured")
        self._repo().add(order)
        logger.info("Payment captured", order_id=str(order.id), amount=order.grand_total)
        return order

    def refund_order(self, order_id, amount=None, reason=None) -> Order:
        order = self.get_order(order_id)
        if not order.can_refund:
            raise ValidationError({"financial_status": [f"Order cannot be refunded in {order.financial_status} status"]})

        amount = round(amount if amount is not None else order.refundable_amount, 2)
        if amount <= 0 or amount > order.refundable_amount:
            raise ValidationError(
                {"amount": [f"Refund amount must be between 0 and the refundable balance of {order.refundable_amount}"]}
            )

        refund = self.runtime.payments.refund(
            order.payment_intent_id,
            amount,
            reason or "Refund requested",
            idempotency_key=f"order-{order.id}-refund-{order.refunded_total:.2f}-{amount:.2f}",
        )
        if not refund.success:
            raise PaymentGatewayError("refund", refund.failure_reason)

        order.record_refund(amount, reason=reason)
        target = (
            FinancialStatus.REFUNDED.value
            if order.refundable_amount <= 0
            else FinancialStatus.PARTIALLY_REFUNDED.value
        )
        order.transition(financial_status=target, comment=reason or f"Refunded {amount:.2f}")
        self._repo().add(order)

        logger.info("Order refunded", order_id=str(order.id), amount=amount, financial_status=target)
        return order

    # ------------------------------------------------------------------
    # Fulfillment
    # ------------------------------------------------------------------
    def fulfill_order(self, order_id, partial=False, comment=None) -> Order:
        order = self.get_order(order_id)
        if not order.can_fulfill:
            raise ValidationError(
                {"financial_status": [f"Order cannot be fulfilled in {order.financial_status} status"]}
            )

        target = FulfillmentStatus.PARTIALLY_FULFILLED.value if partial else FulfillmentStatus.FULFILLED.value
        validate_transition(order.financial_status, order.fulfillment_status, new_fulfillment_status=target)

        if target == FulfillmentStatus.FULFILLED.value:
            outcome = self.runtime.inventory.fulfill_for_order(str(order.id))
            logger.info("Reservations fulfilled", order_id=str(order.id), outcome=outcome)

        order.transition(fulfillment_status=target, comment=comment)
        self._repo().add(order)
        return order

    # ------------------------------------------------------------------
    # Direct status changes
    # ------------------------------------------------------------------
    def update_status(self, order_id, financial_status=None, fulfillment_status=None, comment=None) -> Order:
        order = self.get_order(order_id)
        if order.transition(financial_status=financial_status, fulfillment_status=fulfillment_status, comment=comment):
            self._repo().add(order)
            logger.info(
                "Order status updated",
                order_id=str(order.id),
                financial_status=order.financial_status,
                fulfillment_status=order.fulfillment_status,
            )
        return order

    def valid_transitions(self, order_id) -> dict:
        return self.get_order(order_id).valid_transitions()
