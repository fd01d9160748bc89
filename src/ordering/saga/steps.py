"""Order sagas — step functions and their compensations.

Collaborators come from ``ctx.services`` (the ordering runtime): ``inventory``,
``shipping``, ``tax`` and ``payments``. Every step can be re-run safely:

- ``create_order`` loads the order when it already exists
- inventory reservation reuses reservations the order already holds
- payment calls carry an idempotency key derived from the order id
- refunds are computed from the order's remaining refundable balance
"""

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from ordering.errors import PaymentGatewayError
from ordering.order.order import Order
from ordering.order.state_machine import FinancialStatus
from ordering.saga.registry import SagaRegistry

logger = structlog.get_logger(__name__)

ORDER_CREATION = "order_creation"
ORDER_CANCELLATION = "order_cancellation"

saga_registry = SagaRegistry()


def _orders():
    return current_domain.repository_for(Order)


def _order_id(ctx) -> str:
    return str(ctx.data["order_id"])


# ----------------------------------------------------------------------
# order_creation
# ----------------------------------------------------------------------
@saga_registry.step("create_order")
def create_order(ctx):
    repo = _orders()
    try:
        order = repo.get(_order_id(ctx))
    except ObjectNotFoundError:
        order = Order.create(
            customer_id=ctx.data["customer_id"],
            line_items=ctx.data["line_items"],
            order_id=_order_id(ctx),
            currency=ctx.data.get("currency") or "USD",
        )
        repo.add(order)
    return {"order_id": str(order.id), "subtotal": order.subtotal}


@saga_registry.step("reserve_inventory")
def reserve_inventory(ctx):
    inventory = ctx.services.inventory
    items = [
        {
            "variant_id": item["variant_id"],
            "quantity": item["quantity"],
            "preferred_location_id": item.get("preferred_location_id"),
        }
        for item in ctx.data["line_items"]
    ]
    try:
        reservations = inventory.reserve_for_order(_order_id(ctx), items)
    except Exception:
        # Line items commit one by one; give back whatever was held before the failure
        try:
            inventory.release_for_order(_order_id(ctx))
        except Exception as release_exc:
            logger.error(
                "Could not release partial reservation",
                order_id=_order_id(ctx),
                error=str(release_exc),
            )
        raise
    return {"reservations": reservations}


@saga_registry.compensation("reserve_inventory")
def release_reservations(ctx, result):
    ctx.services.inventory.release_for_order(_order_id(ctx))


@saga_registry.step("calculate_shipping")
def calculate_shipping(ctx):
    shipping = ctx.services.shipping.calculate(
        ctx.data["line_items"],
        destination=ctx.data.get("shipping_address"),
    )
    return {"shipping_total": round(shipping, 2)}


@saga_registry.step("calculate_tax")
def calculate_tax(ctx):
    subtotal = ctx.result_of("create_order").get("subtotal", 0.0)
    shipping = ctx.result_of("calculate_shipping").get("shipping_total", 0.0)
    tax = ctx.services.tax.calculate(subtotal, shipping, destination=ctx.data.get("shipping_address"))
    return {"tax_total": round(tax, 2), "grand_total": round(subtotal + shipping + tax, 2)}


@saga_registry.step("create_payment_intent")
def create_payment_intent(ctx):
    amount = ctx.result_of("calculate_tax").get("grand_total", 0.0)
    result = ctx.services.payments.create_intent(
        amount,
        ctx.data.get("currency") or "USD",
        idempotency_key=f"order-{_order_id(ctx)}",
    )
    if not result.success:
        raise PaymentGatewayError("authorization", result.failure_reason)
    return {"payment_intent_id": result.intent_id, "status": result.status, "amount": amount}


@saga_registry.compensation("create_payment_intent")
def cancel_payment_intent(ctx, result):
    cancelled = ctx.services.payments.cancel_intent(result["payment_intent_id"])
    if not cancelled.success:
        raise PaymentGatewayError("cancellation", cancelled.failure_reason)


# ----------------------------------------------------------------------
# order_cancellation
# ----------------------------------------------------------------------
@saga_registry.step("cancel_order")
def cancel_order(ctx):
    repo = _orders()
    order = repo.get(_order_id(ctx))
    order.request_cancellation(ctx.data.get("reason"))
    repo.add(order)
    return {"financial_status": order.financial_status}


@saga_registry.step("release_inventory")
def release_inventory(ctx):
    released = ctx.services.inventory.release_for_order(_order_id(ctx))
    return {"released": released}


@saga_registry.step("refund_payment")
def refund_payment(ctx):
    repo = _orders()
    order = repo.get(_order_id(ctx))
    payments = ctx.services.payments

    if order.financial_status in (FinancialStatus.PAID.value, FinancialStatus.PARTIALLY_REFUNDED.value):
        amount = order.refundable_amount
        if amount <= 0:
            return {"action": "none", "amount": 0.0}
        refund = payments.refund(
            order.payment_intent_id,
            amount,
            ctx.data.get("reason") or "Order cancelled",
            idempotency_key=f"order-{order.id}-cancellation",
        )
        if not refund.success:
            raise PaymentGatewayError("refund", refund.failure_reason)
        order.record_refund(amount, reason=ctx.data.get("reason"))
        repo.add(order)
        return {"action": "refunded", "amount": amount, "refund_id": refund.refund_id}

    if order.payment_intent_id and order.financial_status == FinancialStatus.AUTHORIZED.value:
        cancelled = payments.cancel_intent(order.payment_intent_id)
        if not cancelled.success:
            raise PaymentGatewayError("cancellation", cancelled.failure_reason)
        return {"action": "voided", "payment_intent_id": order.payment_intent_id}

    return {"action": "none"}


saga_registry.define(
    ORDER_CREATION,
    ["create_order", "reserve_inventory", "calculate_shipping", "calculate_tax", "create_payment_intent"],
)
saga_registry.define(ORDER_CANCELLATION, ["cancel_order", "release_inventory", "refund_payment"])
