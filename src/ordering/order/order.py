"""Order aggregate (CQRS) — financial and fulfillment status with an audit trail.

Status fields change only through ``transition()``, which validates against
the state machine and appends an OrderStatusHistory row holding the
previous and new value of both axes. History rows are never rewritten.
"""

import json
from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text

from ordering.domain import ordering
from ordering.order.events import (
    OrderCancelled,
    OrderCreated,
    OrderFulfilled,
    OrderRefunded,
    OrderStatusChanged,
)
from ordering.order.state_machine import (
    FinancialStatus,
    FulfillmentStatus,
    can_cancel,
    can_fulfill,
    can_refund,
    get_valid_transitions,
    validate_transition,
)


@ordering.entity(part_of="Order")
class OrderLine:
    """One variant and quantity on an order."""

    variant_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(default=0.0)
    preferred_location_id = Identifier()


@ordering.entity(part_of="Order")
class OrderStatusHistory:
    """Append-only record of one applied status change."""

    sequence = Integer(default=0)
    previous_financial_status = String(max_length=30)
    new_financial_status = String(required=True, max_length=30)
    previous_fulfillment_status = String(max_length=30)
    new_fulfillment_status = String(required=True, max_length=30)
    comment = Text()
    created_at = DateTime()


@ordering.aggregate
class Order:
    customer_id = Identifier(required=True)
    financial_status = String(choices=FinancialStatus, default=FinancialStatus.PENDING.value)
    fulfillment_status = String(choices=FulfillmentStatus, default=FulfillmentStatus.UNFULFILLED.value)
    lines = HasMany(OrderLine)
    status_history = HasMany(OrderStatusHistory)
    currency = String(max_length=3, default="USD")
    subtotal = Float(default=0.0)
    shipping_total = Float(default=0.0)
    tax_total = Float(default=0.0)
    grand_total = Float(default=0.0)
    refunded_total = Float(default=0.0)
    payment_intent_id = String(max_length=100)
    cancel_reason = String(max_length=500)
    cancelled_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, customer_id, line_items, order_id=None, currency="USD"):
        """Create a PENDING/UNFULFILLED order from line item dicts."""
        if not line_items:
            raise ValidationError({"line_items": ["An order needs at least one line item"]})

        now = datetime.now(UTC)
        kwargs = {"id": order_id} if order_id else {}
        order = cls(customer_id=customer_id, currency=currency, created_at=now, updated_at=now, **kwargs)

        for item in line_items:
            order.add_lines(
                OrderLine(
                    variant_id=item["variant_id"],
                    quantity=item["quantity"],
                    unit_price=item.get("unit_price") or 0.0,
                    preferred_location_id=item.get("preferred_location_id"),
                )
            )
        order.subtotal = round(sum(line.quantity * (line.unit_price or 0.0) for line in order.lines), 2)
        order.grand_total = order.subtotal
        order._append_history(None, None, comment="Order created")

        order.raise_(
            OrderCreated(
                order_id=str(order.id),
                customer_id=str(customer_id),
                line_items=json.dumps(order.line_items()),
                created_at=now,
            )
        )
        return order

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def line_items(self) -> list[dict]:
        return [
            {
                "variant_id": str(line.variant_id),
                "quantity": line.quantity,
                "unit_price": line.unit_price or 0.0,
                "preferred_location_id": str(line.preferred_location_id) if line.preferred_location_id else None,
            }
            for line in (self.lines or [])
        ]

    def history(self) -> list:
        return sorted(self.status_history or [], key=lambda h: h.sequence)

    def valid_transitions(self) -> dict:
        return get_valid_transitions(self.financial_status, self.fulfillment_status)

    @property
    def refundable_amount(self) -> float:
        return round((self.grand_total or 0.0) - (self.refunded_total or 0.0), 2)

    @property
    def can_cancel(self) -> bool:
        return can_cancel(self.financial_status)

    @property
    def can_refund(self) -> bool:
        return can_refund(self.financial_status)

    @property
    def can_fulfill(self) -> bool:
        return can_fulfill(self.financial_status)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    def _append_history(self, previous_financial, previous_fulfillment, comment=None):
        self.add_status_history(
            OrderStatusHistory(
                sequence=len(self.status_history or []) + 1,
                previous_financial_status=previous_financial,
                new_financial_status=self.financial_status,
                previous_fulfillment_status=previous_fulfillment,
                new_fulfillment_status=self.fulfillment_status,
                comment=comment,
                created_at=datetime.now(UTC),
            )
        )

    def transition(self, financial_status=None, fulfillment_status=None, comment=None) -> bool:
        """Apply a validated status change. Returns False when nothing changed."""
        new_financial, new_fulfillment = validate_transition(
            self.financial_status,
            self.fulfillment_status,
            financial_status,
            fulfillment_status,
        )
        if new_financial == self.financial_status and new_fulfillment == self.fulfillment_status:
            return False

        previous_financial, previous_fulfillment = self.financial_status, self.fulfillment_status
        self.financial_status = new_financial
        self.fulfillment_status = new_fulfillment
        self.updated_at = datetime.now(UTC)
        self._append_history(previous_financial, previous_fulfillment, comment=comment)

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                previous_financial_status=previous_financial,
                new_financial_status=new_financial,
                previous_fulfillment_status=previous_fulfillment,
                new_fulfillment_status=new_fulfillment,
                comment=comment,
                changed_at=self.updated_at,
            )
        )
        if new_fulfillment == FulfillmentStatus.FULFILLED.value and previous_fulfillment != new_fulfillment:
            self.raise_(OrderFulfilled(order_id=str(self.id), fulfilled_at=self.updated_at))
        return True

    # ------------------------------------------------------------------
    # Pricing, payment and cancellation bookkeeping
    # ------------------------------------------------------------------
    def record_pricing(self, shipping_total, tax_total):
        self.shipping_total = round(shipping_total or 0.0, 2)
        self.tax_total = round(tax_total or 0.0, 2)
        self.grand_total = round(self.subtotal + self.shipping_total + self.tax_total, 2)
        self.updated_at = datetime.now(UTC)

    def record_payment_intent(self, payment_intent_id):
        self.payment_intent_id = payment_intent_id
        self.updated_at = datetime.now(UTC)

    def request_cancellation(self, reason):
        """Record why the order is being cancelled. Safe to repeat."""
        if self.cancelled_at is not None:
            return
        if not self.can_cancel:
            raise ValidationError({"financial_status": [f"Order cannot be cancelled in {self.financial_status} status"]})
        self.cancel_reason = reason
        self.cancelled_at = datetime.now(UTC)
        self.updated_at = self.cancelled_at

    def confirm_cancellation(self, financial_status, comment=None):
        """Move to VOIDED or REFUNDED once the cancellation saga has completed."""
        self.transition(financial_status=financial_status, comment=comment or f"Order cancelled: {self.cancel_reason}")
        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                reason=self.cancel_reason,
                cancelled_at=self.cancelled_at or self.updated_at,
            )
        )

    def void_failed_creation(self, reason):
        """Void an order whose creation saga failed. Raises OrderCancelled so that
        late consumers of OrderCreated release whatever they reserve."""
        self.cancel_reason = reason[:500]
        self.cancelled_at = datetime.now(UTC)
        self.confirm_cancellation(FinancialStatus.VOIDED.value, comment=self.cancel_reason)

    def record_refund(self, amount, reason=None):
        if amount <= 0:
            raise ValidationError({"amount": ["Refund amount must be positive"]})
        if amount > self.refundable_amount + 0.005:
            raise ValidationError({"amount": [f"Refund amount exceeds refundable balance of {self.refundable_amount}"]})
        self.refunded_total = round((self.refunded_total or 0.0) + amount, 2)
        self.updated_at = datetime.now(UTC)
        self.raise_(
            OrderRefunded(
                order_id=str(self.id),
                amount=amount,
                refunded_total=self.refunded_total,
                reason=reason,
                refunded_at=self.updated_at,
            )
        )
