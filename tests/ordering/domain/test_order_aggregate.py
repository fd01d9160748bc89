"""Order aggregate: creation, transitions with history, cancellation and refunds."""

import json

import pytest
from ordering.errors import InvalidTransition
from ordering.order.events import (
    OrderCancelled,
    OrderCreated,
    OrderFulfilled,
    OrderRefunded,
    OrderStatusChanged,
)
from ordering.order.order import Order
from protean.exceptions import ValidationError


def _order(**overrides):
    kwargs = {
        "customer_id": "cust-001",
        "line_items": [
            {"variant_id": "var-001", "quantity": 2, "unit_price": 10.0},
            {"variant_id": "var-002", "quantity": 1, "unit_price": 5.5},
        ],
    }
    kwargs.update(overrides)
    return Order.create(**kwargs)


class TestCreate:
    def test_initial_statuses(self):
        order = _order()
        assert order.financial_status == "PENDING"
        assert order.fulfillment_status == "UNFULFILLED"

    def test_subtotal(self):
        order = _order()
        assert order.subtotal == 25.5
        assert order.grand_total == 25.5

    def test_explicit_id(self):
        assert str(_order(order_id="ord-001").id) == "ord-001"

    def test_first_history_row(self):
        history = _order().history()
        assert len(history) == 1
        assert history[0].previous_financial_status is None
        assert history[0].new_financial_status == "PENDING"
        assert history[0].new_fulfillment_status == "UNFULFILLED"

    def test_raises_order_created(self):
        order = _order()
        events = [e for e in order._events if isinstance(e, OrderCreated)]
        assert len(events) == 1
        items = json.loads(events[0].line_items)
        assert [i["variant_id"] for i in items] == ["var-001", "var-002"]

    def test_requires_line_items(self):
        with pytest.raises(ValidationError):
            _order(line_items=[])

    def test_line_quantity_must_be_positive(self):
        with pytest.raises(ValidationError):
            _order(line_items=[{"variant_id": "var-001", "quantity": 0}])


class TestTransition:
    def test_appends_history_with_both_axes(self):
        order = _order()
        order.transition(financial_status="AUTHORIZED", comment="authorized")
        order.transition(fulfillment_status="PARTIALLY_FULFILLED")

        history = order.history()
        assert [h.sequence for h in history] == [1, 2, 3]
        assert history[1].previous_financial_status == "PENDING"
        assert history[1].new_financial_status == "AUTHORIZED"
        assert history[1].comment == "authorized"
        assert history[2].previous_fulfillment_status == "UNFULFILLED"
        assert history[2].new_fulfillment_status == "PARTIALLY_FULFILLED"
        assert history[2].new_financial_status == "AUTHORIZED"

    def test_raises_status_changed(self):
        order = _order()
        order._events.clear()
        order.transition(financial_status="PAID")

        events = [e for e in order._events if isinstance(e, OrderStatusChanged)]
        assert len(events) == 1
        assert (events[0].previous_financial_status, events[0].new_financial_status) == ("PENDING", "PAID")

    def test_fulfilled_raises_order_fulfilled(self):
        order = _order()
        order.transition(financial_status="PAID")
        order.transition(fulfillment_status="FULFILLED")
        assert any(isinstance(e, OrderFulfilled) for e in order._events)

    def test_no_change_is_not_recorded(self):
        order = _order()
        assert order.transition(financial_status="PENDING") is False
        assert len(order.history()) == 1

    def test_rejected_transition_leaves_order_untouched(self):
        order = _order()
        with pytest.raises(InvalidTransition):
            order.transition(financial_status="REFUNDED")

        assert order.financial_status == "PENDING"
        assert len(order.history()) == 1

    def test_valid_transitions(self):
        order = _order()
        order.transition(financial_status="AUTHORIZED")
        assert order.valid_transitions()["financial"] == ["PAID", "VOIDED"]


class TestCancellation:
    def test_request_then_confirm(self):
        order = _order()
        order.request_cancellation("changed my mind")
        order.confirm_cancellation("VOIDED")

        assert order.financial_status == "VOIDED"
        assert order.cancel_reason == "changed my mind"
        assert order.history()[-1].comment == "Order cancelled: changed my mind"
        cancelled = [e for e in order._events if isinstance(e, OrderCancelled)]
        assert cancelled[0].reason == "changed my mind"

    def test_void_failed_creation_raises_cancelled(self):
        order = _order()
        order.void_failed_creation("Order creation failed: Card declined")

        assert order.financial_status == "VOIDED"
        assert order.cancelled_at is not None
        assert order.history()[-1].comment == "Order creation failed: Card declined"
        cancelled = [e for e in order._events if isinstance(e, OrderCancelled)]
        assert cancelled[0].reason == "Order creation failed: Card declined"

    def test_request_is_repeatable(self):
        order = _order()
        order.request_cancellation("first")
        order.request_cancellation("second")
        assert order.cancel_reason == "first"

    def test_cannot_cancel_voided(self):
        order = _order()
        order.transition(financial_status="VOIDED")
        assert order.can_cancel is False
        with pytest.raises(ValidationError):
            order.request_cancellation("too late")


class TestRefunds:
    def _paid(self):
        order = _order()
        order.record_pricing(shipping_total=4.5, tax_total=0)
        order.transition(financial_status="PAID")
        return order

    def test_pricing_updates_grand_total(self):
        order = self._paid()
        assert order.grand_total == 30.0
        assert order.refundable_amount == 30.0

    def test_record_refund(self):
        order = self._paid()
        order.record_refund(10.0, reason="damaged")

        assert order.refunded_total == 10.0
        assert order.refundable_amount == 20.0
        refunded = [e for e in order._events if isinstance(e, OrderRefunded)]
        assert (refunded[0].amount, refunded[0].refunded_total) == (10.0, 10.0)

    def test_refund_cannot_exceed_balance(self):
        order = self._paid()
        with pytest.raises(ValidationError):
            order.record_refund(30.01)

    def test_refund_must_be_positive(self):
        with pytest.raises(ValidationError):
            self._paid().record_refund(0)
