"""Application tests for capture, refund, fulfilment and direct status updates.

Covers:
- CapturePayment / RefundOrder / UpdateOrderStatus commands
- partial and full refunds against the refundable balance
- fulfilment consuming inventory reservations
- rejected transitions leave the order and its history untouched
"""

import pytest
from ordering.errors import InvalidTransition, PaymentGatewayError
from ordering.order.status import CapturePayment, RefundOrder, UpdateOrderStatus
from protean import current_domain
from protean.exceptions import ValidationError

LINES = [{"variant_id": "var-001", "quantity": 2, "unit_price": 10.0}]


@pytest.fixture
def order(service, stock):
    stock("var-001", 10)
    return service.create_order("cust-001", LINES, order_id="ord-001")


class TestCapture:
    def test_capture_command(self, service, order, payments):
        result = current_domain.process(CapturePayment(order_id="ord-001"), asynchronous=False)

        assert result == "PAID"
        assert payments.intents[order.payment_intent_id]["status"] == "captured"
        assert service.get_order("ord-001").history()[-1].comment == "Payment captured"

    def test_capture_failure(self, service, order, payments):
        payments.configure(should_succeed=False, failure_reason="Intent expired")

        with pytest.raises(PaymentGatewayError) as exc:
            service.capture_payment("ord-001")

        assert exc.value.operation == "capture"
        assert service.get_order("ord-001").financial_status == "AUTHORIZED"

    def test_capture_voided_order_is_rejected(self, service, order, payments):
        service.cancel_order("ord-001")

        with pytest.raises(InvalidTransition):
            service.capture_payment("ord-001")
        assert payments.calls_to("capture_intent") == []

    def test_capture_twice_is_a_no_op(self, service, order, payments):
        service.capture_payment("ord-001")
        service.capture_payment("ord-001")
        assert len(payments.calls_to("capture_intent")) == 1


class TestRefund:
    def test_partial_then_full(self, service, order):
        service.capture_payment("ord-001")

        partial = service.refund_order("ord-001", amount=10.0, reason="damaged")
        assert partial.financial_status == "PARTIALLY_REFUNDED"
        assert partial.refundable_amount == 18.6

        full = service.refund_order("ord-001")
        assert full.financial_status == "REFUNDED"
        assert full.refunded_total == 28.6

    def test_repeat_partial_refund_keeps_status(self, service, order):
        service.capture_payment("ord-001")
        service.refund_order("ord-001", amount=5.0)
        history_rows = len(service.get_order("ord-001").history())

        order = service.refund_order("ord-001", amount=5.0)

        assert order.financial_status == "PARTIALLY_REFUNDED"
        assert order.refunded_total == 10.0
        assert len(order.history()) == history_rows

    def test_refund_command(self, order, service):
        service.capture_payment("ord-001")
        refunded_total = current_domain.process(RefundOrder(order_id="ord-001", amount=3.0), asynchronous=False)
        assert refunded_total == 3.0

    def test_refund_requires_payment(self, service, order):
        with pytest.raises(ValidationError):
            service.refund_order("ord-001")

    def test_refund_above_balance_is_rejected(self, service, order, payments):
        service.capture_payment("ord-001")

        with pytest.raises(ValidationError):
            service.refund_order("ord-001", amount=50.0)
        assert payments.calls_to("refund") == []

    def test_gateway_refusal(self, service, order, payments):
        service.capture_payment("ord-001")
        payments.configure(refunds_succeed=False)

        with pytest.raises(PaymentGatewayError):
            service.refund_order("ord-001", amount=1.0)
        assert service.get_order("ord-001").refunded_total == 0.0


class TestFulfillment:
    def test_full_fulfilment_consumes_reservations(self, service, order, counters):
        fulfilled = service.fulfill_order("ord-001")

        assert fulfilled.fulfillment_status == "FULFILLED"
        assert counters("var-001") == (8, 0)

    def test_partial_then_full(self, service, order, counters):
        assert service.fulfill_order("ord-001", partial=True).fulfillment_status == "PARTIALLY_FULFILLED"
        assert counters("var-001") == (8, 2)

        assert service.fulfill_order("ord-001").fulfillment_status == "FULFILLED"
        assert counters("var-001") == (8, 0)

    def test_fulfilled_is_terminal(self, service, order):
        service.fulfill_order("ord-001")

        with pytest.raises(InvalidTransition):
            service.fulfill_order("ord-001", partial=True)

    def test_voided_order_cannot_be_fulfilled(self, service, order, counters):
        service.cancel_order("ord-001")

        with pytest.raises(ValidationError):
            service.fulfill_order("ord-001")
        assert counters("var-001") == (10, 0)


class TestUpdateStatus:
    def test_update_command(self, service, order):
        result = current_domain.process(
            UpdateOrderStatus(order_id="ord-001", fulfillment_status="PARTIALLY_FULFILLED", comment="first box"),
            asynchronous=False,
        )

        assert result == ("AUTHORIZED", "PARTIALLY_FULFILLED")
        assert service.get_order("ord-001").history()[-1].comment == "first box"

    def test_rejected_update_keeps_history(self, service, order):
        before = len(service.get_order("ord-001").history())

        with pytest.raises(InvalidTransition) as exc:
            service.update_status("ord-001", financial_status="PARTIALLY_REFUNDED")

        assert exc.value.allowed == ["PAID", "VOIDED"]
        order = service.get_order("ord-001")
        assert order.financial_status == "AUTHORIZED"
        assert len(order.history()) == before

    def test_valid_transitions(self, service, order):
        assert service.valid_transitions("ord-001") == {
            "financial": ["PAID", "VOIDED"],
            "fulfillment": ["PARTIALLY_FULFILLED", "FULFILLED"],
        }
