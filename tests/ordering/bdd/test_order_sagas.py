"""BDD tests for the order creation and cancellation sagas."""

import pytest
from inventory.errors import InsufficientStock
from ordering.errors import PaymentGatewayError
from pytest_bdd import given, parsers, scenarios, then, when

scenarios("features/order_sagas.feature")

ORDER_ID = "ord-bdd-001"


@pytest.fixture()
def error():
    return {"exc": None}


def _lines(variant_id, quantity):
    return [{"variant_id": variant_id, "quantity": quantity, "unit_price": 10.0}]


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('"{variant_id}" has {quantity:d} units in stock'))
def in_stock(stock, variant_id, quantity):
    stock(variant_id, quantity)


@given("the payment gateway declines payments")
def gateway_declines(payments):
    payments.configure(should_succeed=False, failure_reason="Card declined")


@given(parsers.cfparse('the customer has ordered {quantity:d} of "{variant_id}"'))
def ordered(service, quantity, variant_id):
    service.create_order("cust-001", _lines(variant_id, quantity), order_id=ORDER_ID)


@given("the payment has been captured")
def captured(service):
    service.capture_payment(ORDER_ID)


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('the customer orders {quantity:d} of "{variant_id}"'))
def place_order(service, error, quantity, variant_id):
    try:
        service.create_order("cust-001", _lines(variant_id, quantity), order_id=ORDER_ID)
    except (InsufficientStock, PaymentGatewayError) as exc:
        error["exc"] = exc


@when("the order is cancelled")
def cancel(service):
    service.cancel_order(ORDER_ID, reason="customer request")


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order is "{status}"'))
def order_status(service, status):
    assert service.get_order(ORDER_ID).financial_status == status


@then(parsers.cfparse('"{variant_id}" has {available:d} available and {committed:d} committed'))
def stock_counters(counters, variant_id, available, committed):
    assert counters(variant_id) == (available, committed)


@then(parsers.cfparse('the order fails with "{message}"'))
def fails_with(error, message):
    assert error["exc"] is not None
    assert str(error["exc"]) == message


@then(parsers.cfparse('the {saga_type} saga is "{status}"'))
def saga_status(runtime, saga_type, status):
    executions = runtime.orchestrator.executions_for(ORDER_ID, saga_type)
    assert executions[-1].status == status


@then("no payment intent was created")
def no_intent(payments):
    assert payments.calls_to("create_intent") == []


@then("the full amount was refunded")
def fully_refunded(service, payments):
    order = service.get_order(ORDER_ID)
    assert order.refunded_total == order.grand_total
    assert payments.calls_to("refund")[-1]["amount"] == order.grand_total
