"""BDD tests for inventory reservation, release and fulfilment."""

import pytest
from inventory.errors import InsufficientStock
from inventory.location.management import CreateLocation
from inventory.reservation.reservation import ReservationStatus
from protean import current_domain
from pytest_bdd import given, parsers, scenarios, then, when

scenarios("features/inventory_reservation.feature")


@pytest.fixture()
def error():
    return {"exc": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a location "{location_id}" with priority {priority:d}'))
def a_location(location_id, priority):
    current_domain.process(
        CreateLocation(location_id=location_id, store_id="store-1", name=location_id, priority=priority),
        asynchronous=False,
    )


@given(parsers.cfparse('"{variant_id}" has {quantity:d} available at "{location_id}"'))
def stocked(ledger, variant_id, quantity, location_id):
    ledger.adjust(variant_id, location_id, quantity, "restock")


@given(parsers.cfparse('order "{order_id}" has reserved {quantity:d} of "{variant_id}"'))
def reserved(reservations, order_id, quantity, variant_id):
    reservations.reserve_for_order(order_id, [{"variant_id": variant_id, "quantity": quantity}])


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(
    parsers.cfparse('order "{order_id}" reserves {quantity:d} of "{variant_id}"'),
    target_fixture="result",
)
def reserve_one(reservations, error, order_id, quantity, variant_id):
    try:
        return reservations.reserve_for_order(order_id, [{"variant_id": variant_id, "quantity": quantity}])
    except InsufficientStock as exc:
        error["exc"] = exc
        return []


@when(
    parsers.cfparse('order "{order_id}" reserves two lines: {first:d} of "{first_variant}" and {second:d} of "{second_variant}"'),
    target_fixture="result",
)
def reserve_two(reservations, error, order_id, first, first_variant, second, second_variant):
    items = [
        {"variant_id": first_variant, "quantity": first},
        {"variant_id": second_variant, "quantity": second},
    ]
    try:
        return reservations.reserve_for_order(order_id, items)
    except InsufficientStock as exc:
        error["exc"] = exc
        return []


@when(parsers.cfparse('order "{order_id}" is released'))
def release(reservations, order_id):
    reservations.release_for_order(order_id)


@when(parsers.cfparse('order "{order_id}" is fulfilled'))
def fulfill(reservations, order_id):
    reservations.fulfill_for_order(order_id)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the reservation for "{variant_id}" is at "{location_id}"'))
def reservation_at(result, variant_id, location_id):
    matching = [r for r in result if str(r.variant_id) == variant_id]
    assert len(matching) == 1
    assert str(matching[0].location_id) == location_id


@then(parsers.cfparse('"{location_id}" has {available:d} available and {committed:d} committed for "{variant_id}"'))
def counters(ledger, location_id, available, committed, variant_id):
    record = ledger.get(variant_id, location_id)
    assert record.available == available
    assert record.committed == committed


@then("the reservation fails with insufficient stock")
def fails_insufficient(error):
    assert isinstance(error["exc"], InsufficientStock)


@then(parsers.cfparse('order "{order_id}" holds no active reservations'))
def no_active(reservations, order_id):
    assert reservations.reservations_for_order(order_id, status=ReservationStatus.ACTIVE.value) == []


@then(parsers.cfparse('releasing order "{order_id}" changes nothing'))
def release_is_noop(reservations, ledger, order_id):
    before = [(r.available, r.committed) for r in ledger.all_items()]
    assert reservations.release_for_order(order_id) == []
    assert [(r.available, r.committed) for r in ledger.all_items()] == before
