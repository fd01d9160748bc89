"""Order state machine — two independent status axes.

Financial:
    PENDING → AUTHORIZED | PAID | VOIDED
    AUTHORIZED → PAID | VOIDED
    PAID → PARTIALLY_REFUNDED | REFUNDED
    PARTIALLY_REFUNDED → REFUNDED
    REFUNDED, VOIDED: terminal

Fulfillment:
    UNFULFILLED → PARTIALLY_FULFILLED | FULFILLED
    PARTIALLY_FULFILLED → FULFILLED
    FULFILLED: terminal

A request that omits an axis, or names its current value, leaves that axis
unchanged and always validates.
"""

from enum import Enum

from protean.exceptions import ValidationError

from ordering.errors import InvalidTransition


class FinancialStatus(Enum):
    PENDING = "PENDING"
    AUTHORIZED = "AUTHORIZED"
    PAID = "PAID"
    PARTIALLY_REFUNDED = "PARTIALLY_REFUNDED"
    REFUNDED = "REFUNDED"
    VOIDED = "VOIDED"


class FulfillmentStatus(Enum):
    UNFULFILLED = "UNFULFILLED"
    PARTIALLY_FULFILLED = "PARTIALLY_FULFILLED"
    FULFILLED = "FULFILLED"


FINANCIAL_TRANSITIONS = {
    FinancialStatus.PENDING: [FinancialStatus.AUTHORIZED, FinancialStatus.PAID, FinancialStatus.VOIDED],
    FinancialStatus.AUTHORIZED: [FinancialStatus.PAID, FinancialStatus.VOIDED],
    FinancialStatus.PAID: [FinancialStatus.PARTIALLY_REFUNDED, FinancialStatus.REFUNDED],
    FinancialStatus.PARTIALLY_REFUNDED: [FinancialStatus.REFUNDED],
    FinancialStatus.REFUNDED: [],  # Terminal
    FinancialStatus.VOIDED: [],  # Terminal
}

FULFILLMENT_TRANSITIONS = {
    FulfillmentStatus.UNFULFILLED: [FulfillmentStatus.PARTIALLY_FULFILLED, FulfillmentStatus.FULFILLED],
    FulfillmentStatus.PARTIALLY_FULFILLED: [FulfillmentStatus.FULFILLED],
    FulfillmentStatus.FULFILLED: [],  # Terminal
}

_NOT_CANCELLABLE = {FinancialStatus.REFUNDED, FinancialStatus.VOIDED}
_REFUNDABLE = {FinancialStatus.PAID, FinancialStatus.PARTIALLY_REFUNDED}
_FULFILLABLE = {FinancialStatus.AUTHORIZED, FinancialStatus.PAID}


def _value(status):
    return status.value if isinstance(status, Enum) else status


def _parse(enum_cls, status, axis):
    try:
        return enum_cls(_value(status))
    except ValueError:
        raise ValidationError({f"{axis}_status": [f"Unknown {axis} status: {status}"]}) from None


def get_valid_transitions(financial_status, fulfillment_status) -> dict:
    """Statuses reachable in one step from the given pair, per axis."""
    return {
        "financial": [s.value for s in FINANCIAL_TRANSITIONS[FinancialStatus(_value(financial_status))]],
        "fulfillment": [s.value for s in FULFILLMENT_TRANSITIONS[FulfillmentStatus(_value(fulfillment_status))]],
    }


def can_transition(current, requested, table) -> bool:
    enum_cls = type(next(iter(table)))
    current, requested = enum_cls(_value(current)), enum_cls(_value(requested))
    return current == requested or requested in table[current]


def validate_transition(
    financial_status,
    fulfillment_status,
    new_financial_status=None,
    new_fulfillment_status=None,
) -> tuple[str, str]:
    """Validate a requested change and return the resulting (financial, fulfillment) pair.

    Raises InvalidTransition, listing the allowed set, when an axis is not
    reachable from its current value.
    """
    financial = FinancialStatus(_value(financial_status))
    fulfillment = FulfillmentStatus(_value(fulfillment_status))

    if new_financial_status is not None:
        requested = _parse(FinancialStatus, new_financial_status, "financial")
        if not can_transition(financial, requested, FINANCIAL_TRANSITIONS):
            raise InvalidTransition(
                "financial",
                financial.value,
                requested.value,
                [s.value for s in FINANCIAL_TRANSITIONS[financial]],
            )
        financial = requested

    if new_fulfillment_status is not None:
        requested = _parse(FulfillmentStatus, new_fulfillment_status, "fulfillment")
        if not can_transition(fulfillment, requested, FULFILLMENT_TRANSITIONS):
            raise InvalidTransition(
                "fulfillment",
                fulfillment.value,
                requested.value,
                [s.value for s in FULFILLMENT_TRANSITIONS[fulfillment]],
            )
        fulfillment = requested

    return financial.value, fulfillment.value


def can_cancel(financial_status) -> bool:
    return FinancialStatus(_value(financial_status)) not in _NOT_CANCELLABLE


def can_refund(financial_status) -> bool:
    return FinancialStatus(_value(financial_status)) in _REFUNDABLE


def can_fulfill(financial_status) -> bool:
    return FinancialStatus(_value(financial_status)) in _FULFILLABLE
