"""FastAPI routes for the Ordering domain — order lifecycle and saga log."""

from fastapi import APIRouter
from protean.utils.globals import current_domain

from ordering.api.schemas import (
    CancelOrderRequest,
    CreateOrderRequest,
    FulfillOrderRequest,
    HistoryResponse,
    LineItemSchema,
    OrderResponse,
    RefundOrderRequest,
    SagaExecutionResponse,
    SagaListResponse,
    StatusHistorySchema,
    TransitionsResponse,
    UpdateStatusRequest,
)
from ordering.order.service import OrderService
from ordering.order.status import CapturePayment, RefundOrder, UpdateOrderStatus
from ordering.runtime import current_runtime


def _service() -> OrderService:
    return OrderService(current_runtime())


def _order(order) -> OrderResponse:
    return OrderResponse(
        order_id=str(order.id),
        customer_id=str(order.customer_id),
        financial_status=order.financial_status,
        fulfillment_status=order.fulfillment_status,
        line_items=[LineItemSchema(**item) for item in order.line_items()],
        currency=order.currency,
        subtotal=order.subtotal,
        shipping_total=order.shipping_total,
        tax_total=order.tax_total,
        grand_total=order.grand_total,
        refunded_total=order.refunded_total,
        payment_intent_id=order.payment_intent_id,
        cancel_reason=order.cancel_reason,
    )


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderResponse)
async def create_order(body: CreateOrderRequest) -> OrderResponse:
    order = _service().create_order(
        customer_id=body.customer_id,
        line_items=[item.model_dump() for item in body.line_items],
        order_id=body.order_id,
        currency=body.currency,
        shipping_address=body.shipping_address,
    )
    return _order(order)


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str) -> OrderResponse:
    return _order(_service().get_order(order_id))


@order_router.post("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(order_id: str, body: CancelOrderRequest) -> OrderResponse:
    return _order(_service().cancel_order(order_id, reason=body.reason))


@order_router.post("/{order_id}/fulfill", response_model=OrderResponse)
async def fulfill_order(order_id: str, body: FulfillOrderRequest) -> OrderResponse:
    return _order(_service().fulfill_order(order_id, partial=body.partial, comment=body.comment))


@order_router.post("/{order_id}/capture", response_model=OrderResponse)
async def capture_payment(order_id: str) -> OrderResponse:
    current_domain.process(CapturePayment(order_id=order_id), asynchronous=False)
    return _order(_service().get_order(order_id))


@order_router.post("/{order_id}/refund", response_model=OrderResponse)
async def refund_order(order_id: str, body: RefundOrderRequest) -> OrderResponse:
    command = RefundOrder(order_id=order_id, amount=body.amount, reason=body.reason)
    current_domain.process(command, asynchronous=False)
    return _order(_service().get_order(order_id))


@order_router.put("/{order_id}/status", response_model=OrderResponse)
async def update_status(order_id: str, body: UpdateStatusRequest) -> OrderResponse:
    command = UpdateOrderStatus(
        order_id=order_id,
        financial_status=body.financial_status,
        fulfillment_status=body.fulfillment_status,
        comment=body.comment,
    )
    current_domain.process(command, asynchronous=False)
    return _order(_service().get_order(order_id))


@order_router.get("/{order_id}/transitions", response_model=TransitionsResponse)
async def valid_transitions(order_id: str) -> TransitionsResponse:
    order = _service().get_order(order_id)
    return TransitionsResponse(
        financial_status=order.financial_status,
        fulfillment_status=order.fulfillment_status,
        **order.valid_transitions(),
    )


@order_router.get("/{order_id}/history", response_model=HistoryResponse)
async def status_history(order_id: str) -> HistoryResponse:
    order = _service().get_order(order_id)
    return HistoryResponse(
        order_id=str(order.id),
        history=[
            StatusHistorySchema(
                sequence=entry.sequence,
                previous_financial_status=entry.previous_financial_status,
                new_financial_status=entry.new_financial_status,
                previous_fulfillment_status=entry.previous_fulfillment_status,
                new_fulfillment_status=entry.new_fulfillment_status,
                comment=entry.comment,
                created_at=entry.created_at.isoformat() if entry.created_at else None,
            )
            for entry in order.history()
        ],
    )


@order_router.get("/{order_id}/sagas", response_model=SagaListResponse)
async def order_sagas(order_id: str) -> SagaListResponse:
    executions = current_runtime().orchestrator.executions_for(order_id)
    return SagaListResponse(
        order_id=order_id,
        sagas=[SagaExecutionResponse(**execution.summary()) for execution in executions],
    )
