"""Pydantic request/response schemas for the Ordering API.

These are external contracts (anti-corruption layer) — separate from
internal Protean commands and the Order aggregate.
"""

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class LineItemSchema(BaseModel):
    variant_id: str
    quantity: int = Field(ge=1)
    unit_price: float = Field(default=0.0, ge=0)
    preferred_location_id: str | None = None


class StatusHistorySchema(BaseModel):
    sequence: int
    previous_financial_status: str | None = None
    new_financial_status: str
    previous_fulfillment_status: str | None = None
    new_fulfillment_status: str
    comment: str | None = None
    created_at: str | None = None


# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------
class CreateOrderRequest(BaseModel):
    customer_id: str
    line_items: list[LineItemSchema] = Field(min_length=1)
    order_id: str | None = None
    currency: str = Field(default="USD", max_length=3)
    shipping_address: dict | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "customer_id": "cust-001",
                    "line_items": [
                        {"variant_id": "var-001", "quantity": 2, "unit_price": 29.99},
                    ],
                    "currency": "USD",
                }
            ]
        }
    }


class CancelOrderRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=500)


class FulfillOrderRequest(BaseModel):
    partial: bool = False
    comment: str | None = None


class RefundOrderRequest(BaseModel):
    amount: float | None = Field(default=None, gt=0)
    reason: str | None = Field(default=None, max_length=500)


class UpdateStatusRequest(BaseModel):
    financial_status: str | None = None
    fulfillment_status: str | None = None
    comment: str | None = None


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class OrderResponse(BaseModel):
    order_id: str
    customer_id: str
    financial_status: str
    fulfillment_status: str
    line_items: list[LineItemSchema]
    currency: str
    subtotal: float
    shipping_total: float
    tax_total: float
    grand_total: float
    refunded_total: float
    payment_intent_id: str | None = None
    cancel_reason: str | None = None


class TransitionsResponse(BaseModel):
    financial_status: str
    fulfillment_status: str
    financial: list[str]
    fulfillment: list[str]


class HistoryResponse(BaseModel):
    order_id: str
    history: list[StatusHistorySchema]


class SagaExecutionResponse(BaseModel):
    saga_id: str
    saga_type: str
    correlation_id: str | None = None
    status: str
    steps: list[dict]
    compensations: list[dict]
    error: str | None = None
    started_at: str | None = None
    completed_at: str | None = None


class SagaListResponse(BaseModel):
    order_id: str
    sagas: list[SagaExecutionResponse]
