"""Pydantic request/response schemas for the Inventory API.

These are external contracts (anti-corruption layer) — separate from
internal Protean commands and ledger records.
"""

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class LineItemSchema(BaseModel):
    variant_id: str
    quantity: int = Field(ge=1)
    preferred_location_id: str | None = None


class StockRecordSchema(BaseModel):
    variant_id: str
    location_id: str
    available: int
    committed: int
    incoming: int
    low_stock_threshold: int | None = None
    updated_at: datetime | None = None


class AdjustmentSchema(BaseModel):
    id: str
    variant_id: str
    location_id: str
    quantity: int
    reason: str
    notes: str | None = None
    created_by: str | None = None
    created_at: datetime | None = None


class ReservationSchema(BaseModel):
    reservation_id: str
    order_id: str
    variant_id: str
    location_id: str
    quantity: int
    status: str


# ---------------------------------------------------------------------------
# Inventory Request Schemas
# ---------------------------------------------------------------------------
class ReserveRequest(BaseModel):
    order_id: str
    items: list[LineItemSchema] = Field(min_length=1)


class AdjustRequest(BaseModel):
    variant_id: str
    location_id: str
    quantity: int
    reason: str = Field(min_length=1)
    notes: str | None = None
    created_by: str | None = None


class TransferRequest(BaseModel):
    variant_id: str
    from_location_id: str
    to_location_id: str
    quantity: int = Field(ge=1)
    notes: str | None = None
    created_by: str | None = None


class RestockRequest(BaseModel):
    variant_id: str
    location_id: str
    quantity: int = Field(ge=1)
    notes: str | None = None


class ThresholdRequest(BaseModel):
    threshold: int | None = Field(default=None, ge=0)


# ---------------------------------------------------------------------------
# Location Request Schemas
# ---------------------------------------------------------------------------
class CreateLocationRequest(BaseModel):
    store_id: str
    name: str = Field(min_length=1, max_length=255)
    priority: int = 0


class UpdateLocationRequest(BaseModel):
    name: str | None = Field(default=None, max_length=255)
    priority: int | None = None


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class ReservationsResponse(BaseModel):
    order_id: str
    reservations: list[ReservationSchema]


class FulfillmentResponse(BaseModel):
    order_id: str
    status: str
    reservations: list[ReservationSchema]


class VariantStockResponse(BaseModel):
    variant_id: str
    locations: list[StockRecordSchema]
    total_available: int
    total_committed: int
    total_incoming: int


class StockPageResponse(BaseModel):
    items: list[StockRecordSchema]
    total: int
    page: int
    limit: int


class AdjustmentPageResponse(BaseModel):
    items: list[AdjustmentSchema]
    total: int
    page: int
    limit: int


class LocationResponse(BaseModel):
    location_id: str
    store_id: str
    name: str
    priority: int
    is_active: bool


class LocationIdResponse(BaseModel):
    location_id: str


class AlertResponse(BaseModel):
    alert_id: str
    store_id: str | None = None
    variant_id: str
    location_id: str
    current_stock: int
    threshold: int
    status: str
    created_at: datetime | None = None
    resolved_at: datetime | None = None


class AlertPageResponse(BaseModel):
    items: list[AlertResponse]
    total: int
    page: int
    limit: int


class CheckResponse(BaseModel):
    checked: int
    raised: int
    resolved: int


class StatusResponse(BaseModel):
    status: str = "ok"
