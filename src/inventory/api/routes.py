"""FastAPI routes for the Inventory domain — stock, locations and alerts."""

from fastapi import APIRouter
from protean.utils.globals import current_domain

from inventory.alert.management import DismissAlert, RunLowStockCheck
from inventory.api.schemas import (
    AdjustmentPageResponse,
    AdjustmentSchema,
    AdjustRequest,
    AlertPageResponse,
    AlertResponse,
    CheckResponse,
    CreateLocationRequest,
    FulfillmentResponse,
    LocationIdResponse,
    LocationResponse,
    ReservationSchema,
    ReservationsResponse,
    ReserveRequest,
    RestockRequest,
    StatusResponse,
    StockPageResponse,
    StockRecordSchema,
    ThresholdRequest,
    TransferRequest,
    UpdateLocationRequest,
    VariantStockResponse,
)
from inventory.location.location import Location
from inventory.location.management import (
    ActivateLocation,
    CreateLocation,
    DeactivateLocation,
    DeleteLocation,
    UpdateLocation,
)
from inventory.location.queries import list_locations
from inventory.runtime import current_runtime


def _stock(record) -> StockRecordSchema:
    return StockRecordSchema(**record.to_dict())


def _reservations(order_id, reservations) -> ReservationsResponse:
    return ReservationsResponse(
        order_id=str(order_id),
        reservations=[ReservationSchema(**r.summary()) for r in reservations],
    )


def _alert(alert) -> AlertResponse:
    return AlertResponse(
        alert_id=str(alert.id),
        store_id=str(alert.store_id) if alert.store_id else None,
        variant_id=str(alert.variant_id),
        location_id=str(alert.location_id),
        current_stock=alert.current_stock,
        threshold=alert.threshold,
        status=alert.status,
        created_at=alert.created_at,
        resolved_at=alert.resolved_at,
    )


def _location(location) -> LocationResponse:
    return LocationResponse(
        location_id=str(location.id),
        store_id=str(location.store_id),
        name=location.name,
        priority=location.priority or 0,
        is_active=location.is_active,
    )


# ---------------------------------------------------------------------------
# Inventory Router
# ---------------------------------------------------------------------------
inventory_router = APIRouter(prefix="/inventory", tags=["inventory"])


@inventory_router.post("/reservations", status_code=201, response_model=ReservationsResponse)
async def reserve(body: ReserveRequest) -> ReservationsResponse:
    reservations = current_runtime().reservations.reserve_for_order(
        body.order_id,
        [item.model_dump() for item in body.items],
    )
    return _reservations(body.order_id, reservations)


@inventory_router.get("/reservations/{order_id}", response_model=ReservationsResponse)
async def get_reservations(order_id: str) -> ReservationsResponse:
    return _reservations(order_id, current_runtime().reservations.reservations_for_order(order_id))


@inventory_router.post("/reservations/{order_id}/release", response_model=ReservationsResponse)
async def release(order_id: str) -> ReservationsResponse:
    return _reservations(order_id, current_runtime().reservations.release_for_order(order_id))


@inventory_router.post("/reservations/{order_id}/fulfill", response_model=FulfillmentResponse)
async def fulfill(order_id: str) -> FulfillmentResponse:
    result = current_runtime().reservations.fulfill_for_order(order_id)
    return FulfillmentResponse(
        order_id=result.order_id,
        status=result.status,
        reservations=[ReservationSchema(**r.summary()) for r in result.fulfilled],
    )


@inventory_router.post("/adjustments", status_code=201, response_model=AdjustmentSchema)
async def adjust(body: AdjustRequest) -> AdjustmentSchema:
    record = current_runtime().ledger.adjust(
        body.variant_id,
        body.location_id,
        body.quantity,
        body.reason,
        notes=body.notes,
        created_by=body.created_by,
    )
    return AdjustmentSchema(**record.to_dict())


@inventory_router.get("/adjustments", response_model=AdjustmentPageResponse)
async def adjustment_history(
    variant_id: str | None = None,
    location_id: str | None = None,
    page: int = 1,
    limit: int = 50,
) -> AdjustmentPageResponse:
    result = current_runtime().ledger.adjustment_history(variant_id, location_id, page=page, limit=limit)
    result["items"] = [AdjustmentSchema(**r.to_dict()) for r in result["items"]]
    return AdjustmentPageResponse(**result)


@inventory_router.post("/transfers", status_code=201, response_model=list[AdjustmentSchema])
async def transfer(body: TransferRequest) -> list[AdjustmentSchema]:
    records = current_runtime().ledger.transfer(
        body.variant_id,
        body.from_location_id,
        body.to_location_id,
        body.quantity,
        notes=body.notes,
        created_by=body.created_by,
    )
    return [AdjustmentSchema(**r.to_dict()) for r in records]


@inventory_router.post("/restocks/expected", response_model=StockRecordSchema)
async def expect_restock(body: RestockRequest) -> StockRecordSchema:
    return _stock(current_runtime().ledger.expect_restock(body.variant_id, body.location_id, body.quantity))


@inventory_router.post("/restocks/received", response_model=StockRecordSchema)
async def receive_restock(body: RestockRequest) -> StockRecordSchema:
    record = current_runtime().ledger.receive_restock(
        body.variant_id,
        body.location_id,
        body.quantity,
        notes=body.notes,
    )
    return _stock(record)


@inventory_router.get("/variants/{variant_id}", response_model=VariantStockResponse)
async def get_by_variant(variant_id: str) -> VariantStockResponse:
    result = current_runtime().ledger.get_by_variant(variant_id)
    result["locations"] = [_stock(r) for r in result["locations"]]
    return VariantStockResponse(**result)


@inventory_router.get("/locations/{location_id}", response_model=StockPageResponse)
async def get_by_location(location_id: str, page: int = 1, limit: int = 50) -> StockPageResponse:
    result = current_runtime().ledger.get_by_location(location_id, page=page, limit=limit)
    result["items"] = [_stock(r) for r in result["items"]]
    return StockPageResponse(**result)


@inventory_router.put(
    "/variants/{variant_id}/locations/{location_id}/threshold",
    response_model=StockRecordSchema,
)
async def update_threshold(variant_id: str, location_id: str, body: ThresholdRequest) -> StockRecordSchema:
    return _stock(current_runtime().monitor.update_threshold(variant_id, location_id, body.threshold))


# ---------------------------------------------------------------------------
# Location Router
# ---------------------------------------------------------------------------
location_router = APIRouter(prefix="/locations", tags=["locations"])


@location_router.post("", status_code=201, response_model=LocationIdResponse)
async def create_location(body: CreateLocationRequest) -> LocationIdResponse:
    command = CreateLocation(store_id=body.store_id, name=body.name, priority=body.priority)
    result = current_domain.process(command, asynchronous=False)
    return LocationIdResponse(location_id=result)


@location_router.get("", response_model=list[LocationResponse])
async def get_locations(store_id: str) -> list[LocationResponse]:
    return [_location(loc) for loc in list_locations(store_id)]


@location_router.get("/{location_id}", response_model=LocationResponse)
async def get_location(location_id: str) -> LocationResponse:
    return _location(current_domain.repository_for(Location).get(location_id))


@location_router.put("/{location_id}", response_model=StatusResponse)
async def update_location(location_id: str, body: UpdateLocationRequest) -> StatusResponse:
    command = UpdateLocation(location_id=location_id, name=body.name, priority=body.priority)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@location_router.put("/{location_id}/deactivate", response_model=StatusResponse)
async def deactivate_location(location_id: str) -> StatusResponse:
    current_domain.process(DeactivateLocation(location_id=location_id), asynchronous=False)
    return StatusResponse()


@location_router.put("/{location_id}/activate", response_model=StatusResponse)
async def activate_location(location_id: str) -> StatusResponse:
    current_domain.process(ActivateLocation(location_id=location_id), asynchronous=False)
    return StatusResponse()


@location_router.delete("/{location_id}", response_model=StatusResponse)
async def delete_location(location_id: str) -> StatusResponse:
    current_domain.process(DeleteLocation(location_id=location_id), asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Alert Router
# ---------------------------------------------------------------------------
alert_router = APIRouter(prefix="/alerts", tags=["alerts"])


@alert_router.get("", response_model=list[AlertResponse])
async def active_alerts(store_id: str | None = None) -> list[AlertResponse]:
    return [_alert(a) for a in current_runtime().monitor.active_alerts(store_id)]


@alert_router.get("/history", response_model=AlertPageResponse)
async def alert_history(store_id: str | None = None, page: int = 1, limit: int = 50) -> AlertPageResponse:
    result = current_runtime().monitor.alert_history(store_id, page=page, limit=limit)
    result["items"] = [_alert(a) for a in result["items"]]
    return AlertPageResponse(**result)


@alert_router.post("/{alert_id}/dismiss", response_model=StatusResponse)
async def dismiss_alert(alert_id: str) -> StatusResponse:
    current_domain.process(DismissAlert(alert_id=alert_id), asynchronous=False)
    return StatusResponse()


@alert_router.post("/maintenance/check", response_model=CheckResponse)
async def run_low_stock_check() -> CheckResponse:
    """Run one low-stock pass. Designed to be called by an external scheduler."""
    result = current_domain.process(RunLowStockCheck(), asynchronous=False)
    return CheckResponse(**result)
