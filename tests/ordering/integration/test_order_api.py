"""Integration tests for the order endpoints."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from ordering.api import order_router
from protean.integrations.fastapi import register_exception_handlers


@pytest.fixture()
def client():
    app = FastAPI()
    register_exception_handlers(app)
    app.include_router(order_router)
    return TestClient(app)


def _create(client, order_id="ord-001", quantity=2):
    return client.post(
        "/orders",
        json={
            "order_id": order_id,
            "customer_id": "cust-001",
            "line_items": [{"variant_id": "var-001", "quantity": quantity, "unit_price": 10.0}],
        },
    )


class TestCreateOrderEndpoint:
    def test_create(self, client, stock):
        stock("var-001", 10)

        response = _create(client)

        assert response.status_code == 201
        data = response.json()
        assert data["financial_status"] == "AUTHORIZED"
        assert data["grand_total"] == 28.6
        assert data["line_items"][0]["variant_id"] == "var-001"

    def test_insufficient_stock_returns_original_error(self, client, stock):
        stock("var-001", 1)

        response = _create(client)

        assert response.status_code == 400
        assert "Insufficient inventory for variant var-001" in response.text

    def test_declined_payment(self, client, stock, payments, counters):
        stock("var-001", 10)
        payments.configure(should_succeed=False)

        response = _create(client)

        assert response.status_code == 400
        assert counters("var-001") == (10, 0)
        assert client.get("/orders/ord-001").json()["financial_status"] == "VOIDED"

    def test_empty_line_items_is_422(self, client):
        response = client.post("/orders", json={"customer_id": "cust-001", "line_items": []})
        assert response.status_code == 422

    def test_unknown_order_is_404(self, client):
        assert client.get("/orders/missing").status_code == 404


class TestLifecycleEndpoints:
    def test_capture_fulfill_history(self, client, stock):
        stock("var-001", 10)
        _create(client)

        assert client.post("/orders/ord-001/capture").json()["financial_status"] == "PAID"
        assert client.post("/orders/ord-001/fulfill", json={}).json()["fulfillment_status"] == "FULFILLED"

        history = client.get("/orders/ord-001/history").json()["history"]
        assert [h["new_financial_status"] for h in history] == ["PENDING", "AUTHORIZED", "PAID", "PAID"]
        assert history[-1]["new_fulfillment_status"] == "FULFILLED"

    def test_cancel(self, client, stock, counters):
        stock("var-001", 10)
        _create(client)

        response = client.post("/orders/ord-001/cancel", json={"reason": "duplicate"})

        assert response.json()["financial_status"] == "VOIDED"
        assert response.json()["cancel_reason"] == "duplicate"
        assert counters("var-001") == (10, 0)
        assert client.post("/orders/ord-001/cancel", json={}).status_code == 400

    def test_refund(self, client, stock):
        stock("var-001", 10)
        _create(client)
        client.post("/orders/ord-001/capture")

        data = client.post("/orders/ord-001/refund", json={"amount": 8.6, "reason": "late"}).json()

        assert data["financial_status"] == "PARTIALLY_REFUNDED"
        assert data["refunded_total"] == 8.6

    def test_invalid_status_update_is_400(self, client, stock):
        stock("var-001", 10)
        _create(client)

        response = client.put("/orders/ord-001/status", json={"financial_status": "REFUNDED"})

        assert response.status_code == 400
        assert "Allowed transitions: PAID, VOIDED" in response.text

    def test_status_update(self, client, stock):
        stock("var-001", 10)
        _create(client)

        response = client.put(
            "/orders/ord-001/status",
            json={"fulfillment_status": "PARTIALLY_FULFILLED", "comment": "first parcel"},
        )

        assert response.status_code == 200
        assert response.json()["fulfillment_status"] == "PARTIALLY_FULFILLED"

    def test_transitions(self, client, stock):
        stock("var-001", 10)
        _create(client)

        data = client.get("/orders/ord-001/transitions").json()

        assert data["financial_status"] == "AUTHORIZED"
        assert data["financial"] == ["PAID", "VOIDED"]

    def test_saga_log(self, client, stock, payments):
        stock("var-001", 10)
        payments.configure(should_succeed=False)
        _create(client)

        sagas = client.get("/orders/ord-001/sagas").json()["sagas"]

        assert len(sagas) == 1
        assert sagas[0]["status"] == "failed"
        assert [c["step_name"] for c in sagas[0]["compensations"]] == ["reserve_inventory"]
