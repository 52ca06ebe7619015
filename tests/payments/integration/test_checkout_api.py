"""Integration tests for the checkout endpoints via TestClient."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from protean import current_domain
from storefront.api import checkout_router
from storefront.api.errors import register_error_handlers
from storefront.gateway import set_gateway
from storefront.order.order import Order


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(checkout_router)
    register_error_handlers(app)
    return TestClient(app)


class TestCreateCheckoutSessionAPI:
    def test_returns_201_with_session(self, client, create_product, checkout_payload):
        product = create_product(quantity=5)
        response = client.post("/checkout/sessions", json=checkout_payload([(product, 2)]))

        assert response.status_code == 201
        data = response.json()
        assert data["session_id"].startswith("cs_test_")
        assert data["session_url"]
        assert data["order_number"].startswith("MES-")
        order = current_domain.repository_for(Order).get(data["order_id"])
        assert order.status == "pending"

    def test_registered_customer(self, client, create_product, checkout_payload):
        product = create_product(quantity=5)
        response = client.post("/checkout/sessions", json=checkout_payload([(product, 1)], user_id="user-42"))

        order = current_domain.repository_for(Order).get(response.json()["order_id"])
        assert order.purchaser.user_id == "user-42"

    def test_insufficient_stock_returns_400(self, client, create_product, checkout_payload):
        product = create_product(quantity=1)
        response = client.post("/checkout/sessions", json=checkout_payload([(product, 2)]))

        assert response.status_code == 400
        assert response.json() == {"error": "Insufficient stock for Breaker 20A. Available: 1"}

    def test_unknown_product_returns_400(self, client, create_product, checkout_payload):
        body = checkout_payload([(create_product(), 1)])
        body["items"][0]["product_id"] = "ghost"

        response = client.post("/checkout/sessions", json=body)

        assert response.status_code == 400
        assert response.json() == {"error": "Product not found: Breaker 20A"}

    def test_empty_cart_returns_422(self, client, create_product, checkout_payload):
        body = checkout_payload([(create_product(), 1)])
        body["items"] = []
        assert client.post("/checkout/sessions", json=body).status_code == 422

    def test_missing_customer_returns_422(self, client, create_product, checkout_payload):
        body = checkout_payload([(create_product(), 1)])
        del body["customer"]
        assert client.post("/checkout/sessions", json=body).status_code == 422

    def test_gateway_failure_returns_502(self, client, create_product, checkout_payload):
        client.post("/checkout/gateway/configure", json={"should_succeed": False})
        response = client.post("/checkout/sessions", json=checkout_payload([(create_product(), 1)]))

        assert response.status_code == 502
        assert response.json()["error"] == "Payment gateway error"


class TestPriceBreakdownAPI:
    def test_breakdown(self, client):
        response = client.get("/checkout/price-breakdown", params={"subtotal": 100})
        assert response.status_code == 200
        assert response.json() == {
            "subtotal": 100.0,
            "tax": 11.5,
            "tax_rate": 0.115,
            "total": 111.5,
            "processing_fee": 3.53,
            "net_revenue": 107.97,
        }


class TestConfigureGatewayAPI:
    def test_configure_fake_gateway(self, client):
        response = client.post(
            "/checkout/gateway/configure",
            json={"should_succeed": False, "failure_reason": "Maintenance"},
        )
        assert response.status_code == 200
        assert response.json() == {"gateway": "FakeGateway", "should_succeed": False, "failure_reason": "Maintenance"}

    def test_forbidden_in_production(self, client, monkeypatch):
        monkeypatch.setenv("PROTEAN_ENV", "production")
        assert client.post("/checkout/gateway/configure", json={}).status_code == 403

    def test_rejected_for_real_gateways(self, client):
        from storefront.gateway.stripe_adapter import StripeGateway

        set_gateway(StripeGateway(api_key="sk_test_123", webhook_secret="whsec_test"))
        assert client.post("/checkout/gateway/configure", json={}).status_code == 400
