"""Integration tests for the activity log endpoint via TestClient."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from storefront.activity.recorder import log_order_action
from storefront.api import activity_router


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(activity_router)
    return TestClient(app)


class TestActivityAPI:
    def test_list(self, client):
        log_order_action("deleted", order_id="ord-001", order_number="MES-2510-00001", details={"total": 22.3})

        response = client.get("/activity", params={"category": "order"})

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["logs"][0]["details"] == {"total": 22.3}
        assert data["stats"]["order"] == 1

    def test_empty(self, client):
        data = client.get("/activity").json()
        assert data["logs"] == []
        assert data["total_pages"] == 0
