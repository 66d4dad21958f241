"""Tests for the admin panel API."""

import itertools

import pytest

from velvet_vogue.routes import admin

from conftest import CUSTOMER_PAYLOAD


def _login(client):
    response = client.post(
        "/api/admin/login",
        json={"username": "admin@velvetvogue.com", "password": "admin123"},
    )
    return response.get_json()["token"]


@pytest.fixture
def order_id(client):
    client.post("/api/cart/items", json={"product_id": "VV004", "quantity": 2})
    response = client.post("/api/checkout", json={"customer": CUSTOMER_PAYLOAD, "payment_method": "paypal"})
    assert response.status_code == 200
    return response.get_json()["orderId"]


class TestAuth:
    @pytest.mark.parametrize(
        "method, path",
        [
            ("get", "/api/admin/dashboard"),
            ("get", "/api/admin/orders"),
            ("get", "/api/admin/customers"),
            ("post", "/api/admin/products"),
            ("delete", "/api/admin/products/VV001"),
        ],
    )
    def test_requires_login(self, client, method, path):
        response = getattr(client, method)(path)

        assert response.status_code == 401
        assert response.get_json() == {"error": "Unauthorized"}

    def test_bad_credentials(self, client):
        response = client.post("/api/admin/login", json={"username": "admin@velvetvogue.com", "password": "nope"})

        assert response.status_code == 401
        assert response.get_json() == {"success": False, "message": "Invalid credentials"}

    def test_form_login(self, client):
        response = client.post(
            "/api/admin/login",
            data={"username": "admin@velvetvogue.com", "password": "admin123"},
        )

        assert response.status_code == 200
        assert client.get("/api/admin/dashboard").status_code == 200

    def test_bearer_token(self, app, client):
        token = client.post(
            "/api/admin/login",
            json={"username": "admin@velvetvogue.com", "password": "admin123"},
        ).get_json()["token"]
        other = app.test_client()

        response = other.get("/api/admin/dashboard", headers={"Authorization": f"Bearer {token}"})

        assert token.startswith("admin-token-")
        assert response.status_code == 200

    def test_login_rejects_non_object_body(self, client):
        response = client.post("/api/admin/login", json=["admin@velvetvogue.com", "admin123"])

        assert response.status_code == 400
        assert response.get_json()["field"] == "body"

    def test_token_expires(self, app, client, monkeypatch):
        now = [1_700_000_000.0]
        monkeypatch.setattr(admin, "_clock", lambda: now[0])
        token = _login(client)
        other = app.test_client()
        headers = {"Authorization": f"Bearer {token}"}

        assert other.get("/api/admin/dashboard", headers=headers).status_code == 200

        now[0] += admin.ADMIN_TOKEN_TTL_SECONDS + 1

        assert other.get("/api/admin/dashboard", headers=headers).status_code == 401

    def test_token_store_is_capped(self, app, client, monkeypatch):
        ticks = itertools.count(1_700_000_000)
        monkeypatch.setattr(admin, "_clock", lambda: float(next(ticks)))
        tokens = [_login(client) for _ in range(admin.ADMIN_TOKEN_LIMIT + 1)]
        other = app.test_client()

        oldest = other.get("/api/admin/dashboard", headers={"Authorization": f"Bearer {tokens[0]}"})
        newest = other.get("/api/admin/dashboard", headers={"Authorization": f"Bearer {tokens[-1]}"})

        assert len(set(tokens)) == len(tokens)
        assert len(app.extensions["velvet_vogue_components"]["admin_tokens"]) == admin.ADMIN_TOKEN_LIMIT
        assert oldest.status_code == 401
        assert newest.status_code == 200

    def test_logout_revokes_bearer_token(self, app, client):
        token = _login(client)
        other = app.test_client()
        headers = {"Authorization": f"Bearer {token}"}

        other.post("/api/admin/logout", headers=headers)

        assert other.get("/api/admin/dashboard", headers=headers).status_code == 401

    def test_logout(self, admin_client):
        admin_client.post("/api/admin/logout")

        assert admin_client.get("/api/admin/dashboard").status_code == 401


class TestDashboard:
    def test_empty_store(self, admin_client):
        stats = admin_client.get("/api/admin/dashboard").get_json()["stats"]

        assert stats["total_orders"] == 0
        assert stats["total_products"] == 6
        assert stats["total_revenue"] == "0.00"

    def test_counts_orders(self, admin_client, order_id):
        stats = admin_client.get("/api/admin/dashboard").get_json()["stats"]

        assert stats["total_orders"] == 1
        assert stats["total_revenue"] == "60.00"
        assert stats["count_by_status"]["processing"] == 1
        assert stats["recent_orders"][0]["id"] == order_id


class TestProducts:
    def test_create(self, admin_client, client):
        response = admin_client.post(
            "/api/admin/products",
            json={"name": "Linen Trousers", "price": "39.99", "category": ["men"], "stock": 5},
        )

        assert response.status_code == 200
        product = response.get_json()["product"]
        assert product["id"] == "VV007"
        assert product["stock_status"] == "low-stock"
        assert client.get("/api/products/VV007").status_code == 200

    def test_create_requires_name(self, admin_client):
        response = admin_client.post("/api/admin/products", json={"price": "10"})

        assert response.status_code == 400
        assert response.get_json()["success"] is False

    @pytest.mark.parametrize("stock", [-3, "many"])
    def test_create_rejects_bad_stock(self, admin_client, stock):
        response = admin_client.post("/api/admin/products", json={"name": "Cap", "price": "9", "stock": stock})

        assert response.status_code == 400

    def test_delete(self, admin_client, client):
        assert admin_client.delete("/api/admin/products/VV002").status_code == 200
        assert client.get("/api/products/VV002").status_code == 404
        assert admin_client.delete("/api/admin/products/VV002").status_code == 404


class TestOrders:
    def test_list_and_filter(self, admin_client, order_id):
        assert admin_client.get("/api/admin/orders").get_json()["count"] == 1
        assert admin_client.get("/api/admin/orders?status=shipped").get_json()["count"] == 0
        assert admin_client.get("/api/admin/orders?q=ada@example").get_json()["count"] == 1

    def test_bad_filters(self, admin_client):
        assert admin_client.get("/api/admin/orders?date=yesterday").status_code == 400
        assert admin_client.get("/api/admin/orders?status=lost").status_code == 400

    def test_detail(self, admin_client, order_id):
        data = admin_client.get(f"/api/admin/orders/{order_id}").get_json()

        assert data["payment_method"] == "paypal"
        assert data["pricing"]["shipping_method"] == "threshold_free"
        assert data["allowed_transitions"] == ["cancelled", "shipped"]

    def test_detail_missing(self, admin_client):
        assert admin_client.get("/api/admin/orders/VV-missing").status_code == 404

    def test_advance(self, admin_client, order_id):
        data = admin_client.post(f"/api/admin/orders/{order_id}/advance").get_json()

        assert data["success"] is True
        assert data["order"]["status"] == "shipped"
        assert data["message"] == "Order status updated to: shipped"
        assert admin_client.get(f"/api/admin/orders/{order_id}").get_json()["status"] == "shipped"

    def test_set_status(self, admin_client, order_id):
        ok = admin_client.put(f"/api/admin/orders/{order_id}/status", json={"status": "cancelled"})
        rejected = admin_client.put(f"/api/admin/orders/{order_id}/status", json={"status": "pending"})
        unknown = admin_client.put(f"/api/admin/orders/{order_id}/status", json={"status": "lost"})

        assert ok.status_code == 200
        assert ok.get_json()["order"]["status"] == "cancelled"
        assert rejected.status_code == 409
        assert unknown.status_code == 400

    def test_set_status_rejects_non_object_body(self, admin_client, order_id):
        response = admin_client.put(f"/api/admin/orders/{order_id}/status", json=["shipped"])

        assert response.status_code == 400
        assert admin_client.get(f"/api/admin/orders/{order_id}").get_json()["status"] == "processing"

    def test_set_status_missing_order(self, admin_client):
        response = admin_client.put("/api/admin/orders/VV-missing/status", json={"status": "shipped"})

        assert response.status_code == 404


def test_customers(admin_client, order_id):
    data = admin_client.get("/api/admin/customers").get_json()

    assert data["count"] == 1
    assert data["customers"][0]["email"] == "ada@example.com"
    assert data["customers"][0]["total_spent"] == "60.00"
