"""
HTTP Tests: routes, auth and wire formats

Runs the FastAPI app in-process through httpx with `get_db` routed to the
test database.
"""

import logging

import pytest

from nursery.models.user_models import User
from tests.conftest import TEST_PASSWORD, auth_headers


@pytest.mark.asyncio
class TestAuth:

    async def test_register_login_me_logout(self, client):
        registered = await client.post("/auth/register", json={
            "email": "new@example.com", "password": TEST_PASSWORD, "full_name": "New User",
        })
        assert registered.status_code == 201
        assert registered.json()["data"]["role"] == "customer"

        login = await client.post("/auth/login", json={"email": "new@example.com", "password": TEST_PASSWORD})
        assert login.status_code == 200
        headers = {"Authorization": f"Bearer {login.json()['access_token']}"}

        me = await client.get("/auth/me", headers=headers)
        assert me.json()["data"]["email"] == "new@example.com"

        assert (await client.post("/auth/logout", headers=headers)).status_code == 200
        # token_version moved on, so the old token is dead
        assert (await client.get("/auth/me", headers=headers)).status_code == 401

    async def test_wrong_password(self, client, customer):
        response = await client.post("/auth/login", json={"email": customer.email, "password": "nope"})
        assert response.status_code == 401

    async def test_missing_token(self, client):
        assert (await client.get("/cart/")).status_code == 401


@pytest.mark.asyncio
class TestRoles:

    async def test_customer_cannot_reach_admin_routes(self, client, customer):
        response = await client.get("/admin/summary", headers=auth_headers(customer))
        assert response.status_code == 403

    async def test_customer_cannot_use_merchant_routes(self, client, customer):
        response = await client.get("/merchant/quotations/open", headers=auth_headers(customer))
        assert response.status_code == 403


@pytest.mark.asyncio
class TestCatalog:

    async def test_public_product_list(self, client, products):
        response = await client.get("/products/", params={"category": "trees"})

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 1
        assert body["data"][0]["name"] == "Neem"
        assert body["data"][0]["price"] == 45.5

    async def test_admin_creates_product(self, client, admin):
        response = await client.post("/products/", headers=auth_headers(admin), json={
            "name": "Tulsi", "category": "Herbs", "price": "30.00", "stock_quantity": 50,
        })
        assert response.status_code == 201
        assert response.json()["data"]["stock_quantity"] == 50

    async def test_admin_restocks_and_cannot_go_negative(self, client, admin, products):
        mango, _ = products
        headers = auth_headers(admin)

        restocked = await client.post(f"/products/{mango.id}/stock", headers=headers, json={"quantity_change": 5})
        assert restocked.status_code == 200
        assert restocked.json()["data"]["stock_quantity"] == 15

        too_much = await client.post(f"/products/{mango.id}/stock", headers=headers, json={
            "quantity_change": -20, "transaction_type": "adjustment", "reason": "Frost damage",
        })
        assert too_much.status_code == 400
        assert "Insufficient stock" in too_much.json()["detail"]

        purchase = await client.post(f"/products/{mango.id}/stock", headers=headers, json={
            "quantity_change": -1, "transaction_type": "purchase",
        })
        assert purchase.status_code == 400


@pytest.mark.asyncio
class TestPlaceOrderEndpoint:

    async def test_invalid_json(self, client):
        response = await client.post(
            "/place-order", content=b"{not json", headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid JSON"}

    async def test_missing_fields(self, client):
        response = await client.post("/place-order", json={"customer": {"email": "a@b.c"}})
        assert response.status_code == 400
        assert response.json() == {"error": "Missing required fields"}

    async def test_wrong_method(self, client):
        assert (await client.get("/place-order")).status_code == 405

    async def test_guest_checkout(self, client, products):
        mango, _ = products
        response = await client.post("/place-order", json={
            "customer": {"email": "guest@example.com", "firstName": "Ravi", "deliveryAddress": {"city": "Pune"}},
            "order": {"totalAmount": 240},
            "cartItems": [{"id": mango.id, "name": "Alphonso Mango", "quantity": 2, "price": 240}],
        })

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Order placed successfully"
        assert body["orderCode"].startswith("ORD-")

    async def test_business_error_uses_error_body(self, client, products):
        mango, _ = products
        response = await client.post("/place-order", json={
            "customer": {"email": "guest@example.com"},
            "order": {},
            "cartItems": [{"id": mango.id, "quantity": 500}],
        })
        assert response.status_code == 400
        assert "Insufficient stock" in response.json()["error"]

    async def test_my_orders(self, client, customer, products):
        _, neem = products
        headers = auth_headers(customer)
        placed = await client.post("/place-order", headers=headers, json={
            "customer": {"email": customer.email},
            "order": {"deliveryAddress": {"city": "Pune"}},
            "cartItems": {"id": neem.id, "quantity": 1},
            "userId": customer.id,
        })
        assert placed.status_code == 200

        response = await client.get(f"/my-orders/{customer.id}", headers=headers)

        orders = response.json()
        assert len(orders) == 1
        assert orders[0]["id"] == placed.json()["orderId"]
        assert orders[0]["address"] == {"city": "Pune"}
        assert orders[0]["items"][0]["name"] == "Neem"

    async def test_my_orders_of_someone_else(self, client, customer, admin):
        response = await client.get(f"/my-orders/{admin.id}", headers=auth_headers(customer))
        assert response.status_code == 400
        assert "error" in response.json()


@pytest.mark.asyncio
class TestQuotationFlow:

    async def test_request_quote_approve_and_order(
        self, client, test_session, admin, customer, products, merchant_a
    ):
        mango, neem = products
        user_headers = auth_headers(customer)
        admin_headers = auth_headers(admin)
        merchant_headers = auth_headers(await test_session.get(User, merchant_a.user_id))

        requested = await client.post("/quotations/", headers=user_headers, json={"items": [
            {"product_id": mango.id, "quantity": 2},
            {"product_id": neem.id, "quantity": 1, "specifications": {"bag_size": "8 inch"}},
        ]})
        assert requested.status_code == 201
        code = requested.json()["data"]["quotation_code"]

        open_requests = await client.get("/merchant/quotations/open", headers=merchant_headers)
        assert [q["quotation_code"] for q in open_requests.json()["data"]] == [code]

        submitted = await client.post("/merchant/quotations/", headers=merchant_headers, json={
            "quotation_code": code, "unit_prices": [110, 40], "estimated_delivery_days": 5,
        })
        assert submitted.status_code == 201
        response_id = submitted.json()["data"]["id"]
        assert submitted.json()["data"]["total_quote_price"] == 260.0

        waiting = await client.get("/admin/quotations/waiting", headers=admin_headers)
        assert [q["id"] for q in waiting.json()["data"]] == [response_id]

        approved = await client.post(f"/admin/quotations/{response_id}/approve", headers=admin_headers)
        assert approved.status_code == 200
        assert approved.json()["data"]["status"] == "approved"

        again = await client.post(f"/admin/quotations/{response_id}/approve", headers=admin_headers)
        assert again.status_code == 409

        mine = await client.get("/quotations/mine", headers=user_headers)
        assert {q["status"] for q in mine.json()["data"]} == {"admin approved", "approved"}

        ordered = await client.post(
            f"/orders/from-quotation/{response_id}", headers=user_headers, json={"shipping_address": "Farm 4"},
        )
        assert ordered.status_code == 201

        repeat = await client.post(f"/orders/from-quotation/{response_id}", headers=user_headers, json={})
        assert repeat.status_code == 409

        integrity = await client.get("/admin/quotations/integrity", headers=admin_headers)
        assert integrity.json()["is_valid"] is True

        summary = await client.get("/admin/summary", headers=admin_headers)
        data = summary.json()["data"]
        assert data["total_orders"] == 1
        assert data["total_revenue"] == 260.0
        assert data["merchants_by_status"]["approved"] == 1


@pytest.mark.asyncio
class TestAdminOrders:

    async def test_status_update_and_validation(self, client, admin, products):
        mango, _ = products
        placed = await client.post("/place-order", json={
            "customer": {"email": "guest@example.com"},
            "order": {},
            "cartItems": [{"id": mango.id, "quantity": 1}],
        })
        order_id = placed.json()["orderId"]
        headers = auth_headers(admin)

        updated = await client.patch(f"/admin/orders/{order_id}/status", headers=headers, json={"status": "processing"})
        assert updated.status_code == 200
        assert updated.json()["data"]["status"] == "processing"

        invalid = await client.patch(f"/admin/orders/{order_id}/status", headers=headers, json={"status": "Paid"})
        assert invalid.status_code == 409

        report = await client.get(f"/admin/orders/{order_id}/validate", headers=headers)
        assert report.json()["is_valid"] is True

        listed = await client.get("/admin/orders", headers=headers, params={"status": "processing"})
        assert listed.json()["total"] == 1


@pytest.mark.asyncio
class TestRequestLogging:

    async def test_failed_write_keeps_its_status_and_logs_the_user(self, client, admin, products, caplog):
        mango, _ = products
        with caplog.at_level(logging.INFO, logger="nursery.middleware.activity_logger"):
            response = await client.post(f"/products/{mango.id}/stock", headers=auth_headers(admin), json={
                "quantity_change": -50, "transaction_type": "adjustment", "reason": "Frost damage",
            })

        assert response.status_code == 400
        assert "Insufficient stock" in response.json()["detail"]
        assert f"POST /products/{mango.id}/stock -> 400 by {admin.email}" in caplog.text

    async def test_guest_write_logged_as_anonymous(self, client, products, caplog):
        mango, _ = products
        with caplog.at_level(logging.INFO, logger="nursery.middleware.activity_logger"):
            response = await client.post("/place-order", json={
                "customer": {"email": "guest@example.com"},
                "order": {},
                "cartItems": [{"id": mango.id, "quantity": 1}],
            })

        assert response.status_code == 200
        assert "POST /place-order -> 200 by anonymous" in caplog.text


@pytest.mark.asyncio
class TestMerchantDashboard:

    async def test_orders_and_summary(self, client, test_session, admin, customer, products, merchant_a):
        mango, neem = products
        user_headers = auth_headers(customer)
        admin_headers = auth_headers(admin)
        merchant_headers = auth_headers(await test_session.get(User, merchant_a.user_id))

        requested = await client.post("/quotations/", headers=user_headers, json={"items": [
            {"product_id": mango.id, "quantity": 1},
            {"product_id": neem.id, "quantity": 2},
        ]})
        code = requested.json()["data"]["quotation_code"]
        submitted = await client.post("/merchant/quotations/", headers=merchant_headers, json={
            "quotation_code": code, "unit_prices": [100, 50],
        })
        response_id = submitted.json()["data"]["id"]
        await client.post(f"/admin/quotations/{response_id}/approve", headers=admin_headers)
        ordered = await client.post(f"/orders/from-quotation/{response_id}", headers=user_headers, json={})
        assert ordered.status_code == 201
        order_id = ordered.json()["orderId"]

        for status in ("processing", "shipped", "delivered"):
            moved = await client.patch(f"/admin/orders/{order_id}/status", headers=admin_headers, json={"status": status})
            assert moved.status_code == 200

        orders = await client.get("/merchant/orders", headers=merchant_headers, params={"status": "delivered"})
        assert orders.status_code == 200
        assert [o["id"] for o in orders.json()["data"]] == [order_id]

        summary = await client.get("/merchant/summary", headers=merchant_headers)
        assert summary.status_code == 200
        data = summary.json()["data"]
        assert data["merchant_code"] == "MC-2026-0001"
        assert data["completed_orders"] == 1
        assert data["delivered_revenue"] == 200.0
        assert len(data["monthly_revenue"]) == 1

    async def test_customer_cannot_read_merchant_dashboard(self, client, customer):
        headers = auth_headers(customer)
        assert (await client.get("/merchant/orders", headers=headers)).status_code == 403
        assert (await client.get("/merchant/summary", headers=headers)).status_code == 403
