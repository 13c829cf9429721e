"""Cart and checkout endpoints end to end."""

import pytest
from sqlalchemy import func, select

from services.order_service.models import Order

pytestmark = pytest.mark.api

CHECKOUT = {
    "shipping_address": "4 Palm Street, Dammam",
    "payment_method": "bank_transfer",
    "phone": "0533333333",
}


class TestCartEndpoints:
    async def test_add_then_read_cart(self, client, factory):
        buyer = await factory.user()
        product = await factory.product("Rug", price="75.00", stock=4)
        headers = factory.headers(buyer)

        added = await client.post(
            "/cart/add", headers=headers, json={"product_id": product.id, "quantity": 2}
        )
        assert added.status_code == 200
        assert added.json()["cart_count"] == 2

        cart = await client.get("/cart", headers=headers)
        body = cart.json()
        assert body["cart_total"] == 150.0
        assert body["items"][0]["product"]["name"] == "Rug"
        assert body["items"][0]["line_total"] == 150.0

    async def test_quantity_out_of_range(self, client, factory):
        buyer = await factory.user()
        product = await factory.product()

        response = await client.post(
            "/cart/add", headers=factory.headers(buyer), json={"product_id": product.id, "quantity": 0}
        )

        assert response.status_code == 422
        assert response.json()["errors"][0]["field"] == "quantity"

    async def test_insufficient_stock_is_a_bad_request(self, client, factory):
        buyer = await factory.user()
        product = await factory.product("Stool", stock=1)

        response = await client.post(
            "/cart/add", headers=factory.headers(buyer), json={"product_id": product.id, "quantity": 2}
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Requested quantity of Stool is not available in stock"

    async def test_cart_needs_authentication(self, client):
        response = await client.get("/cart")

        assert response.status_code == 401

    async def test_update_and_remove(self, client, factory):
        buyer = await factory.user()
        product = await factory.product(price="10.00", stock=10)
        headers = factory.headers(buyer)
        await client.post("/cart/add", headers=headers, json={"product_id": product.id, "quantity": 1})
        line_id = (await client.get("/cart", headers=headers)).json()["items"][0]["id"]

        updated = await client.post(
            "/cart/update-quantity", headers=headers, json={"cart_id": line_id, "quantity": 5}
        )
        assert updated.json()["cart_total"] == 50.0
        assert updated.json()["cart_count"] == 5

        removed = await client.post("/cart/remove", headers=headers, json={"cart_id": line_id})
        assert removed.json()["cart_count"] == 0

    async def test_cannot_touch_another_users_line(self, client, factory):
        owner = await factory.user()
        intruder = await factory.user()
        product = await factory.product()
        await client.post(
            "/cart/add", headers=factory.headers(owner), json={"product_id": product.id, "quantity": 1}
        )
        line_id = (await client.get("/cart", headers=factory.headers(owner))).json()["items"][0]["id"]

        response = await client.post(
            "/cart/update-quantity",
            headers=factory.headers(intruder),
            json={"cart_id": line_id, "quantity": 3},
        )

        assert response.status_code == 403
        assert response.json()["kind"] == "ownership"

    async def test_clear(self, client, factory):
        buyer = await factory.user()
        product = await factory.product()
        headers = factory.headers(buyer)
        await client.post("/cart/add", headers=headers, json={"product_id": product.id, "quantity": 3})

        response = await client.post("/cart/clear", headers=headers)

        assert response.json()["cart_count"] == 0
        assert (await client.get("/cart/info", headers=headers)).json()["cart_count"] == 0

    async def test_validate_reports_stock_shortage(self, client, factory, db):
        buyer = await factory.user()
        product = await factory.product("Bench", stock=5)
        headers = factory.headers(buyer)
        await client.post("/cart/add", headers=headers, json={"product_id": product.id, "quantity": 4})

        product.stock = 2
        await db.commit()
        response = await client.get("/cart/validate", headers=headers)

        body = response.json()
        assert body["is_valid"] is False
        assert body["violations"][0]["kind"] == "insufficient_stock"
        assert body["errors"] == ["Requested quantity of Bench is not available in stock"]


class TestCheckoutEndpoints:
    async def test_checkout_places_order(self, client, factory, db):
        buyer = await factory.user()
        a = await factory.product("A", price="100.00", stock=5)
        b = await factory.product("B", price="50.00", stock=1)
        headers = factory.headers(buyer)
        await client.post("/cart/add", headers=headers, json={"product_id": a.id, "quantity": 2})
        await client.post("/cart/add", headers=headers, json={"product_id": b.id, "quantity": 1})

        summary = await client.get("/checkout", headers=headers)
        assert summary.json()["cart_total"] == 250.0

        response = await client.post("/checkout/process", headers=headers, json=CHECKOUT)

        assert response.status_code == 201
        order = response.json()["order"]
        assert response.json()["message"] == f"Order placed successfully! Order number: {order['id']}"
        assert order["total_amount"] == 250.0
        assert order["status"] == "pending"
        assert len(order["lines"]) == 2
        assert (await client.get("/cart/info", headers=headers)).json()["cart_count"] == 0

        confirm = await client.get(f"/checkout/confirm/{order['id']}", headers=headers)
        assert confirm.status_code == 200

        await db.refresh(a)
        await db.refresh(b)
        assert (a.stock, b.stock) == (3, 0)

    async def test_empty_cart(self, client, factory, db):
        buyer = await factory.user()
        headers = factory.headers(buyer)

        summary = await client.get("/checkout", headers=headers)
        response = await client.post("/checkout/process", headers=headers, json=CHECKOUT)

        assert summary.status_code == 400
        assert response.status_code == 400
        assert response.json()["message"] == "Cart is empty"
        assert await db.scalar(select(func.count(Order.id))) == 0

    async def test_stock_gone_before_checkout(self, client, factory, db):
        buyer = await factory.user()
        product = await factory.product("C", stock=1)
        headers = factory.headers(buyer)
        await client.post("/cart/add", headers=headers, json={"product_id": product.id, "quantity": 1})

        product.stock = 0
        await db.commit()
        response = await client.post("/checkout/process", headers=headers, json=CHECKOUT)

        assert response.status_code == 400
        assert response.json()["message"] == "Requested quantity of C is not available in stock"
        assert await db.scalar(select(func.count(Order.id))) == 0
        assert (await client.get("/cart/info", headers=headers)).json()["cart_count"] == 1

    async def test_unknown_payment_method(self, client, factory):
        buyer = await factory.user()

        response = await client.post(
            "/checkout/process", headers=factory.headers(buyer), json={**CHECKOUT, "payment_method": "barter"}
        )

        assert response.status_code == 422

    async def test_checkout_is_for_buyers(self, client, factory):
        seller = await factory.user("shop")

        response = await client.post("/checkout/process", headers=factory.headers(seller), json=CHECKOUT)

        assert response.status_code == 403

    async def test_other_buyers_confirmation_is_hidden(self, client, factory):
        buyer = await factory.user()
        stranger = await factory.user()
        product = await factory.product()
        headers = factory.headers(buyer)
        await client.post("/cart/add", headers=headers, json={"product_id": product.id, "quantity": 1})
        order_id = (await client.post("/checkout/process", headers=headers, json=CHECKOUT)).json()["order"]["id"]

        response = await client.get(f"/checkout/confirm/{order_id}", headers=factory.headers(stranger))

        assert response.status_code == 404


class TestOrderEndpoints:
    async def test_buyer_cancels_pending_order(self, client, factory):
        buyer = await factory.user()
        product = await factory.product(stock=2)
        headers = factory.headers(buyer)
        await client.post("/cart/add", headers=headers, json={"product_id": product.id, "quantity": 2})
        order_id = (await client.post("/checkout/process", headers=headers, json=CHECKOUT)).json()["order"]["id"]

        cancelled = await client.post(f"/orders/{order_id}/cancel", headers=headers)
        again = await client.post(f"/orders/{order_id}/cancel", headers=headers)

        assert cancelled.json()["status"] == "cancelled"
        assert again.status_code == 400
        listing = await client.get("/orders", headers=headers)
        assert listing.json()["total"] == 1

    async def test_buyer_cannot_change_status(self, client, factory):
        buyer = await factory.user()
        product = await factory.product()
        headers = factory.headers(buyer)
        await client.post("/cart/add", headers=headers, json={"product_id": product.id, "quantity": 1})
        order_id = (await client.post("/checkout/process", headers=headers, json=CHECKOUT)).json()["order"]["id"]

        response = await client.patch(f"/orders/{order_id}/status", headers=headers, json={"status": "shipped"})

        assert response.status_code == 403
