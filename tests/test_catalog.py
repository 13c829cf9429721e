"""Catalog browsing and shop-side product management."""

from decimal import Decimal

import pytest

pytestmark = pytest.mark.api


def new_product(**overrides) -> dict:
    data = {
        "name": "Brass Lamp",
        "description": "Hand made",
        "sku": "LAMP-001",
        "price": "49.90",
        "stock": 12,
    }
    data.update(overrides)
    return data


class TestShopSetup:
    async def test_shop_owner_sets_up_once(self, client, factory):
        owner = await factory.user("shop")
        headers = factory.headers(owner)

        first = await client.post("/shop/setup", headers=headers, json={"name": "Old Town Crafts"})
        second = await client.post("/shop/setup", headers=headers, json={"name": "Another"})

        assert first.status_code == 201
        assert first.json()["slug"] == "old-town-crafts"
        assert second.status_code == 409

    async def test_buyer_cannot_set_up_a_shop(self, client, factory):
        buyer = await factory.user()

        response = await client.post("/shop/setup", headers=factory.headers(buyer), json={"name": "Nope"})

        assert response.status_code == 403


class TestProductManagement:
    async def test_create_requires_a_shop(self, client, factory):
        owner = await factory.user("shop")

        response = await client.post("/products", headers=factory.headers(owner), json=new_product())

        assert response.status_code == 404

    async def test_create_product(self, client, factory):
        owner = await factory.user("shop")
        shop = await factory.shop(owner)

        response = await client.post("/products", headers=factory.headers(owner), json=new_product())

        assert response.status_code == 201
        body = response.json()
        assert body["shop_id"] == shop.id
        assert body["slug"] == "brass-lamp"
        assert body["price"] == 49.9
        assert body["is_active"] is True

    async def test_duplicate_sku_conflicts(self, client, factory):
        owner = await factory.user("shop")
        await factory.shop(owner)
        headers = factory.headers(owner)
        await client.post("/products", headers=headers, json=new_product())

        response = await client.post("/products", headers=headers, json=new_product(name="Other"))

        assert response.status_code == 409

    async def test_buyer_lacks_permission(self, client, factory):
        buyer = await factory.user()

        response = await client.post("/products", headers=factory.headers(buyer), json=new_product())

        assert response.status_code == 403

    async def test_negative_price_is_invalid(self, client, factory):
        owner = await factory.user("shop")
        await factory.shop(owner)

        response = await client.post(
            "/products", headers=factory.headers(owner), json=new_product(price="-1")
        )

        assert response.status_code == 422
        assert response.json()["errors"][0]["field"] == "price"

    async def test_owner_updates_price_and_stock(self, client, factory):
        owner = await factory.user("shop")
        shop = await factory.shop(owner)
        product = await factory.product(shop=shop, price="10.00", stock=1)

        response = await client.put(
            f"/products/{product.id}",
            headers=factory.headers(owner),
            json={"price": "12.00", "stock": 40},
        )

        assert response.status_code == 200
        assert response.json()["price"] == 12.0
        assert response.json()["stock"] == 40

    @pytest.mark.parametrize("field", ["price", "name", "sku", "stock", "is_active"])
    async def test_null_for_required_field_is_invalid(self, client, factory, db, field):
        owner = await factory.user("shop")
        shop = await factory.shop(owner)
        product = await factory.product(shop=shop, price="10.00", stock=3)

        response = await client.put(
            f"/products/{product.id}", headers=factory.headers(owner), json={field: None}
        )

        assert response.status_code == 422
        assert response.json()["errors"][0]["field"] == field
        await db.refresh(product)
        assert product.price == Decimal("10.00")
        assert product.stock == 3

    async def test_description_can_be_cleared(self, client, factory):
        owner = await factory.user("shop")
        shop = await factory.shop(owner)
        product = await factory.product(shop=shop)

        response = await client.put(
            f"/products/{product.id}", headers=factory.headers(owner), json={"description": None}
        )

        assert response.status_code == 200
        assert response.json()["description"] is None

    async def test_other_shop_cannot_update(self, client, factory):
        outsider = await factory.user("shop")
        await factory.shop(outsider)
        product = await factory.product()

        response = await client.put(
            f"/products/{product.id}", headers=factory.headers(outsider), json={"stock": 0}
        )

        assert response.status_code == 403
        assert response.json()["kind"] == "ownership"

    async def test_delete_hides_the_product(self, client, factory):
        owner = await factory.user("shop")
        shop = await factory.shop(owner)
        product = await factory.product("Vase", shop=shop)

        response = await client.delete(f"/products/{product.id}", headers=factory.headers(owner))
        assert response.status_code == 200

        assert (await client.get(f"/products/{product.slug}")).status_code == 404
        listing = await client.get("/products")
        assert product.id not in [p["id"] for p in listing.json()["items"]]


class TestBrowsing:
    async def test_list_only_active_products(self, client, factory):
        await factory.product("Visible")
        await factory.product("Hidden", is_active=False)

        response = await client.get("/products")

        assert response.status_code == 200
        assert [p["name"] for p in response.json()["items"]] == ["Visible"]
        assert response.json()["total"] == 1

    async def test_search_and_price_filters(self, client, factory):
        await factory.product("Red Mug", price="5.00")
        await factory.product("Blue Mug", price="15.00")
        await factory.product("Red Plate", price="25.00")

        response = await client.get("/products", params={"q": "mug", "min_price": "10"})

        assert [p["name"] for p in response.json()["items"]] == ["Blue Mug"]

    async def test_sort_by_price(self, client, factory):
        await factory.product("Mid", price="20.00")
        await factory.product("Cheap", price="5.00")
        await factory.product("Dear", price="90.00")

        response = await client.get("/products", params={"sort": "price_low"})

        assert [p["name"] for p in response.json()["items"]] == ["Cheap", "Mid", "Dear"]

    async def test_in_stock_filter(self, client, factory):
        await factory.product("Available", stock=3)
        await factory.product("Sold Out", stock=0)

        response = await client.get("/products", params={"in_stock": "true"})

        assert [p["name"] for p in response.json()["items"]] == ["Available"]

    async def test_category_filter(self, client, factory):
        tools = await factory.category("Tools")
        await factory.product("Hammer", category=tools)
        await factory.product("Pillow")

        response = await client.get("/products", params={"category": "tools"})

        assert [p["name"] for p in response.json()["items"]] == ["Hammer"]

    async def test_inverted_price_range_is_invalid(self, client):
        response = await client.get("/products", params={"min_price": "50", "max_price": "10"})

        assert response.status_code == 422

    async def test_show_counts_views_and_lists_related(self, client, factory):
        tools = await factory.category("Tools")
        hammer = await factory.product("Hammer", category=tools)
        await factory.product("Saw", category=tools)

        await client.get(f"/products/{hammer.slug}")
        response = await client.get(f"/products/{hammer.slug}")

        body = response.json()
        assert body["view_count"] == 2
        assert body["category"]["slug"] == "tools"
        assert [p["name"] for p in body["related"]] == ["Saw"]

    async def test_detail_reports_favorite_for_signed_in_buyer(self, client, factory):
        buyer = await factory.user()
        product = await factory.product("Kettle")
        headers = factory.headers(buyer)

        before = await client.get(f"/products/{product.slug}", headers=headers)
        await client.post(f"/favorites/toggle/{product.id}", headers=headers)
        after = await client.get(f"/products/{product.slug}", headers=headers)
        anonymous = await client.get(f"/products/{product.slug}")

        assert before.json()["is_favorited"] is False
        assert after.json()["is_favorited"] is True
        assert anonymous.status_code == 200
        assert anonymous.json()["is_favorited"] is False


class TestCategories:
    async def test_tree_nests_children(self, client, factory):
        home = await factory.category("Home")
        await factory.category("Kitchen", parent=home)

        response = await client.get("/categories")

        tree = response.json()
        assert [c["name"] for c in tree] == ["Home"]
        assert [c["name"] for c in tree[0]["children"]] == ["Kitchen"]

    async def test_only_admin_creates_categories(self, client, factory):
        admin = await factory.user("admin")
        buyer = await factory.user()

        denied = await client.post("/categories", headers=factory.headers(buyer), json={"name": "Toys"})
        created = await client.post("/categories", headers=factory.headers(admin), json={"name": "Toys"})

        assert denied.status_code == 403
        assert created.status_code == 201
        assert created.json()["slug"] == "toys"
