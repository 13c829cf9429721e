"""Favorite toggling through the service and the HTTP endpoints."""

import pytest

from shared.errors import NotFound
from services.favorite_service.service import FavoriteService


class TestToggle:
    async def test_toggle_adds_then_removes(self, db, factory):
        buyer = await factory.user()
        product = await factory.product()

        assert await FavoriteService.toggle(db, buyer.id, product.id) == "added"
        assert await FavoriteService.is_favorited(db, buyer.id, product.id) is True

        assert await FavoriteService.toggle(db, buyer.id, product.id) == "removed"
        assert await FavoriteService.is_favorited(db, buyer.id, product.id) is False

    async def test_favorites_are_per_user(self, db, factory):
        alice = await factory.user()
        bob = await factory.user()
        product = await factory.product()

        await FavoriteService.toggle(db, alice.id, product.id)

        assert await FavoriteService.is_favorited(db, bob.id, product.id) is False

    async def test_unknown_product(self, db, factory):
        buyer = await factory.user()

        with pytest.raises(NotFound):
            await FavoriteService.toggle(db, buyer.id, 4242)

    async def test_remove_missing_favorite(self, db, factory):
        buyer = await factory.user()
        product = await factory.product()

        with pytest.raises(NotFound):
            await FavoriteService.remove(db, buyer.id, product.id)

    async def test_list_products(self, db, factory):
        buyer = await factory.user()
        first = await factory.product("First")
        second = await factory.product("Second")
        await FavoriteService.toggle(db, buyer.id, first.id)
        await FavoriteService.toggle(db, buyer.id, second.id)

        products, total = await FavoriteService.list_products(db, buyer.id, 1, 20)

        assert total == 2
        assert {p.id for p in products} == {first.id, second.id}


@pytest.mark.api
class TestFavoriteEndpoints:
    async def test_toggle_round_trip(self, client, factory):
        buyer = await factory.user()
        product = await factory.product()
        headers = factory.headers(buyer)

        first = await client.post(f"/favorites/toggle/{product.id}", headers=headers)
        assert first.status_code == 200
        assert first.json()["action"] == "added"
        assert first.json()["is_favorited"] is True

        listing = await client.get("/favorites", headers=headers)
        assert listing.json()["total"] == 1

        second = await client.post(f"/favorites/toggle/{product.id}", headers=headers)
        assert second.json()["action"] == "removed"
        assert second.json()["is_favorited"] is False

    async def test_unknown_product_is_404(self, client, factory):
        buyer = await factory.user()

        response = await client.post("/favorites/toggle/999", headers=factory.headers(buyer))

        assert response.status_code == 404
        assert response.json()["kind"] == "not_found"

    async def test_requires_authentication(self, client, factory):
        product = await factory.product()

        response = await client.post(f"/favorites/toggle/{product.id}")

        assert response.status_code == 401
