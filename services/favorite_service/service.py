from typing import Literal

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from shared.errors import NotFound
from shared.observability import ecomm_favorite_toggles_total
from services.product_service.repository import ProductRepository

from .models import Favorite
from .repository import FavoriteRepository

logger = structlog.get_logger(__name__)


class FavoriteService:

    @staticmethod
    async def toggle(db: AsyncSession, user_id: int, product_id: int) -> Literal["added", "removed"]:
        if not await ProductRepository.get_product_by_id(db, product_id):
            raise NotFound("Product not found")

        favorite = await FavoriteRepository.get(db, user_id, product_id)
        if favorite:
            await FavoriteRepository.delete(db, favorite)
            action = "removed"
        else:
            await FavoriteRepository.create(db, Favorite(user_id=user_id, product_id=product_id))
            action = "added"

        ecomm_favorite_toggles_total.labels(action=action).inc()
        logger.info("favorite_toggled", user_id=user_id, product_id=product_id, action=action)
        return action

    @staticmethod
    async def remove(db: AsyncSession, user_id: int, product_id: int) -> None:
        favorite = await FavoriteRepository.get(db, user_id, product_id)
        if not favorite:
            raise NotFound("Product is not in your favorites")
        await FavoriteRepository.delete(db, favorite)

    @staticmethod
    async def is_favorited(db: AsyncSession, user_id: int, product_id: int) -> bool:
        return await FavoriteRepository.get(db, user_id, product_id) is not None

    @staticmethod
    async def list_products(db: AsyncSession, user_id: int, page: int, per_page: int):
        return await FavoriteRepository.products_for_user(db, user_id, (page - 1) * per_page, per_page)
