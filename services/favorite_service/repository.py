from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from services.product_service.models import Product

from .models import Favorite


class FavoriteRepository:

    @staticmethod
    async def get(db: AsyncSession, user_id: int, product_id: int) -> Optional[Favorite]:
        result = await db.execute(
            select(Favorite)
            .where(Favorite.user_id == user_id)
            .where(Favorite.product_id == product_id)
        )
        return result.scalars().first()

    @staticmethod
    async def create(db: AsyncSession, favorite: Favorite) -> Favorite:
        db.add(favorite)
        await db.commit()
        return favorite

    @staticmethod
    async def delete(db: AsyncSession, favorite: Favorite) -> None:
        await db.delete(favorite)
        await db.commit()

    @staticmethod
    async def products_for_user(
        db: AsyncSession, user_id: int, offset: int = 0, limit: int = 20
    ) -> tuple[list[Product], int]:
        base = (
            select(Product)
            .join(Favorite, Favorite.product_id == Product.id)
            .where(Favorite.user_id == user_id)
        )
        total = await db.scalar(select(func.count()).select_from(base.subquery()))
        result = await db.execute(base.order_by(Favorite.created_at.desc(), Favorite.id.desc()).offset(offset).limit(limit))
        return list(result.scalars().all()), total or 0

    @staticmethod
    async def count_for_user(db: AsyncSession, user_id: int) -> int:
        return await db.scalar(select(func.count(Favorite.id)).where(Favorite.user_id == user_id)) or 0
