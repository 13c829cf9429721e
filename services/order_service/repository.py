from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Order


class OrderRepository:

    @staticmethod
    async def get_order(db: AsyncSession, order_id: int) -> Optional[Order]:
        result = await db.execute(select(Order).where(Order.id == order_id))
        return result.scalars().first()

    @staticmethod
    async def get_user_order(db: AsyncSession, user_id: int, order_id: int) -> Optional[Order]:
        result = await db.execute(
            select(Order).where(Order.id == order_id, Order.user_id == user_id)
        )
        return result.scalars().first()

    @staticmethod
    async def list_for_user(
        db: AsyncSession, user_id: int, offset: int = 0, limit: int = 20
    ) -> tuple[list[Order], int]:
        total = await db.scalar(select(func.count(Order.id)).where(Order.user_id == user_id))
        result = await db.execute(
            select(Order)
            .where(Order.user_id == user_id)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all()), total or 0

    @staticmethod
    async def count_for_user(db: AsyncSession, user_id: int) -> int:
        return await db.scalar(select(func.count(Order.id)).where(Order.user_id == user_id)) or 0

    @staticmethod
    async def reload(db: AsyncSession, order_id: int) -> Order:
        """Re-read the order and its lines so server-side defaults are populated."""
        result = await db.execute(
            select(Order)
            .where(Order.id == order_id)
            .execution_options(populate_existing=True)
        )
        return result.scalars().one()
