from decimal import Decimal
from typing import Optional

from sqlalchemy import distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from services.auth_service.models import User
from services.favorite_service.models import Favorite
from services.order_service.models import Order, OrderLine
from services.product_service.models import Product, Shop

from .models import DriverProfile, TechnicianProfile


def _shop_order_ids(shop_id: int):
    return (
        select(OrderLine.order_id)
        .join(Product, Product.id == OrderLine.product_id)
        .where(Product.shop_id == shop_id)
    )


class DashboardRepository:

    # --- buyer ---

    @staticmethod
    async def order_count(db: AsyncSession, user_id: int, status: Optional[str] = None) -> int:
        stmt = select(func.count(Order.id)).where(Order.user_id == user_id)
        if status:
            stmt = stmt.where(Order.status == status)
        return await db.scalar(stmt) or 0

    @staticmethod
    async def recent_orders_for_user(db: AsyncSession, user_id: int, limit: int) -> list[Order]:
        result = await db.execute(
            select(Order)
            .where(Order.user_id == user_id)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    @staticmethod
    async def favorite_count(db: AsyncSession, user_id: int) -> int:
        return await db.scalar(select(func.count(Favorite.id)).where(Favorite.user_id == user_id)) or 0

    @staticmethod
    async def favorite_products(db: AsyncSession, user_id: int, limit: int) -> list[Product]:
        result = await db.execute(
            select(Product)
            .join(Favorite, Favorite.product_id == Product.id)
            .where(Favorite.user_id == user_id)
            .order_by(Favorite.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    # --- shop ---

    @staticmethod
    async def shop_product_count(db: AsyncSession, shop_id: int) -> int:
        return await db.scalar(select(func.count(Product.id)).where(Product.shop_id == shop_id)) or 0

    @staticmethod
    async def shop_order_count(db: AsyncSession, shop_id: int, status: Optional[str] = None) -> int:
        stmt = select(func.count(distinct(Order.id))).where(Order.id.in_(_shop_order_ids(shop_id)))
        if status:
            stmt = stmt.where(Order.status == status)
        return await db.scalar(stmt) or 0

    @staticmethod
    async def shop_revenue(db: AsyncSession, shop_id: int) -> Decimal:
        """Sum of the shop's own lines in delivered orders."""
        value = await db.scalar(
            select(func.coalesce(func.sum(OrderLine.line_total), 0))
            .join(Product, Product.id == OrderLine.product_id)
            .join(Order, Order.id == OrderLine.order_id)
            .where(Product.shop_id == shop_id, Order.status == "delivered")
        )
        return Decimal(str(value)).quantize(Decimal("0.01"))

    @staticmethod
    async def shop_orders(db: AsyncSession, shop_id: int, offset: int, limit: int) -> list[Order]:
        result = await db.execute(
            select(Order)
            .where(Order.id.in_(_shop_order_ids(shop_id)))
            .order_by(Order.created_at.desc(), Order.id.desc())
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all())

    @staticmethod
    async def shop_products(db: AsyncSession, shop_id: int, offset: int, limit: int) -> list[Product]:
        result = await db.execute(
            select(Product)
            .where(Product.shop_id == shop_id)
            .order_by(Product.id.desc())
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all())

    @staticmethod
    async def top_products(db: AsyncSession, limit: int, shop_id: Optional[int] = None) -> list[Product]:
        stmt = select(Product).order_by(Product.view_count.desc(), Product.id.asc()).limit(limit)
        if shop_id is not None:
            stmt = stmt.where(Product.shop_id == shop_id)
        result = await db.execute(stmt)
        return list(result.scalars().all())

    # --- driver / technician ---

    @staticmethod
    async def get_driver(db: AsyncSession, user_id: int) -> Optional[DriverProfile]:
        result = await db.execute(select(DriverProfile).where(DriverProfile.user_id == user_id))
        return result.scalars().first()

    @staticmethod
    async def get_technician(db: AsyncSession, user_id: int) -> Optional[TechnicianProfile]:
        result = await db.execute(select(TechnicianProfile).where(TechnicianProfile.user_id == user_id))
        return result.scalars().first()

    @staticmethod
    async def create_profile(db: AsyncSession, profile):
        db.add(profile)
        await db.commit()
        await db.refresh(profile)
        return profile

    @staticmethod
    async def orders_in_status(db: AsyncSession, status: str) -> int:
        return await db.scalar(select(func.count(Order.id)).where(Order.status == status)) or 0

    # --- admin ---

    @staticmethod
    async def count(db: AsyncSession, model) -> int:
        return await db.scalar(select(func.count(model.id))) or 0

    @staticmethod
    async def recent_orders(db: AsyncSession, offset: int, limit: int) -> list[Order]:
        result = await db.execute(
            select(Order).order_by(Order.created_at.desc(), Order.id.desc()).offset(offset).limit(limit)
        )
        return list(result.scalars().all())

    @staticmethod
    async def recent_users(db: AsyncSession, offset: int, limit: int) -> list[User]:
        result = await db.execute(
            select(User).order_by(User.created_at.desc(), User.id.desc()).offset(offset).limit(limit)
        )
        return list(result.scalars().all())

    @staticmethod
    async def admin_counts(db: AsyncSession) -> dict[str, int]:
        return {
            "total_users": await DashboardRepository.count(db, User),
            "total_products": await DashboardRepository.count(db, Product),
            "total_orders": await DashboardRepository.count(db, Order),
            "total_shops": await DashboardRepository.count(db, Shop),
            "total_drivers": await DashboardRepository.count(db, DriverProfile),
            "total_technicians": await DashboardRepository.count(db, TechnicianProfile),
        }
