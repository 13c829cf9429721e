from decimal import Decimal
from typing import Optional

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Category, Product, Shop

SORT_ORDER = {
    "newest": (Product.created_at.desc(), Product.id.desc()),
    "price_low": (Product.price.asc(), Product.id.asc()),
    "price_high": (Product.price.desc(), Product.id.asc()),
    "popular": (Product.view_count.desc(), Product.id.asc()),
}


class ProductRepository:

    @staticmethod
    async def create_product(db: AsyncSession, product: Product):
        db.add(product)
        await db.commit()
        await db.refresh(product)
        return product

    @staticmethod
    async def get_product_by_id(db: AsyncSession, product_id: int) -> Optional[Product]:
        result = await db.execute(select(Product).where(Product.id == product_id))
        return result.scalars().first()

    @staticmethod
    async def get_active_by_slug(db: AsyncSession, slug: str) -> Optional[Product]:
        result = await db.execute(
            select(Product).where(Product.slug == slug, Product.is_active.is_(True))
        )
        return result.scalars().first()

    @staticmethod
    async def slug_exists(db: AsyncSession, slug: str) -> bool:
        result = await db.execute(select(Product.id).where(Product.slug == slug))
        return result.first() is not None

    @staticmethod
    async def get_by_sku(db: AsyncSession, sku: str) -> Optional[Product]:
        result = await db.execute(select(Product).where(Product.sku == sku))
        return result.scalars().first()

    @staticmethod
    async def search(
        db: AsyncSession,
        *,
        q: Optional[str] = None,
        category_id: Optional[int] = None,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None,
        in_stock: bool = False,
        sort: str = "newest",
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[Product], int]:
        stmt = select(Product).where(Product.is_active.is_(True))
        if q:
            pattern = f"%{q}%"
            stmt = stmt.where(or_(Product.name.ilike(pattern), Product.description.ilike(pattern)))
        if category_id is not None:
            stmt = stmt.where(Product.category_id == category_id)
        if min_price is not None:
            stmt = stmt.where(Product.price >= min_price)
        if max_price is not None:
            stmt = stmt.where(Product.price <= max_price)
        if in_stock:
            stmt = stmt.where(Product.stock > 0)

        total = await db.scalar(select(func.count()).select_from(stmt.subquery()))
        result = await db.execute(stmt.order_by(*SORT_ORDER[sort]).offset(offset).limit(limit))
        return list(result.scalars().all()), total or 0

    @staticmethod
    async def related(db: AsyncSession, product: Product, limit: int = 4) -> list[Product]:
        if product.category_id is None:
            return []
        result = await db.execute(
            select(Product)
            .where(
                Product.category_id == product.category_id,
                Product.id != product.id,
                Product.is_active.is_(True),
            )
            .order_by(Product.view_count.desc(), Product.id.asc())
            .limit(limit)
        )
        return list(result.scalars().all())

    @staticmethod
    async def increment_views(db: AsyncSession, product_id: int) -> None:
        await db.execute(
            update(Product)
            .where(Product.id == product_id)
            .values(view_count=Product.view_count + 1)
        )
        await db.commit()

    @staticmethod
    async def update_product(db: AsyncSession, product: Product):
        db.add(product)
        await db.commit()
        await db.refresh(product)
        return product

    @staticmethod
    async def decrement_stock_if_available(db: AsyncSession, product_id: int, quantity: int) -> bool:
        """Compare-and-decrement in one statement. Does not commit: the caller owns the transaction."""
        result = await db.execute(
            update(Product)
            .where(Product.id == product_id, Product.stock >= quantity)
            .values(stock=Product.stock - quantity)
        )
        return result.rowcount == 1

    @staticmethod
    async def restore_stock(db: AsyncSession, product_id: int, quantity: int) -> bool:
        """Does not commit: the caller owns the transaction."""
        result = await db.execute(
            update(Product)
            .where(Product.id == product_id)
            .values(stock=Product.stock + quantity)
        )
        return result.rowcount == 1


class CategoryRepository:

    @staticmethod
    async def create(db: AsyncSession, category: Category) -> Category:
        db.add(category)
        await db.commit()
        await db.refresh(category)
        return category

    @staticmethod
    async def get_by_id(db: AsyncSession, category_id: int) -> Optional[Category]:
        return await db.get(Category, category_id)

    @staticmethod
    async def get_by_slug(db: AsyncSession, slug: str) -> Optional[Category]:
        result = await db.execute(select(Category).where(Category.slug == slug))
        return result.scalars().first()

    @staticmethod
    async def list_active(db: AsyncSession) -> list[Category]:
        result = await db.execute(
            select(Category)
            .where(Category.is_active.is_(True))
            .order_by(Category.sort_order.asc(), Category.id.asc())
        )
        return list(result.scalars().all())


class ShopRepository:

    @staticmethod
    async def create(db: AsyncSession, shop: Shop) -> Shop:
        db.add(shop)
        await db.commit()
        await db.refresh(shop)
        return shop

    @staticmethod
    async def get_by_user(db: AsyncSession, user_id: int) -> Optional[Shop]:
        result = await db.execute(select(Shop).where(Shop.user_id == user_id))
        return result.scalars().first()

    @staticmethod
    async def slug_exists(db: AsyncSession, slug: str) -> bool:
        result = await db.execute(select(Shop.id).where(Shop.slug == slug))
        return result.first() is not None
