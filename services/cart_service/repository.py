from decimal import Decimal
from typing import Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import CartLine


class CartRepository:

    @staticmethod
    async def get_line(db: AsyncSession, line_id: int) -> Optional[CartLine]:
        result = await db.execute(select(CartLine).where(CartLine.id == line_id))
        return result.scalars().first()

    @staticmethod
    async def get_active_line(db: AsyncSession, user_id: int, product_id: int) -> Optional[CartLine]:
        result = await db.execute(
            select(CartLine)
            .where(CartLine.user_id == user_id)
            .where(CartLine.product_id == product_id)
            .where(CartLine.is_active.is_(True))
        )
        return result.scalars().first()

    @staticmethod
    async def active_lines(db: AsyncSession, user_id: int) -> list[CartLine]:
        result = await db.execute(
            select(CartLine)
            .where(CartLine.user_id == user_id, CartLine.is_active.is_(True))
            .order_by(CartLine.created_at.desc(), CartLine.id.desc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def save(db: AsyncSession, line: CartLine) -> CartLine:
        db.add(line)
        await db.commit()
        await db.refresh(line)
        return line

    @staticmethod
    async def delete_line(db: AsyncSession, line: CartLine) -> None:
        await db.delete(line)
        await db.commit()

    @staticmethod
    async def clear(db: AsyncSession, user_id: int, commit: bool = True) -> None:
        stmt = delete(CartLine).where(CartLine.user_id == user_id, CartLine.is_active.is_(True))
        await db.execute(stmt)
        if commit:
            await db.commit()

    @staticmethod
    async def total(db: AsyncSession, user_id: int) -> Decimal:
        result = await db.execute(
            select(func.coalesce(func.sum(CartLine.line_total), 0))
            .where(CartLine.user_id == user_id, CartLine.is_active.is_(True))
        )
        return Decimal(str(result.scalar_one())).quantize(Decimal("0.01"))

    @staticmethod
    async def count(db: AsyncSession, user_id: int) -> int:
        result = await db.execute(
            select(func.coalesce(func.sum(CartLine.quantity), 0))
            .where(CartLine.user_id == user_id, CartLine.is_active.is_(True))
        )
        return int(result.scalar_one())
