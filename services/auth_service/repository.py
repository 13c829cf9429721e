from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import User


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserRepository:

    @staticmethod
    async def create(db: AsyncSession, user: User) -> User:
        user.email = normalize_email(user.email)
        db.add(user)
        await db.commit()
        await db.refresh(user)
        return user

    @staticmethod
    async def get_by_id(db: AsyncSession, user_id: int) -> Optional[User]:
        return await db.get(User, user_id)

    @staticmethod
    async def get_by_email(db: AsyncSession, email: str) -> Optional[User]:
        """Case-insensitive, so Mona@Example.com and mona@example.com are one account."""
        result = await db.execute(
            select(User).where(func.lower(User.email) == normalize_email(email))
        )
        return result.scalars().first()

    @staticmethod
    async def touch_login(db: AsyncSession, user: User) -> User:
        user.last_login_at = datetime.now(timezone.utc)
        return await UserRepository.save(db, user)

    @staticmethod
    async def save(db: AsyncSession, user: User) -> User:
        db.add(user)
        await db.commit()
        await db.refresh(user)
        return user
