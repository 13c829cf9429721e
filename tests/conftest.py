import os

# Settings are read at import time, so the environment must be in place first.
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["TRACING_ENABLED"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker

from main import app
from shared.config.database import Base, build_engine, get_db
from shared.security import issue_token
from services.auth_service.models import User
from services.auth_service.service import AuthService
from services.product_service.models import Category, Product, Shop

PASSWORD = "secret-pass-123"
PASSWORD_HASH = AuthService._hash_password(PASSWORD)


@pytest.fixture
async def engine():
    engine = build_engine("sqlite+aiosqlite://")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


class Factory:
    """Seeds rows straight through the session and commits each one."""

    password = PASSWORD

    def __init__(self, db):
        self.db = db
        self._seq = 0

    def _next(self) -> int:
        self._seq += 1
        return self._seq

    async def _save(self, obj):
        self.db.add(obj)
        await self.db.commit()
        await self.db.refresh(obj)
        return obj

    async def user(self, role: str = "buyer", email: str | None = None, is_active: bool = True) -> User:
        n = self._next()
        return await self._save(User(
            name=f"{role.title()} {n}",
            email=email or f"{role}{n}@example.com",
            phone=f"05000000{n:02d}",
            role=role,
            hashed_password=PASSWORD_HASH,
            is_active=is_active,
        ))

    async def shop(self, owner: User | None = None, name: str | None = None) -> Shop:
        owner = owner or await self.user("shop")
        n = self._next()
        return await self._save(Shop(user_id=owner.id, name=name or f"Shop {n}", slug=f"shop-{n}"))

    async def category(self, name: str, parent: Category | None = None) -> Category:
        return await self._save(Category(
            name=name,
            slug=name.lower().replace(" ", "-"),
            parent_id=parent.id if parent else None,
        ))

    async def product(
        self,
        name: str = "Product",
        price: str | Decimal = "10.00",
        stock: int = 10,
        shop: Shop | None = None,
        category: Category | None = None,
        is_active: bool = True,
    ) -> Product:
        shop = shop or await self.shop()
        n = self._next()
        return await self._save(Product(
            shop_id=shop.id,
            category_id=category.id if category else None,
            name=name,
            slug=f"{name.lower().replace(' ', '-')}-{n}",
            sku=f"SKU-{n}",
            price=Decimal(str(price)),
            stock=stock,
            is_active=is_active,
        ))

    @staticmethod
    def headers(user: User) -> dict:
        return {"Authorization": f"Bearer {issue_token(user.id, user.role)}"}


@pytest.fixture
def factory(db):
    return Factory(db)
