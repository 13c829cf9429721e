from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

from shared.config.settings import DATABASE_URL, SQL_ECHO


def build_engine(url: str = DATABASE_URL):
    """SQLite (tests, local runs) shares one connection so in-memory databases survive."""
    if url.startswith("sqlite"):
        return create_async_engine(
            url,
            echo=SQL_ECHO,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_async_engine(url, echo=SQL_ECHO, pool_pre_ping=True)


engine = build_engine()

AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False)

Base = declarative_base()


async def get_db():
    async with AsyncSessionLocal() as session:
        yield session
