from collections.abc import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from .config import settings


engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
    pool_recycle=settings.db_pool_recycle,
    pool_pre_ping=settings.db_pool_pre_ping,
)

# Objects stay usable after commit so handlers can serialize what they just
# wrote. Re-query or refresh before trusting them against concurrent writers.
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session


async def check_database_connection(db_engine: AsyncEngine) -> None:
    """Run ``SELECT 1``; raises ``SQLAlchemyError`` when the store is unreachable."""
    async with db_engine.connect() as connection:
        await connection.execute(text("SELECT 1"))
