"""
Database session and engine configuration.

Sets up the async database connection using SQLAlchemy (asyncpg in
production, aiosqlite for local runs and tests).
"""

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from typing import AsyncGenerator

from recruitment.core.config import settings


engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    future=True,
)

# Sessions keep loaded objects usable after commit
async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Get a database session.

    Used by FastAPI to provide a session per request. Routers commit
    explicitly after the service call; anything left pending is committed
    here, and any exception rolls the request's transaction back.
    """
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

