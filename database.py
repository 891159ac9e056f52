from functools import lru_cache

from sqlmodel import SQLModel
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from config import get_settings


# 1. Create the Async Engine once per process.
# DATABASE_URL is checked here, not at import, so tests can run without one.
@lru_cache(maxsize=1)
def get_engine() -> AsyncEngine:
    settings = get_settings()
    if not settings.database_url:
        # Fail fast on startup
        raise ValueError("DATABASE_URL is not set. Please check your .env file.")
    return create_async_engine(settings.database_url, echo=settings.sql_echo, future=True)


async def init_db(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        # This creates the tables (and the unique_booking_slot constraint) if they don't exist
        await conn.run_sync(SQLModel.metadata.create_all)


def get_session_factory(engine: AsyncEngine) -> sessionmaker:
    # expire_on_commit=False keeps returned records readable after the session closes
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
