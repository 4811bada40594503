from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from booking_core.config import get_settings
from booking_core.infrastructure.db.engine import build_engine, build_sessionmaker

settings = get_settings()

# Falls back to an in-memory SQLite database when DATABASE_URL is not set
engine = build_engine(settings)
AsyncSessionLocal = build_sessionmaker(engine)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session
