"""
Fixtures de base de datos para los repositorios SQL.

Cada test recibe una base SQLite in-memory nueva (aiosqlite + StaticPool).
"""

import pytest_asyncio

from booking_core.config import Settings
from booking_core.infrastructure.db.engine import build_engine, build_sessionmaker, create_tables


@pytest_asyncio.fixture
async def sql_engine():
    engine = build_engine(Settings(database_url="sqlite+aiosqlite:///:memory:"))
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(sql_engine):
    session_maker = build_sessionmaker(sql_engine)
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def file_engine(tmp_path):
    """SQLite en archivo: cada sesión obtiene su propia conexión."""
    settings = Settings(database_url=f"sqlite+aiosqlite:///{tmp_path / 'booking.db'}", use_in_memory=False)
    engine = build_engine(settings)
    await create_tables(engine)
    yield engine
    await engine.dispose()
