"""Integration test fixtures: a real PostgreSQL in a testcontainer."""

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlmodel import SQLModel
from testcontainers.postgres import PostgresContainer

from hardstore.app.config import get_settings
from hardstore.infra import close_db, init_db


@pytest.fixture(scope="session")
def postgres_container():
    """Start PostgreSQL container for all integration tests."""
    with PostgresContainer("postgres:16") as postgres:
        yield postgres


@pytest_asyncio.fixture
async def db_engine(postgres_container) -> AsyncGenerator[AsyncEngine, None]:
    """Engine over the container with freshly created tables."""
    get_settings.cache_clear()
    url = postgres_container.get_connection_url()
    async_url = url.replace("postgresql+psycopg2://", "postgresql+asyncpg://")
    engine = await init_db(async_url)

    # Drop and recreate all tables for test isolation
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine
    await close_db()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session
