import os
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from libs.db.base import Base

# Import all models so metadata includes every table
from services.orders_service import models as _orders_models  # noqa: F401

TEST_DATABASE_URL = os.environ["TEST_DATABASE_URL"]


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        # One shared connection so every session sees the same in-memory DB
        return {"poolclass": StaticPool}
    return {}


@pytest_asyncio.fixture
async def test_engine():
    """
    Create a fresh schema for each test and drop it afterwards.
    """
    engine = create_async_engine(
        TEST_DATABASE_URL, future=True, **_engine_kwargs(TEST_DATABASE_URL)
    )

    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    except OperationalError:
        await engine.dispose()
        pytest.skip("Database not available for tests")

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """
    Yield a session the code under test may commit and roll back freely.
    """
    async with session_factory() as session:
        yield session


@pytest.fixture
def requires_row_locks(test_engine):
    """Skip unless the backend honours SELECT ... FOR UPDATE."""
    if test_engine.dialect.name != "postgresql":
        pytest.skip("Row-lock concurrency tests need PostgreSQL (set TEST_DATABASE_URL)")


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """
    Yield an AsyncClient for the orders app with the DB dependency overridden.
    """
    from libs.db.session import get_async_db
    from services.orders_service.app.main import app

    async def _override_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_async_db] = _override_db

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
