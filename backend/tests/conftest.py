"""Shared test fixtures and configuration.

Points the settings at SQLite before any volunteerhub import so the
module-level engine never tries to reach Postgres, and provides a fresh
database per test.
"""

import os

# Patch env vars BEFORE any volunteerhub imports
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./volunteerhub-test.db")
os.environ.setdefault("CELERY_BROKER_URL", "memory://")
os.environ.setdefault("CELERY_RESULT_BACKEND", "cache+memory://")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool

from volunteerhub.db.base import Base
from volunteerhub.db.session import create_session_factory, get_db_session
from volunteerhub.main import create_app
from volunteerhub import models  # noqa: F401  registers the tables on Base.metadata

from .fakes import FakePublisher


@pytest_asyncio.fixture
async def engine(tmp_path):
    """Async engine on a temp-file SQLite database with the schema created."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'volunteerhub.db'}",
        poolclass=NullPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest_asyncio.fixture
async def db(session_factory):
    """A session for service-level tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def publisher():
    return FakePublisher()


@pytest.fixture
def app(session_factory, publisher):
    """Application with the fake publisher and the temp database wired in."""
    app = create_app(publisher=publisher)

    async def override_get_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_get_db_session
    return app


@pytest_asyncio.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest.fixture
def task_payload():
    return {
        "title": "Walk dog",
        "description": "30 min",
        "time": "2099-06-01T15:00:00.000Z",
        "location": {"type": "Point", "coordinates": [-122.42, 37.77]},
        "locationLabel": "Mission Dolores Park",
        "pointsReward": 2,
        "estimatedHours": 1,
        "createdBy": "org-1",
    }
