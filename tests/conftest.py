"""Shared fixtures: in-memory database, session factory and an ASGI client."""

import os

os.environ.setdefault("SERVICE_TOKEN", "test-service-token")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("APP_ENV", "test")

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from wingfinder.database import get_db
from wingfinder.main import app
from wingfinder.models import Base, Location, LocationHour, LocationItem
from wingfinder.services.snapshot import clear_snapshot_cache

SERVICE_TOKEN = os.environ["SERVICE_TOKEN"]


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


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
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def _fresh_snapshot_cache():
    clear_snapshot_cache()
    yield
    clear_snapshot_cache()


@pytest.fixture
def admin_headers():
    return {"X-Service-Token": SERVICE_TOKEN}


@pytest.fixture
async def stored_item(db):
    """One location with a single item and one day of hours."""
    location = Location(
        restaurant_name="Wing Stop",
        address="1 Main St",
        neighborhood="Downtown",
        latitude=37.77,
        longitude=-122.41,
    )
    db.add(location)
    await db.flush()
    db.add(
        LocationHour(
            location_id=location.id,
            day_of_week="Tue",
            date="Sep 30",
            full_date="2025-09-30",
            hours="11 am–10 pm",
        )
    )
    item = LocationItem(
        location_id=location.id,
        item_name="Buffalo Wings",
        types=["meat"],
        item_key="abc123def456",
    )
    db.add(item)
    await db.commit()
    return item
