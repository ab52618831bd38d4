from contextlib import asynccontextmanager

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from config import settings
from db.models import Base
from db.store import DatabaseJourneyStepStore
from storage.backend import ImageStorageBackend, UploadedImage

# ---------------------------------------------------------------------------
# File-backed SQLite engine so each unit of work gets its own session
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def db_engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'journey.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_scope(db_engine):
    factory = async_sessionmaker(db_engine, expire_on_commit=False)

    @asynccontextmanager
    async def _scope():
        session = factory()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    return _scope


@pytest.fixture
def store(db_engine, session_scope):
    async def _init_schema():
        async with db_engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def _ping():
        async with db_engine.connect():
            pass

    return DatabaseJourneyStepStore(session_scope=session_scope, init_schema=_init_schema, ping=_ping)


# ---------------------------------------------------------------------------
# Image backend stand-in
# ---------------------------------------------------------------------------


class FakeImageBackend(ImageStorageBackend):
    cloud_name = "test-cloud"

    def __init__(self):
        self.uploads: list[tuple[str, str | None]] = []
        self.broken_ids: set[str] = set()

    def signed_url(self, public_id: str) -> str | None:
        if public_id in self.broken_ids:
            return None
        return f"https://res.cloudinary.com/test-cloud/image/authenticated/s--sig--/{public_id}"

    async def upload(self, image_data: str, public_id: str | None = None) -> UploadedImage:
        self.uploads.append((image_data, public_id))
        return UploadedImage(
            public_id=f"journey/{public_id or 'generated'}",
            secure_url="https://res.cloudinary.com/test-cloud/image/authenticated/journey/x.jpg",
            width=800,
            height=600,
        )


@pytest.fixture
def images():
    return FakeImageBackend()


# ---------------------------------------------------------------------------
# App wired to the test store and image backend
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def client(store, images):
    import main

    main.app.dependency_overrides[main.get_store] = lambda: store
    main.app.dependency_overrides[main.get_images] = lambda: images
    async with AsyncClient(transport=ASGITransport(app=main.app), base_url="http://test") as c:
        yield c
    main.app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def site_token(client) -> str:
    resp = await client.post("/api/verify-password", json={"password": settings.SITE_PASSWORD})
    return resp.json()["token"]


@pytest_asyncio.fixture
async def admin_token(client) -> str:
    resp = await client.post("/api/admin/login", json={"password": settings.ADMIN_PASSWORD})
    return resp.json()["token"]


def step_body(**overrides) -> dict:
    body = {
        "phase": "The Spark",
        "date": "November 1, 2025",
        "image_public_id": "journey/step_1",
        "caption": "The day we met...",
        "theme": {"background": "#FFF5F7", "text": "#2d3436", "accent": "#fab1a0"},
        "step_order": 1,
    }
    body.update(overrides)
    return body
