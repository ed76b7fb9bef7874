"""
Picture API — Test Configuration (conftest.py)
================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Each test gets a fresh in-memory SQLite database (aiosqlite) and a
       temporary public/ directory, so tests never touch real storage.

Fixture Hierarchy (all function-scoped):
    ├── db_engine: async engine on an in-memory SQLite database, schema created
    ├── session_factory: sessionmaker bound to db_engine
    ├── db_session: one AsyncSession for service-level tests
    ├── restaurant: restaurant row with id 1 (the default upload restaurant)
    ├── upload_root: temporary <public>/uploads used by the file_service singleton
    ├── test_client: HTTPX AsyncClient wired to the app with db_engine sessions
    └── concurrent_client: same, on a SQLite file for requests sent together
"""

import os
import tempfile

# Override settings for testing BEFORE any app imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["PUBLIC_ROOT"] = tempfile.mkdtemp(prefix="picture_api_test_")
os.environ["LOG_LEVEL"] = "WARNING"

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool, StaticPool  # noqa: E402

from picture_api.database import Base, get_db_session  # noqa: E402
from picture_api.models.picture import Picture  # noqa: E402,F401
from picture_api.models.restaurant import Restaurant  # noqa: E402
from picture_api.services.file_service import file_service  # noqa: E402


@pytest_asyncio.fixture
async def db_engine():
    """
    In-memory SQLite engine with the full schema.

    StaticPool keeps a single connection so every session sees the same
    in-memory database.
    """
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
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def restaurant(session_factory):
    """Restaurant with id 1, the default owner of uploaded pictures."""
    async with session_factory() as session:
        record = Restaurant(id=1, name="Le Quai Ouest")
        session.add(record)
        await session.commit()
        return record


@pytest.fixture
def upload_root(tmp_path, monkeypatch):
    """
    Points the file_service singleton at a fresh public/ directory.

    The upload directory itself is NOT created, so tests can check that
    the service provisions it.
    """
    public_root = tmp_path / "public"
    monkeypatch.setattr(file_service, "public_root", public_root)
    return public_root / file_service.upload_dir


@pytest.fixture
def sample_image_bytes():
    """Minimal JPEG: SOI marker + JFIF header + EOI marker."""
    return (
        b'\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00'
        b'\xff\xd9'
    )


@pytest_asyncio.fixture
async def test_client(session_factory, upload_root):
    """
    HTTPX AsyncClient talking to the FastAPI app through ASGITransport.

    get_db_session is overridden so requests use the per-test database.

    Usage:
        async def test_list(test_client):
            response = await test_client.get("/api/picture")
            assert response.status_code == 200
    """
    from picture_api.main import app

    async def override_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_db_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def concurrent_client(tmp_path, upload_root):
    """
    Like test_client, but backed by a SQLite file with one connection per
    session, so requests sent together run in separate transactions.

    Restaurant 1 exists.
    """
    from picture_api.main import app

    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'pictures.db'}",
        poolclass=NullPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        session.add(Restaurant(id=1, name="Le Quai Ouest"))
        await session.commit()

    async def override_db_session():
        async with factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_db_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
    await engine.dispose()
