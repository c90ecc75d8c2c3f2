"""Pytest configuration and shared fixtures."""

from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from orgtree.core.database import Base, get_db
from orgtree.core.locks import LocalTenantLock, get_tenant_lock
from orgtree.main import create_app

# Import all models to ensure they're registered with Base.metadata
from orgtree.modules.nodes.models import Node  # noqa: F401
from orgtree.modules.nodes.repos import NodeRepository
from orgtree.modules.nodes.services import HierarchyService
from orgtree.modules.users.models import User  # noqa: F401
from orgtree.modules.users.repos import UserRepository


# In-memory SQLite shared by every session of a test through StaticPool
TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest.fixture
async def engine():
    """Create a fresh in-memory database for one test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def db(engine) -> AsyncGenerator[AsyncSession, None]:
    """Provide a database session for tests."""
    session_factory = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with session_factory() as session:
        yield session


@pytest.fixture
def tenant_lock() -> LocalTenantLock:
    """Provide a tenant lock private to the test."""
    return LocalTenantLock()


@pytest.fixture
def service(db: AsyncSession, tenant_lock: LocalTenantLock) -> HierarchyService:
    """Provide a hierarchy service wired to the test database."""
    return HierarchyService(
        repo=NodeRepository(db),
        occupants=UserRepository(db),
        lock=tenant_lock,
    )


@pytest.fixture
async def app(db: AsyncSession, tenant_lock: LocalTenantLock):
    """Create test application instance."""
    application = create_app()

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db

    application.dependency_overrides[get_db] = override_get_db
    application.dependency_overrides[get_tenant_lock] = lambda: tenant_lock

    yield application

    application.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Provide async HTTP client for API testing."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
